"""
Stock status aggregator — keeps StockStatus in step with the ledger.

recompute() runs synchronously after every ledger mutation, inside the
same transaction, so "out of stock" answers are never stale at the point
of sale.
"""

import logging

from django.utils import timezone

from depotman.conf import depotman_settings
from depotman.exceptions import InventoryError
from depotman.models.entry import LedgerEntry
from depotman.models.enums import EntryStatus
from depotman.models.status import StockStatus

logger = logging.getLogger('depotman')

# Accepted spellings of the list_by_filter() stock types
STOCK_TYPES = {
    'outOfStock': 'out_of_stock',
    'out_of_stock': 'out_of_stock',
    'lowStock': 'low_stock',
    'low_stock': 'low_stock',
    'available': 'available',
}


class StockStatusAggregator:
    """Derived, per-(location, product) sellability view."""

    @classmethod
    def recompute(cls, location, product) -> StockStatus:
        """
        Rebuild one StockStatus row from a fresh ledger scan.

        current_stock = AVAILABLE + RESERVED, reserved_stock = RESERVED.
        location and product may be instances or primary keys.
        """
        location_id = getattr(location, 'pk', location)
        product_id = getattr(product, 'pk', product)

        buckets = dict(
            LedgerEntry.objects.filter(
                location_id=location_id,
                product_id=product_id,
                status__in=[EntryStatus.AVAILABLE, EntryStatus.RESERVED],
            ).values_list('status', '_quantity')
        )
        reserved = buckets.get(EntryStatus.RESERVED, 0)
        current = buckets.get(EntryStatus.AVAILABLE, 0) + reserved
        available = current - reserved

        status, _ = StockStatus.objects.update_or_create(
            location_id=location_id,
            product_id=product_id,
            defaults={
                'current_stock': current,
                'reserved_stock': reserved,
                'available_stock': available,
                'out_of_stock': available <= 0,
                'last_movement_at': timezone.now(),
            },
        )
        logger.debug(
            "stock_status.recomputed",
            extra={
                "location_id": status.location_id,
                "product_id": status.product_id,
                "available": available,
            },
        )
        return status

    @classmethod
    def rebuild(cls, location=None) -> int:
        """
        Recompute every row that has ledger entries or an existing status.

        Returns:
            Number of rows recomputed
        """
        entries = LedgerEntry.objects.all()
        statuses = StockStatus.objects.all()
        if location is not None:
            entries = entries.filter(location=location)
            statuses = statuses.filter(location=location)

        keys = set(entries.values_list('location_id', 'product_id'))
        keys |= set(statuses.values_list('location_id', 'product_id'))

        for location_id, product_id in sorted(keys):
            cls.recompute(location_id, product_id)

        logger.info("stock_status.rebuilt", extra={"rows": len(keys)})
        return len(keys)

    @classmethod
    def list_by_filter(cls, location=None, stock_type=None):
        """
        StockStatus rows, most recently updated first.

        Args:
            location: Location (or pk) to scope to, None = all
            stock_type: 'outOfStock', 'lowStock', 'available' or None

        lowStock means 0 < available_stock <= LOW_STOCK_THRESHOLD, a
        location-wide constant independent of each product's reorder point.
        """
        qs = StockStatus.objects.select_related('location', 'product')

        if location is not None:
            qs = qs.filter(location=location)

        if stock_type:
            kind = STOCK_TYPES.get(stock_type)
            if kind is None:
                raise InventoryError(
                    'INVALID_STOCK_TYPE',
                    stock_type=stock_type,
                    expected=sorted(set(STOCK_TYPES)),
                )
            if kind == 'out_of_stock':
                qs = qs.out_of_stock()
            elif kind == 'low_stock':
                qs = qs.low_stock(depotman_settings.LOW_STOCK_THRESHOLD)
            else:
                qs = qs.in_stock()

        return qs.order_by('-updated_at', '-pk')
