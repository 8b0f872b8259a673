"""
Stock ledger — the single mutation primitive.

Every quantity change in Depotman ends up in StockLedger.apply_delta():
lock the (product, location, status) entry, refuse to go negative, write
an immutable Move, refresh the stock status projection and queue an
audit event.
"""

import logging

from django.db import transaction
from django.db.models import Q

from depotman.exceptions import InsufficientStock, InvalidQuantity, InvalidState
from depotman.models.entry import LedgerEntry
from depotman.models.enums import EntryStatus
from depotman.models.move import Move
from depotman.models.status import StockStatus
from depotman.services.audit import record_event
from depotman.services.status import StockStatusAggregator

logger = logging.getLogger('depotman')


def is_whole_number(value) -> bool:
    """Quantities are plain integers (bools excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)


class StockLedger:
    """Authoritative per-(product, location, status) quantities."""

    @classmethod
    def get_quantity(cls, product, location, status=EntryStatus.AVAILABLE) -> int:
        """Quantity in one bucket, 0 if the entry doesn't exist."""
        quantity = LedgerEntry.objects.filter(
            product=product,
            location=location,
            status=status,
        ).values_list('_quantity', flat=True).first()
        return quantity or 0

    @classmethod
    def lock_entry(cls, product, location, status) -> LedgerEntry | None:
        """Fetch the entry with a row lock. Must run inside a transaction."""
        return LedgerEntry.objects.select_for_update().filter(
            product=product,
            location=location,
            status=status,
        ).first()

    @classmethod
    def lock_keys(cls, keys) -> None:
        """
        Lock every existing entry and stock status row behind several
        (product, location, status) keys. Must run inside a transaction.

        Entries are locked before status rows, each in (product, location,
        status) order. apply_delta() on a single key takes its entry and
        then its status row, so callers that touch several keys and lock
        them here first can't deadlock against each other or against it.
        Rows that don't exist yet are skipped.
        """
        keys = {
            (getattr(product, 'pk', product), getattr(location, 'pk', location), status)
            for product, location, status in keys
        }
        if not keys:
            return

        entries = Q()
        pairs = Q()
        for product_id, location_id, status in keys:
            entries |= Q(product_id=product_id, location_id=location_id, status=status)
            pairs |= Q(product_id=product_id, location_id=location_id)

        list(
            LedgerEntry.objects.select_for_update()
            .filter(entries)
            .order_by('product_id', 'location_id', 'status')
            .values_list('pk', flat=True)
        )
        list(
            StockStatus.objects.select_for_update()
            .filter(pairs)
            .order_by('product_id', 'location_id')
            .values_list('pk', flat=True)
        )

    @classmethod
    def apply_delta(cls, product, location, status, delta, *, reason,
                    user_id='', reference=None, metadata=None) -> LedgerEntry:
        """
        Atomically add delta to the (product, location, status) entry.

        Creates the entry when it doesn't exist and delta > 0.

        Raises:
            InvalidQuantity: delta is zero or not an integer
            InvalidState('INVALID_STATUS'): unknown bucket
            InsufficientStock: the entry would go negative

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on the entry
            - Checks the resulting quantity after the lock
        """
        if not is_whole_number(delta) or delta == 0:
            raise InvalidQuantity(requested=delta, product=product.sku, location=location.code)

        if status not in EntryStatus.values:
            raise InvalidState('INVALID_STATUS', status=status)

        with transaction.atomic():
            entry = cls.lock_entry(product, location, status)

            if entry is None:
                if delta < 0:
                    raise InsufficientStock(
                        available=0,
                        requested=-delta,
                        product=product.sku,
                        location=location.code,
                        status=status,
                    )
                LedgerEntry.objects.get_or_create(
                    product=product,
                    location=location,
                    status=status,
                    defaults={
                        'unit_cost_price': product.cost_price,
                        'unit_retail_price': product.retail_price,
                    },
                )
                entry = cls.lock_entry(product, location, status)

            if entry._quantity + delta < 0:
                raise InsufficientStock(
                    available=entry._quantity,
                    requested=-delta,
                    product=product.sku,
                    location=location.code,
                    status=status,
                )

            move = Move.objects.create(
                entry=entry,
                delta=delta,
                reference=reference,
                reason=reason,
                user_id=user_id,
                metadata=metadata or {},
            )
            entry.refresh_from_db(fields=['_quantity', 'updated_at'])

            StockStatusAggregator.recompute(location, product)

            record_event(
                'LedgerEntry',
                entry.pk,
                'STOCK_DELTA',
                user_id,
                {
                    'move': move.pk,
                    'product': product.sku,
                    'location': location.code,
                    'status': status,
                    'delta': delta,
                    'quantity': entry._quantity,
                    'reason': reason,
                },
            )

        logger.info(
            "inventory.ledger.delta",
            extra={
                "product": product.sku,
                "location": location.code,
                "status": status,
                "delta": delta,
                "quantity": entry._quantity,
                "reason": reason,
            },
        )
        return entry
