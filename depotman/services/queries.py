"""
Inventory queries — read-only operations.

All methods are classmethod on Inventory and use no locking.
"""

from depotman.models.entry import LedgerEntry
from depotman.models.enums import EntryStatus
from depotman.models.move import Move
from depotman.services.ledger import StockLedger


class InventoryQueries:
    """Read-only inventory query methods."""

    @classmethod
    def get_quantity(cls, product, location, status=EntryStatus.AVAILABLE) -> int:
        """
        Quantity in one ledger bucket.

        Args:
            product: Product object or pk
            location: Location object or pk
            status: EntryStatus value (default AVAILABLE)

        Returns:
            int, 0 when no entry exists
        """
        return StockLedger.get_quantity(product, location, status)

    @classmethod
    def on_hand(cls, product, location) -> dict[str, int]:
        """Quantity per status at one location, non-empty buckets only."""
        rows = LedgerEntry.objects.for_product(product).at_location(location).non_empty()
        return dict(rows.values_list('status', '_quantity'))

    @classmethod
    def total(cls, product, status=EntryStatus.AVAILABLE) -> int:
        """Quantity of one status summed across every location."""
        return LedgerEntry.objects.for_product(product).with_status(status).total()

    @classmethod
    def query(cls, location=None, product=None, status=None, include_empty=False):
        """
        Ledger entries matching the given filters.

        Returns:
            LedgerEntry queryset ordered by location, product, status
        """
        qs = LedgerEntry.objects.select_related('product', 'location')

        if location is not None:
            qs = qs.at_location(location)
        if product is not None:
            qs = qs.for_product(product)
        if status is not None:
            qs = qs.with_status(status)
        if not include_empty:
            qs = qs.non_empty()

        return qs.order_by('location__code', 'product__sku', 'status')

    @classmethod
    def history(cls, product, location, status=None):
        """Moves for a (product, location), oldest first."""
        qs = Move.objects.filter(
            entry__product=product,
            entry__location=location,
        ).select_related('entry')

        if status is not None:
            qs = qs.filter(entry__status=status)

        return qs.order_by('timestamp', 'pk')
