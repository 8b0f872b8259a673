"""
Tests for the stock ledger primitive.
"""

from decimal import Decimal

import pytest
from django.db import connection, transaction
from django.test.utils import CaptureQueriesContext

from depotman.exceptions import InsufficientStock, InvalidQuantity, InvalidState
from depotman.models import EntryStatus, LedgerEntry, Move, StockStatus
from depotman.services.ledger import StockLedger


pytestmark = pytest.mark.django_db


class TestApplyDelta:
    """Tests for StockLedger.apply_delta()."""

    def test_creates_entry_on_first_credit(self, product, warehouse):
        """First positive delta creates the entry with a price snapshot."""
        entry = StockLedger.apply_delta(
            product, warehouse, EntryStatus.AVAILABLE, 40, reason='Opening balance',
        )

        assert entry.quantity == 40
        assert entry.unit_cost_price == Decimal('5.00')
        assert entry.unit_retail_price == Decimal('12.50')
        assert entry.moves.count() == 1

    def test_updates_existing_entry(self, product, warehouse):
        """Later deltas reuse the same entry."""
        StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 40, reason='In')
        entry = StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, -15, reason='Out')

        assert entry.quantity == 25
        assert LedgerEntry.objects.count() == 1
        assert list(entry.moves.values_list('delta', flat=True)) == [40, -15]

    def test_price_snapshot_is_kept(self, product, warehouse):
        """Changing the product price later doesn't rewrite the entry."""
        StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 10, reason='In')
        product.cost_price = Decimal('9.99')
        product.save()

        entry = StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 1, reason='In')
        assert entry.unit_cost_price == Decimal('5.00')

    def test_refuses_to_go_negative(self, product, warehouse):
        """Overdraw raises and writes nothing."""
        StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 5, reason='In')

        with pytest.raises(InsufficientStock) as exc:
            StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, -6, reason='Out')

        assert exc.value.available == 5
        assert exc.value.requested == 6
        assert StockLedger.get_quantity(product, warehouse) == 5
        assert Move.objects.count() == 1

    def test_debit_on_missing_entry(self, product, warehouse):
        """Debiting a bucket that never existed reports 0 available."""
        with pytest.raises(InsufficientStock) as exc:
            StockLedger.apply_delta(product, warehouse, EntryStatus.DAMAGED, -1, reason='Out')

        assert exc.value.available == 0
        assert not LedgerEntry.objects.exists()

    @pytest.mark.parametrize('delta', [0, 1.5, '3', True])
    def test_rejects_bad_delta(self, product, warehouse, delta):
        """Delta must be a non-zero integer."""
        with pytest.raises(InvalidQuantity):
            StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, delta, reason='x')

    def test_rejects_unknown_status(self, product, warehouse):
        with pytest.raises(InvalidState) as exc:
            StockLedger.apply_delta(product, warehouse, 'LOST', 1, reason='x')

        assert exc.value.code == 'INVALID_STATUS'

    def test_refreshes_stock_status(self, product, warehouse):
        """The status projection follows every delta."""
        StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 12, reason='In')

        status = StockStatus.objects.get(location=warehouse, product=product)
        assert status.current_stock == 12
        assert status.available_stock == 12
        assert status.out_of_stock is False

    def test_records_reference_and_user(self, product, warehouse, store):
        """Moves keep who did it and what document caused it."""
        entry = StockLedger.apply_delta(
            product, warehouse, EntryStatus.AVAILABLE, 3,
            reason='Linked', user_id='u-7', reference=store, metadata={'doc': 'X1'},
        )

        move = entry.moves.get()
        assert move.user_id == 'u-7'
        assert move.reference == store
        assert move.metadata == {'doc': 'X1'}


class TestLockKeys:
    """Tests for StockLedger.lock_keys()."""

    def test_entries_then_status_rows_in_key_order(self, product, product2, warehouse, store):
        StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 5, reason='In')
        StockLedger.apply_delta(product2, store, EntryStatus.AVAILABLE, 5, reason='In')

        with transaction.atomic(), CaptureQueriesContext(connection) as ctx:
            StockLedger.lock_keys([
                (product2, store, EntryStatus.AVAILABLE),
                (product.pk, warehouse.pk, EntryStatus.IN_TRANSIT),
                (product, warehouse, EntryStatus.AVAILABLE),
            ])

        entries_sql, statuses_sql = [query['sql'] for query in ctx.captured_queries]
        assert 'depotman_ledgerentry' in entries_sql
        assert 'depotman_stockstatus' in statuses_sql
        for sql in (entries_sql, statuses_sql):
            ordering = sql.split('ORDER BY')[1]
            assert ordering.index('product_id') < ordering.index('location_id')

    def test_no_keys_no_queries(self, django_assert_num_queries):
        with django_assert_num_queries(0):
            StockLedger.lock_keys([])


class TestGetQuantity:

    def test_missing_entry_is_zero(self, product, warehouse):
        assert StockLedger.get_quantity(product, warehouse) == 0

    def test_buckets_are_separate(self, product, warehouse):
        """Each status is its own entry."""
        StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 8, reason='In')
        StockLedger.apply_delta(product, warehouse, EntryStatus.QUARANTINED, 2, reason='In')

        assert StockLedger.get_quantity(product, warehouse) == 8
        assert StockLedger.get_quantity(product, warehouse, EntryStatus.QUARANTINED) == 2


class TestMoveImmutability:

    def test_move_cannot_be_saved_twice(self, product, warehouse):
        entry = StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 5, reason='In')
        move = entry.moves.get()

        move.delta = 50
        with pytest.raises(ValueError):
            move.save()

    def test_move_cannot_be_deleted(self, product, warehouse):
        entry = StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 5, reason='In')

        with pytest.raises(ValueError):
            entry.moves.get().delete()

    def test_move_requires_reason(self, product, warehouse):
        entry = StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 5, reason='In')

        with pytest.raises(ValueError):
            Move.objects.create(entry=entry, delta=1, reason='')


class TestRecalculate:

    def test_recalculate_fixes_drift(self, product, warehouse):
        """Cache is rebuilt from the move history."""
        entry = StockLedger.apply_delta(product, warehouse, EntryStatus.AVAILABLE, 7, reason='In')
        LedgerEntry.objects.filter(pk=entry.pk).update(_quantity=70)
        entry.refresh_from_db()

        assert entry.recalculate() == 7
        entry.refresh_from_db()
        assert entry.quantity == 7
