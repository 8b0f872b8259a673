"""
Tests for the inventory service: receive, adjust, sell, move.
"""

import pytest

from depotman import inventory
from depotman.exceptions import (
    InsufficientStock,
    InvalidAdjustmentType,
    InvalidQuantity,
    InvalidState,
    InvalidTransfer,
    InventoryError,
    NotFound,
    Unauthorized,
)
from depotman.models import EntryStatus, LedgerEntry, Move


pytestmark = pytest.mark.django_db


class TestReceiveStock:
    """Tests for inventory.receive_stock()."""

    def test_receive_credits_available(self, product, warehouse, clerk):
        entry = inventory.receive_stock(product, warehouse, 30, principal=clerk)

        assert entry.quantity == 30
        assert entry.status == EntryStatus.AVAILABLE
        assert entry.moves.get().user_id == 'clerk-1'

    def test_receive_by_primary_key(self, product, warehouse, clerk):
        """Products and locations may be passed as pks."""
        inventory.receive_stock(product.pk, warehouse.pk, 4, principal=clerk)

        assert inventory.get_quantity(product, warehouse) == 4

    def test_receive_by_sku_and_code(self, product, warehouse, clerk):
        inventory.receive_stock('TEE-BLK-M', 'wh1', 6, principal=clerk)

        assert inventory.get_quantity(product, warehouse) == 6

    def test_digit_string_falls_back_to_pk(self, product, warehouse, clerk):
        inventory.receive_stock(str(product.pk), str(warehouse.pk), 2, principal=clerk)

        assert inventory.get_quantity(product, warehouse) == 2

    def test_unknown_product(self, warehouse, clerk):
        with pytest.raises(NotFound) as exc:
            inventory.receive_stock(999999, warehouse, 1, principal=clerk)

        assert exc.value.code == 'PRODUCT_NOT_FOUND'

    def test_unknown_location(self, product, clerk):
        with pytest.raises(NotFound) as exc:
            inventory.receive_stock(product, 'nowhere', 1, principal=clerk)

        assert exc.value.code == 'LOCATION_NOT_FOUND'

    def test_requires_principal(self, product, warehouse):
        with pytest.raises(Unauthorized) as exc:
            inventory.receive_stock(product, warehouse, 1, principal=None)

        assert exc.value.code == 'PRINCIPAL_REQUIRED'
        assert not LedgerEntry.objects.exists()

    def test_inactive_location(self, product, warehouse, clerk):
        warehouse.is_active = False
        warehouse.save()

        with pytest.raises(InvalidState) as exc:
            inventory.receive_stock(product, warehouse, 1, principal=clerk)

        assert exc.value.code == 'LOCATION_INACTIVE'

    @pytest.mark.parametrize('quantity', [0, -3])
    def test_rejects_non_positive(self, product, warehouse, clerk, quantity):
        with pytest.raises(InvalidQuantity):
            inventory.receive_stock(product, warehouse, quantity, principal=clerk)


class TestAdjust:
    """Tests for inventory.adjust()."""

    def test_add(self, product, stocked, clerk):
        entry = inventory.adjust(product, stocked, 'ADD', 5, 'COUNT', principal=clerk)

        assert entry.quantity == 105
        assert entry.moves.last().metadata['adjustment_type'] == 'ADD'

    def test_subtract(self, product, stocked, clerk):
        entry = inventory.adjust(product, stocked, 'SUBTRACT', 8, 'THEFT', principal=clerk)

        assert entry.quantity == 92
        assert inventory.get_quantity(product, stocked, EntryStatus.DAMAGED) == 0

    def test_subtract_damage_moves_to_damaged(self, product, stocked, clerk):
        """Damage write-offs land in the DAMAGED bucket."""
        inventory.adjust(product, stocked, 'SUBTRACT', 4, 'DAMAGE', principal=clerk)

        assert inventory.get_quantity(product, stocked) == 96
        assert inventory.get_quantity(product, stocked, EntryStatus.DAMAGED) == 4

    def test_subtract_expiry_moves_to_expired(self, product, stocked, clerk):
        inventory.adjust(product, stocked, 'SUBTRACT', 2, 'EXPIRY', principal=clerk)

        assert inventory.get_quantity(product, stocked, EntryStatus.EXPIRED) == 2

    def test_subtract_beyond_stock(self, product, stocked, clerk):
        with pytest.raises(InsufficientStock):
            inventory.adjust(product, stocked, 'SUBTRACT', 101, 'COUNT', principal=clerk)

        assert inventory.get_quantity(product, stocked) == 100

    def test_subtract_leaves_ledger_untouched_on_failure(self, product, warehouse, clerk):
        """SUBTRACT 999 against 5 fails and changes nothing."""
        inventory.receive_stock(product, warehouse, 5, principal=clerk)

        with pytest.raises(InsufficientStock):
            inventory.adjust(product, warehouse, 'SUBTRACT', 999, 'ADJUSTMENT', principal=clerk)

        assert inventory.get_quantity(product, warehouse) == 5
        assert Move.objects.count() == 1

    def test_set_computes_delta(self, product, stocked, clerk):
        """SET 60 on 100 writes a single -40 move."""
        entry = inventory.adjust(product, stocked, 'SET', 60, 'COUNT', principal=clerk)

        assert entry.quantity == 60
        assert entry.moves.last().delta == -40

    def test_set_to_same_value_is_noop(self, product, stocked, clerk):
        before = Move.objects.count()

        entry = inventory.adjust(product, stocked, 'SET', 100, 'COUNT', principal=clerk)

        assert entry.quantity == 100
        assert Move.objects.count() == before

    def test_set_zero_on_missing_entry(self, product, warehouse, clerk):
        """Nothing to do, nothing written."""
        assert inventory.adjust(product, warehouse, 'SET', 0, 'COUNT', principal=clerk) is None
        assert not LedgerEntry.objects.exists()

    def test_set_creates_entry(self, product, warehouse, clerk):
        entry = inventory.adjust(product, warehouse, 'SET', 12, 'COUNT', principal=clerk)

        assert entry.quantity == 12

    def test_invalid_type(self, product, stocked, clerk):
        with pytest.raises(InvalidAdjustmentType):
            inventory.adjust(product, stocked, 'MULTIPLY', 2, 'COUNT', principal=clerk)

    def test_add_zero_rejected(self, product, stocked, clerk):
        with pytest.raises(InvalidQuantity):
            inventory.adjust(product, stocked, 'ADD', 0, 'COUNT', principal=clerk)

    def test_reason_required(self, product, stocked, clerk):
        with pytest.raises(InventoryError) as exc:
            inventory.adjust(product, stocked, 'ADD', 1, '', principal=clerk)

        assert exc.value.code == 'REASON_REQUIRED'

    def test_unknown_reason_code(self, product, stocked, clerk):
        with pytest.raises(InventoryError) as exc:
            inventory.adjust(product, stocked, 'ADD', 1, 'MAGIC', principal=clerk)

        assert exc.value.code == 'INVALID_REASON_CODE'

    def test_inactive_location_can_be_drained(self, product, stocked, clerk):
        """No incoming stock, but write-downs still work."""
        stocked.is_active = False
        stocked.save()

        with pytest.raises(InvalidState):
            inventory.adjust(product, stocked, 'ADD', 1, 'COUNT', principal=clerk)

        entry = inventory.adjust(product, stocked, 'SUBTRACT', 1, 'COUNT', principal=clerk)
        assert entry.quantity == 99


class TestReserveForSale:
    """Tests for inventory.reserve_for_sale()."""

    def test_sale_debits_available(self, product, stocked, clerk):
        entry = inventory.reserve_for_sale(product, stocked, 3, principal=clerk)

        assert entry.quantity == 97
        assert entry.moves.last().reason == 'Sale'

    def test_sale_beyond_stock(self, product, stocked, clerk):
        with pytest.raises(InsufficientStock) as exc:
            inventory.reserve_for_sale(product, stocked, 101, principal=clerk)

        assert exc.value.available == 100
        assert exc.value.data['product'] == 'TEE-BLK-M'

    def test_sale_requires_principal(self, product, stocked):
        with pytest.raises(Unauthorized):
            inventory.reserve_for_sale(product, stocked, 1, principal=None)


class TestMoveForTransfer:
    """Tests for inventory.move_for_transfer()."""

    def test_moves_between_locations(self, product, stocked, store, clerk):
        out_entry, in_entry = inventory.move_for_transfer(
            product, stocked, store, 10, principal=clerk,
        )

        assert out_entry.quantity == 90
        assert in_entry.quantity == 10
        assert in_entry.location == store

    def test_in_transit_lands_as_available(self, product, stocked, store, clerk):
        """Default destination bucket out of IN_TRANSIT is AVAILABLE."""
        inventory.change_status(product, stocked, 5, 'AVAILABLE', 'IN_TRANSIT', principal=clerk)

        inventory.move_for_transfer(
            product, stocked, store, 5, principal=clerk, status=EntryStatus.IN_TRANSIT,
        )

        assert inventory.get_quantity(product, stocked, EntryStatus.IN_TRANSIT) == 0
        assert inventory.get_quantity(product, store) == 5

    def test_same_location_and_status(self, product, stocked, clerk):
        with pytest.raises(InvalidTransfer) as exc:
            inventory.move_for_transfer(product, stocked, stocked, 1, principal=clerk)

        assert exc.value.code == 'SAME_LOCATION'

    def test_shortage_moves_nothing(self, product, stocked, store, clerk):
        with pytest.raises(InsufficientStock):
            inventory.move_for_transfer(product, stocked, store, 500, principal=clerk)

        assert inventory.get_quantity(product, stocked) == 100
        assert inventory.get_quantity(product, store) == 0


class TestChangeStatus:

    def test_quarantine(self, product, stocked, clerk):
        inventory.change_status(product, stocked, 6, 'AVAILABLE', 'QUARANTINED', principal=clerk)

        assert inventory.on_hand(product, stocked) == {'AVAILABLE': 94, 'QUARANTINED': 6}

    def test_inactive_location(self, product, stocked, clerk):
        """Same rule as a DAMAGE write-off: re-bucketing is allowed."""
        stocked.is_active = False
        stocked.save()

        inventory.change_status(product, stocked, 4, 'AVAILABLE', 'DAMAGED', principal=clerk)
        inventory.adjust(product, stocked, 'SUBTRACT', 4, 'DAMAGE', principal=clerk)

        assert inventory.on_hand(product, stocked) == {'AVAILABLE': 92, 'DAMAGED': 8}

    def test_same_status(self, product, stocked, clerk):
        with pytest.raises(InvalidState) as exc:
            inventory.change_status(product, stocked, 1, 'AVAILABLE', 'AVAILABLE', principal=clerk)

        assert exc.value.code == 'SAME_STATUS'


class TestQueries:

    def test_query_skips_empty_entries(self, product, product2, stocked, store, clerk):
        inventory.receive_stock(product2, store, 2, principal=clerk)
        inventory.reserve_for_sale(product2, store, 2, principal=clerk)

        assert [e.product for e in inventory.query()] == [product]
        assert inventory.query(include_empty=True).count() == 2

    def test_query_filters(self, product, stocked, store, clerk):
        inventory.move_for_transfer(product, stocked, store, 10, principal=clerk)

        assert inventory.query(location=store).get().quantity == 10
        assert inventory.query(status=EntryStatus.DAMAGED).count() == 0

    def test_total_across_locations(self, product, stocked, store, clerk):
        inventory.move_for_transfer(product, stocked, store, 10, principal=clerk)

        assert inventory.total(product) == 100

    def test_history_oldest_first(self, product, stocked, clerk):
        inventory.reserve_for_sale(product, stocked, 1, principal=clerk)
        inventory.reserve_for_sale(product, stocked, 2, principal=clerk)

        assert [m.delta for m in inventory.history(product, stocked)] == [100, -1, -2]
