"""
Tests for the stock count workflow.
"""

import re

import pytest

from depotman import inventory, stock_counts
from depotman.exceptions import InvalidQuantity, InvalidState, InventoryError, NotFound
from depotman.models import CountItemStatus, Move, Product, StockCountStatus


pytestmark = pytest.mark.django_db


@pytest.fixture
def counting(product, product2, stocked, clerk):
    """IN_PROGRESS count at the warehouse: product 100, product2 20."""
    inventory.receive_stock(product2, stocked, 20, principal=clerk)
    count = stock_counts.create(stocked, principal=clerk)
    return stock_counts.start(count, principal=clerk)


class TestCreate:

    def test_defaults_to_products_with_entries(self, product, product2, stocked, store, clerk):
        inventory.receive_stock(product2, store, 1, principal=clerk)

        count = stock_counts.create(stocked, principal=clerk)

        assert count.status == StockCountStatus.PLANNED
        assert re.fullmatch(r'CNT-\d{8}-\d{4}', count.count_number)
        assert [item.product for item in count.items.all()] == [product]

    def test_explicit_products(self, product, product2, warehouse, clerk):
        count = stock_counts.create(
            warehouse, ['MUG-WHT', product, product2], principal=clerk,
        )

        assert [item.product for item in count.items.all()] == [product2, product]

    def test_nothing_to_count(self, warehouse, clerk):
        with pytest.raises(InventoryError) as exc:
            stock_counts.create(warehouse, principal=clerk)

        assert exc.value.code == 'EMPTY_COUNT'

    def test_inactive_location(self, product, stocked, clerk):
        stocked.is_active = False
        stocked.save()

        with pytest.raises(InvalidState) as exc:
            stock_counts.create(stocked, principal=clerk)

        assert exc.value.code == 'LOCATION_INACTIVE'


class TestStart:

    def test_snapshots_expected_quantities(self, product, product2, counting):
        expected = {item.product: item.expected_quantity for item in counting.items.all()}

        assert counting.status == StockCountStatus.IN_PROGRESS
        assert counting.started_by == 'clerk-1'
        assert expected == {product: 100, product2: 20}

    def test_snapshot_is_taken_at_start(self, product, stocked, clerk):
        count = stock_counts.create(stocked, principal=clerk)
        inventory.reserve_for_sale(product, stocked, 10, principal=clerk)

        count = stock_counts.start(count, principal=clerk)

        assert count.items.get().expected_quantity == 90

    def test_start_is_idempotent(self, counting, clerk):
        assert stock_counts.start(counting, principal=clerk).status == StockCountStatus.IN_PROGRESS


class TestRecord:

    def test_variance_and_status(self, product, product2, counting, clerk):
        stock_counts.record(counting, [
            {'product': product, 'quantity': 96, 'notes': 'two torn'},
            {'product': product2, 'quantity': 20},
        ], principal=clerk)

        short = counting.items.get(product=product)
        assert short.variance == -4
        assert short.status == CountItemStatus.DISCREPANCY
        assert short.notes == 'two torn'
        assert counting.items.get(product=product2).status == CountItemStatus.COUNTED
        assert counting.progress == 100

    def test_recount_replaces_figure(self, product, counting, clerk):
        stock_counts.record(counting, [{'product': product, 'quantity': 96}], principal=clerk)
        stock_counts.record(counting, [{'product': product, 'quantity': 100}], principal=clerk)

        item = counting.items.get(product=product)
        assert item.variance == 0
        assert item.status == CountItemStatus.COUNTED

    def test_zero_is_a_valid_count(self, product2, counting, clerk):
        stock_counts.record(counting, [{'product': product2, 'quantity': 0}], principal=clerk)

        assert counting.items.get(product=product2).variance == -20

    def test_negative_count(self, product, counting, clerk):
        with pytest.raises(InvalidQuantity):
            stock_counts.record(counting, [{'product': product, 'quantity': -1}], principal=clerk)

    def test_product_not_on_count(self, stocked, clerk):
        count = stock_counts.create(stocked, principal=clerk)
        stock_counts.start(count, principal=clerk)
        stray = Product.objects.create(sku='CAP-RED', name='Red Cap')

        with pytest.raises(NotFound) as exc:
            stock_counts.record(count, [{'product': stray, 'quantity': 1}], principal=clerk)

        assert exc.value.code == 'COUNT_LINE_NOT_FOUND'

    def test_requires_started_count(self, product, stocked, clerk):
        count = stock_counts.create(stocked, principal=clerk)

        with pytest.raises(InvalidState):
            stock_counts.record(count, [{'product': product, 'quantity': 1}], principal=clerk)


class TestComplete:

    def test_books_variances(self, product, product2, stocked, counting, clerk):
        stock_counts.record(counting, [
            {'product': product, 'quantity': 96},
            {'product': product2, 'quantity': 23},
        ], principal=clerk)

        count = stock_counts.complete(counting, principal=clerk)

        assert count.status == StockCountStatus.COMPLETED
        assert count.completed_by == 'clerk-1'
        assert inventory.get_quantity(product, stocked) == 96
        assert inventory.get_quantity(product2, stocked) == 23
        assert set(count.items.values_list('status', flat=True)) == {CountItemStatus.RECONCILED}

        move = Move.objects.filter(entry__product=product).last()
        assert move.delta == -4
        assert move.metadata['reason_code'] == 'COUNT'
        assert count.count_number in move.reason

    def test_uncounted_lines_match_snapshot(self, product, product2, stocked, counting, clerk):
        stock_counts.record(counting, [{'product': product, 'quantity': 99}], principal=clerk)
        moves_before = Move.objects.count()

        count = stock_counts.complete(counting, principal=clerk)

        untouched = count.items.get(product=product2)
        assert untouched.counted_quantity == 20
        assert untouched.variance == 0
        assert untouched.status == CountItemStatus.COUNTED
        assert Move.objects.count() == moves_before + 1
        assert inventory.get_quantity(product2, stocked) == 20

    def test_counted_quantity_wins_over_later_sales(self, product, stocked, counting, clerk):
        stock_counts.record(counting, [{'product': product, 'quantity': 95}], principal=clerk)
        inventory.reserve_for_sale(product, stocked, 3, principal=clerk)

        stock_counts.complete(counting, principal=clerk)

        assert inventory.get_quantity(product, stocked) == 95

    def test_failing_adjustment_rolls_back(self, product, product2, stocked, counting, clerk):
        """A surplus can't be booked into an inactive location."""
        stock_counts.record(counting, [
            {'product': product, 'quantity': 90},
            {'product': product2, 'quantity': 25},
        ], principal=clerk)
        stocked.is_active = False
        stocked.save()

        with pytest.raises(InvalidState) as exc:
            stock_counts.complete(counting, principal=clerk)

        assert exc.value.code == 'LOCATION_INACTIVE'
        counting.refresh_from_db()
        assert counting.status == StockCountStatus.IN_PROGRESS
        assert inventory.get_quantity(product, stocked) == 100
        assert counting.items.get(product=product).status == CountItemStatus.DISCREPANCY

    def test_complete_is_idempotent(self, product, stocked, counting, clerk):
        stock_counts.record(counting, [{'product': product, 'quantity': 98}], principal=clerk)
        stock_counts.complete(counting, principal=clerk)

        stock_counts.complete(counting, principal=clerk)

        assert inventory.get_quantity(product, stocked) == 98

    def test_planned_count_cannot_complete(self, stocked, clerk):
        count = stock_counts.create(stocked, principal=clerk)

        with pytest.raises(InvalidState):
            stock_counts.complete(count, principal=clerk)


class TestCancel:

    def test_cancel_in_progress(self, product, stocked, counting, clerk):
        stock_counts.record(counting, [{'product': product, 'quantity': 1}], principal=clerk)

        count = stock_counts.cancel(counting, 'Wrong aisle', principal=clerk)

        assert count.status == StockCountStatus.CANCELLED
        assert count.cancellation_reason == 'Wrong aisle'
        assert inventory.get_quantity(product, stocked) == 100

    def test_cancel_needs_reason(self, counting, clerk):
        with pytest.raises(InventoryError) as exc:
            stock_counts.cancel(counting, '  ', principal=clerk)

        assert exc.value.code == 'REASON_REQUIRED'

    def test_completed_count_cannot_cancel(self, counting, clerk):
        stock_counts.complete(counting, principal=clerk)

        with pytest.raises(InvalidState):
            stock_counts.cancel(counting, 'Too late', principal=clerk)


class TestLookup:

    def test_get_by_number_and_pk(self, counting):
        assert stock_counts.get(counting.count_number) == counting
        assert stock_counts.get(counting.pk) == counting

    def test_get_missing(self, db):
        with pytest.raises(NotFound) as exc:
            stock_counts.get('CNT-19990101-0001')

        assert exc.value.code == 'COUNT_NOT_FOUND'

    def test_list_filters(self, product, counting, store, clerk):
        inventory.receive_stock(product, store, 1, principal=clerk)
        other = stock_counts.create(store, principal=clerk)

        assert list(stock_counts.list()) == [other, counting]
        assert list(stock_counts.list(status=StockCountStatus.PLANNED)) == [other]
        assert list(stock_counts.list(location='store1')) == [other]


class TestAudit:

    def test_lifecycle_events(self, product, stocked, clerk, audit_events,
                              django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            count = stock_counts.create(stocked, principal=clerk)
            stock_counts.start(count, principal=clerk)
            stock_counts.record(count, [{'product': product, 'quantity': 99}], principal=clerk)
            stock_counts.complete(count, principal=clerk)

        actions = [e['action'] for e in audit_events if e['entity_type'] == 'StockCount']
        assert actions == ['CREATE', 'START', 'RECORD', 'COMPLETE']
        complete = audit_events[-1]
        assert complete['details']['adjustments'] == [
            {'product': 'TEE-BLK-M', 'expected': 100, 'counted': 99, 'variance': -1},
        ]
