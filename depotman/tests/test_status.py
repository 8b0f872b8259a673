"""
Tests for the stock status aggregator.
"""

import pytest

from depotman import inventory, stock_status
from depotman.exceptions import InventoryError
from depotman.models import StockStatus


pytestmark = pytest.mark.django_db


class TestRecompute:

    def test_reserved_is_not_available(self, product, stocked, clerk):
        """current = AVAILABLE + RESERVED, available = current - reserved."""
        inventory.change_status(product, stocked, 30, 'AVAILABLE', 'RESERVED', principal=clerk)

        status = StockStatus.objects.get(location=stocked, product=product)
        assert status.current_stock == 100
        assert status.reserved_stock == 30
        assert status.available_stock == 70
        assert status.out_of_stock is False

    def test_other_buckets_are_ignored(self, product, stocked, clerk):
        inventory.adjust(product, stocked, 'SUBTRACT', 10, 'DAMAGE', principal=clerk)
        inventory.change_status(product, stocked, 5, 'AVAILABLE', 'IN_TRANSIT', principal=clerk)

        status = StockStatus.objects.get(location=stocked, product=product)
        assert status.current_stock == 85

    def test_all_reserved_is_out_of_stock(self, product, stocked, clerk):
        inventory.change_status(product, stocked, 100, 'AVAILABLE', 'RESERVED', principal=clerk)

        status = StockStatus.objects.get(location=stocked, product=product)
        assert status.available_stock == 0
        assert status.out_of_stock is True

    def test_sold_out(self, product, stocked, clerk):
        inventory.reserve_for_sale(product, stocked, 100, principal=clerk)

        assert StockStatus.objects.get(location=stocked, product=product).out_of_stock

    def test_recompute_without_entries(self, product, warehouse):
        status = stock_status.recompute(warehouse, product)

        assert status.current_stock == 0
        assert status.out_of_stock is True

    def test_recompute_by_primary_key_creates_missing_row(self, product, stocked):
        StockStatus.objects.all().delete()

        status = stock_status.recompute(stocked.pk, product.pk)

        assert status.location == stocked
        assert status.available_stock == 100

    def test_rebuild_restores_rows(self, product, product2, stocked, store, clerk):
        inventory.receive_stock(product2, store, 3, principal=clerk)
        StockStatus.objects.all().delete()

        assert stock_status.rebuild() == 2
        assert StockStatus.objects.get(location=store, product=product2).available_stock == 3

    def test_rebuild_one_location(self, product, product2, stocked, store, clerk):
        inventory.receive_stock(product2, store, 3, principal=clerk)
        StockStatus.objects.all().delete()

        assert stock_status.rebuild(location=store) == 1
        assert not StockStatus.objects.filter(location=stocked).exists()


class TestListByFilter:

    @pytest.fixture
    def mixed(self, product, product2, warehouse, store, clerk):
        """wh1: product 50, product2 4. store1: product sold out."""
        inventory.receive_stock(product, warehouse, 50, principal=clerk)
        inventory.receive_stock(product2, warehouse, 4, principal=clerk)
        inventory.receive_stock(product, store, 2, principal=clerk)
        inventory.reserve_for_sale(product, store, 2, principal=clerk)

    def test_out_of_stock(self, mixed, product, store):
        rows = stock_status.list_by_filter(stock_type='outOfStock')

        assert [(r.location, r.product) for r in rows] == [(store, product)]

    def test_low_stock(self, mixed, product2):
        rows = stock_status.list_by_filter(stock_type='lowStock')

        assert [r.product for r in rows] == [product2]

    def test_available(self, mixed):
        assert stock_status.list_by_filter(stock_type='available').count() == 2

    def test_snake_case_alias(self, mixed):
        assert stock_status.list_by_filter(stock_type='out_of_stock').count() == 1

    def test_by_location(self, mixed, warehouse):
        assert stock_status.list_by_filter(location=warehouse).count() == 2

    def test_threshold_is_configurable(self, settings, mixed, product, product2):
        settings.DEPOTMAN = {
            'AUDIT_SINK': 'depotman.tests.sinks.RecordingAuditSink',
            'LOW_STOCK_THRESHOLD': 50,
        }

        rows = stock_status.list_by_filter(stock_type='lowStock')

        assert {r.product for r in rows} == {product, product2}

    def test_unknown_type(self):
        with pytest.raises(InventoryError) as exc:
            stock_status.list_by_filter(stock_type='plenty')

        assert exc.value.code == 'INVALID_STOCK_TYPE'
