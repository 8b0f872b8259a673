"""
Pytest fixtures for Depotman tests.
"""

from decimal import Decimal

import pytest

from depotman import inventory
from depotman.adapters import reset_audit_sink, reset_catalog
from depotman.models import Location, LocationKind, Product
from depotman.protocols import Principal
from depotman.tests.sinks import RecordingAuditSink


@pytest.fixture(autouse=True)
def _reset_adapters():
    """Adapters are cached per process; start every test clean."""
    reset_catalog()
    reset_audit_sink()
    RecordingAuditSink.events.clear()
    yield
    reset_catalog()
    reset_audit_sink()


@pytest.fixture
def clerk():
    """Authenticated non-manager."""
    return Principal(user_id='clerk-1', role='STAFF')


@pytest.fixture
def manager():
    """Authenticated manager (may approve / reject)."""
    return Principal(user_id='mgr-1', role='MANAGER')


@pytest.fixture
def warehouse(db):
    return Location.objects.create(code='wh1', name='Central Warehouse', kind=LocationKind.WAREHOUSE)


@pytest.fixture
def warehouse2(db):
    return Location.objects.create(code='wh2', name='North Warehouse', kind=LocationKind.WAREHOUSE)


@pytest.fixture
def store(db):
    return Location.objects.create(code='store1', name='Downtown Store', kind=LocationKind.STORE)


@pytest.fixture
def store2(db):
    return Location.objects.create(code='store2', name='Harbour Store', kind=LocationKind.STORE)


@pytest.fixture
def product(db):
    """Product P: cost 5.00, retail 12.50."""
    return Product.objects.create(
        sku='TEE-BLK-M',
        name='Black Tee M',
        cost_price=Decimal('5.00'),
        retail_price=Decimal('12.50'),
    )


@pytest.fixture
def product2(db):
    return Product.objects.create(
        sku='MUG-WHT',
        name='White Mug',
        cost_price=Decimal('2.00'),
        retail_price=Decimal('6.00'),
    )


@pytest.fixture
def stocked(warehouse, product, clerk):
    """100 units of product AVAILABLE at the warehouse."""
    inventory.receive_stock(product, warehouse, 100, principal=clerk)
    return warehouse


@pytest.fixture
def audit_events():
    """Events delivered to the recording sink (after commit)."""
    return RecordingAuditSink.events
