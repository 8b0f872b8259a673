"""
Depotman Models.

Core models for multi-location inventory:
- Location: Where stock is held (warehouse or store)
- Product: Catalog mirror (read-only to the core)
- LedgerEntry: Quantity cache per (product, location, status)
- Move: Immutable ledger of changes
- Transfer / TransferItem: Shipments between locations
- StockStatus: Derived sellability view
- StockCount / StockCountItem: Physical counts reconciled into the ledger
"""

from depotman.models.count import StockCount, StockCountItem
from depotman.models.entry import LedgerEntry
from depotman.models.enums import (
    AdjustmentType,
    CountItemStatus,
    EntryStatus,
    ItemCondition,
    LocationKind,
    ReasonCode,
    StockCountStatus,
    TransferStatus,
    TransferType,
)
from depotman.models.location import Location
from depotman.models.move import Move
from depotman.models.product import Product
from depotman.models.status import StockStatus
from depotman.models.transfer import Transfer, TransferItem

__all__ = [
    'AdjustmentType',
    'CountItemStatus',
    'EntryStatus',
    'ItemCondition',
    'LocationKind',
    'ReasonCode',
    'StockCountStatus',
    'TransferStatus',
    'TransferType',
    'Location',
    'Product',
    'LedgerEntry',
    'Move',
    'Transfer',
    'TransferItem',
    'StockStatus',
    'StockCount',
    'StockCountItem',
]
