"""
Django Depotman — multi-location inventory ledger and transfer engine.

Usage:
    from depotman import inventory, transfers, stock_counts, InventoryError

    inventory.receive_stock(tee, central, 100, principal=clerk)
    t = transfers.create(central, downtown, [{"product": tee, "quantity": 10}],
                         principal=clerk)
"""

_LAZY = {
    'inventory': ('depotman.service', 'Inventory'),
    'transfers': ('depotman.services.transfers', 'TransferWorkflow'),
    'stock_status': ('depotman.services.status', 'StockStatusAggregator'),
    'stock_counts': ('depotman.services.counts', 'StockCountWorkflow'),
    'Principal': ('depotman.protocols.auth', 'Principal'),
    'InventoryError': ('depotman.exceptions', 'InventoryError'),
    'InsufficientStock': ('depotman.exceptions', 'InsufficientStock'),
    'InvalidState': ('depotman.exceptions', 'InvalidState'),
    'InvalidQuantity': ('depotman.exceptions', 'InvalidQuantity'),
    'InvalidTransfer': ('depotman.exceptions', 'InvalidTransfer'),
    'NotFound': ('depotman.exceptions', 'NotFound'),
    'Unauthorized': ('depotman.exceptions', 'Unauthorized'),
    'Location': ('depotman.models.location', 'Location'),
    'Product': ('depotman.models.product', 'Product'),
    'LedgerEntry': ('depotman.models.entry', 'LedgerEntry'),
    'Move': ('depotman.models.move', 'Move'),
    'Transfer': ('depotman.models.transfer', 'Transfer'),
    'TransferItem': ('depotman.models.transfer', 'TransferItem'),
    'StockStatus': ('depotman.models.status', 'StockStatus'),
    'StockCount': ('depotman.models.count', 'StockCount'),
    'StockCountItem': ('depotman.models.count', 'StockCountItem'),
    'EntryStatus': ('depotman.models.enums', 'EntryStatus'),
    'TransferStatus': ('depotman.models.enums', 'TransferStatus'),
    'StockCountStatus': ('depotman.models.enums', 'StockCountStatus'),
}


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name in _LAZY:
        from importlib import import_module
        module, attr = _LAZY[name]
        return getattr(import_module(module), attr)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = list(_LAZY)

__version__ = '0.1.0'
