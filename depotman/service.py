"""
Inventory Service — the single public interface for ledger operations.

Usage:
    from depotman import inventory, InventoryError

    inventory.receive_stock(tee, central, 100, principal=clerk)
    inventory.reserve_for_sale(tee, downtown, 2, principal=cashier)
    inventory.get_quantity(tee, downtown)  # 98 ... per bucket

Transfers and the stock status view have their own entry points:
depotman.transfers and depotman.stock_status.
"""

from depotman.services.gateway import InventoryGateway
from depotman.services.queries import InventoryQueries


class Inventory(InventoryQueries, InventoryGateway):
    """
    Single interface for inventory reads and writes.

    Parameter convention: (product, location, quantity, ..., principal=...)

    IMPORTANT: All state-changing methods run in atomic transactions and
    lock the ledger entries they touch. See each method's docstring.
    """
