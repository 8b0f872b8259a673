"""
Depotman services — modular organization of inventory operations.

    from depotman.services import InventoryQueries, InventoryGateway, TransferWorkflow
"""

from depotman.services.counts import StockCountWorkflow
from depotman.services.gateway import InventoryGateway
from depotman.services.ledger import StockLedger
from depotman.services.queries import InventoryQueries
from depotman.services.status import StockStatusAggregator
from depotman.services.transfers import TransferWorkflow

__all__ = [
    'StockLedger',
    'InventoryQueries',
    'InventoryGateway',
    'StockStatusAggregator',
    'TransferWorkflow',
    'StockCountWorkflow',
]
