"""
Depotman configuration.

Usage in settings.py:
    DEPOTMAN = {
        "CATALOG_BACKEND": "depotman.adapters.catalog.ModelCatalog",
        "AUDIT_SINK": "myproject.audit.DatabaseAuditSink",
        "LOW_STOCK_THRESHOLD": 10,
        "MANAGER_ROLES": ["ADMIN", "MANAGER"],
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class DepotmanSettings:
    """Depotman configuration settings."""

    # Read-only catalog lookups (dotted path)
    CATALOG_BACKEND: str = "depotman.adapters.catalog.ModelCatalog"

    # Write-only audit sink (dotted path)
    AUDIT_SINK: str = "depotman.adapters.audit.LoggingAuditSink"

    # Stock status rows with 0 < available <= threshold are "low stock"
    LOW_STOCK_THRESHOLD: int = 10

    # Roles allowed to approve or reject transfers
    MANAGER_ROLES: tuple = ("ADMIN", "MANAGER", "WAREHOUSE_MANAGER")

    # Transfer numbers look like TRF-20261019-0042
    TRANSFER_NUMBER_PREFIX: str = "TRF"

    # Stock count numbers look like CNT-20261019-0007
    COUNT_NUMBER_PREFIX: str = "CNT"

    # Allow verify_ledger --prune to delete emptied entries and their moves
    PRUNE_EMPTY_ENTRIES: bool = False


def get_depotman_settings() -> DepotmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "DEPOTMAN", {})
    return DepotmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in DepotmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_depotman_settings(), name)


depotman_settings = _LazySettings()
