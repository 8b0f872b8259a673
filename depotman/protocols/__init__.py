"""
Depotman Protocols.

Defines interfaces for external system integration.
"""

from depotman.protocols.audit import AuditSink
from depotman.protocols.auth import (
    Principal,
    principal_for_user,
    require_manager,
    require_principal,
)
from depotman.protocols.catalog import CatalogBackend

__all__ = [
    "AuditSink",
    "CatalogBackend",
    "Principal",
    "principal_for_user",
    "require_manager",
    "require_principal",
]
