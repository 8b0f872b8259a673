"""
Depotman Adapters.

Implementations of protocols for external systems.
"""

from depotman.adapters.audit import (
    LoggingAuditSink,
    get_audit_sink,
    reset_audit_sink,
)
from depotman.adapters.catalog import (
    ModelCatalog,
    get_catalog,
    reset_catalog,
)
from depotman.adapters.noop import NoopAuditSink

__all__ = [
    "LoggingAuditSink",
    "ModelCatalog",
    "NoopAuditSink",
    "get_audit_sink",
    "get_catalog",
    "reset_audit_sink",
    "reset_catalog",
]
