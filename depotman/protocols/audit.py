"""
Audit Sink Protocol — write-only destination for audit events.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class AuditSink(Protocol):
    """
    Receives one immutable event per mutating operation.

    Calls are fire-and-forget: a failing sink is logged by the caller and
    never aborts the stock mutation that produced the event.
    """

    def record(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        user_id: str,
        details: dict[str, Any],
    ) -> None:
        ...
