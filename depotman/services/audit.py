"""
Audit dispatch — hands events to the configured sink after commit.

Events are queued with transaction.on_commit, so an operation that rolls
back never emits them. Sink failures are logged and swallowed.
"""

import logging
from typing import Any

from django.db import transaction

from depotman.adapters.audit import get_audit_sink

logger = logging.getLogger('depotman')


def record_event(entity_type: str, entity_id, action: str,
                 user_id: str = '', details: dict[str, Any] | None = None) -> None:
    """Queue one audit event for delivery once the current transaction commits."""
    payload = dict(details or {})
    entity_id = str(entity_id)

    transaction.on_commit(
        lambda: dispatch(entity_type, entity_id, action, user_id, payload)
    )


def dispatch(entity_type: str, entity_id: str, action: str,
             user_id: str, details: dict[str, Any]) -> None:
    """Deliver an event to the sink right away. Never raises."""
    try:
        get_audit_sink().record(entity_type, entity_id, action, user_id, details)
    except Exception:
        logger.exception(
            "audit.sink.failed",
            extra={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
            },
        )
