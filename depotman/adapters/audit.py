"""
Depotman Audit Adapter — where audit events go.

Settings:
    DEPOTMAN = {
        "AUDIT_SINK": "depotman.adapters.audit.LoggingAuditSink",
    }

Any class with a ``record(entity_type, entity_id, action, user_id, details)``
method works. Persisting the events is the host project's concern.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from depotman.conf import depotman_settings
from depotman.protocols.audit import AuditSink

logger = logging.getLogger(__name__)


class LoggingAuditSink:
    """Default sink: writes every event to the ``depotman.audit`` logger."""

    audit_logger = logging.getLogger('depotman.audit')

    def record(self, entity_type, entity_id, action, user_id, details):
        self.audit_logger.info(
            "audit.%s.%s",
            entity_type,
            action,
            extra={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
                "user_id": user_id,
                "details": details,
            },
        )


_lock = threading.Lock()
_sink: AuditSink | None = None
_sink_path: str | None = None


def get_audit_sink() -> AuditSink:
    """
    Return the configured audit sink.

    Raises:
        ImproperlyConfigured: If AUDIT_SINK is empty or import fails
    """
    global _sink, _sink_path

    sink_path = depotman_settings.AUDIT_SINK

    if _sink is None or _sink_path != sink_path:
        with _lock:
            if _sink is None or _sink_path != sink_path:
                if not sink_path:
                    raise ImproperlyConfigured(
                        "DEPOTMAN['AUDIT_SINK'] must be configured. "
                        "Use 'depotman.adapters.noop.NoopAuditSink' to discard events."
                    )

                try:
                    sink_class = import_string(sink_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import audit sink '{sink_path}': {e}"
                    ) from e

                _sink = sink_class()
                _sink_path = sink_path
                logger.debug("Loaded audit sink: %s", sink_path)

    return _sink


def reset_audit_sink() -> None:
    """Reset the cached sink. Useful for testing."""
    global _sink, _sink_path
    _sink = None
    _sink_path = None
