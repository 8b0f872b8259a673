"""
Noop Audit Sink — discards every event.

Usage in settings.py:
    DEPOTMAN = {
        "AUDIT_SINK": "depotman.adapters.noop.NoopAuditSink",
    }

Suitable for local development and test suites that don't assert on
audit events. Do NOT use in production if you need an audit trail; the
ledger's Move history is not a substitute for the audit log.
"""

from __future__ import annotations


class NoopAuditSink:
    """No-operation audit sink."""

    def record(self, entity_type, entity_id, action, user_id, details) -> None:
        return None
