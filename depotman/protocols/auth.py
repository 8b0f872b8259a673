"""
Principal — the authenticated caller, as handed over by the host project.

Session validation lives outside Depotman. The core only requires that a
principal is present for mutations and checks the role on approval.
"""

from __future__ import annotations

from dataclasses import dataclass

from depotman.conf import depotman_settings
from depotman.exceptions import Unauthorized


@dataclass(frozen=True)
class Principal:
    """Per-request identity."""

    user_id: str
    role: str

    @property
    def is_manager(self) -> bool:
        return self.role in tuple(depotman_settings.MANAGER_ROLES)


def require_principal(principal: Principal | None) -> Principal:
    """Return the principal or raise Unauthorized('PRINCIPAL_REQUIRED')."""
    if principal is None:
        raise Unauthorized('PRINCIPAL_REQUIRED')
    return principal


def require_manager(principal: Principal | None, action: str) -> Principal:
    """Return the principal if it holds a manager role."""
    principal = require_principal(principal)
    if not principal.is_manager:
        raise Unauthorized(
            'UNAUTHORIZED',
            action=action,
            user_id=principal.user_id,
            role=principal.role,
        )
    return principal


def principal_for_user(user) -> Principal:
    """Principal for a Django user: superusers get the ADMIN role."""
    role = 'ADMIN' if user.is_superuser else 'STAFF'
    return Principal(user_id=str(user.pk), role=role)
