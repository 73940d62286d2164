"""
RBAC (Role-Based Access Control) module.

- Roles are: admin, gestor, colaborador (lowercase)
- A role belongs to the membership (account in a company), not to the account
- Unknown or missing roles are treated as non-admin
- RBAC logic lives in this module, not scattered across routes
"""
from __future__ import annotations
from enum import Enum
from typing import Optional

from core.errors import AuthorizationError
from core.logger import log_security_event


class Role(str, Enum):
    ADMIN = "admin"
    GESTOR = "gestor"
    COLABORADOR = "colaborador"


DEFAULT_ROLE = Role.COLABORADOR

# Role hierarchy (lower number = higher privilege)
ROLE_HIERARCHY = {
    Role.ADMIN: 0,
    Role.GESTOR: 1,
    Role.COLABORADOR: 2,
}


def parse_role(value: object) -> Optional[Role]:
    """Return the Role for `value` (case/space-insensitive) or None when unknown."""
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def is_admin(value: object) -> bool:
    return parse_role(value) is Role.ADMIN


def has_min_role(role: object, min_role: Role) -> bool:
    parsed = parse_role(role)
    if parsed is None:
        return False
    return ROLE_HIERARCHY[parsed] <= ROLE_HIERARCHY[min_role]


def require_min_role(requester, min_role: Role):
    """
    Ensure the requester's role meets the minimum privilege level.

    Role hierarchy: admin > gestor > colaborador

    Args:
        requester: Object exposing `account_id`, `role` and `company_id`
        min_role: Minimum required role

    Returns:
        The requester when allowed

    Raises:
        AuthorizationError: If the role is missing or below `min_role`
    """
    role = getattr(requester, "role", None)
    if not has_min_role(role, min_role):
        log_security_event(
            action="role_check",
            result="denied",
            user_id=getattr(requester, "account_id", None),
            tenant_id=getattr(requester, "company_id", None),
            meta={"required_min_role": min_role.value, "current_role": getattr(role, "value", role)},
            level="warning",
        )
        raise AuthorizationError(
            meta={
                "required_min_role": min_role.value,
                "current_role": getattr(role, "value", role),
            }
        )
    return requester


def require_company_scope(requester, company_id: str):
    """
    Ensure a non-admin requester only touches their own company.
    Admins may act on any company.
    """
    if is_admin(getattr(requester, "role", None)):
        return requester
    if getattr(requester, "company_id", None) != company_id:
        log_security_event(
            action="tenant_scope",
            result="denied",
            user_id=getattr(requester, "account_id", None),
            tenant_id=getattr(requester, "company_id", None),
            meta={"requested_tenant_id": company_id},
            level="warning",
        )
        raise AuthorizationError("Acesso negado a esta empresa.")
    return requester
