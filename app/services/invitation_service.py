"""
Invitation saga: invite at the identity provider, then link to a company.

The two steps cannot share a transaction. When the invite succeeds and the
membership insert fails the account exists but is unlinked; that state is
raised as PartialLinkError with the account id so the link can be completed
through `link_account` without re-inviting the e-mail.
"""
from __future__ import annotations
from typing import Optional

from core.errors import (
    InvitationFailed,
    NotFoundError,
    PartialLinkError,
    ProviderError,
    ProviderRejection,
    ValidationError,
)
from core.logger import log_security_event, logger
from core.roles import DEFAULT_ROLE, Role, parse_role
from domain.mappers import account_from_raw
from domain.models import Membership, UNKNOWN
from domain.validators import clean, require_tenant_id


def resolve_invite_role(cargo: Optional[str]) -> Role:
    if not clean(cargo):
        return DEFAULT_ROLE
    role = parse_role(cargo)
    if role is None:
        raise ValidationError("Cargo inválido.", meta={"cargos": [r.value for r in Role]})
    return role


def validate_invite(
    display_name: Optional[str],
    email: Optional[str],
    company_id: Optional[str],
    role: Optional[str],
) -> tuple[str, str, str, Role]:
    """Cleaned (display_name, email, company_id, role) of an invite request."""
    display_name = clean(display_name)
    email = clean(email)
    if not display_name or not email:
        raise ValidationError("Nome, e-mail e empresaId são obrigatórios.")
    return display_name, email, require_tenant_id(company_id), resolve_invite_role(role)


def validate_link(
    account_id: Optional[str],
    company_id: Optional[str],
    role: Optional[str],
) -> tuple[str, str, Role]:
    account_id = clean(account_id)
    if not account_id:
        raise ValidationError("accountId é obrigatório.")
    return account_id, require_tenant_id(company_id), resolve_invite_role(role)


def invite_user(
    identity,
    memberships,
    *,
    display_name: Optional[str],
    email: Optional[str],
    company_id: Optional[str],
    role: Optional[str] = None,
    redirect_to: Optional[str] = None,
    invited_by: Optional[str] = None,
) -> dict:
    """
    Invite a user by e-mail and link the new account to a company.

    Returns:
        Dict with id, email, cargo and empresa_id of the created account

    Raises:
        ValidationError / MissingTenantError / InvalidTenantIdError: before any provider call
        InvitationFailed: the provider refused the invite (message verbatim)
        ProviderError: the provider could not be reached
        PartialLinkError: invite done, membership insert failed
    """
    display_name, email, company_id, assigned = validate_invite(display_name, email, company_id, role)

    try:
        raw = identity.invite_user_by_email(email, {"name": display_name}, redirect_to=redirect_to)
    except ProviderRejection as exc:
        log_security_event(
            action="invite_user",
            result="failure",
            user_id=invited_by,
            tenant_id=company_id,
            meta={"reason": exc.message},
            level="warning",
        )
        raise InvitationFailed(exc.message) from exc

    if not raw or not (raw.get("id") or (raw.get("user") or {}).get("id")):
        raise InvitationFailed()
    account = account_from_raw(raw)

    membership = Membership(account_id=account.id, company_id=company_id, role=assigned, active=True)
    try:
        memberships.insert(membership)
    except Exception as exc:
        # the account exists from here on; any failure is a partial link
        detail = exc.detail if isinstance(exc, ProviderError) else f"{type(exc).__name__}: {exc}"
        log_security_event(
            action="invite_user",
            result="partial",
            user_id=invited_by,
            tenant_id=company_id,
            meta={"account_id": account.id, "detail": detail},
            level="error",
        )
        raise PartialLinkError(account.id, company_id, detail=detail) from exc

    log_security_event(
        action="invite_user",
        result="success",
        user_id=invited_by,
        tenant_id=company_id,
        meta={"account_id": account.id, "role": assigned.value},
    )
    return {
        "id": account.id,
        "email": account.email or email,
        "cargo": assigned.value,
        "empresa_id": company_id,
    }


def link_account(
    identity,
    memberships,
    *,
    account_id: Optional[str],
    company_id: Optional[str],
    role: Optional[str] = None,
    linked_by: Optional[str] = None,
) -> dict:
    """Complete the membership step of an invitation (idempotent per company)."""
    account_id, company_id, assigned = validate_link(account_id, company_id, role)

    try:
        identity.get_user(account_id)
    except ProviderRejection as exc:
        raise NotFoundError("Usuário não encontrado.") from exc

    existing = memberships.get_active_for_account(account_id, company_id=company_id)
    if existing is not None:
        logger.info("Membership already linked", extra={"user_id": account_id, "tenant_id": company_id})
        return {
            "usuario_id": existing.account_id,
            "empresa_id": existing.company_id,
            "cargo": existing.role.value if existing.role else UNKNOWN,
            "ativo": existing.active,
        }

    membership = memberships.insert(
        Membership(account_id=account_id, company_id=company_id, role=assigned, active=True)
    )
    log_security_event(
        action="link_membership",
        result="success",
        user_id=linked_by,
        tenant_id=company_id,
        meta={"account_id": account_id, "role": assigned.value},
    )
    return {
        "usuario_id": membership.account_id,
        "empresa_id": membership.company_id,
        "cargo": membership.role.value,
        "ativo": membership.active,
    }
