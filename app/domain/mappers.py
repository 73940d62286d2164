"""
Mapping from raw provider records to domain value types.

Every fallback chain for provider fields lives here so that routes and
services never inspect raw payloads themselves. Bump MAPPER_VERSION when a
chain changes.
"""
from __future__ import annotations
from typing import Any, Mapping, Optional

from core.roles import Role, parse_role
from domain.models import Account, Company, Membership, UNKNOWN

MAPPER_VERSION = 2

DEFAULT_DISPLAY_NAME = "Usuário"


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def resolve_display_name(metadata: Optional[Mapping[str, Any]], email: Optional[str]) -> str:
    """name -> full_name -> local part of the e-mail -> "Usuário"."""
    metadata = metadata or {}
    for key in ("name", "full_name"):
        value = _text(metadata.get(key))
        if value:
            return value
    local_part = _text(email).split("@", 1)[0].strip()
    if local_part:
        return local_part
    return DEFAULT_DISPLAY_NAME


def role_hint(metadata: Optional[Mapping[str, Any]]) -> Optional[Role]:
    """Role embedded in the account metadata, if it names a known role."""
    metadata = metadata or {}
    for key in ("cargo", "role"):
        role = parse_role(metadata.get(key))
        if role is not None:
            return role
    return None


def resolve_role(membership: Optional[Membership], account: Account) -> str:
    """Membership role -> metadata hint -> "—"."""
    if membership is not None and membership.role is not None:
        return membership.role.value
    hint = role_hint(account.metadata)
    if hint is not None:
        return hint.value
    return UNKNOWN


def account_from_raw(raw: Mapping[str, Any]) -> Account:
    """Identity provider user object (or a `{"user": {...}}` envelope) to Account."""
    if isinstance(raw.get("user"), Mapping):
        raw = raw["user"]
    metadata = raw.get("user_metadata") or {}
    if not isinstance(metadata, Mapping):
        metadata = {}
    email = _text(raw.get("email"))
    return Account(
        id=str(raw["id"]),
        email=email,
        display_name=resolve_display_name(metadata, email),
        created_at=raw.get("created_at"),
        metadata=dict(metadata),
    )


def account_from_claims(claims: Mapping[str, Any]) -> Account:
    """Access-token claims to Account (same fallbacks as the directory)."""
    metadata = claims.get("user_metadata") or {}
    if not isinstance(metadata, Mapping):
        metadata = {}
    email = _text(claims.get("email"))
    return Account(
        id=str(claims["sub"]),
        email=email,
        display_name=resolve_display_name(metadata, email),
        metadata=dict(metadata),
    )


def membership_from_row(row: tuple) -> Optional[Membership]:
    """
    (usuario_id, empresa_id, cargo, ativo) to Membership.

    An unknown cargo keeps the company link and maps to role None; only rows
    without both ids are dropped.
    """
    account_id, company_id, cargo, ativo = row
    if account_id is None or company_id is None:
        return None
    return Membership(
        account_id=str(account_id),
        company_id=str(company_id),
        role=parse_role(cargo),
        active=bool(ativo),
    )


def company_from_row(row: tuple) -> Company:
    """(id, nome, cnpj, dominio, logoUrl, telefone) to Company."""
    company_id, nome, cnpj, dominio, logo_url, telefone = row
    return Company(
        id=str(company_id),
        name=nome or "",
        tax_id=cnpj,
        domain=dominio,
        logo_url=logo_url,
        phone=telefone,
    )
