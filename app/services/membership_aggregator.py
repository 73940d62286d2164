"""
Visible-user aggregation.

Merges the identity provider's account directory with the active memberships
and company names, scoped by the requester's role:

- admin: every account, grouped by company (accounts without a membership go
  to the "Sem empresa" bucket), groups ordered by company name
- gestor/colaborador/unknown: flat list of co-members of the requester's
  company; the membership query itself is restricted to that company
"""
from __future__ import annotations
import unicodedata
from typing import Optional, Union

from core.roles import is_admin
from domain.mappers import account_from_raw, resolve_role
from domain.models import CompanyGroup, Membership, NO_COMPANY, UNKNOWN, VisibleUser
from domain.validators import clean, optional_tenant_id, require_tenant_id


def collation_key(name: str) -> tuple:
    """pt-BR style ordering: accents and case only break ties."""
    folded = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return (base.casefold(), name.casefold(), name)


def _matches(user: VisibleUser, term: str, include_company: bool) -> bool:
    haystack = [user.email, user.display_name]
    if include_company:
        haystack.append(user.company_name)
    return any(term in value.casefold() for value in haystack)


def group_by_company(users: list[VisibleUser]) -> list[CompanyGroup]:
    groups: dict[Optional[str], CompanyGroup] = {}
    for user in users:
        group = groups.get(user.company_id)
        if group is None:
            name = user.company_name if user.company_id else NO_COMPANY
            group = CompanyGroup(company_id=user.company_id, company_name=name or NO_COMPANY)
            groups[user.company_id] = group
        group.members.append(user)
    return sorted(groups.values(), key=lambda g: collation_key(g.company_name))


def listing_scope(requester_role: Optional[str], requester_company_id: Optional[str]) -> Optional[str]:
    """Company the membership query is restricted to (None for admins)."""
    if is_admin(requester_role):
        # admins see every company; the id is only checked for shape
        optional_tenant_id(requester_company_id)
        return None
    return require_tenant_id(requester_company_id)


def list_visible_users(
    identity,
    memberships,
    companies,
    requester_role: Optional[str],
    requester_company_id: Optional[str] = None,
    search_term: Optional[str] = None,
) -> Union[list[VisibleUser], list[CompanyGroup]]:
    """
    Users the requester may see.

    Args:
        identity: Identity provider client (`list_users()`)
        memberships: Membership repository (`list_active(company_id)`)
        companies: Company repository (`names_for_ids(ids)`)
        requester_role: admin | gestor | colaborador; anything else is non-admin
        requester_company_id: Required for non-admins
        search_term: Case-insensitive substring filter; blank means no filter

    Returns:
        list[CompanyGroup] for admins, list[VisibleUser] otherwise

    Raises:
        MissingTenantError / InvalidTenantIdError: before any provider call
        ProviderError: when any provider call fails (no partial result)
    """
    admin = is_admin(requester_role)
    company_id = listing_scope(requester_role, requester_company_id)

    raw_accounts = identity.list_users()
    rows = memberships.list_active(company_id=company_id)

    by_account: dict[str, Membership] = {}
    for membership in rows:
        # oldest active membership wins
        by_account.setdefault(membership.account_id, membership)

    company_names = companies.names_for_ids({m.company_id for m in by_account.values()})

    users: list[VisibleUser] = []
    for raw in raw_accounts:
        account = account_from_raw(raw)
        membership = by_account.get(account.id)
        if membership is None and not admin:
            continue
        users.append(
            VisibleUser(
                id=account.id,
                email=account.email,
                display_name=account.display_name,
                role=resolve_role(membership, account),
                company_id=membership.company_id if membership else None,
                company_name=company_names.get(membership.company_id, UNKNOWN) if membership else UNKNOWN,
                created_at=account.created_at,
            )
        )

    term = clean(search_term).casefold()
    if term:
        users = [u for u in users if _matches(u, term, include_company=admin)]

    if admin:
        return group_by_company(users)
    return users
