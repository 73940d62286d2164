"""
Users listing endpoint.

- Non-admin listings are company-scoped at the query level
- With AUTH_ENABLED, the query may not ask for a wider scope than the caller's membership
- Query validation runs before the caller's membership is looked up
"""
from __future__ import annotations
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query

from api.deps import get_companies, get_identity, get_memberships, optional_account, requester_for
from core.auth import Requester
from core.errors import AuthorizationError
from core.logger import log_security_event
from core.roles import is_admin
from domain.models import Account
from domain.validators import require_tenant_id
from schemas.users import EmpresaGroupOut, GroupedUsersOut, UserOut, UsersOut
from services.membership_aggregator import list_visible_users, listing_scope

router = APIRouter(prefix="/api", tags=["users"])
def enforce_listing_scope(requester: Requester, cargo: Optional[str], empresa_id: Optional[str]) -> None:
    """Raise AuthorizationError when the query asks for more than the caller holds."""
    caller_admin = is_admin(requester.role)
    if is_admin(cargo) and not caller_admin:
        denied = "admin_view"
    elif not caller_admin and require_tenant_id(empresa_id) != requester.company_id:
        denied = "other_tenant"
    else:
        return
    log_security_event(
        action="list_users",
        result="denied",
        user_id=requester.account_id,
        tenant_id=requester.company_id,
        meta={"reason": denied, "requested_tenant_id": empresa_id},
        level="warning",
    )
    raise AuthorizationError()


@router.get("/users", response_model=Union[GroupedUsersOut, UsersOut])
def list_users(
    cargo: Optional[str] = Query(None, description="Requester role: admin | gestor | colaborador"),
    empresaId: Optional[str] = Query(None, description="Requester company (required for non-admins)"),
    search: Optional[str] = Query(None, description="Substring of e-mail, name or company"),
    account: Optional[Account] = Depends(optional_account),
    identity=Depends(get_identity),
    memberships=Depends(get_memberships),
    companies=Depends(get_companies),
):
    """
    List the users visible to the requester.

    Returns:
        {"empresas": [...]} grouped by company for admins, {"users": [...]} otherwise
    """
    listing_scope(cargo, empresaId)
    if account is not None:
        enforce_listing_scope(requester_for(account, memberships), cargo, empresaId)

    result = list_visible_users(
        identity,
        memberships,
        companies,
        requester_role=cargo,
        requester_company_id=empresaId,
        search_term=search,
    )
    if is_admin(cargo):
        return GroupedUsersOut(empresas=[EmpresaGroupOut.from_group(g) for g in result])
    return UsersOut(users=[UserOut.from_visible(u) for u in result])
