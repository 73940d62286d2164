"""
Invitation endpoints.

- Validation happens before any provider call, including the inviter's
  membership lookup when AUTH_ENABLED
- A failed company link after a successful invite is reported as partial_link
  with the account id; POST /api/invite-user/link completes it
"""
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends

from api.deps import get_identity, get_memberships, get_settings, optional_account, requester_for
from core.auth import Requester
from core.config import Settings
from core.roles import Role, has_min_role, is_admin, require_company_scope, require_min_role
from core.errors import AuthorizationError
from domain.models import Account
from schemas.users import InviteIn, InviteOut, LinkIn, LinkOut
from services.invitation_service import invite_user, link_account, validate_invite, validate_link

router = APIRouter(prefix="/api", tags=["invitations"])


def _check_inviter(requester: Requester, company_id: str, role: Role) -> None:
    require_min_role(requester, Role.GESTOR)
    require_company_scope(requester, company_id)
    # gestores cannot hand out admin
    if is_admin(role) and not has_min_role(requester.role, Role.ADMIN):
        raise AuthorizationError("Somente administradores podem convidar administradores.")


@router.post("/invite-user", response_model=InviteOut)
def api_invite_user(
    body: InviteIn,
    account: Optional[Account] = Depends(optional_account),
    identity=Depends(get_identity),
    memberships=Depends(get_memberships),
    cfg: Settings = Depends(get_settings),
):
    _, _, company_id, role = validate_invite(body.nome, body.email, body.empresaId, body.cargo)
    if account is not None:
        _check_inviter(requester_for(account, memberships), company_id, role)

    user = invite_user(
        identity,
        memberships,
        display_name=body.nome,
        email=body.email,
        company_id=body.empresaId,
        role=body.cargo,
        redirect_to=cfg.INVITE_REDIRECT_URL,
        invited_by=account.id if account else None,
    )
    return {"success": True, "user": user}


@router.post("/invite-user/link", response_model=LinkOut)
def api_link_user(
    body: LinkIn,
    account: Optional[Account] = Depends(optional_account),
    identity=Depends(get_identity),
    memberships=Depends(get_memberships),
):
    _, company_id, role = validate_link(body.accountId, body.empresaId, body.cargo)
    if account is not None:
        _check_inviter(requester_for(account, memberships), company_id, role)

    vinculo = link_account(
        identity,
        memberships,
        account_id=body.accountId,
        company_id=body.empresaId,
        role=body.cargo,
        linked_by=account.id if account else None,
    )
    return {"success": True, "vinculo": vinculo}
