"""
Signed-in account endpoints ("Minha Conta").

- Bearer token required except for password recovery
- Role and company come from the caller's active membership
"""
from __future__ import annotations
from fastapi import APIRouter, Depends

from api.deps import current_account, get_companies, get_identity, get_memberships, get_settings
from core.config import Settings
from domain.models import Account
from schemas.account import (
    AccountOut,
    EmpresaOut,
    MeOut,
    PasswordChangeIn,
    ProfileOut,
    ProfileUpdateIn,
    RecoverPasswordIn,
    SuccessOut,
)
from services.account_service import (
    change_password,
    current_context,
    request_password_recovery,
    update_profile,
)

router = APIRouter(prefix="/api", tags=["account"])


@router.get("/me", response_model=MeOut)
def me(
    account: Account = Depends(current_account),
    memberships=Depends(get_memberships),
    companies=Depends(get_companies),
):
    """Current account, its company and its role in that company."""
    membership, company = current_context(account, memberships, companies)
    return MeOut(
        user=AccountOut.from_account(account),
        empresa=EmpresaOut.from_company(company) if company else None,
        cargo=membership.role.value if membership and membership.role else None,
    )


@router.patch("/me/profile", response_model=ProfileOut)
def patch_profile(
    body: ProfileUpdateIn,
    account: Account = Depends(current_account),
    identity=Depends(get_identity),
):
    updated = update_profile(identity, account, display_name=body.nome, email=body.email)
    return ProfileOut(user=AccountOut.from_account(updated))


@router.post("/me/password", response_model=SuccessOut)
def post_password(
    body: PasswordChangeIn,
    account: Account = Depends(current_account),
    identity=Depends(get_identity),
):
    change_password(identity, account, current=body.atual, new=body.nova, confirm=body.confirmar)
    return SuccessOut()


@router.post("/recover-password", response_model=SuccessOut)
def post_recover_password(
    body: RecoverPasswordIn,
    identity=Depends(get_identity),
    cfg: Settings = Depends(get_settings),
):
    request_password_recovery(identity, body.email, cfg.PASSWORD_RESET_REDIRECT_URL)
    return SuccessOut()
