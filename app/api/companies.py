"""
Company profile and logo endpoints.

- Read → any active member of the company (or admin)
- Write → min role gestor, own company only (admins: any company)
"""
from __future__ import annotations
from fastapi import APIRouter, Depends, File, UploadFile

from api.deps import current_requester, get_companies, get_settings, get_storage
from core.auth import Requester
from core.config import Settings
from core.roles import Role, require_company_scope, require_min_role
from domain.validators import require_tenant_id
from schemas.account import EmpresaEnvelopeOut, EmpresaOut, EmpresaUpdateIn, LogoOut
from services.company_service import get_company, update_company, upload_logo

router = APIRouter(prefix="/api/empresas", tags=["empresas"])


@router.get("/{empresa_id}", response_model=EmpresaEnvelopeOut)
def read_company(
    empresa_id: str,
    requester: Requester = Depends(current_requester),
    companies=Depends(get_companies),
):
    company_id = require_tenant_id(empresa_id)
    require_company_scope(requester, company_id)
    return EmpresaEnvelopeOut(empresa=EmpresaOut.from_company(get_company(companies, company_id)))


@router.patch("/{empresa_id}", response_model=EmpresaEnvelopeOut)
def patch_company(
    empresa_id: str,
    body: EmpresaUpdateIn,
    requester: Requester = Depends(current_requester),
    companies=Depends(get_companies),
):
    company_id = require_tenant_id(empresa_id)
    require_min_role(requester, Role.GESTOR)
    require_company_scope(requester, company_id)
    company = update_company(companies, company_id, body.to_fields(), updated_by=requester.account_id)
    return EmpresaEnvelopeOut(empresa=EmpresaOut.from_company(company))


@router.post("/{empresa_id}/logo", response_model=LogoOut)
def post_company_logo(
    empresa_id: str,
    file: UploadFile = File(...),
    requester: Requester = Depends(current_requester),
    storage=Depends(get_storage),
    companies=Depends(get_companies),
    cfg: Settings = Depends(get_settings),
):
    company_id = require_tenant_id(empresa_id)
    require_min_role(requester, Role.GESTOR)
    require_company_scope(requester, company_id)

    # read at most limit + 1 bytes
    content = file.file.read(cfg.LOGO_MAX_BYTES + 1)
    result = upload_logo(
        storage,
        companies,
        company_id,
        content=content,
        content_type=file.content_type,
        filename=file.filename,
        max_bytes=cfg.LOGO_MAX_BYTES,
        uploaded_by=requester.account_id,
    )
    return LogoOut(logoUrl=result["logo_url"], logoUrlVersionada=result["logo_url_versioned"])
