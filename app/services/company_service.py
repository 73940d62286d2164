"""
Company profile and logo.

Logo upload is two steps: store the object under
`logos/{company_id}_{timestamp_ms}.{ext}` and then persist its public URL on
the company row. The stored URL is stable per upload; readers append
`?v={timestamp}` to bypass caches after a re-upload.
"""
from __future__ import annotations
import time
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from core.errors import NotFoundError, ProviderError, ValidationError
from core.logger import log_security_event
from domain.models import Company
from domain.validators import clean, normalize_cnpj

LOGO_CONTENT_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


def get_company(companies, company_id: str) -> Company:
    company = companies.get(company_id)
    if company is None:
        raise NotFoundError("Empresa não encontrada.")
    return company


def update_company(companies, company_id: str, fields: dict, updated_by: Optional[str] = None) -> Company:
    changes: dict = {}
    if "name" in fields:
        name = clean(fields["name"])
        if not name:
            raise ValidationError("Nome da empresa é obrigatório.")
        changes["name"] = name
    if "tax_id" in fields:
        changes["tax_id"] = normalize_cnpj(fields["tax_id"])
    for attr in ("phone", "domain"):
        if attr in fields:
            changes[attr] = clean(fields[attr]) or None
    if not changes:
        raise ValidationError("Nenhum campo para atualizar.")

    company = companies.update(company_id, changes)
    if company is None:
        raise NotFoundError("Empresa não encontrada.")
    log_security_event(
        action="company_update",
        result="success",
        user_id=updated_by,
        tenant_id=company_id,
        meta={"fields": sorted(changes)},
    )
    return company


def logo_key(company_id: str, extension: str, timestamp_ms: int) -> str:
    return f"logos/{company_id}_{timestamp_ms}.{extension}"


def with_cache_buster(url: str, version: int) -> str:
    parts = urlsplit(url)
    query = f"{parts.query}&v={version}" if parts.query else f"v={version}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def upload_logo(
    storage,
    companies,
    company_id: str,
    *,
    content: bytes,
    content_type: Optional[str],
    filename: Optional[str] = None,
    max_bytes: int,
    uploaded_by: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> dict:
    """
    Upload a company logo and persist its public URL.

    Returns:
        Dict with `logo_url` (stored) and `logo_url_versioned` (cache-busted)

    Raises:
        ValidationError: unsupported type, empty or oversized file
        NotFoundError: company row missing (the uploaded object is left in place)
        ProviderError: storage or database failure
    """
    extension = LOGO_CONTENT_TYPES.get((content_type or "").lower())
    if extension is None:
        raise ValidationError("Envie uma imagem PNG, JPG ou WEBP.")
    if not content:
        raise ValidationError("Arquivo vazio.")
    if len(content) > max_bytes:
        raise ValidationError(f"A imagem deve ter no máximo {max_bytes // (1024 * 1024)} MB.")

    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    key = logo_key(company_id, extension, timestamp)

    storage.upload(key, content, content_type.lower())
    public_url = storage.public_url(key)
    if not public_url:
        raise ProviderError("storage", f"no public URL for {key}")

    if not companies.set_logo_url(company_id, public_url):
        raise NotFoundError("Empresa não encontrada.")

    log_security_event(
        action="logo_update",
        result="success",
        user_id=uploaded_by,
        tenant_id=company_id,
        meta={"key": key, "filename": filename, "size": len(content)},
    )
    return {
        "logo_url": public_url,
        "logo_url_versioned": with_cache_buster(public_url, timestamp),
        "key": key,
    }
