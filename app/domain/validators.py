import re
from typing import Optional

from core.errors import InvalidTenantIdError, MissingTenantError, ValidationError

_TENANT_ID = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
_NON_DIGITS = re.compile(r"\D")


def clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def is_tenant_id(value: Optional[str]) -> bool:
    return bool(value) and _TENANT_ID.match(value) is not None


def require_tenant_id(value: Optional[str]) -> str:
    """Return the trimmed company id or raise Missing/InvalidTenant errors."""
    value = clean(value)
    if not value:
        raise MissingTenantError()
    if not is_tenant_id(value):
        raise InvalidTenantIdError()
    return value.lower()


def optional_tenant_id(value: Optional[str]) -> Optional[str]:
    if not clean(value):
        return None
    return require_tenant_id(value)


def normalize_cnpj(value: str) -> str:
    digits = _NON_DIGITS.sub("", value or "")
    if len(digits) != 14:
        raise ValidationError("CNPJ deve ter 14 dígitos.")
    return digits
