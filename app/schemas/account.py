"""
Pydantic schemas for the signed-in account and company endpoints.
"""
from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from domain.models import Account, Company


class AccountOut(BaseModel):
    id: str
    email: str
    nome: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountOut":
        return cls(id=account.id, email=account.email, nome=account.display_name)


class EmpresaOut(BaseModel):
    id: str
    nome: str
    cnpj: Optional[str] = None
    dominio: Optional[str] = None
    logoUrl: Optional[str] = None
    telefone: Optional[str] = None

    @classmethod
    def from_company(cls, company: Company) -> "EmpresaOut":
        return cls(
            id=company.id,
            nome=company.name,
            cnpj=company.tax_id,
            dominio=company.domain,
            logoUrl=company.logo_url,
            telefone=company.phone,
        )


class MeOut(BaseModel):
    user: AccountOut
    empresa: Optional[EmpresaOut] = None
    cargo: Optional[str] = None


class ProfileUpdateIn(BaseModel):
    nome: Optional[str] = Field(default=None, description="New display name")
    email: Optional[EmailStr] = Field(default=None, description="New e-mail (provider sends a confirmation)")


class ProfileOut(BaseModel):
    success: bool = True
    user: AccountOut


class PasswordChangeIn(BaseModel):
    atual: Optional[str] = Field(default=None, description="Current password")
    nova: Optional[str] = Field(default=None, description="New password (min 8 chars)")
    confirmar: Optional[str] = Field(default=None, description="New password confirmation")


class RecoverPasswordIn(BaseModel):
    email: EmailStr


class SuccessOut(BaseModel):
    success: bool = True


class EmpresaUpdateIn(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    nome: Optional[str] = None
    cnpj: Optional[str] = None
    telefone: Optional[str] = None
    dominio: Optional[str] = None

    def to_fields(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        names = {"nome": "name", "cnpj": "tax_id", "telefone": "phone", "dominio": "domain"}
        return {names[k]: v for k, v in data.items() if not (k in ("nome", "cnpj") and v is None)}


class EmpresaEnvelopeOut(BaseModel):
    empresa: EmpresaOut


class LogoOut(BaseModel):
    success: bool = True
    logoUrl: str
    logoUrlVersionada: str
