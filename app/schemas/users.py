"""
Pydantic schemas for the users and invitation endpoints.

Field names follow the dashboard's JSON contract (Portuguese keys).
"""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional

from domain.models import CompanyGroup, VisibleUser


class UserOut(BaseModel):
    """One visible user row."""
    id: str
    email: str
    nome: str
    cargo: str = Field(..., description="admin | gestor | colaborador, or — when unknown")
    empresa_id: Optional[str] = None
    empresa_nome: str
    created_at: Optional[str] = None

    @classmethod
    def from_visible(cls, user: VisibleUser) -> "UserOut":
        return cls(
            id=user.id,
            email=user.email,
            nome=user.display_name,
            cargo=user.role,
            empresa_id=user.company_id,
            empresa_nome=user.company_name,
            created_at=user.created_at,
        )


class UsersOut(BaseModel):
    users: list[UserOut]


class EmpresaGroupOut(BaseModel):
    empresa_id: Optional[str] = None
    empresa_nome: str
    usuarios: list[UserOut]

    @classmethod
    def from_group(cls, group: CompanyGroup) -> "EmpresaGroupOut":
        return cls(
            empresa_id=group.company_id,
            empresa_nome=group.company_name,
            usuarios=[UserOut.from_visible(u) for u in group.members],
        )


class GroupedUsersOut(BaseModel):
    empresas: list[EmpresaGroupOut]


class InviteIn(BaseModel):
    """Request schema for user invitation (presence is validated by the service)."""
    nome: Optional[str] = Field(default=None, description="Display name of the invited user")
    email: Optional[str] = Field(default=None, description="E-mail that receives the invite")
    cargo: Optional[str] = Field(default=None, description="Role in the company (default colaborador)")
    empresaId: Optional[str] = Field(default=None, description="Company identifier (UUID)")


class InvitedUserOut(BaseModel):
    id: str
    email: str
    cargo: str
    empresa_id: str


class InviteOut(BaseModel):
    success: bool = True
    user: InvitedUserOut


class LinkIn(BaseModel):
    """Request schema to complete the company link of an invited account."""
    accountId: Optional[str] = Field(default=None, description="Account created by the invite")
    empresaId: Optional[str] = Field(default=None, description="Company identifier (UUID)")
    cargo: Optional[str] = None


class VinculoOut(BaseModel):
    usuario_id: str
    empresa_id: str
    cargo: str
    ativo: bool


class LinkOut(BaseModel):
    success: bool = True
    vinculo: VinculoOut
