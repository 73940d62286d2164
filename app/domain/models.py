from typing import Optional

from pydantic import BaseModel, Field

from core.roles import Role

UNKNOWN = "—"
NO_COMPANY = "Sem empresa"


class Account(BaseModel):
    id: str
    email: str = ""
    display_name: str
    created_at: Optional[str] = None
    metadata: dict = Field(default_factory=dict)


class Company(BaseModel):
    id: str
    name: str = ""
    tax_id: Optional[str] = None
    domain: Optional[str] = None
    logo_url: Optional[str] = None
    phone: Optional[str] = None


class Membership(BaseModel):
    account_id: str
    company_id: str
    role: Optional[Role]  # None when the stored cargo is not a known role
    active: bool = True


class VisibleUser(BaseModel):
    id: str
    email: str
    display_name: str
    role: str
    company_id: Optional[str] = None
    company_name: str = UNKNOWN
    created_at: Optional[str] = None


class CompanyGroup(BaseModel):
    company_id: Optional[str] = None
    company_name: str
    members: list[VisibleUser] = Field(default_factory=list)
