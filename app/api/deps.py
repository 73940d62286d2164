"""
FastAPI dependencies.

Provider clients are built once per process (see main.lifespan), kept on
app.state and handed to routes from here. Tests replace them through
app.dependency_overrides.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request

from core.auth import Requester, bearer_token, decode_access_token
from core.config import Settings, settings
from core.db import Database
from core.identity import IdentityClient
from core.s3 import ObjectStorage
from domain.models import Account
from repositories.company_repo import CompanyRepository
from repositories.membership_repo import MembershipRepository


@dataclass
class Services:
    identity: IdentityClient
    db: Database
    memberships: MembershipRepository
    companies: CompanyRepository
    storage: ObjectStorage

    @classmethod
    def from_settings(cls, cfg: Settings) -> "Services":
        missing = cfg.missing_provider_settings()
        if missing:
            raise RuntimeError(f"Missing settings: {', '.join(missing)}")
        db = Database.from_settings(cfg)
        return cls(
            identity=IdentityClient.from_settings(cfg),
            db=db,
            memberships=MembershipRepository(db),
            companies=CompanyRepository(db),
            storage=ObjectStorage.from_settings(cfg),
        )

    def close(self) -> None:
        self.identity.close()
        self.db.close()


def get_settings() -> Settings:
    return settings


def _services(request: Request) -> Services:
    return request.app.state.services


def get_identity(request: Request):
    return _services(request).identity


def get_memberships(request: Request):
    return _services(request).memberships


def get_companies(request: Request):
    return _services(request).companies


def get_storage(request: Request):
    return _services(request).storage


def current_account(
    authorization: Optional[str] = Header(default=None),
    cfg: Settings = Depends(get_settings),
) -> Account:
    """Account of the bearer token (401 when missing or invalid)."""
    return decode_access_token(bearer_token(authorization), cfg.SUPABASE_JWT_SECRET, cfg.JWT_AUDIENCE)


def requester_for(account: Account, memberships) -> Requester:
    membership = memberships.get_active_for_account(account.id)
    return Requester(
        account_id=account.id,
        email=account.email,
        role=membership.role if membership else None,
        company_id=membership.company_id if membership else None,
    )


def current_requester(
    account: Account = Depends(current_account),
    memberships=Depends(get_memberships),
) -> Requester:
    return requester_for(account, memberships)


def optional_account(
    authorization: Optional[str] = Header(default=None),
    cfg: Settings = Depends(get_settings),
) -> Optional[Account]:
    """
    Token account when AUTH_ENABLED, otherwise None (query parameters are trusted).

    Only decodes the token. Routes validate their input before resolving the
    membership with `requester_for`, so a malformed request makes no store call.
    """
    if not cfg.AUTH_ENABLED:
        return None
    return decode_access_token(bearer_token(authorization), cfg.SUPABASE_JWT_SECRET, cfg.JWT_AUDIENCE)
