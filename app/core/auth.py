"""
Access-token verification.

- Tokens are issued by the identity provider; this service only verifies them
- Only accepts tokens via the Authorization: Bearer <token> header
- Role and company are NEVER read from the token or the client; they come
  from the caller's active membership
"""
from __future__ import annotations
from typing import Optional

import jwt
from pydantic import BaseModel

from core.errors import AuthenticationError
from core.roles import Role
from domain.mappers import account_from_claims
from domain.models import Account


class Requester(BaseModel):
    """Authenticated caller with the role/company of its active membership."""
    account_id: str
    email: str = ""
    role: Optional[Role] = None
    company_id: Optional[str] = None


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthenticationError("Token de acesso ausente.")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise AuthenticationError("Token de acesso ausente.")
    return token


def decode_access_token(token: str, secret: str, audience: str) -> Account:
    """
    Verify an HS256 access token and map its claims to an Account.

    Raises:
        AuthenticationError: missing secret, expired, invalid, or no `sub`
    """
    if not secret:
        raise AuthenticationError("Autenticação não configurada.")
    try:
        claims = jwt.decode(token, secret, algorithms=["HS256"], audience=audience)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expirado.")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Token inválido.")
    if not claims.get("sub"):
        raise AuthenticationError("Token inválido.")
    return account_from_claims(claims)
