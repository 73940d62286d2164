"""
Account service: signed-in account context, profile and password changes,
password recovery.

- Password checks go through the identity provider; nothing is hashed here
- NEVER log plaintext passwords
"""
from __future__ import annotations
from typing import Optional

from core.errors import ValidationError
from core.logger import log_security_event
from domain.mappers import account_from_raw
from domain.models import Account, Company, Membership
from domain.validators import clean

MIN_PASSWORD_LENGTH = 8


def current_context(account: Account, memberships, companies) -> tuple[Optional[Membership], Optional[Company]]:
    """Active membership (oldest) and its company for the signed-in account."""
    membership = memberships.get_active_for_account(account.id)
    if membership is None:
        return None, None
    return membership, companies.get(membership.company_id)


def update_profile(identity, account: Account, *, display_name: Optional[str], email: Optional[str]) -> Account:
    display_name = clean(display_name)
    email = clean(email)
    if not display_name and not email:
        raise ValidationError("Informe nome ou e-mail.")

    attributes: dict = {}
    if display_name:
        # both keys: `name` wins over `full_name` in display-name resolution
        attributes["user_metadata"] = {"name": display_name, "full_name": display_name}
    if email and email.lower() != account.email.lower():
        attributes["email"] = email

    raw = identity.update_user(account.id, attributes)
    log_security_event(
        action="profile_update",
        result="success",
        user_id=account.id,
        meta={"fields": sorted(attributes)},
    )
    return account_from_raw(raw) if raw else account


def change_password(identity, account: Account, *, current: Optional[str], new: Optional[str], confirm: Optional[str]) -> None:
    if not account.email:
        raise ValidationError("Usuário sem e-mail válido.")
    if not current or not new or not confirm:
        raise ValidationError("Preencha todos os campos.")
    if len(new) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"A nova senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.")
    if new != confirm:
        raise ValidationError("As senhas não conferem.")

    if not identity.verify_password(account.email, current):
        log_security_event(
            action="password_change",
            result="failure",
            user_id=account.id,
            meta={"reason": "invalid_current_password"},
            level="warning",
        )
        raise ValidationError("Senha atual incorreta.")

    identity.update_user(account.id, {"password": new})
    log_security_event(action="password_change", result="success", user_id=account.id)


def request_password_recovery(identity, email: str, redirect_to: Optional[str]) -> None:
    email = clean(email)
    if not email:
        raise ValidationError("E-mail é obrigatório.")
    identity.send_recovery(email, redirect_to=redirect_to)
    log_security_event(action="password_recovery", result="requested", meta={"domain": email.split("@")[-1]})
