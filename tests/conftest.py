import datetime

import jwt
import pytest
from fastapi.testclient import TestClient

from api import deps
from core.config import Settings
from core.errors import ProviderError, ProviderRejection
from core.roles import Role
from domain.models import Company, Membership
from main import create_app

JWT_SECRET = "test-secret-with-at-least-32-characters!!"

EMPRESA_A = "11111111-1111-1111-1111-111111111111"
EMPRESA_B = "22222222-2222-2222-2222-222222222222"
EMPRESA_C = "33333333-3333-3333-3333-333333333333"


class FakeIdentity:
    """In-memory identity provider that records every call."""

    def __init__(self, users=None):
        self.users = list(users or [])
        self.calls = []
        self.passwords = {}
        self.list_error = None
        self.invite_error = None
        self.next_id = "acc_1"

    def list_users(self):
        self.calls.append(("list_users",))
        if self.list_error:
            raise self.list_error
        return [dict(u) for u in self.users]

    def get_user(self, account_id):
        self.calls.append(("get_user", account_id))
        for user in self.users:
            if user["id"] == account_id:
                return dict(user)
        raise ProviderRejection("User not found", meta={"status": 404})

    def update_user(self, account_id, attributes):
        self.calls.append(("update_user", account_id, attributes))
        user = next(u for u in self.users if u["id"] == account_id)
        if "email" in attributes:
            user["email"] = attributes["email"]
        if "user_metadata" in attributes:
            user["user_metadata"] = {**user.get("user_metadata", {}), **attributes["user_metadata"]}
        if "password" in attributes:
            self.passwords[user["email"]] = attributes["password"]
        return dict(user)

    def invite_user_by_email(self, email, data, redirect_to=None):
        self.calls.append(("invite_user_by_email", email, data, redirect_to))
        if self.invite_error:
            raise self.invite_error
        user = {
            "id": self.next_id,
            "email": email,
            "user_metadata": dict(data),
            "created_at": "2026-10-19T12:00:00Z",
        }
        self.users.append(user)
        return user

    def verify_password(self, email, password):
        self.calls.append(("verify_password", email))
        return self.passwords.get(email) == password

    def send_recovery(self, email, redirect_to=None):
        self.calls.append(("send_recovery", email, redirect_to))


class FakeMemberships:
    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.calls = []
        self.insert_error = None

    def list_active(self, company_id=None):
        self.calls.append(("list_active", company_id))
        return [
            m for m in self.rows
            if m.active and (company_id is None or m.company_id == company_id)
        ]

    def get_active_for_account(self, account_id, company_id=None):
        self.calls.append(("get_active_for_account", account_id, company_id))
        for m in self.rows:
            if m.account_id == account_id and m.active and (company_id is None or m.company_id == company_id):
                return m
        return None

    def insert(self, membership):
        self.calls.append(("insert", membership))
        if self.insert_error:
            raise self.insert_error
        self.rows.append(membership)
        return membership


class FakeCompanies:
    def __init__(self, companies=None):
        self.companies = {c.id: c for c in (companies or [])}
        self.calls = []

    def names_for_ids(self, company_ids):
        ids = set(company_ids)
        self.calls.append(("names_for_ids", ids))
        return {cid: self.companies[cid].name for cid in ids if cid in self.companies}

    def get(self, company_id):
        self.calls.append(("get", company_id))
        return self.companies.get(company_id)

    def update(self, company_id, fields):
        self.calls.append(("update", company_id, fields))
        company = self.companies.get(company_id)
        if company is None:
            return None
        updated = company.model_copy(update=fields)
        self.companies[company_id] = updated
        return updated

    def set_logo_url(self, company_id, logo_url):
        self.calls.append(("set_logo_url", company_id, logo_url))
        company = self.companies.get(company_id)
        if company is None:
            return False
        self.companies[company_id] = company.model_copy(update={"logo_url": logo_url})
        return True


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.error = None

    def upload(self, key, body, content_type):
        if self.error:
            raise self.error
        self.objects[key] = (body, content_type)

    def public_url(self, key):
        return f"https://proj.supabase.co/storage/v1/object/public/avatars/{key}"


def make_accounts():
    return [
        {"id": "u1", "email": "ana@x.com", "user_metadata": {"name": "Ana"}, "created_at": "2026-01-01T00:00:00Z"},
        {"id": "u2", "email": "bruno@x.com", "user_metadata": {"full_name": "Bruno Souza"}, "created_at": "2026-01-02T00:00:00Z"},
        {"id": "u3", "email": "carla@y.com", "user_metadata": {}, "created_at": "2026-01-03T00:00:00Z"},
        {"id": "u4", "email": "semvinculo@z.com", "user_metadata": {"cargo": "gestor"}, "created_at": "2026-01-04T00:00:00Z"},
        {"id": "u5", "email": "dora@x.com", "user_metadata": {"name": "Dora"}, "created_at": "2026-01-05T00:00:00Z"},
        {"id": "u6", "email": "eva@c.com", "user_metadata": {"name": "Eva"}, "created_at": "2026-01-06T00:00:00Z"},
    ]


def make_memberships():
    return [
        Membership(account_id="u1", company_id=EMPRESA_A, role=Role.ADMIN),
        Membership(account_id="u2", company_id=EMPRESA_A, role=Role.GESTOR),
        Membership(account_id="u3", company_id=EMPRESA_B, role=Role.COLABORADOR),
        Membership(account_id="u5", company_id=EMPRESA_A, role=Role.COLABORADOR, active=False),
        Membership(account_id="u6", company_id=EMPRESA_C, role=Role.COLABORADOR),
    ]


def make_companies():
    return [
        Company(id=EMPRESA_A, name="Zeta Contábil", tax_id="19395930000110"),
        Company(id=EMPRESA_B, name="Águia Serviços"),
        Company(id=EMPRESA_C, name="beta Ltda"),
    ]


@pytest.fixture
def identity():
    return FakeIdentity(make_accounts())


@pytest.fixture
def memberships():
    return FakeMemberships(make_memberships())


@pytest.fixture
def companies():
    return FakeCompanies(make_companies())


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def test_settings():
    return Settings(
        SUPABASE_URL="https://proj.supabase.co",
        SUPABASE_JWT_SECRET=JWT_SECRET,
        INVITE_REDIRECT_URL="https://painel.example.com/criar-senha",
        PASSWORD_RESET_REDIRECT_URL="https://painel.example.com/resetar-senha",
        AUTH_ENABLED=False,
    )


@pytest.fixture
def app(identity, memberships, companies, storage, test_settings):
    app = create_app()
    app.dependency_overrides[deps.get_identity] = lambda: identity
    app.dependency_overrides[deps.get_memberships] = lambda: memberships
    app.dependency_overrides[deps.get_companies] = lambda: companies
    app.dependency_overrides[deps.get_storage] = lambda: storage
    app.dependency_overrides[deps.get_settings] = lambda: test_settings
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def make_token(sub, email, metadata=None, secret=JWT_SECRET, expires_in=3600):
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": sub,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "user_metadata": metadata or {},
        "iat": now,
        "exp": now + datetime.timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(sub, email, metadata=None):
    return {"Authorization": f"Bearer {make_token(sub, email, metadata)}"}


def store_failure():
    return ProviderError("store", "connection refused")
