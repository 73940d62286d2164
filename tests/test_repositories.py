import psycopg2
import pytest
from psycopg2.pool import PoolError

from core.db import Database
from core.errors import PartialLinkError, ProviderError
from core.roles import Role
from domain.models import Membership, UNKNOWN
from repositories.company_repo import CompanyRepository
from repositories.membership_repo import MembershipRepository
from services.invitation_service import invite_user
from services.membership_aggregator import list_visible_users

from conftest import EMPRESA_A, EMPRESA_B, FakeCompanies, FakeIdentity, make_accounts, make_companies


def _sql(text):
    return " ".join(text.split())


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.conn.executed.append((_sql(sql), params))
        if self.conn.execute_error:
            raise self.conn.execute_error
        self.rowcount = len(self.conn.rows)

    def fetchall(self):
        return list(self.conn.rows)

    def fetchone(self):
        return self.conn.rows[0] if self.conn.rows else None


class FakeConnection:
    """Records statements; `closed` follows psycopg2 (0 while open)."""

    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.executed = []
        self.execute_error = None
        self.rollback_error = None
        self.commits = 0
        self.rollbacks = 0
        self.closed = 0

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1
        if self.rollback_error:
            raise self.rollback_error


class FakePool:
    def __init__(self, conn):
        self.conn = conn
        self.getconn_error = None
        self.returned = []

    def getconn(self):
        if self.getconn_error:
            raise self.getconn_error
        return self.conn

    def putconn(self, conn, close=False):
        self.returned.append((conn, close))


@pytest.fixture
def conn():
    return FakeConnection()


@pytest.fixture
def pool(conn):
    return FakePool(conn)


@pytest.fixture
def db(pool):
    return Database(pool)


def dead_connection(conn):
    conn.execute_error = psycopg2.OperationalError("server closed the connection unexpectedly")
    conn.rollback_error = psycopg2.InterfaceError("connection already closed")
    conn.closed = 2


# Database.connection

def test_connection_commits_and_returns_to_pool(db, pool, conn):
    with db.connection() as c:
        assert c is conn

    assert conn.commits == 1
    assert conn.rollbacks == 0
    assert pool.returned == [(conn, False)]


def test_database_errors_become_store_provider_errors(db, pool, conn):
    conn.execute_error = psycopg2.OperationalError("canceling statement due to statement timeout")

    with pytest.raises(ProviderError) as exc:
        with db.connection() as c, c.cursor() as cur:
            cur.execute("SELECT 1")

    assert exc.value.provider == "store"
    assert "statement timeout" in exc.value.detail
    assert conn.commits == 0
    assert conn.rollbacks == 1
    assert pool.returned == [(conn, False)]


def test_failed_rollback_still_raises_the_original_error(db, pool, conn):
    dead_connection(conn)

    with pytest.raises(ProviderError) as exc:
        with db.connection() as c, c.cursor() as cur:
            cur.execute("SELECT 1")

    assert "server closed the connection" in exc.value.detail
    assert pool.returned == [(conn, True)]


def test_other_errors_roll_back_and_propagate(db, pool, conn):
    with pytest.raises(ValueError):
        with db.connection():
            raise ValueError("bad row")

    assert conn.rollbacks == 1
    assert pool.returned == [(conn, False)]


def test_pool_exhaustion_is_a_provider_error(db, pool):
    pool.getconn_error = PoolError("connection pool exhausted")

    with pytest.raises(ProviderError):
        with db.connection():
            pass
    assert pool.returned == []


# MembershipRepository

def test_list_active_unscoped(db, conn):
    conn.rows = [("u1", EMPRESA_A, "admin", True), ("u3", EMPRESA_B, "colaborador", True)]

    rows = MembershipRepository(db).list_active()

    assert conn.executed == [(
        "SELECT usuario_id, empresa_id, cargo, ativo FROM usuarios_empresas WHERE ativo = true ORDER BY created_at",
        (),
    )]
    assert [(m.account_id, m.role) for m in rows] == [("u1", Role.ADMIN), ("u3", Role.COLABORADOR)]


def test_list_active_scopes_by_company_in_the_query(db, conn):
    MembershipRepository(db).list_active(company_id=EMPRESA_A)

    assert conn.executed == [(
        "SELECT usuario_id, empresa_id, cargo, ativo FROM usuarios_empresas "
        "WHERE ativo = true AND empresa_id = %s ORDER BY created_at",
        (EMPRESA_A,),
    )]


def test_get_active_for_account_takes_the_oldest(db, conn):
    conn.rows = [("u2", EMPRESA_A, "gestor", True)]

    membership = MembershipRepository(db).get_active_for_account("u2", company_id=EMPRESA_A)

    sql, params = conn.executed[0]
    assert sql.endswith("WHERE usuario_id = %s AND ativo = true AND empresa_id = %s ORDER BY created_at LIMIT 1")
    assert params == ("u2", EMPRESA_A)
    assert membership.role is Role.GESTOR


def test_insert_membership(db, conn):
    MembershipRepository(db).insert(
        Membership(account_id="acc_1", company_id=EMPRESA_A, role=Role.COLABORADOR, active=True)
    )

    sql, params = conn.executed[0]
    assert sql.startswith("INSERT INTO usuarios_empresas (usuario_id, empresa_id, cargo, ativo)")
    assert params == ("acc_1", EMPRESA_A, "colaborador", True)
    assert conn.commits == 1


def test_unrecognised_cargo_row_is_still_listed(db, conn):
    conn.rows = [("u1", EMPRESA_A, "gestor", True), ("u9", EMPRESA_A, "financeiro", True)]
    identity = FakeIdentity(make_accounts() + [{"id": "u9", "email": "fin@x.com", "user_metadata": {}}])

    users = list_visible_users(identity, MembershipRepository(db), FakeCompanies(make_companies()), "gestor", EMPRESA_A)

    assert [(u.id, u.role) for u in users] == [("u1", "gestor"), ("u9", UNKNOWN)]


def test_invite_on_dead_connection_is_a_partial_link(db, pool, conn):
    dead_connection(conn)
    identity = FakeIdentity([])

    with pytest.raises(PartialLinkError) as exc:
        invite_user(
            identity,
            MembershipRepository(db),
            display_name="Ana",
            email="ana@x.com",
            company_id=EMPRESA_A,
        )

    assert exc.value.account_id == "acc_1"
    assert exc.value.company_id == EMPRESA_A
    assert [c[0] for c in identity.calls] == ["invite_user_by_email"]
    assert pool.returned == [(conn, True)]


# CompanyRepository

def test_names_for_no_ids_skips_the_store(db, pool, conn):
    assert CompanyRepository(db).names_for_ids(set()) == {}
    assert conn.executed == []
    assert pool.returned == []


def test_names_for_ids_binds_a_uuid_array(db, conn):
    conn.rows = [(EMPRESA_A, "Zeta Contábil"), (EMPRESA_B, None)]

    names = CompanyRepository(db).names_for_ids([EMPRESA_B, EMPRESA_A, EMPRESA_A])

    assert conn.executed == [
        ("SELECT id, nome FROM empresas WHERE id = ANY(%s::uuid[])", ([EMPRESA_A, EMPRESA_B],)),
    ]
    assert names == {EMPRESA_A: "Zeta Contábil", EMPRESA_B: ""}


def test_update_only_writes_known_columns(db, conn):
    conn.rows = [(EMPRESA_A, "Zeta", "19395930000110", None, None, None)]

    company = CompanyRepository(db).update(EMPRESA_A, {"name": "Zeta", "logo_url": "https://evil/x.png"})

    assert conn.executed == [(
        'UPDATE empresas SET nome = %s WHERE id = %s RETURNING id, nome, cnpj, dominio, "logoUrl", telefone',
        ("Zeta", EMPRESA_A),
    )]
    assert company.name == "Zeta"


def test_set_logo_url_reports_missing_row(db, conn):
    assert CompanyRepository(db).set_logo_url(EMPRESA_A, "https://cdn/logo.png") is False
    conn.rows = [(1,)]
    assert CompanyRepository(db).set_logo_url(EMPRESA_A, "https://cdn/logo.png") is True
