# app/core/db.py
from contextlib import contextmanager

import psycopg2
from psycopg2.pool import ThreadedConnectionPool

from .config import Settings
from .errors import ProviderError
from .logger import logger


class Database:
    """Process-scoped connection pool for the Supabase Postgres database."""

    def __init__(self, pool):
        self._pool = pool

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        statement_timeout_ms = int(settings.PROVIDER_TIMEOUT_S * 1000)
        pool = ThreadedConnectionPool(
            1, settings.PG_POOL_MAX,
            host=settings.PG_HOST,
            port=settings.PG_PORT,
            dbname=settings.PG_DB,
            user=settings.PG_USER,
            password=settings.PG_PASSWORD,
            sslmode=settings.PG_SSLMODE,
            connect_timeout=max(1, int(settings.PROVIDER_TIMEOUT_S)),
            options=f"-c search_path={settings.PG_SCHEMA} -c statement_timeout={statement_timeout_ms}",
        )
        return cls(pool)

    @contextmanager
    def connection(self):
        try:
            conn = self._pool.getconn()
        except psycopg2.Error as exc:
            raise ProviderError("store", str(exc)) from exc
        try:
            yield conn
            conn.commit()
        except psycopg2.Error as exc:
            self._rollback(conn)
            raise ProviderError("store", str(exc)) from exc
        except Exception:
            self._rollback(conn)
            raise
        finally:
            # closed connections are discarded, not handed out again
            self._pool.putconn(conn, close=bool(conn.closed))

    @staticmethod
    def _rollback(conn) -> None:
        try:
            conn.rollback()
        except psycopg2.Error as exc:
            # the original error is the one that gets raised
            logger.warning("Rollback failed", extra={"meta": {"detail": str(exc)}})

    def close(self) -> None:
        self._pool.closeall()
