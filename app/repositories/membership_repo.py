"""
Repository for usuarios_empresas (account <-> company memberships).

- Company scoping for non-admins happens in the WHERE clause, never after the fetch
- Data access is routed through this layer; no raw queries inside API routes
"""
from __future__ import annotations
from typing import Optional

from core.db import Database
from domain.mappers import membership_from_row
from domain.models import Membership

_COLUMNS = "usuario_id, empresa_id, cargo, ativo"


class MembershipRepository:
    def __init__(self, db: Database):
        self._db = db

    def list_active(self, company_id: Optional[str] = None) -> list[Membership]:
        """
        Active memberships, oldest first.

        Args:
            company_id: When given, only memberships of that company are read

        Returns:
            List of Membership
        """
        sql = f"SELECT {_COLUMNS} FROM usuarios_empresas WHERE ativo = true"
        params: tuple = ()
        if company_id is not None:
            sql += " AND empresa_id = %s"
            params = (company_id,)
        sql += " ORDER BY created_at"

        with self._db.connection() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [m for m in (membership_from_row(r) for r in rows) if m is not None]

    def get_active_for_account(self, account_id: str, company_id: Optional[str] = None) -> Optional[Membership]:
        sql = f"SELECT {_COLUMNS} FROM usuarios_empresas WHERE usuario_id = %s AND ativo = true"
        params: tuple = (account_id,)
        if company_id is not None:
            sql += " AND empresa_id = %s"
            params += (company_id,)
        sql += " ORDER BY created_at LIMIT 1"

        with self._db.connection() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            row = cur.fetchone()
        return membership_from_row(row) if row else None

    def insert(self, membership: Membership) -> Membership:
        with self._db.connection() as conn, conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO usuarios_empresas (usuario_id, empresa_id, cargo, ativo)
                VALUES (%s, %s, %s, %s)
                """,
                (
                    membership.account_id,
                    membership.company_id,
                    membership.role.value,
                    membership.active,
                ),
            )
        return membership
