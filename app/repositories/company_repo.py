# app/repositories/company_repo.py
from __future__ import annotations
from typing import Iterable, Optional

from core.db import Database
from domain.mappers import company_from_row
from domain.models import Company

# Company attribute -> empresas column
_UPDATABLE = {
    "name": "nome",
    "tax_id": "cnpj",
    "phone": "telefone",
    "domain": "dominio",
}


class CompanyRepository:
    def __init__(self, db: Database):
        self._db = db

    def names_for_ids(self, company_ids: Iterable[str]) -> dict[str, str]:
        """Map id -> nome for exactly the given companies."""
        ids = sorted(set(company_ids))
        if not ids:
            return {}
        with self._db.connection() as conn, conn.cursor() as cur:
            cur.execute(
                "SELECT id, nome FROM empresas WHERE id = ANY(%s::uuid[])",
                (ids,),
            )
            rows = cur.fetchall()
        return {str(r[0]): r[1] or "" for r in rows}

    def get(self, company_id: str) -> Optional[Company]:
        with self._db.connection() as conn, conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, nome, cnpj, dominio, "logoUrl", telefone
                FROM empresas
                WHERE id = %s
                """,
                (company_id,),
            )
            row = cur.fetchone()
        return company_from_row(row) if row else None

    def update(self, company_id: str, fields: dict) -> Optional[Company]:
        """Partial update; keys are Company attribute names."""
        assignments = []
        params = []
        for attr, value in fields.items():
            column = _UPDATABLE.get(attr)
            if column is None:
                continue
            assignments.append(f"{column} = %s")
            params.append(value)
        if not assignments:
            return self.get(company_id)

        with self._db.connection() as conn, conn.cursor() as cur:
            cur.execute(
                f"""
                UPDATE empresas SET {", ".join(assignments)}
                WHERE id = %s
                RETURNING id, nome, cnpj, dominio, "logoUrl", telefone
                """,
                (*params, company_id),
            )
            row = cur.fetchone()
        return company_from_row(row) if row else None

    def set_logo_url(self, company_id: str, logo_url: str) -> bool:
        with self._db.connection() as conn, conn.cursor() as cur:
            cur.execute(
                'UPDATE empresas SET "logoUrl" = %s WHERE id = %s',
                (logo_url, company_id),
            )
            return cur.rowcount > 0
