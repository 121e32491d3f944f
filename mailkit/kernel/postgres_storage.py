"""
PostgresStorage adapter for the Mailkit assembly layer.

Implements the TemplateStorage protocol using Postgres as the backend.
Templates live in the section_templates table, sections as JSONB.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

import asyncpg

from mailkit.kernel.assembly import TemplateNotFound, TemplateStorage
from mailkit.kernel.model import TemplateModel
from mailkit.kernel.types import TemplateSummary

logger = logging.getLogger(__name__)


class PostgresStorage(TemplateStorage):
    """
    Postgres-based storage for section templates.

    Table: section_templates (id, name, sections, created_at, updated_at)
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def save(self, model: TemplateModel) -> str:
        """
        Upsert a template. Last write wins per id. An id that is not a UUID
        cannot name a row, so the template is stored under a new one.
        """
        template_id = model.id
        if template_id and not _is_uuid(template_id):
            logger.warning("postgres_storage: id %r is not a UUID, saving as a new template", template_id)
            template_id = None
        template_id = template_id or str(uuid.uuid4())
        sections = json.dumps([s.to_dict() for s in model.sections])
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO section_templates (id, name, sections, created_at, updated_at)
                VALUES ($1::uuid, $2, $3::jsonb, now(), now())
                ON CONFLICT (id)
                DO UPDATE SET name = EXCLUDED.name, sections = EXCLUDED.sections, updated_at = now()
                """,
                template_id,
                model.name,
                sections,
            )
        return template_id

    async def load(self, template_id: str) -> TemplateModel:
        if not _is_uuid(template_id):
            raise TemplateNotFound(template_id)
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id::text AS id, name, sections::text AS sections, created_at, updated_at
                FROM section_templates WHERE id = $1::uuid
                """,
                template_id,
            )
        if row is None:
            raise TemplateNotFound(template_id)
        return TemplateModel.from_dict(_row_to_dict(row))

    async def list(self) -> list[TemplateSummary]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT id::text AS id, name, updated_at FROM section_templates ORDER BY updated_at DESC",
            )
        return [TemplateSummary(id=r["id"], name=r["name"], updated_at=r["updated_at"].isoformat()) for r in rows]

    async def delete(self, template_id: str) -> None:
        if not _is_uuid(template_id):
            raise TemplateNotFound(template_id)
        async with self.pool.acquire() as conn:
            status = await conn.execute("DELETE FROM section_templates WHERE id = $1::uuid", template_id)
        # asyncpg returns the command tag, e.g. "DELETE 1"
        if status.endswith(" 0"):
            raise TemplateNotFound(template_id)


def _row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "sections": json.loads(row["sections"]),
        "created_at": row["created_at"].isoformat() if row["created_at"] else None,
        "updated_at": row["updated_at"].isoformat() if row["updated_at"] else None,
    }


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
