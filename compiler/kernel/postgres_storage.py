"""
PostgresBundleStorage adapter for the compiler assembly layer.

Implements the BundleStorage protocol using Postgres as the backend.
Each (page_id, target) row holds one generated project as JSON.
"""

from __future__ import annotations

import json

import asyncpg

from compiler.kernel.assembly import BundleStorage
from compiler.kernel.types import GeneratedProject


class PostgresBundleStorage(BundleStorage):
    """
    Postgres-based cache of generated projects.

    Table generated_bundles: (page_id, target) primary key, files JSONB,
    metadata JSONB. Writes upsert, so a newer generation replaces the old
    bundle wholesale.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get(self, page_id: str, target: str) -> GeneratedProject | None:
        """Fetch the cached bundle for a page and target. Returns None if not found."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT files, metadata FROM generated_bundles WHERE page_id = $1 AND target = $2",
                page_id,
                target,
            )
        if row is None:
            return None
        return GeneratedProject.from_dict(
            {
                "target": target,
                "files": _load(row["files"]),
                "metadata": _load(row["metadata"]),
            }
        )

    async def put(self, page_id: str, target: str, project: GeneratedProject) -> None:
        data = project.to_dict()
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO generated_bundles (page_id, target, files, metadata, updated_at)
                VALUES ($1, $2, $3::jsonb, $4::jsonb, now())
                ON CONFLICT (page_id, target)
                DO UPDATE SET files = EXCLUDED.files, metadata = EXCLUDED.metadata, updated_at = now()
                """,
                page_id,
                target,
                json.dumps(data["files"], sort_keys=True),
                json.dumps(data["metadata"], sort_keys=True),
            )

    async def delete(self, page_id: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM generated_bundles WHERE page_id = $1", page_id)


def _load(value):
    # asyncpg returns JSONB as text unless a codec is registered
    if isinstance(value, str):
        return json.loads(value)
    return value
