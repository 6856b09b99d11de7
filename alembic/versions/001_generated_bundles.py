"""generated_bundles table for the bundle cache

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:12:41.518204
"""
from typing import Sequence, Union

from alembic import op


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One row per (page, target): the last generated project for it
    # A newer generation overwrites the row, never appends
    op.execute("""
        CREATE TABLE generated_bundles (
            page_id TEXT NOT NULL,
            target TEXT NOT NULL CHECK (target IN ('web', 'mobile', 'service')),
            files JSONB NOT NULL,
            metadata JSONB NOT NULL,
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ DEFAULT now(),
            PRIMARY KEY (page_id, target)
        );
    """)

    # Cleanup of stale bundles scans by age
    op.execute("""
        CREATE INDEX idx_generated_bundles_updated ON generated_bundles(updated_at);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS generated_bundles CASCADE;")
