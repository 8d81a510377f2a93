"""Create tenant and leaderboard tables.

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18

This migration:
  * Creates ``tenants`` (read by the leaderboard core, owned elsewhere).
  * Creates ``leaderboard_entries`` with the identity unique constraint
    (tenant_id, casino_player_id, casino, timestamp) used by upserts and the
    (tenant_id, casino, rank) index used by paginated reads.
  * Creates ``leaderboards`` with one rollup row per (tenant_id, casino).
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

JSONB = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Apply the migration."""
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("slug", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("casino", sa.String(32), nullable=False),
        sa.Column("api_config", JSONB, nullable=False, server_default=sa.text("'{}'")),
        sa.Column("settings", JSONB, nullable=False, server_default=sa.text("'{}'")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_tenants"),
        sa.UniqueConstraint("slug", name="uq_tenants_slug"),
    )

    op.create_table(
        "leaderboard_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("casino_player_id", sa.String(255), nullable=False),
        sa.Column("casino", sa.String(32), nullable=False),
        sa.Column("wager_amount", sa.Numeric(38, 8), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("data", JSONB, nullable=False, server_default=sa.text("'{}'")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_leaderboard_entries"),
        sa.UniqueConstraint(
            "tenant_id",
            "casino_player_id",
            "casino",
            "timestamp",
            name="uq_leaderboard_entries_identity",
        ),
    )
    op.create_index(
        "ix_leaderboard_entries_tenant_casino_rank",
        "leaderboard_entries",
        ["tenant_id", "casino", "rank"],
    )

    op.create_table(
        "leaderboards",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("casino", sa.String(32), nullable=False),
        sa.Column("last_fetched", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("data", JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column(
            "leaderboard_config", JSONB, nullable=False, server_default=sa.text("'{}'")
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_leaderboards"),
        sa.UniqueConstraint("tenant_id", "casino", name="uq_leaderboards_tenant_casino"),
    )


def downgrade() -> None:
    """Revert the migration."""
    op.drop_table("leaderboards")
    op.drop_index("ix_leaderboard_entries_tenant_casino_rank", table_name="leaderboard_entries")
    op.drop_table("leaderboard_entries")
    op.drop_table("tenants")
