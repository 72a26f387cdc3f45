"""Create sector_history, referent_history and audit_log tables.

Revision ID: 0001_create_history_tables
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_create_history_tables"
down_revision = None
branch_labels = None
depends_on = None

_OPEN_ONLY = sa.text("end_date IS NULL")


def _create_history_table(table: str, subject: str, holder: str) -> None:
    op.create_table(
        table,
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column(subject, sa.Uuid(), nullable=False),
        sa.Column(holder, sa.Uuid(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(f"ix_{table}_{subject}", table, [subject])
    op.create_index(f"ix_{table}_{holder}", table, [holder])
    op.create_index(f"ix_{table}_{subject.removesuffix('_id')}_start", table, ["company_id", subject, "start_date"])
    # At most one open interval per subject.
    op.create_index(
        f"uq_{table}_open",
        table,
        ["company_id", subject],
        unique=True,
        postgresql_where=_OPEN_ONLY,
        sqlite_where=_OPEN_ONLY,
    )


def upgrade() -> None:
    """Create history and audit tables."""
    _create_history_table("sector_history", "operator_id", "sector_id")
    _create_history_table("referent_history", "customer_id", "referent_id")

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_log_company_id", "audit_log", ["company_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    """Drop history and audit tables."""
    op.drop_table("audit_log")
    op.drop_table("referent_history")
    op.drop_table("sector_history")
