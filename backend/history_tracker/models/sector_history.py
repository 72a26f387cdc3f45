# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import ClassVar

import sqlalchemy as sa
from sqlmodel import Field

from history_tracker.models.base import DateIntervalMixin, TimestampMixin, UUIDBase


class SectorHistory(UUIDBase, DateIntervalMixin, TimestampMixin, table=True):
    """One interval of an operator's membership in a sector."""

    __tablename__ = "sector_history"
    __table_args__ = (
        sa.Index("ix_sector_history_operator_start", "company_id", "operator_id", "start_date"),
        sa.Index(
            "uq_sector_history_open",
            "company_id",
            "operator_id",
            unique=True,
            postgresql_where=sa.text("end_date IS NULL"),
            sqlite_where=sa.text("end_date IS NULL"),
        ),
    )

    subject_field: ClassVar[str] = "operator_id"
    holder_field: ClassVar[str] = "sector_id"

    operator_id: uuid.UUID = Field(index=True)
    sector_id: uuid.UUID = Field(index=True)
