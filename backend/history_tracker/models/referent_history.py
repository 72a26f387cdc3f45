# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import ClassVar

import sqlalchemy as sa
from sqlmodel import Field

from history_tracker.models.base import DateIntervalMixin, TimestampMixin, UUIDBase


class ReferentHistory(UUIDBase, DateIntervalMixin, TimestampMixin, table=True):
    """One interval during which an operator is the referent of a customer."""

    __tablename__ = "referent_history"
    __table_args__ = (
        sa.Index("ix_referent_history_customer_start", "company_id", "customer_id", "start_date"),
        sa.Index(
            "uq_referent_history_open",
            "company_id",
            "customer_id",
            unique=True,
            postgresql_where=sa.text("end_date IS NULL"),
            sqlite_where=sa.text("end_date IS NULL"),
        ),
    )

    subject_field: ClassVar[str] = "customer_id"
    holder_field: ClassVar[str] = "referent_id"

    customer_id: uuid.UUID = Field(index=True)
    referent_id: uuid.UUID = Field(index=True)
