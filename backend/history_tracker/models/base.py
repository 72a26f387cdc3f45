# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from typing import ClassVar

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def _uuid_factory() -> uuid.UUID:
    """Generate a new UUID v4."""
    return uuid.uuid4()


def _now_utc() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


class UUIDBase(SQLModel):
    """Base model with UUID primary key."""

    id: uuid.UUID = Field(
        default_factory=_uuid_factory,
        primary_key=True,
        sa_type=sa.Uuid,
    )


class TimestampMixin(SQLModel):
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    updated_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": _now_utc},
    )


class DateIntervalMixin(SQLModel):
    """Company-scoped calendar-day interval. A missing end_date means the interval is open.

    Subclasses name the column identifying whose timeline the row belongs to
    (``subject_field``) and the column identifying who holds the assignment
    (``holder_field``).
    """

    subject_field: ClassVar[str]
    holder_field: ClassVar[str]

    company_id: uuid.UUID
    start_date: date
    end_date: date | None = None

    @property
    def subject_id(self) -> uuid.UUID:
        return getattr(self, self.subject_field)

    @property
    def holder_id(self) -> uuid.UUID:
        return getattr(self, self.holder_field)
