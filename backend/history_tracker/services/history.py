"""Shared interval-store access for assignment timelines.

Sector and referent histories have the same shape: for a (subject, company)
pair, rows are calendar-day intervals that never overlap, and at most one of
them is open (``end_date`` is NULL). The helpers below read and write those
rows for either table, record every write in the audit log, and translate
store failures into typed application errors.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import col

from history_tracker.exceptions import InvariantViolationError, TransientStoreError
from history_tracker.models.enums import AuditAction, AuditEntityType, HistoryOutcome
from history_tracker.models.referent_history import ReferentHistory
from history_tracker.models.sector_history import SectorHistory
from history_tracker.schemas.history import HistoryListResponse, HistoryRecordResponse
from history_tracker.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

HistoryT = TypeVar("HistoryT", SectorHistory, ReferentHistory)

_ENTITY_TYPES: dict[type, AuditEntityType] = {
    SectorHistory: AuditEntityType.SECTOR_HISTORY,
    ReferentHistory: AuditEntityType.REFERENT_HISTORY,
}


@dataclass
class TrackerResult(Generic[HistoryT]):
    """What a tracker call did to a timeline.

    ``record`` is the row created, updated or reopened, or None when nothing
    was written or the only write was a close or delete. ``previous_id`` is
    the row that was closed or deleted along the way.
    """

    outcome: HistoryOutcome
    record: HistoryT | None = None
    previous_id: uuid.UUID | None = None


def day_before(today: date) -> date:
    """Last day covered by an interval closed when an assignment changes on ``today``."""
    return today - timedelta(days=1)


def _subject_col(model: type[HistoryT]) -> Any:
    return col(getattr(model, model.subject_field))


def _holder_col(model: type[HistoryT]) -> Any:
    return col(getattr(model, model.holder_field))


def overlaps(model: type[HistoryT], start: date, end: date) -> list[Any]:
    """WHERE clauses matching rows whose interval intersects [start, end], both inclusive."""
    return [
        col(model.start_date) <= end,
        or_(col(model.end_date).is_(None), col(model.end_date) >= start),
    ]


def build_history_response(record: SectorHistory | ReferentHistory) -> HistoryRecordResponse:
    """Build a HistoryRecordResponse from either history model."""
    return HistoryRecordResponse(
        id=record.id,
        company_id=record.company_id,
        subject_id=record.subject_id,
        holder_id=record.holder_id,
        start_date=record.start_date,
        end_date=record.end_date,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


# ---------------------------------------------------------------------------
# Store error translation
# ---------------------------------------------------------------------------


@asynccontextmanager
async def store_errors(session: AsyncSession, context: str) -> AsyncIterator[None]:
    """Roll back and re-raise store failures as typed application errors."""
    try:
        yield
    except IntegrityError:
        logger.exception("Timeline write rejected by the store (%s)", context)
        await session.rollback()
        raise InvariantViolationError(f"Concurrent change detected on {context}; retry the operation") from None
    except OperationalError:
        logger.exception("Store unavailable (%s)", context)
        await session.rollback()
        raise TransientStoreError(f"History store unavailable for {context}") from None


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_latest_history(
    session: AsyncSession,
    model: type[HistoryT],
    company_id: uuid.UUID,
    subject_id: uuid.UUID,
    *,
    open_only: bool = False,
    for_update: bool = True,
) -> HistoryT | None:
    """Return the subject's row with the highest start_date, optionally restricted to open rows.

    The row is locked FOR UPDATE by default so concurrent tracker calls on the
    same subject serialize on it.
    """
    query = select(model).where(
        col(model.company_id) == company_id,
        _subject_col(model) == subject_id,
    )
    if open_only:
        query = query.where(col(model.end_date).is_(None))
    query = query.order_by(col(model.start_date).desc(), col(model.created_at).desc()).limit(1)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def list_history(
    session: AsyncSession,
    model: type[HistoryT],
    company_id: uuid.UUID,
    subject_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> HistoryListResponse:
    """List a subject's timeline, newest first."""
    filters = [col(model.company_id) == company_id, _subject_col(model) == subject_id]

    count_result = await session.execute(select(func.count()).select_from(model).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(model).where(*filters).order_by(col(model.start_date).desc()).offset(offset).limit(limit)
    )
    records = list(result.scalars().all())

    return HistoryListResponse(
        items=[build_history_response(r) for r in records],
        total=total,
    )


async def find_holder_histories_after(
    session: AsyncSession,
    model: type[HistoryT],
    company_id: uuid.UUID | None,
    holder_id: uuid.UUID,
    end_date: date,
) -> list[HistoryT]:
    """Rows held by ``holder_id`` that are open or still running after ``end_date``."""
    query = select(model).where(
        _holder_col(model) == holder_id,
        or_(col(model.end_date).is_(None), col(model.end_date) > end_date),
    )
    if company_id is not None:
        query = query.where(col(model.company_id) == company_id)
    result = await session.execute(query.with_for_update())
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_history(
    session: AsyncSession,
    model: type[HistoryT],
    *,
    company_id: uuid.UUID,
    subject_id: uuid.UUID,
    holder_id: uuid.UUID,
    start_date: date,
    end_date: date | None = None,
    actor_id: uuid.UUID | None = None,
) -> HistoryT:
    """Insert a new interval starting on ``start_date``, open unless ``end_date`` is given."""
    record = model(
        company_id=company_id,
        start_date=start_date,
        end_date=end_date,
        **{model.subject_field: subject_id, model.holder_field: holder_id},
    )
    session.add(record)
    await session.flush()

    await write_audit_log(
        session,
        company_id=company_id,
        actor_id=actor_id,
        entity_type=_ENTITY_TYPES[model],
        entity_id=record.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(record),
    )
    return record


async def update_history(
    session: AsyncSession,
    record: HistoryT,
    *,
    actor_id: uuid.UUID | None = None,
    **changes: Any,
) -> HistoryT:
    """Apply ``changes`` to an existing row in place.

    Callers that shorten an interval must make sure the new end_date is not
    before start_date; such rows are deleted instead.
    """
    before_dict = model_to_audit_dict(record)
    for field_name, value in changes.items():
        setattr(record, field_name, value)
    await session.flush()

    await write_audit_log(
        session,
        company_id=record.company_id,
        actor_id=actor_id,
        entity_type=_ENTITY_TYPES[type(record)],
        entity_id=record.id,
        action=AuditAction.UPDATE,
        before_json=before_dict,
        after_json=model_to_audit_dict(record),
    )
    return record


async def delete_history(
    session: AsyncSession,
    record: HistoryT,
    *,
    actor_id: uuid.UUID | None = None,
) -> uuid.UUID:
    """Delete a row that never had an effective lifespan. Returns its id."""
    before_dict = model_to_audit_dict(record)
    record_id = record.id
    await session.delete(record)
    await session.flush()

    await write_audit_log(
        session,
        company_id=record.company_id,
        actor_id=actor_id,
        entity_type=_ENTITY_TYPES[type(record)],
        entity_id=record_id,
        action=AuditAction.DELETE,
        before_json=before_dict,
    )
    return record_id


async def close_or_delete(
    session: AsyncSession,
    record: HistoryT,
    end_date: date,
    *,
    actor_id: uuid.UUID | None = None,
) -> HistoryOutcome:
    """End ``record`` on ``end_date``, or delete it when it would end before it starts."""
    if end_date < record.start_date:
        await delete_history(session, record, actor_id=actor_id)
        return HistoryOutcome.DELETED
    await update_history(session, record, actor_id=actor_id, end_date=end_date)
    return HistoryOutcome.CLOSED


async def finish(session: AsyncSession, result: TrackerResult[HistoryT]) -> TrackerResult[HistoryT]:
    """Commit the tracker's writes and reload the resulting row."""
    await session.commit()
    if result.record is not None:
        await session.refresh(result.record)
    return result
