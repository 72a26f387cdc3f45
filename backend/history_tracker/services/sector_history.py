"""Sector timeline of operators.

An operator belongs to at most one sector at a time. Moving them to another
sector closes the current interval on the previous day and opens a new one
starting today. Contract ends close the timeline in bulk, and contract
creation, updates and deletion move the intervals they anchor.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from history_tracker.exceptions import AppError, NotFoundError
from history_tracker.models.enums import HistoryOutcome
from history_tracker.models.sector_history import SectorHistory
from history_tracker.schemas.history import SectorMembersResponse, SectorMembership
from history_tracker.services.history import (
    TrackerResult,
    close_or_delete,
    create_history,
    day_before,
    delete_history,
    finish,
    get_latest_history,
    list_history,
    overlaps,
    store_errors,
    update_history,
)
from history_tracker.services.operator import get_operator_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from history_tracker.schemas.history import HistoryListResponse

logger = logging.getLogger(__name__)


async def _verify_operator_exists(company_id: uuid.UUID, operator_id: uuid.UUID) -> None:
    operator = await get_operator_service().get_operator(company_id, operator_id)
    if operator is None:
        raise NotFoundError("Operator not found")


def _check_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise AppError("end_date must be >= start_date", status_code=400)


async def update_operator_sector(
    session: AsyncSession,
    operator_id: uuid.UUID,
    sector_id: uuid.UUID,
    company_id: uuid.UUID,
    today: date,
    *,
    actor_id: uuid.UUID | None = None,
) -> TrackerResult[SectorHistory]:
    """Record that the operator belongs to ``sector_id`` from ``today`` on.

    - No open interval: open one starting today.
    - Open interval already on that sector: nothing to do.
    - Otherwise end the open interval yesterday, or delete it when it only
      started today (it never covered a full day), then open a new one today.

    When the timeline was already closed at a contract end that has not come
    yet, that closed interval is the current one: it is split the same way
    and the new interval keeps its end date.
    """
    await _verify_operator_exists(company_id, operator_id)

    async with store_errors(session, f"operator {operator_id}"):
        current = await get_latest_history(session, SectorHistory, company_id, operator_id, open_only=True)
        if current is None:
            latest = await get_latest_history(session, SectorHistory, company_id, operator_id)
            if latest is not None and latest.end_date is not None and latest.end_date >= today:
                current = latest

        if current is not None and current.sector_id == sector_id:
            await session.commit()
            logger.debug("Operator %s already in sector %s, nothing to record", operator_id, sector_id)
            return TrackerResult(HistoryOutcome.NOOP)

        previous_id: uuid.UUID | None = None
        end_date: date | None = None
        outcome = HistoryOutcome.CREATED
        if current is not None:
            previous_id = current.id
            end_date = current.end_date
            ended = await close_or_delete(session, current, day_before(today), actor_id=actor_id)
            outcome = (
                HistoryOutcome.CLOSED_AND_CREATED
                if ended == HistoryOutcome.CLOSED
                else HistoryOutcome.DELETED_AND_CREATED
            )

        record = await create_history(
            session,
            SectorHistory,
            company_id=company_id,
            subject_id=operator_id,
            holder_id=sector_id,
            start_date=today,
            end_date=end_date,
            actor_id=actor_id,
        )
        result = await finish(session, TrackerResult(outcome, record, previous_id))

    logger.info(
        "Sector history for operator %s in company %s: %s (sector=%s, previous=%s)",
        operator_id,
        company_id,
        outcome,
        sector_id,
        previous_id,
    )
    return result


async def close_operator_sectors(
    session: AsyncSession,
    operator_id: uuid.UUID,
    company_id: uuid.UUID,
    end_date: date,
    *,
    actor_id: uuid.UUID | None = None,
) -> int:
    """End every open sector interval of the operator in the company on ``end_date``.

    Used when the operator's last active contract ends. Intervals that start
    after ``end_date`` are deleted rather than closed. Returns the number of
    intervals touched; running it again touches none.
    """
    async with store_errors(session, f"operator {operator_id}"):
        result = await session.execute(
            select(SectorHistory)
            .where(
                col(SectorHistory.company_id) == company_id,
                col(SectorHistory.operator_id) == operator_id,
                col(SectorHistory.end_date).is_(None),
            )
            .with_for_update()
        )
        open_records = list(result.scalars().all())

        for record in open_records:
            await close_or_delete(session, record, end_date, actor_id=actor_id)
        await session.commit()

    if open_records:
        logger.info(
            "Closed %d sector interval(s) of operator %s in company %s on %s",
            len(open_records),
            operator_id,
            company_id,
            end_date,
        )
    return len(open_records)


# ---------------------------------------------------------------------------
# Contract lifecycle
# ---------------------------------------------------------------------------


async def _locked_timeline(
    session: AsyncSession,
    company_id: uuid.UUID,
    operator_id: uuid.UUID,
) -> list[SectorHistory]:
    result = await session.execute(
        select(SectorHistory)
        .where(col(SectorHistory.company_id) == company_id, col(SectorHistory.operator_id) == operator_id)
        .order_by(col(SectorHistory.start_date))
        .with_for_update()
    )
    return list(result.scalars().all())


async def _trim_before(
    session: AsyncSession,
    records: list[SectorHistory],
    start_date: date,
    actor_id: uuid.UUID | None,
) -> int:
    """End ``records`` still running on ``start_date`` the day before. Returns how many were touched."""
    touched = 0
    for record in records:
        if record.end_date is None or record.end_date >= start_date:
            await close_or_delete(session, record, day_before(start_date), actor_id=actor_id)
            touched += 1
    return touched


async def create_history_on_contract_creation(
    session: AsyncSession,
    operator_id: uuid.UUID,
    sector_id: uuid.UUID,
    company_id: uuid.UUID,
    contract_start: date,
    *,
    actor_id: uuid.UUID | None = None,
) -> TrackerResult[SectorHistory]:
    """Anchor the operator's sector timeline on the start of a new contract.

    A sector set while the operator had no running contract leaves a pending
    open interval. It is moved to start on ``contract_start`` with
    ``sector_id``; without one, a new interval opens on that day. Older
    intervals still running on ``contract_start`` end the day before.
    """
    await _verify_operator_exists(company_id, operator_id)

    async with store_errors(session, f"operator {operator_id}"):
        records = await _locked_timeline(session, company_id, operator_id)
        pending = next((r for r in records if r.end_date is None), None)
        touched = await _trim_before(session, [r for r in records if r is not pending], contract_start, actor_id)

        if pending is None:
            record = await create_history(
                session,
                SectorHistory,
                company_id=company_id,
                subject_id=operator_id,
                holder_id=sector_id,
                start_date=contract_start,
                actor_id=actor_id,
            )
            outcome = HistoryOutcome.CREATED
        elif touched == 0 and pending.start_date == contract_start and pending.sector_id == sector_id:
            await session.commit()
            return TrackerResult(HistoryOutcome.NOOP)
        else:
            record = await update_history(
                session, pending, actor_id=actor_id, start_date=contract_start, sector_id=sector_id
            )
            outcome = HistoryOutcome.UPDATED
        result = await finish(session, TrackerResult(outcome, record))

    logger.info(
        "Sector history for operator %s in company %s anchored on contract start %s: %s",
        operator_id,
        company_id,
        contract_start,
        outcome,
    )
    return result


async def update_history_on_contract_update(
    session: AsyncSession,
    operator_id: uuid.UUID,
    company_id: uuid.UUID,
    previous_start: date,
    new_start: date,
    today: date,
    *,
    actor_id: uuid.UUID | None = None,
) -> int:
    """Follow a change of the contract start date from ``previous_start`` to ``new_start``.

    Before the contract has started, the open interval simply moves to
    ``new_start``. Once it has started, intervals of the contract that end
    before ``new_start`` are deleted and the earliest remaining one is moved
    to start on ``new_start``. Returns the number of intervals touched.
    """
    if new_start == previous_start:
        return 0

    async with store_errors(session, f"operator {operator_id}"):
        records = await _locked_timeline(session, company_id, operator_id)
        if previous_start > today:
            superseded: list[SectorHistory] = []
            superseded_ids: set[uuid.UUID] = set()
            target = next((r for r in records if r.end_date is None), None)
        else:
            superseded = [
                r
                for r in records
                if r.start_date >= previous_start and r.end_date is not None and r.end_date < new_start
            ]
            superseded_ids = {r.id for r in superseded}
            target = next((r for r in records if r.start_date >= previous_start and r.id not in superseded_ids), None)

        for record in superseded:
            await delete_history(session, record, actor_id=actor_id)
        touched = len(superseded)

        if target is not None:
            earlier = [r for r in records if r.start_date < target.start_date and r.id not in superseded_ids]
            touched += await _trim_before(session, earlier, new_start, actor_id)
            await update_history(session, target, actor_id=actor_id, start_date=new_start)
            touched += 1
        await session.commit()

    if touched:
        logger.info(
            "Moved sector history of operator %s in company %s from %s to %s (%d interval(s))",
            operator_id,
            company_id,
            previous_start,
            new_start,
            touched,
        )
    return touched


async def update_history_on_contract_deletion(
    session: AsyncSession,
    operator_id: uuid.UUID,
    company_id: uuid.UUID,
    contract_start: date,
    today: date,
    *,
    actor_id: uuid.UUID | None = None,
) -> int:
    """Undo what a deleted contract starting on ``contract_start`` recorded.

    Closed intervals that started with or after the contract are deleted.
    The open interval, if the contract opened it, goes back to pending from
    today or from the day after the last remaining interval, whichever is
    later. Returns the number of intervals touched.
    """
    async with store_errors(session, f"operator {operator_id}"):
        records = await _locked_timeline(session, company_id, operator_id)
        current = next((r for r in records if r.end_date is None), None)
        removed = [r for r in records if r is not current and r.start_date >= contract_start]
        removed_ids = {r.id for r in removed}
        for record in removed:
            await delete_history(session, record, actor_id=actor_id)
        touched = len(removed)

        if current is not None and current.start_date >= contract_start:
            remaining_ends = [
                r.end_date for r in records if r is not current and r.id not in removed_ids and r.end_date is not None
            ]
            pending_start = max([today, *(end + timedelta(days=1) for end in remaining_ends)])
            if current.start_date != pending_start:
                await update_history(session, current, actor_id=actor_id, start_date=pending_start)
                touched += 1
        await session.commit()

    if touched:
        logger.info(
            "Removed sector history of deleted contract of operator %s in company %s (%d interval(s))",
            operator_id,
            company_id,
            touched,
        )
    return touched


async def get_operator_sectors(
    session: AsyncSession,
    operator_id: uuid.UUID,
    company_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> list[uuid.UUID]:
    """Distinct sectors the operator belonged to at any point of [start_date, end_date]."""
    _check_range(start_date, end_date)
    result = await session.execute(
        select(SectorHistory.sector_id)
        .where(
            col(SectorHistory.company_id) == company_id,
            col(SectorHistory.operator_id) == operator_id,
            *overlaps(SectorHistory, start_date, end_date),
        )
        .order_by(col(SectorHistory.start_date))
    )
    return list(dict.fromkeys(result.scalars().all()))


async def list_operators_in_sectors(
    session: AsyncSession,
    sector_ids: list[uuid.UUID],
    company_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> SectorMembersResponse:
    """Operators who belonged to any of ``sector_ids`` during [start_date, end_date].

    Each operator is listed once with the subset of the requested sectors
    they were in. This is the read behind team rosters.
    """
    _check_range(start_date, end_date)
    if not sector_ids:
        return SectorMembersResponse(items=[], total=0)

    result = await session.execute(
        select(SectorHistory.operator_id, SectorHistory.sector_id)
        .where(
            col(SectorHistory.company_id) == company_id,
            col(SectorHistory.sector_id).in_(sector_ids),
            *overlaps(SectorHistory, start_date, end_date),
        )
        .order_by(col(SectorHistory.start_date))
    )

    memberships: dict[uuid.UUID, list[uuid.UUID]] = {}
    for operator_id, sector_id in result.all():
        sectors = memberships.setdefault(operator_id, [])
        if sector_id not in sectors:
            sectors.append(sector_id)

    items = [SectorMembership(operator_id=op, sector_ids=sectors) for op, sectors in memberships.items()]
    return SectorMembersResponse(items=items, total=len(items))


async def list_sector_history(
    session: AsyncSession,
    company_id: uuid.UUID,
    operator_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> HistoryListResponse:
    """List the operator's sector timeline, newest first."""
    return await list_history(session, SectorHistory, company_id, operator_id, offset, limit)
