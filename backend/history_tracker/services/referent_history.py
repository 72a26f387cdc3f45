"""Referent timeline of customers.

A customer has at most one referent operator at a time. "No referent" is the
absence of an open interval. Until the customer's first recorded service the
timeline is provisional: it is rewritten in place or deleted rather than
split, since there is no service history to attribute yet.
"""

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import or_, select
from sqlmodel import col

from history_tracker.exceptions import NotFoundError
from history_tracker.models.enums import HistoryOutcome
from history_tracker.models.referent_history import ReferentHistory
from history_tracker.services.customer import get_customer_service
from history_tracker.services.history import (
    TrackerResult,
    close_or_delete,
    create_history,
    day_before,
    delete_history,
    find_holder_histories_after,
    finish,
    get_latest_history,
    list_history,
    store_errors,
    update_history,
)
from history_tracker.services.operator import get_operator_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from history_tracker.schemas.history import HistoryListResponse

logger = logging.getLogger(__name__)


async def _verify_customer_exists(company_id: uuid.UUID, customer_id: uuid.UUID) -> None:
    customer = await get_customer_service().get_customer(company_id, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")


async def _verify_referent_exists(company_id: uuid.UUID, referent_id: uuid.UUID) -> None:
    operator = await get_operator_service().get_operator(company_id, referent_id)
    if operator is None:
        raise NotFoundError("Referent not found")


async def _apply_referent_change(
    session: AsyncSession,
    customer_id: uuid.UUID,
    referent_id: uuid.UUID | None,
    company_id: uuid.UUID,
    today: date,
    actor_id: uuid.UUID | None,
) -> TrackerResult[ReferentHistory]:
    yesterday = day_before(today)
    last = await get_latest_history(session, ReferentHistory, company_id, customer_id)

    async def _open_new(holder_id: uuid.UUID) -> ReferentHistory:
        return await create_history(
            session,
            ReferentHistory,
            company_id=company_id,
            subject_id=customer_id,
            holder_id=holder_id,
            start_date=today,
            actor_id=actor_id,
        )

    # Ended before yesterday, or never started: any new referent starts fresh.
    if last is None or (last.end_date is not None and last.end_date < yesterday):
        if referent_id is None:
            return TrackerResult(HistoryOutcome.NOOP)
        return TrackerResult(HistoryOutcome.CREATED, await _open_new(referent_id))

    # Ended exactly yesterday: the same referent continues without a gap.
    if last.end_date is not None and last.end_date == yesterday:
        if referent_id is None:
            return TrackerResult(HistoryOutcome.NOOP)
        if referent_id == last.referent_id:
            await update_history(session, last, actor_id=actor_id, end_date=None)
            return TrackerResult(HistoryOutcome.REOPENED, last)
        return TrackerResult(HistoryOutcome.CREATED, await _open_new(referent_id))

    # Open, or ending today or later.
    first_service_date = await get_customer_service().get_first_service_date(company_id, customer_id)

    if referent_id is None:
        if last.start_date >= today or first_service_date is None:
            previous_id = await delete_history(session, last, actor_id=actor_id)
            return TrackerResult(HistoryOutcome.DELETED, previous_id=previous_id)
        await update_history(session, last, actor_id=actor_id, end_date=yesterday)
        return TrackerResult(HistoryOutcome.CLOSED, previous_id=last.id)

    if referent_id == last.referent_id:
        return TrackerResult(HistoryOutcome.NOOP)

    if first_service_date is None:
        await update_history(session, last, actor_id=actor_id, start_date=today, referent_id=referent_id)
        return TrackerResult(HistoryOutcome.UPDATED, last)

    if last.start_date >= today:
        await update_history(session, last, actor_id=actor_id, referent_id=referent_id)
        return TrackerResult(HistoryOutcome.UPDATED, last)

    await update_history(session, last, actor_id=actor_id, end_date=yesterday)
    return TrackerResult(HistoryOutcome.CLOSED_AND_CREATED, await _open_new(referent_id), previous_id=last.id)


async def update_customer_referent(
    session: AsyncSession,
    customer_id: uuid.UUID,
    referent_id: uuid.UUID | None,
    company_id: uuid.UUID,
    today: date,
    *,
    actor_id: uuid.UUID | None = None,
) -> TrackerResult[ReferentHistory]:
    """Make ``referent_id`` the customer's referent from ``today`` on, or remove it when None.

    The latest interval decides what happens:

    - none, or ended before yesterday: open a new interval today if a
      referent is given;
    - ended yesterday: reopen it for the same referent, otherwise open a new
      one today;
    - still running: delete it (removal on its first day or before any
      service), rewrite it in place (change on its first day or before any
      service), or end it yesterday and open a new one today.
    """
    await _verify_customer_exists(company_id, customer_id)
    if referent_id is not None:
        await _verify_referent_exists(company_id, referent_id)

    async with store_errors(session, f"customer {customer_id}"):
        result = await _apply_referent_change(session, customer_id, referent_id, company_id, today, actor_id)
        result = await finish(session, result)

    if result.outcome == HistoryOutcome.NOOP:
        logger.debug("Referent of customer %s unchanged (%s)", customer_id, referent_id)
    else:
        logger.info(
            "Referent history for customer %s in company %s: %s (referent=%s, previous=%s)",
            customer_id,
            company_id,
            result.outcome,
            referent_id,
            result.previous_id,
        )
    return result


async def unassign_referent_on_contract_end(
    session: AsyncSession,
    operator_id: uuid.UUID,
    company_id: uuid.UUID,
    end_date: date,
    *,
    actor_id: uuid.UUID | None = None,
) -> int:
    """End every referent interval the operator holds on their contract ``end_date``.

    Intervals still running after ``end_date`` are shortened to it; those
    starting after it are deleted. Returns the number of intervals touched.
    """
    async with store_errors(session, f"referent {operator_id}"):
        records = await find_holder_histories_after(session, ReferentHistory, company_id, operator_id, end_date)
        for record in records:
            await close_or_delete(session, record, end_date, actor_id=actor_id)
        await session.commit()

    if records:
        logger.info("Unassigned operator %s as referent of %d customer(s) on %s", operator_id, len(records), end_date)
    return len(records)


async def get_customer_referent(
    session: AsyncSession,
    customer_id: uuid.UUID,
    company_id: uuid.UUID,
    at_date: date,
) -> ReferentHistory | None:
    """Return the referent interval active on ``at_date``, if any."""
    result = await session.execute(
        select(ReferentHistory)
        .where(
            col(ReferentHistory.company_id) == company_id,
            col(ReferentHistory.customer_id) == customer_id,
            col(ReferentHistory.start_date) <= at_date,
            or_(col(ReferentHistory.end_date).is_(None), col(ReferentHistory.end_date) >= at_date),
        )
        .order_by(col(ReferentHistory.start_date).desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_referent_history(
    session: AsyncSession,
    company_id: uuid.UUID,
    customer_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> HistoryListResponse:
    """List the customer's referent timeline, newest first."""
    return await list_history(session, ReferentHistory, company_id, customer_id, offset, limit)
