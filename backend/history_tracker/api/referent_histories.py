# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from history_tracker.api.deps import AdminDep, AuthDep, TodayDep, validate_company_scope
from history_tracker.db import SessionDep
from history_tracker.exceptions import NotFoundError
from history_tracker.schemas.history import (
    CloseHistoriesRequest,
    CloseHistoriesResponse,
    HistoryListResponse,
    HistoryRecordResponse,
    TrackerResultResponse,
    UpdateReferentRequest,
)
from history_tracker.services import referent_history as referent_history_service
from history_tracker.services.history import build_history_response

customer_referent_router = APIRouter(
    prefix="/companies/{company_id}/customers/{customer_id}",
    tags=["referent-histories"],
    dependencies=[Depends(validate_company_scope)],
)

operator_referent_router = APIRouter(
    prefix="/companies/{company_id}/operators/{operator_id}/referent-histories",
    tags=["referent-histories"],
    dependencies=[Depends(validate_company_scope)],
)


@customer_referent_router.put("/referent", response_model=TrackerResultResponse)
async def update_customer_referent(
    customer_id: uuid.UUID,
    payload: UpdateReferentRequest,
    session: SessionDep,
    auth: AdminDep,
    today: TodayDep,
) -> TrackerResultResponse:
    """Set the customer's referent from today on, or remove it with a null referent_id."""
    result = await referent_history_service.update_customer_referent(
        session, customer_id, payload.referent_id, auth.company_id, today, actor_id=auth.user_id
    )
    return TrackerResultResponse(
        outcome=result.outcome,
        record=build_history_response(result.record) if result.record is not None else None,
        previous_id=result.previous_id,
    )


@customer_referent_router.get("/referent", response_model=HistoryRecordResponse)
async def get_customer_referent(
    customer_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
    at_date: date | None = Query(default=None),
) -> HistoryRecordResponse:
    """Referent interval active on at_date (default today)."""
    record = await referent_history_service.get_customer_referent(
        session, customer_id, auth.company_id, at_date or today
    )
    if record is None:
        raise NotFoundError("Customer has no referent on this date")
    return build_history_response(record)


@customer_referent_router.get("/referent-histories", response_model=HistoryListResponse)
async def list_referent_history(
    customer_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HistoryListResponse:
    """List the customer's referent timeline, newest first."""
    return await referent_history_service.list_referent_history(session, auth.company_id, customer_id, offset, limit)


@operator_referent_router.post("/close", response_model=CloseHistoriesResponse)
async def unassign_referent_on_contract_end(
    operator_id: uuid.UUID,
    payload: CloseHistoriesRequest,
    session: SessionDep,
    auth: AdminDep,
) -> CloseHistoriesResponse:
    """End the operator's referent intervals at their contract end date."""
    affected = await referent_history_service.unassign_referent_on_contract_end(
        session, operator_id, auth.company_id, payload.end_date, actor_id=auth.user_id
    )
    return CloseHistoriesResponse(affected=affected)
