# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from history_tracker.api.deps import AdminDep, AuthDep, TodayDep, validate_company_scope
from history_tracker.db import SessionDep
from history_tracker.schemas.history import (
    CloseHistoriesRequest,
    CloseHistoriesResponse,
    ContractCreatedRequest,
    ContractDeletedRequest,
    ContractUpdatedRequest,
    HistoryListResponse,
    OperatorSectorsResponse,
    SectorMembersResponse,
    TrackerResultResponse,
    UpdateSectorRequest,
)
from history_tracker.services import sector_history as sector_history_service
from history_tracker.services.history import build_history_response

operator_sector_router = APIRouter(
    prefix="/companies/{company_id}/operators/{operator_id}",
    tags=["sector-histories"],
    dependencies=[Depends(validate_company_scope)],
)

sector_members_router = APIRouter(
    prefix="/companies/{company_id}/sectors",
    tags=["sector-histories"],
    dependencies=[Depends(validate_company_scope)],
)


@operator_sector_router.put("/sector", response_model=TrackerResultResponse)
async def update_operator_sector(
    operator_id: uuid.UUID,
    payload: UpdateSectorRequest,
    session: SessionDep,
    auth: AdminDep,
    today: TodayDep,
) -> TrackerResultResponse:
    """Move an operator to a sector from today on."""
    result = await sector_history_service.update_operator_sector(
        session, operator_id, payload.sector_id, auth.company_id, today, actor_id=auth.user_id
    )
    return TrackerResultResponse(
        outcome=result.outcome,
        record=build_history_response(result.record) if result.record is not None else None,
        previous_id=result.previous_id,
    )


@operator_sector_router.post("/sector-histories/close", response_model=CloseHistoriesResponse)
async def close_operator_sectors(
    operator_id: uuid.UUID,
    payload: CloseHistoriesRequest,
    session: SessionDep,
    auth: AdminDep,
) -> CloseHistoriesResponse:
    """Close every open sector interval of an operator at their contract end date."""
    affected = await sector_history_service.close_operator_sectors(
        session, operator_id, auth.company_id, payload.end_date, actor_id=auth.user_id
    )
    return CloseHistoriesResponse(affected=affected)


@operator_sector_router.post("/sector-histories/contract-created", response_model=TrackerResultResponse)
async def create_history_on_contract_creation(
    operator_id: uuid.UUID,
    payload: ContractCreatedRequest,
    session: SessionDep,
    auth: AdminDep,
) -> TrackerResultResponse:
    """Anchor the operator's sector timeline on a new contract's start date."""
    result = await sector_history_service.create_history_on_contract_creation(
        session, operator_id, payload.sector_id, auth.company_id, payload.contract_start, actor_id=auth.user_id
    )
    return TrackerResultResponse(
        outcome=result.outcome,
        record=build_history_response(result.record) if result.record is not None else None,
        previous_id=result.previous_id,
    )


@operator_sector_router.post("/sector-histories/contract-updated", response_model=CloseHistoriesResponse)
async def update_history_on_contract_update(
    operator_id: uuid.UUID,
    payload: ContractUpdatedRequest,
    session: SessionDep,
    auth: AdminDep,
    today: TodayDep,
) -> CloseHistoriesResponse:
    """Follow a change of the contract start date."""
    affected = await sector_history_service.update_history_on_contract_update(
        session,
        operator_id,
        auth.company_id,
        payload.previous_start,
        payload.new_start,
        today,
        actor_id=auth.user_id,
    )
    return CloseHistoriesResponse(affected=affected)


@operator_sector_router.post("/sector-histories/contract-deleted", response_model=CloseHistoriesResponse)
async def update_history_on_contract_deletion(
    operator_id: uuid.UUID,
    payload: ContractDeletedRequest,
    session: SessionDep,
    auth: AdminDep,
    today: TodayDep,
) -> CloseHistoriesResponse:
    """Remove the sector intervals recorded for a deleted contract."""
    affected = await sector_history_service.update_history_on_contract_deletion(
        session, operator_id, auth.company_id, payload.contract_start, today, actor_id=auth.user_id
    )
    return CloseHistoriesResponse(affected=affected)


@operator_sector_router.get("/sector-histories", response_model=HistoryListResponse)
async def list_sector_history(
    operator_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HistoryListResponse:
    """List an operator's sector timeline, newest first."""
    return await sector_history_service.list_sector_history(session, auth.company_id, operator_id, offset, limit)


@operator_sector_router.get("/sectors", response_model=OperatorSectorsResponse)
async def get_operator_sectors(
    operator_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    start_date: date = Query(),
    end_date: date = Query(),
) -> OperatorSectorsResponse:
    """Sectors an operator belonged to during a date range."""
    sector_ids = await sector_history_service.get_operator_sectors(
        session, operator_id, auth.company_id, start_date, end_date
    )
    return OperatorSectorsResponse(operator_id=operator_id, sector_ids=sector_ids)


@sector_members_router.get("/operators", response_model=SectorMembersResponse)
async def list_operators_in_sectors(
    session: SessionDep,
    auth: AuthDep,
    sector_ids: list[uuid.UUID] = Query(alias="sector_id"),
    start_date: date = Query(),
    end_date: date = Query(),
) -> SectorMembersResponse:
    """Operators who belonged to the given sectors during a date range."""
    return await sector_history_service.list_operators_in_sectors(
        session, sector_ids, auth.company_id, start_date, end_date
    )
