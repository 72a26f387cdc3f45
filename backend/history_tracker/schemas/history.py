# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from history_tracker.models.enums import HistoryOutcome


class HistoryRecordResponse(BaseModel):
    """One interval of a sector or referent timeline.

    ``subject_id`` is the operator (sector history) or customer (referent
    history); ``holder_id`` is the sector or the referent operator.
    """

    id: uuid.UUID
    company_id: uuid.UUID
    subject_id: uuid.UUID
    holder_id: uuid.UUID
    start_date: date
    end_date: date | None
    created_at: datetime
    updated_at: datetime


class HistoryListResponse(BaseModel):
    """Paginated list of timeline intervals."""

    items: list[HistoryRecordResponse]
    total: int


class TrackerResultResponse(BaseModel):
    """Effect of a tracker call on a timeline."""

    outcome: HistoryOutcome
    record: HistoryRecordResponse | None = None
    previous_id: uuid.UUID | None = None


class UpdateSectorRequest(BaseModel):
    """Request body for moving an operator to a sector."""

    sector_id: uuid.UUID


class UpdateReferentRequest(BaseModel):
    """Request body for setting or removing a customer's referent."""

    referent_id: uuid.UUID | None = None


class CloseHistoriesRequest(BaseModel):
    """Request body for closing every open interval at a contract end date."""

    end_date: date


class ContractCreatedRequest(BaseModel):
    """Request body sent when a contract is created for an operator."""

    sector_id: uuid.UUID
    contract_start: date


class ContractUpdatedRequest(BaseModel):
    """Request body sent when the start date of a contract changes."""

    previous_start: date
    new_start: date


class ContractDeletedRequest(BaseModel):
    """Request body sent when a contract is deleted."""

    contract_start: date


class CloseHistoriesResponse(BaseModel):
    """Number of intervals closed or deleted."""

    affected: int


class OperatorSectorsResponse(BaseModel):
    """Sectors an operator belonged to during a date range."""

    operator_id: uuid.UUID
    sector_ids: list[uuid.UUID]


class SectorMembership(BaseModel):
    """An operator and the requested sectors they belonged to during a date range."""

    operator_id: uuid.UUID
    sector_ids: list[uuid.UUID]


class SectorMembersResponse(BaseModel):
    """Operators found in the requested sectors during a date range."""

    items: list[SectorMembership]
    total: int = Field(ge=0)
