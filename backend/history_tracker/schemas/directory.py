# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field


class UpsertOperatorRequest(BaseModel):
    """Request body for upserting an operator in the stub directory."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


class OperatorResponse(BaseModel):
    """Response schema for an operator."""

    id: uuid.UUID
    company_id: uuid.UUID
    first_name: str
    last_name: str


class UpsertCustomerRequest(BaseModel):
    """Request body for upserting a customer in the stub directory."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    first_service_date: date | None = None


class CustomerResponse(BaseModel):
    """Response schema for a customer."""

    id: uuid.UUID
    company_id: uuid.UUID
    first_name: str
    last_name: str
    first_service_date: date | None
