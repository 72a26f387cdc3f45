# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from history_tracker.api.deps import AdminDep, AuthDep, validate_company_scope
from history_tracker.exceptions import NotFoundError
from history_tracker.schemas.directory import (
    CustomerResponse,
    OperatorResponse,
    UpsertCustomerRequest,
    UpsertOperatorRequest,
)
from history_tracker.services.customer import CustomerInfo, get_customer_service
from history_tracker.services.operator import OperatorInfo, get_operator_service

operators_router = APIRouter(
    prefix="/companies/{company_id}/operators",
    tags=["directory"],
    dependencies=[Depends(validate_company_scope)],
)

customers_router = APIRouter(
    prefix="/companies/{company_id}/customers",
    tags=["directory"],
    dependencies=[Depends(validate_company_scope)],
)


@operators_router.put("/{operator_id}", response_model=OperatorResponse)
async def upsert_operator(
    company_id: uuid.UUID,
    operator_id: uuid.UUID,
    payload: UpsertOperatorRequest,
    auth: AdminDep,
) -> OperatorResponse:
    """Create or update an operator in the stub directory (admin only)."""
    operator = OperatorInfo(
        id=operator_id,
        company_id=company_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    get_operator_service().seed(operator)  # ty: ignore[unresolved-attribute]
    return OperatorResponse(**operator.model_dump())


@operators_router.get("/{operator_id}", response_model=OperatorResponse)
async def get_operator(
    company_id: uuid.UUID,
    operator_id: uuid.UUID,
    auth: AuthDep,
) -> OperatorResponse:
    """Get operator info from the stub directory."""
    operator = await get_operator_service().get_operator(company_id, operator_id)
    if operator is None:
        raise NotFoundError("Operator not found")
    return OperatorResponse(**operator.model_dump())


@customers_router.put("/{customer_id}", response_model=CustomerResponse)
async def upsert_customer(
    company_id: uuid.UUID,
    customer_id: uuid.UUID,
    payload: UpsertCustomerRequest,
    auth: AdminDep,
) -> CustomerResponse:
    """Create or update a customer in the stub directory (admin only)."""
    customer = CustomerInfo(
        id=customer_id,
        company_id=company_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        first_service_date=payload.first_service_date,
    )
    get_customer_service().seed(customer)  # ty: ignore[unresolved-attribute]
    return CustomerResponse(**customer.model_dump())


@customers_router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    company_id: uuid.UUID,
    customer_id: uuid.UUID,
    auth: AuthDep,
) -> CustomerResponse:
    """Get customer info from the stub directory."""
    customer = await get_customer_service().get_customer(company_id, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return CustomerResponse(**customer.model_dump())
