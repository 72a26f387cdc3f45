# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class CustomerInfo(BaseModel):
    """Customer metadata from the customer directory.

    ``first_service_date`` is the earliest recorded service, None until one happens.
    """

    id: uuid.UUID
    company_id: uuid.UUID
    first_name: str
    last_name: str
    first_service_date: date | None = None


@runtime_checkable
class CustomerService(Protocol):
    """Interface for the customer directory."""

    async def get_customer(self, company_id: uuid.UUID, customer_id: uuid.UUID) -> CustomerInfo | None:
        """Fetch customer metadata. Returns None if not found."""
        ...

    async def get_first_service_date(self, company_id: uuid.UUID, customer_id: uuid.UUID) -> date | None:
        """Return the date of the customer's first recorded service in the company, if any."""
        ...


class InMemoryCustomerService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._customers: dict[tuple[uuid.UUID, uuid.UUID], CustomerInfo] = {}

    def seed(self, customer: CustomerInfo) -> None:
        """Seed a customer for testing."""
        self._customers[(customer.company_id, customer.id)] = customer

    async def get_customer(self, company_id: uuid.UUID, customer_id: uuid.UUID) -> CustomerInfo | None:
        """Fetch customer metadata. Returns None if not found."""
        return self._customers.get((company_id, customer_id))

    async def get_first_service_date(self, company_id: uuid.UUID, customer_id: uuid.UUID) -> date | None:
        """Return the date of the customer's first recorded service in the company, if any."""
        customer = self._customers.get((company_id, customer_id))
        if customer is None:
            return None
        return customer.first_service_date


_customer_service: CustomerService = InMemoryCustomerService()


def get_customer_service() -> CustomerService:
    """FastAPI dependency for the customer directory."""
    return _customer_service


def set_customer_service(service: CustomerService) -> None:
    """Override the service (for testing or production wiring)."""
    global _customer_service
    _customer_service = service
