# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class OperatorInfo(BaseModel):
    """Operator metadata from the staff directory."""

    id: uuid.UUID
    company_id: uuid.UUID
    first_name: str
    last_name: str


@runtime_checkable
class OperatorService(Protocol):
    """Interface for the staff directory."""

    async def get_operator(self, company_id: uuid.UUID, operator_id: uuid.UUID) -> OperatorInfo | None:
        """Fetch operator metadata. Returns None if not found."""
        ...

    async def list_operators(self, company_id: uuid.UUID) -> list[OperatorInfo]:
        """List all operators for a company."""
        ...


class InMemoryOperatorService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._operators: dict[tuple[uuid.UUID, uuid.UUID], OperatorInfo] = {}

    def seed(self, operator: OperatorInfo) -> None:
        """Seed an operator for testing."""
        self._operators[(operator.company_id, operator.id)] = operator

    async def get_operator(self, company_id: uuid.UUID, operator_id: uuid.UUID) -> OperatorInfo | None:
        """Fetch operator metadata. Returns None if not found."""
        return self._operators.get((company_id, operator_id))

    async def list_operators(self, company_id: uuid.UUID) -> list[OperatorInfo]:
        """List all operators for a company."""
        return [o for o in self._operators.values() if o.company_id == company_id]


_operator_service: OperatorService = InMemoryOperatorService()


def get_operator_service() -> OperatorService:
    """FastAPI dependency for the staff directory."""
    return _operator_service


def set_operator_service(service: OperatorService) -> None:
    """Override the service (for testing or production wiring)."""
    global _operator_service
    _operator_service = service
