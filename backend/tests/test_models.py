from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import IntegrityError

from history_tracker.models import AuditLog, ReferentHistory, SQLModel, SectorHistory
from history_tracker.models.enums import AuditAction, AuditEntityType

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

EXPECTED_TABLES = {
    "audit_log",
    "referent_history",
    "sector_history",
}


def test_all_tables_registered() -> None:
    table_names = set(SQLModel.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(table_names)


def test_sector_history_instantiation() -> None:
    operator_id = uuid.uuid4()
    sector_id = uuid.uuid4()
    record = SectorHistory(
        company_id=uuid.uuid4(),
        operator_id=operator_id,
        sector_id=sector_id,
        start_date=date(2025, 1, 1),
    )
    assert record.id is not None
    assert record.end_date is None
    assert record.subject_id == operator_id
    assert record.holder_id == sector_id


def test_referent_history_instantiation() -> None:
    customer_id = uuid.uuid4()
    referent_id = uuid.uuid4()
    record = ReferentHistory(
        company_id=uuid.uuid4(),
        customer_id=customer_id,
        referent_id=referent_id,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 3, 31),
    )
    assert record.subject_id == customer_id
    assert record.holder_id == referent_id
    assert record.end_date == date(2025, 3, 31)


def test_audit_log_without_actor() -> None:
    entry = AuditLog(
        company_id=uuid.uuid4(),
        entity_type=AuditEntityType.SECTOR_HISTORY,
        entity_id=uuid.uuid4(),
        action=AuditAction.CREATE,
        after_json={"sector_id": "abc"},
    )
    assert entry.actor_id is None
    assert entry.before_json is None


@pytest.mark.parametrize(
    ("table_name", "index_name"),
    [
        ("sector_history", "uq_sector_history_open"),
        ("referent_history", "uq_referent_history_open"),
    ],
)
def test_open_interval_index_is_unique_and_partial(table_name: str, index_name: str) -> None:
    table = SQLModel.metadata.tables[table_name]
    index = next(ix for ix in table.indexes if ix.name == index_name)
    assert index.unique
    assert str(index.dialect_options["postgresql"]["where"]) == "end_date IS NULL"


async def test_second_open_interval_is_rejected(db_session: AsyncSession) -> None:
    company_id = uuid.uuid4()
    operator_id = uuid.uuid4()
    db_session.add(
        SectorHistory(company_id=company_id, operator_id=operator_id, sector_id=uuid.uuid4(), start_date=date(2025, 1, 1))
    )
    await db_session.flush()

    db_session.add(
        SectorHistory(company_id=company_id, operator_id=operator_id, sector_id=uuid.uuid4(), start_date=date(2025, 2, 1))
    )
    with pytest.raises(IntegrityError):
        await db_session.flush()
    await db_session.rollback()


async def test_closed_intervals_do_not_collide(db_session: AsyncSession) -> None:
    company_id = uuid.uuid4()
    customer_id = uuid.uuid4()
    referent_id = uuid.uuid4()
    db_session.add_all(
        [
            ReferentHistory(
                company_id=company_id,
                customer_id=customer_id,
                referent_id=referent_id,
                start_date=date(2025, 1, 1),
                end_date=date(2025, 1, 31),
            ),
            ReferentHistory(
                company_id=company_id,
                customer_id=customer_id,
                referent_id=referent_id,
                start_date=date(2025, 2, 1),
                end_date=date(2025, 2, 28),
            ),
            ReferentHistory(
                company_id=company_id,
                customer_id=customer_id,
                referent_id=referent_id,
                start_date=date(2025, 3, 1),
            ),
        ]
    )
    await db_session.flush()
