from sqlmodel import SQLModel

from history_tracker.models.audit import AuditLog
from history_tracker.models.base import DateIntervalMixin, TimestampMixin, UUIDBase
from history_tracker.models.enums import AuditAction, AuditEntityType, HistoryOutcome
from history_tracker.models.referent_history import ReferentHistory
from history_tracker.models.sector_history import SectorHistory

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "DateIntervalMixin",
    "HistoryOutcome",
    "ReferentHistory",
    "SQLModel",
    "SectorHistory",
    "TimestampMixin",
    "UUIDBase",
]
