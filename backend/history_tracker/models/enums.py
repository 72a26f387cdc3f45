from __future__ import annotations

import enum


class HistoryOutcome(enum.StrEnum):
    """Effect a tracker call had on a subject's timeline."""

    NOOP = "NOOP"
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    REOPENED = "REOPENED"
    CLOSED = "CLOSED"
    DELETED = "DELETED"
    CLOSED_AND_CREATED = "CLOSED_AND_CREATED"
    DELETED_AND_CREATED = "DELETED_AND_CREATED"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    SECTOR_HISTORY = "SECTOR_HISTORY"
    REFERENT_HISTORY = "REFERENT_HISTORY"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
