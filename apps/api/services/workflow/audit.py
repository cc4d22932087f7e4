"""Append-only writer for ticket history entries."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from .entities import HistoryEntry
from .repository import EntityRepository
from .state import HistoryAction, TicketStatus


@dataclass(slots=True)
class HistoryRecord:
    """What a transition wants written to the audit trail.

    The status snapshot is filled in by the writer from the ticket's status at
    the moment the entry is appended.
    """

    ticket_id: str
    actor_id: str | None
    action: HistoryAction
    notes: str | None = None
    assignment_id: str | None = None
    escalation_id: str | None = None
    resolution_id: str | None = None


class AuditLogWriter:
    """Append one HistoryEntry per transition; entries are never updated or deleted."""

    def __init__(self, repository: EntityRepository) -> None:
        self._repository = repository

    async def append(
        self,
        record: HistoryRecord,
        *,
        status_at_time: TicketStatus,
        recorded_at: datetime | None = None,
    ) -> HistoryEntry:
        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            ticket_id=record.ticket_id,
            user_id=record.actor_id,
            action=record.action,
            status_at_time=status_at_time,
            notes=record.notes,
            created_at=recorded_at or datetime.now(timezone.utc),
            assignment_id=record.assignment_id,
            escalation_id=record.escalation_id,
            resolution_id=record.resolution_id,
        )
        return await self._repository.add_history_entry(entry)
