"""Post-commit notification dispatch for workflow transitions.

Dispatchers are only ever invoked after the transition's transaction has
committed. They may raise; the workflow engine logs and swallows every error.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from packages.db.models import NotificationTable

from .errors import NotificationFailure

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    ASSIGNED = "ASSIGNED"
    UNASSIGNED = "UNASSIGNED"
    REJECTED = "REJECTED"
    RE_RAISED = "RE_RAISED"


@dataclass(slots=True)
class TransitionEvent:
    """A committed transition that interested users should hear about."""

    type: NotificationType
    ticket_id: str
    actor_id: str
    recipient_ids: Sequence[str]
    title: str
    message: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationDispatcher(Protocol):
    async def notify(self, event: TransitionEvent, *, session: AsyncSession | None = None) -> None:
        ...


class LoggingNotificationDispatcher:
    """Dispatcher that only writes events to the application log."""

    async def notify(self, event: TransitionEvent, *, session: AsyncSession | None = None) -> None:
        logger.info(
            "notification %s for ticket %s to %s: %s",
            event.type.value,
            event.ticket_id,
            ", ".join(event.recipient_ids) or "<nobody>",
            event.message,
        )


class DatabaseNotificationDispatcher:
    """Persist one in-app notification row per recipient.

    When `session` is given the rows join that session's transaction; otherwise
    the dispatcher commits its own short transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def notify(self, event: TransitionEvent, *, session: AsyncSession | None = None) -> None:
        recipients = _unique_recipients(event)
        if not recipients:
            logger.debug("no recipients for %s on ticket %s", event.type.value, event.ticket_id)
            return

        rows = [self._to_row(event, receiver_id) for receiver_id in recipients]
        try:
            if session is not None:
                session.add_all(rows)
                await session.flush()
                return
            async with self._session_factory() as own_session:
                async with own_session.begin():
                    own_session.add_all(rows)
        except SQLAlchemyError as exc:
            raise NotificationFailure(f"Failed to store {event.type.value} notifications: {exc}") from exc

        logger.debug("stored %d %s notifications for ticket %s", len(rows), event.type.value, event.ticket_id)

    @staticmethod
    def _to_row(event: TransitionEvent, receiver_id: str) -> NotificationTable:
        return NotificationTable(
            id=str(uuid.uuid4()),
            type=event.type.value,
            sender_id=event.actor_id,
            receiver_id=receiver_id,
            ticket_id=event.ticket_id,
            title=event.title,
            message=event.message,
            is_read=False,
            metadata_=dict(event.metadata),
            created_at=event.occurred_at,
        )


def _unique_recipients(event: TransitionEvent) -> list[str]:
    return [recipient for recipient in dict.fromkeys(event.recipient_ids) if recipient]
