"""Transactional executor for workflow commands."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from opentelemetry import trace
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from apps.api.metrics import (
    NOTIFICATION_FAILURES_TOTAL,
    TRANSITION_DURATION_SECONDS,
    TRANSITIONS_TOTAL,
    MetricsRegistry,
    metrics_registry,
    register_default_metrics,
)

from .audit import AuditLogWriter
from .commands import TransitionCommand, TransitionContext
from .errors import NotFoundError, TransactionFailure, WorkflowError
from .notifications import LoggingNotificationDispatcher, NotificationDispatcher, TransitionEvent
from .repository import AttachmentLinker, EntityRepository
from .state import TicketStateMachine

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class WorkflowEngine:
    """Run each command as one transaction with exactly one history entry.

    The order for every command is: validate inputs, open a transaction, let
    the command load and check its preconditions, apply its writes, append the
    audit entry, commit. Only after the commit is the notification dispatched,
    and its failure never affects the outcome. The returned value comes from a
    fresh read of the committed rows; when that read no longer finds them, the
    view taken inside the transaction is returned instead.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        dispatcher: NotificationDispatcher | None = None,
        state_machine: TicketStateMachine | None = None,
        metrics: MetricsRegistry | None = None,
        audit_writer_factory: Callable[[EntityRepository], AuditLogWriter] = AuditLogWriter,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher or LoggingNotificationDispatcher()
        self._state_machine = state_machine or TicketStateMachine()
        self._metrics = register_default_metrics(metrics or metrics_registry)
        self._audit_writer_factory = audit_writer_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    async def execute(self, command: TransitionCommand) -> Any:
        labels = {"command": command.name}
        with tracer.start_as_current_span(f"workflow.{command.name}") as span:
            with self._metrics.time_distribution(TRANSITION_DURATION_SECONDS, labels=labels):
                try:
                    command.validate()
                    event, snapshot = await self._run_transaction(command)
                except WorkflowError as exc:
                    self._count(command.name, "rejected")
                    span.set_attribute("workflow.outcome", "rejected")
                    span.record_exception(exc)
                    logger.info("workflow %s rejected: %s", command.name, exc)
                    raise
                except SQLAlchemyError as exc:
                    self._count(command.name, "failed")
                    span.set_attribute("workflow.outcome", "failed")
                    span.record_exception(exc)
                    raise await self._translate_database_error(command, exc) from exc

                self._count(command.name, "committed")
                span.set_attribute("workflow.outcome", "committed")
                if event is not None:
                    await self._dispatch(command.name, event)

            return await self._read_result(command, snapshot)

    async def _run_transaction(self, command: TransitionCommand) -> tuple[TransitionEvent | None, Any]:
        async with self._session_factory() as session:
            async with session.begin():
                repository = EntityRepository(session)
                ctx = TransitionContext(
                    repository=repository,
                    attachments=AttachmentLinker(repository),
                    state_machine=self._state_machine,
                    now=self._clock(),
                )
                await command.load(ctx)
                await command.apply(ctx)

                record = command.history()
                ticket = await ctx.require_ticket(record.ticket_id, for_update=False)
                await self._audit_writer_factory(repository).append(
                    record, status_at_time=ticket.status, recorded_at=ctx.now
                )
                event = command.event()
                snapshot = await command.result(repository)
        logger.debug("workflow %s committed for ticket %s", command.name, record.ticket_id)
        return event, snapshot

    async def _read_result(self, command: TransitionCommand, snapshot: Any) -> Any:
        try:
            async with self._session_factory() as session:
                return await command.result(EntityRepository(session))
        except NotFoundError as exc:
            logger.warning("workflow %s committed but the read back failed: %s", command.name, exc)
            return snapshot

    async def _translate_database_error(self, command: TransitionCommand, exc: SQLAlchemyError) -> WorkflowError:
        if isinstance(exc, IntegrityError):
            try:
                async with self._session_factory() as session:
                    conflict = await command.explain_integrity_error(EntityRepository(session))
            except SQLAlchemyError:
                logger.exception("workflow %s: could not inspect constraint violation", command.name)
                conflict = None
            if conflict is not None:
                return conflict
        logger.error("workflow %s transaction failed: %s", command.name, exc)
        return TransactionFailure(f"{command.name} could not be committed")

    async def _dispatch(self, command_name: str, event: TransitionEvent) -> None:
        try:
            await self._dispatcher.notify(event)
        except Exception:  # dispatcher errors are dropped once the transition has committed
            self._metrics.counter(NOTIFICATION_FAILURES_TOTAL).inc(labels={"command": command_name})
            logger.exception(
                "notification %s for ticket %s failed after %s committed",
                event.type.value,
                event.ticket_id,
                command_name,
            )

    def _count(self, command_name: str, outcome: str) -> None:
        self._metrics.counter(TRANSITIONS_TOTAL).inc(labels={"command": command_name, "outcome": outcome})
