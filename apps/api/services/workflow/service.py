from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Awaitable, Callable, Sequence, TypeVar

from .commands import (
    AcceptCommand,
    AssignCommand,
    DeleteReRaiseCommand,
    DeleteRejectionCommand,
    DeleteResolutionCommand,
    EscalateCommand,
    ReRaiseCommand,
    RejectCommand,
    ResolveCommand,
    UnassignByAssigneeCommand,
    UnassignCommand,
)
from .engine import WorkflowEngine
from .entities import (
    AssignmentDetail,
    EscalationDetail,
    HistoryEntry,
    ReRaiseDetail,
    RejectionDetail,
    ResolutionDetail,
    ReversalResult,
    Ticket,
    Tier,
    UnassignmentSummary,
)
from .errors import NotFoundError
from .repository import EntityRepository

T = TypeVar("T")


class WorkflowService:
    """Entry point for ticket lifecycle operations and their read models."""

    def __init__(self, engine: WorkflowEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> WorkflowEngine:
        return self._engine

    # transitions -----------------------------------------------------------

    async def assign(
        self,
        *,
        ticket_id: str,
        assignee_id: str,
        assigned_by: str,
        remarks: str | None = None,
        attachment_ids: Sequence[str] = (),
    ) -> AssignmentDetail:
        return await self._engine.execute(
            AssignCommand(
                ticket_id=ticket_id,
                assignee_id=assignee_id,
                assigned_by=assigned_by,
                remarks=remarks,
                attachment_ids=tuple(attachment_ids),
            )
        )

    async def unassign(self, assignment_id: str, *, removed_by: str, reason: str | None = None) -> UnassignmentSummary:
        return await self._engine.execute(
            UnassignCommand(assignment_id=assignment_id, removed_by=removed_by, reason=reason)
        )

    async def unassign_by_assignee(
        self, ticket_id: str, assignee_id: str, *, removed_by: str, reason: str | None = None
    ) -> UnassignmentSummary:
        return await self._engine.execute(
            UnassignByAssigneeCommand(
                ticket_id=ticket_id, assignee_id=assignee_id, removed_by=removed_by, reason=reason
            )
        )

    async def accept(self, ticket_id: str, *, accepted_by: str) -> Ticket:
        return await self._engine.execute(AcceptCommand(ticket_id=ticket_id, accepted_by=accepted_by))

    async def escalate(
        self,
        *,
        ticket_id: str,
        from_tier: str,
        to_tier: str,
        reason: str,
        escalated_by: str,
        attachment_ids: Sequence[str] = (),
    ) -> EscalationDetail:
        return await self._engine.execute(
            EscalateCommand(
                ticket_id=ticket_id,
                from_tier=from_tier,
                to_tier=to_tier,
                reason=reason,
                escalated_by=escalated_by,
                attachment_ids=tuple(attachment_ids),
            )
        )

    async def resolve(
        self, *, ticket_id: str, reason: str, resolved_by: str, attachment_ids: Sequence[str] = ()
    ) -> ResolutionDetail:
        return await self._engine.execute(
            ResolveCommand(
                ticket_id=ticket_id, reason=reason, resolved_by=resolved_by, attachment_ids=tuple(attachment_ids)
            )
        )

    async def reject(
        self, *, ticket_id: str, reason: str, rejected_by: str, attachment_ids: Sequence[str] = ()
    ) -> RejectionDetail:
        return await self._engine.execute(
            RejectCommand(
                ticket_id=ticket_id, reason=reason, rejected_by=rejected_by, attachment_ids=tuple(attachment_ids)
            )
        )

    async def re_raise(
        self,
        *,
        ticket_id: str,
        reason: str,
        re_raised_by: str,
        re_raised_at: datetime | None = None,
        attachment_ids: Sequence[str] = (),
    ) -> ReRaiseDetail:
        return await self._engine.execute(
            ReRaiseCommand(
                ticket_id=ticket_id,
                reason=reason,
                re_raised_by=re_raised_by,
                re_raised_at=re_raised_at,
                attachment_ids=tuple(attachment_ids),
            )
        )

    async def delete_resolution(self, resolution_id: str, *, actor_id: str | None = None) -> ReversalResult:
        return await self._engine.execute(DeleteResolutionCommand(record_id=resolution_id, actor_id=actor_id))

    async def delete_rejection(self, rejection_id: str, *, actor_id: str | None = None) -> ReversalResult:
        return await self._engine.execute(DeleteRejectionCommand(record_id=rejection_id, actor_id=actor_id))

    async def delete_re_raise(self, re_raise_id: str, *, actor_id: str | None = None) -> ReversalResult:
        return await self._engine.execute(DeleteReRaiseCommand(record_id=re_raise_id, actor_id=actor_id))

    # reads -----------------------------------------------------------------

    @asynccontextmanager
    async def _repository(self) -> AsyncIterator[EntityRepository]:
        async with self._engine.session_factory() as session:
            yield EntityRepository(session)

    async def _for_ticket(
        self, ticket_id: str, query: Callable[[EntityRepository], Awaitable[T]]
    ) -> T:
        async with self._repository() as repository:
            if await repository.get_ticket(ticket_id) is None:
                raise NotFoundError("Ticket", ticket_id)
            return await query(repository)

    async def get_assignment(self, assignment_id: str) -> AssignmentDetail:
        async with self._repository() as repository:
            detail = await repository.load_assignment_detail(assignment_id)
        if detail is None:
            raise NotFoundError("Assignment", assignment_id)
        return detail

    async def list_ticket_assignments(self, ticket_id: str) -> list[AssignmentDetail]:
        async def query(repository: EntityRepository) -> list[AssignmentDetail]:
            assignments = await repository.list_assignments(ticket_id=ticket_id)
            return [await _require(repository.load_assignment_detail(item.id)) for item in assignments]

        return await self._for_ticket(ticket_id, query)

    async def latest_assignment(self, ticket_id: str) -> AssignmentDetail:
        details = await self.list_ticket_assignments(ticket_id)
        if not details:
            raise NotFoundError("Assignment", message=f"No assignments found for ticket {ticket_id}")
        return details[0]

    async def list_user_assignments(self, assignee_id: str) -> list[AssignmentDetail]:
        async with self._repository() as repository:
            if await repository.get_user(assignee_id) is None:
                raise NotFoundError("User", assignee_id)
            assignments = await repository.list_assignments(assignee_id=assignee_id)
            return [await _require(repository.load_assignment_detail(item.id)) for item in assignments]

    async def get_escalation(self, escalation_id: str) -> EscalationDetail:
        async with self._repository() as repository:
            detail = await repository.load_escalation_detail(escalation_id)
        if detail is None:
            raise NotFoundError("Escalation", escalation_id)
        return detail

    async def list_escalations(self, ticket_id: str) -> list[EscalationDetail]:
        async def query(repository: EntityRepository) -> list[EscalationDetail]:
            escalations = await repository.list_escalations(ticket_id)
            return [await _require(repository.load_escalation_detail(item.id)) for item in escalations]

        return await self._for_ticket(ticket_id, query)

    async def get_resolution(self, resolution_id: str) -> ResolutionDetail:
        async with self._repository() as repository:
            detail = await repository.load_resolution_detail(resolution_id)
        if detail is None:
            raise NotFoundError("Resolution", resolution_id)
        return detail

    async def list_resolutions(self, ticket_id: str) -> list[ResolutionDetail]:
        async def query(repository: EntityRepository) -> list[ResolutionDetail]:
            resolutions = await repository.list_resolutions(ticket_id)
            return [await _require(repository.load_resolution_detail(item.id)) for item in resolutions]

        return await self._for_ticket(ticket_id, query)

    async def latest_resolution(self, ticket_id: str) -> ResolutionDetail:
        details = await self.list_resolutions(ticket_id)
        if not details:
            raise NotFoundError("Resolution", message=f"No resolutions found for ticket {ticket_id}")
        return details[0]

    async def get_rejection(self, rejection_id: str) -> RejectionDetail:
        async with self._repository() as repository:
            detail = await repository.load_rejection_detail(rejection_id)
        if detail is None:
            raise NotFoundError("Rejection", rejection_id)
        return detail

    async def list_rejections(self, ticket_id: str) -> list[RejectionDetail]:
        async def query(repository: EntityRepository) -> list[RejectionDetail]:
            rejections = await repository.list_rejections(ticket_id)
            return [await _require(repository.load_rejection_detail(item.id)) for item in rejections]

        return await self._for_ticket(ticket_id, query)

    async def get_re_raise(self, re_raise_id: str) -> ReRaiseDetail:
        async with self._repository() as repository:
            detail = await repository.load_re_raise_detail(re_raise_id)
        if detail is None:
            raise NotFoundError("Re-raise", re_raise_id)
        return detail

    async def list_re_raises(self, ticket_id: str) -> list[ReRaiseDetail]:
        async def query(repository: EntityRepository) -> list[ReRaiseDetail]:
            re_raises = await repository.list_re_raises(ticket_id)
            return [await _require(repository.load_re_raise_detail(item.id)) for item in re_raises]

        return await self._for_ticket(ticket_id, query)

    async def list_tiers(self, ticket_id: str) -> list[Tier]:
        return await self._for_ticket(ticket_id, lambda repository: repository.list_tiers(ticket_id))

    async def current_tier(self, ticket_id: str) -> Tier:
        tier = await self._for_ticket(ticket_id, lambda repository: repository.current_tier(ticket_id))
        if tier is None:
            raise NotFoundError("Tier", message=f"No tiers found for ticket {ticket_id}")
        return tier

    async def history(self, ticket_id: str) -> list[HistoryEntry]:
        return await self._for_ticket(ticket_id, lambda repository: repository.list_history(ticket_id))


async def _require(pending: Awaitable[T | None]) -> T:
    value = await pending
    if value is None:  # pragma: no cover - row vanished between list and load
        raise NotFoundError("Record", message="Record was removed while loading")
    return value
