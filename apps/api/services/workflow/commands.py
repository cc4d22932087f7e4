"""Transition commands executed by the workflow engine.

Each command declares its reads and checks in `load`, its writes in `apply`,
the audit entry it produces in `history` and the optional post-commit event in
`event`. Commands are single use: `load` and `apply` keep what they read on the
instance so the later phases can describe it.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Sequence

from .audit import HistoryRecord
from .entities import (
    Assignment,
    Escalation,
    ReRaise,
    Rejection,
    Resolution,
    ReversalResult,
    Ticket,
    Tier,
    UnassignmentSummary,
    User,
)
from .errors import ConflictError, InvalidActorError, InvalidTransitionError, NotFoundError, ValidationError
from .notifications import NotificationType, TransitionEvent
from .repository import AttachmentLinker, AttachmentOwner, EntityRepository
from .state import AssignmentStatus, HistoryAction, TicketStateMachine, TicketStatus, TierStatus, Transition


@dataclass(slots=True)
class TransitionContext:
    """Handles available to a command while its transaction is open."""

    repository: EntityRepository
    attachments: AttachmentLinker
    state_machine: TicketStateMachine
    now: datetime

    async def require_ticket(self, ticket_id: str, *, for_update: bool = True) -> Ticket:
        ticket = await self.repository.get_ticket(ticket_id, for_update=for_update)
        if ticket is None:
            raise NotFoundError("Ticket", ticket_id)
        return ticket

    async def require_user(self, user_id: str, role: str, *, active: bool = True) -> User:
        user = await self.repository.get_user(user_id)
        if user is None:
            raise NotFoundError(role, user_id)
        if active and not user.is_active:
            raise InvalidActorError(role, user_id)
        return user

    def check_transition(self, ticket: Ticket, transition: Transition) -> None:
        if not self.state_machine.can_apply(ticket.status, transition):
            raise InvalidTransitionError(
                f"Cannot {transition.value.replace('_', '-')} ticket {ticket.id} while it is {ticket.status.value}"
            )

    async def set_current_tier_status(self, ticket_id: str, status: TierStatus) -> Tier | None:
        tier = await self.repository.current_tier(ticket_id)
        if tier is None:
            return None
        return await self.repository.update_tier_status(tier.id, status, self.now)


class TransitionCommand(ABC):
    """Base class for one lifecycle operation."""

    name: ClassVar[str]
    required_fields: ClassVar[tuple[str, ...]] = ()

    def validate(self) -> None:
        for field_name in self.required_fields:
            value = getattr(self, field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"{field_name} is required")

    @abstractmethod
    async def load(self, ctx: TransitionContext) -> None:
        """Read and validate everything the command depends on."""

    @abstractmethod
    async def apply(self, ctx: TransitionContext) -> None:
        """Perform the command's writes."""

    @abstractmethod
    def history(self) -> HistoryRecord:
        """Describe the audit entry for this transition."""

    def event(self) -> TransitionEvent | None:
        return None

    async def explain_integrity_error(self, repository: EntityRepository) -> ConflictError | None:
        """Translate a constraint violation raised while applying the command."""

        return None

    @abstractmethod
    async def result(self, repository: EntityRepository) -> Any:
        """Build the response from a post-commit read."""


def _new_id() -> str:
    return str(uuid.uuid4())


def _recipients(*groups: Sequence[str | None], exclude: str | None = None) -> list[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for user_id in group:
            if user_id and user_id != exclude:
                seen.setdefault(user_id, None)
    return list(seen)


# assignment ---------------------------------------------------------------


@dataclass
class AssignCommand(TransitionCommand):
    ticket_id: str
    assignee_id: str
    assigned_by: str
    remarks: str | None = None
    attachment_ids: Sequence[str] = ()

    name: ClassVar[str] = "assign"
    required_fields: ClassVar[tuple[str, ...]] = ("ticket_id", "assignee_id", "assigned_by")

    _ticket: Ticket | None = field(default=None, init=False, repr=False)
    _assignee: User | None = field(default=None, init=False, repr=False)
    _assignment_id: str | None = field(default=None, init=False, repr=False)

    async def load(self, ctx: TransitionContext) -> None:
        self._ticket = await ctx.require_ticket(self.ticket_id)
        self._assignee = await ctx.require_user(self.assignee_id, "Assignee")
        await ctx.require_user(self.assigned_by, "Assigner")

        existing = await ctx.repository.find_assignment(self.ticket_id, self.assignee_id)
        if existing is not None:
            raise ConflictError("This user is already assigned to the issue.", existing_id=existing.id)
        ctx.check_transition(self._ticket, Transition.ASSIGN)

    async def apply(self, ctx: TransitionContext) -> None:
        self._assignment_id = _new_id()
        await ctx.repository.create_assignment(
            Assignment(
                id=self._assignment_id,
                ticket_id=self.ticket_id,
                assignee_id=self.assignee_id,
                assigned_by=self.assigned_by,
                status=AssignmentStatus.PENDING,
                remarks=self.remarks or None,
                assigned_at=ctx.now,
                created_at=ctx.now,
                updated_at=ctx.now,
            )
        )
        await ctx.attachments.link(AttachmentOwner.ASSIGNMENT, self._assignment_id, self.attachment_ids)
        self._ticket = await ctx.repository.update_ticket_status(
            self.ticket_id, ctx.state_machine.target(Transition.ASSIGN), ctx.now
        )

    def history(self) -> HistoryRecord:
        assert self._assignee is not None
        notes = f"Issue assigned to {self._assignee.full_name}."
        if self.remarks:
            notes = f"{notes} Remarks: {self.remarks}"
        return HistoryRecord(
            ticket_id=self.ticket_id,
            actor_id=self.assigned_by,
            action=HistoryAction.ASSIGNED,
            notes=notes,
            assignment_id=self._assignment_id,
        )

    def event(self) -> TransitionEvent | None:
        assert self._ticket is not None and self._assignee is not None
        return TransitionEvent(
            type=NotificationType.ASSIGNED,
            ticket_id=self.ticket_id,
            actor_id=self.assigned_by,
            recipient_ids=_recipients([self.assignee_id, self.assigned_by]),
            title=f"Issue assigned: {self._ticket.title}",
            message=f"Issue \"{self._ticket.title}\" was assigned to {self._assignee.full_name}.",
            metadata={"assignment_id": self._assignment_id, "remarks": self.remarks},
        )

    async def explain_integrity_error(self, repository: EntityRepository) -> ConflictError | None:
        existing = await repository.find_assignment(self.ticket_id, self.assignee_id)
        if existing is None:
            return None
        return ConflictError("This user is already assigned to the issue.", existing_id=existing.id)

    async def result(self, repository: EntityRepository) -> Any:
        assert self._assignment_id is not None
        detail = await repository.load_assignment_detail(self._assignment_id)
        if detail is None:
            raise NotFoundError("Assignment", self._assignment_id)
        return detail


@dataclass
class UnassignCommand(TransitionCommand):
    """Remove an assignment located by its id."""

    assignment_id: str
    removed_by: str
    reason: str | None = None

    name: ClassVar[str] = "unassign"
    required_fields: ClassVar[tuple[str, ...]] = ("assignment_id", "removed_by")

    _assignment: Assignment | None = field(default=None, init=False, repr=False)
    _ticket: Ticket | None = field(default=None, init=False, repr=False)
    _assignee: User | None = field(default=None, init=False, repr=False)
    _assigner: User | None = field(default=None, init=False, repr=False)
    _remover: User | None = field(default=None, init=False, repr=False)

    async def load(self, ctx: TransitionContext) -> None:
        assignment = await ctx.repository.get_assignment(self.assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment", self.assignment_id)
        self._remover = await ctx.require_user(self.removed_by, "User removing assignment")
        await self._load_assignment_parties(ctx, assignment)

    async def _load_assignment_parties(self, ctx: TransitionContext, assignment: Assignment) -> None:
        self._assignment = assignment
        self._ticket = await ctx.require_ticket(assignment.ticket_id)
        self._assignee = await ctx.require_user(assignment.assignee_id, "Assignee", active=False)
        self._assigner = await ctx.require_user(assignment.assigned_by, "Assigner", active=False)

    async def apply(self, ctx: TransitionContext) -> None:
        assert self._assignment is not None
        await ctx.attachments.unlink_all(AttachmentOwner.ASSIGNMENT, self._assignment.id)
        await ctx.repository.delete_assignment(self._assignment.id)

    def _effective_reason(self) -> str | None:
        return self.reason

    def history(self) -> HistoryRecord:
        assert self._assignment is not None and self._assignee is not None
        suffix = f"Reason: {self.reason}" if self.reason else "No reason provided"
        return HistoryRecord(
            ticket_id=self._assignment.ticket_id,
            actor_id=self.removed_by,
            action=HistoryAction.UNASSIGNED,
            notes=f"Assignment removed for {self._assignee.full_name}. {suffix}",
        )

    def event(self) -> TransitionEvent | None:
        assert self._assignment is not None and self._ticket is not None and self._assignee is not None
        reason = self._effective_reason()
        message = f"{self._assignee.full_name} was unassigned from \"{self._ticket.title}\"."
        if reason:
            message = f"{message} Reason: {reason}"
        return TransitionEvent(
            type=NotificationType.UNASSIGNED,
            ticket_id=self._assignment.ticket_id,
            actor_id=self.removed_by,
            recipient_ids=_recipients([self._assignment.assignee_id, self._assignment.assigned_by]),
            title=f"Assignment removed: {self._ticket.title}",
            message=message,
            metadata={"assignment_id": self._assignment.id, "reason": reason},
        )

    async def result(self, repository: EntityRepository) -> Any:
        assert self._assignment is not None and self._assignee is not None
        assert self._assigner is not None and self._remover is not None
        return UnassignmentSummary(
            assignment_id=self._assignment.id,
            ticket_id=self._assignment.ticket_id,
            assignee_id=self._assignment.assignee_id,
            assignee_name=self._assignee.full_name,
            assigner_name=self._assigner.full_name,
            removed_by=self._remover.full_name,
            reason=self.reason,
        )


@dataclass
class UnassignByAssigneeCommand(UnassignCommand):
    """Remove the assignment identified by the (ticket, assignee) pair."""

    assignment_id: str | None = field(default=None, init=False)
    ticket_id: str = ""
    assignee_id: str = ""

    name: ClassVar[str] = "unassign_by_assignee"
    required_fields: ClassVar[tuple[str, ...]] = ("ticket_id", "assignee_id", "removed_by")

    async def load(self, ctx: TransitionContext) -> None:
        await ctx.require_ticket(self.ticket_id)
        assignee = await ctx.require_user(self.assignee_id, "Assignee", active=False)
        self._remover = await ctx.require_user(self.removed_by, "User removing assignment")

        assignment = await ctx.repository.find_assignment(self.ticket_id, self.assignee_id)
        if assignment is None:
            raise NotFoundError(
                "Assignment",
                message=f"No assignment found for user {assignee.full_name} on this issue",
            )
        self.assignment_id = assignment.id
        await self._load_assignment_parties(ctx, assignment)

    def _effective_reason(self) -> str | None:
        assert self._remover is not None
        return self.reason or f"Assignment removed by assignee {self._remover.full_name}"


@dataclass
class AcceptCommand(TransitionCommand):
    """A handler takes the ticket up and starts working on it."""

    ticket_id: str
    accepted_by: str

    name: ClassVar[str] = "accept"
    required_fields: ClassVar[tuple[str, ...]] = ("ticket_id", "accepted_by")

    _assignment: Assignment | None = field(default=None, init=False, repr=False)

    async def load(self, ctx: TransitionContext) -> None:
        ticket = await ctx.require_ticket(self.ticket_id)
        await ctx.require_user(self.accepted_by, "User (accepted_by)")
        ctx.check_transition(ticket, Transition.ACCEPT)
        self._assignment = await ctx.repository.find_assignment(self.ticket_id, self.accepted_by)

    async def apply(self, ctx: TransitionContext) -> None:
        await ctx.repository.update_ticket_status(
            self.ticket_id, ctx.state_machine.target(Transition.ACCEPT), ctx.now
        )
        await ctx.set_current_tier_status(self.ticket_id, TierStatus.ASSIGNED)
        if self._assignment is not None:
            self._assignment = await ctx.repository.update_assignment_status(
                self._assignment.id, AssignmentStatus.ACCEPTED, ctx.now
            )

    def history(self) -> HistoryRecord:
        return HistoryRecord(
            ticket_id=self.ticket_id,
            actor_id=self.accepted_by,
            action=HistoryAction.ACCEPTED,
            notes="Issue accepted by handler and status changed to In Progress",
            assignment_id=None if self._assignment is None else self._assignment.id,
        )

    async def result(self, repository: EntityRepository) -> Any:
        ticket = await repository.get_ticket(self.ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket", self.ticket_id)
        return ticket


# escalation ---------------------------------------------------------------


@dataclass
class EscalateCommand(TransitionCommand):
    ticket_id: str
    from_tier: str
    to_tier: str
    reason: str
    escalated_by: str
    attachment_ids: Sequence[str] = ()

    name: ClassVar[str] = "escalate"
    required_fields: ClassVar[tuple[str, ...]] = ("ticket_id", "from_tier", "to_tier", "reason", "escalated_by")

    _escalation_id: str | None = field(default=None, init=False, repr=False)

    async def load(self, ctx: TransitionContext) -> None:
        ticket = await ctx.require_ticket(self.ticket_id)
        await ctx.require_user(self.escalated_by, "User (escalated_by)")
        ctx.check_transition(ticket, Transition.ESCALATE)

    async def apply(self, ctx: TransitionContext) -> None:
        self._escalation_id = _new_id()
        await ctx.repository.create_escalation(
            Escalation(
                id=self._escalation_id,
                ticket_id=self.ticket_id,
                from_tier=self.from_tier,
                to_tier=self.to_tier,
                reason=self.reason,
                escalated_by=self.escalated_by,
                escalated_at=ctx.now,
            )
        )
        await ctx.attachments.link(AttachmentOwner.ESCALATION, self._escalation_id, self.attachment_ids)
        await ctx.repository.create_tier(
            Tier(
                id=_new_id(),
                ticket_id=self.ticket_id,
                tier_level=self.to_tier,
                handler_id=None,
                status=TierStatus.PENDING,
                assigned_at=ctx.now,
                remarks=f"Escalated from {self.from_tier}",
            )
        )
        await ctx.repository.update_ticket_status(
            self.ticket_id, ctx.state_machine.target(Transition.ESCALATE), ctx.now
        )

    def history(self) -> HistoryRecord:
        return HistoryRecord(
            ticket_id=self.ticket_id,
            actor_id=self.escalated_by,
            action=HistoryAction.PENDING,
            notes=f"Escalated from tier {self.from_tier} to tier {self.to_tier}. Reason: {self.reason}",
            escalation_id=self._escalation_id,
        )

    async def result(self, repository: EntityRepository) -> Any:
        assert self._escalation_id is not None
        detail = await repository.load_escalation_detail(self._escalation_id)
        if detail is None:
            raise NotFoundError("Escalation", self._escalation_id)
        return detail


# outcomes -----------------------------------------------------------------


@dataclass
class ResolveCommand(TransitionCommand):
    ticket_id: str
    reason: str
    resolved_by: str
    attachment_ids: Sequence[str] = ()

    name: ClassVar[str] = "resolve"
    required_fields: ClassVar[tuple[str, ...]] = ("ticket_id", "reason", "resolved_by")

    _resolution_id: str | None = field(default=None, init=False, repr=False)

    async def load(self, ctx: TransitionContext) -> None:
        ticket = await ctx.require_ticket(self.ticket_id)
        await ctx.require_user(self.resolved_by, "User (resolved_by)")
        ctx.check_transition(ticket, Transition.RESOLVE)

    async def apply(self, ctx: TransitionContext) -> None:
        self._resolution_id = _new_id()
        await ctx.repository.create_resolution(
            Resolution(
                id=self._resolution_id,
                ticket_id=self.ticket_id,
                reason=self.reason,
                resolved_by=self.resolved_by,
                resolved_at=ctx.now,
            )
        )
        await ctx.attachments.link(AttachmentOwner.RESOLUTION, self._resolution_id, self.attachment_ids)
        await ctx.repository.update_ticket_status(
            self.ticket_id,
            ctx.state_machine.target(Transition.RESOLVE),
            ctx.now,
            resolved_at=ctx.now,
        )
        await ctx.set_current_tier_status(self.ticket_id, TierStatus.RESOLVED)

    def history(self) -> HistoryRecord:
        return HistoryRecord(
            ticket_id=self.ticket_id,
            actor_id=self.resolved_by,
            action=HistoryAction.RESOLVED,
            notes=f"Issue resolved. Reason: {self.reason}",
            resolution_id=self._resolution_id,
        )

    async def result(self, repository: EntityRepository) -> Any:
        assert self._resolution_id is not None
        detail = await repository.load_resolution_detail(self._resolution_id)
        if detail is None:
            raise NotFoundError("Resolution", self._resolution_id)
        return detail


@dataclass
class RejectCommand(TransitionCommand):
    ticket_id: str
    reason: str
    rejected_by: str
    attachment_ids: Sequence[str] = ()

    name: ClassVar[str] = "reject"
    required_fields: ClassVar[tuple[str, ...]] = ("ticket_id", "reason", "rejected_by")

    _ticket: Ticket | None = field(default=None, init=False, repr=False)
    _rejection_id: str | None = field(default=None, init=False, repr=False)
    _solver_ids: list[str] = field(default_factory=list, init=False, repr=False)

    async def load(self, ctx: TransitionContext) -> None:
        self._ticket = await ctx.require_ticket(self.ticket_id)
        await ctx.require_user(self.rejected_by, "User (rejected_by)")
        ctx.check_transition(self._ticket, Transition.REJECT)

    async def apply(self, ctx: TransitionContext) -> None:
        self._rejection_id = _new_id()
        await ctx.repository.create_rejection(
            Rejection(
                id=self._rejection_id,
                ticket_id=self.ticket_id,
                reason=self.reason,
                rejected_by=self.rejected_by,
                rejected_at=ctx.now,
            )
        )
        await ctx.attachments.link(AttachmentOwner.REJECTION, self._rejection_id, self.attachment_ids)
        await ctx.repository.update_ticket_status(
            self.ticket_id, ctx.state_machine.target(Transition.REJECT), ctx.now
        )
        await ctx.set_current_tier_status(self.ticket_id, TierStatus.REJECTED)
        resolutions = await ctx.repository.list_resolutions(self.ticket_id)
        self._solver_ids = [resolution.resolved_by for resolution in resolutions]

    def history(self) -> HistoryRecord:
        return HistoryRecord(
            ticket_id=self.ticket_id,
            actor_id=self.rejected_by,
            action=HistoryAction.REJECTED,
            notes=f"Issue rejected. Reason: {self.reason}",
        )

    def event(self) -> TransitionEvent | None:
        assert self._ticket is not None
        return TransitionEvent(
            type=NotificationType.REJECTED,
            ticket_id=self.ticket_id,
            actor_id=self.rejected_by,
            recipient_ids=_recipients([self._ticket.reporter_id], self._solver_ids, exclude=self.rejected_by),
            title=f"Issue Rejected: {self._ticket.title}",
            message=f"Issue \"{self._ticket.title}\" was rejected. Reason: {self.reason}",
            metadata={"rejection_id": self._rejection_id, "rejection_reason": self.reason},
        )

    async def result(self, repository: EntityRepository) -> Any:
        assert self._rejection_id is not None
        detail = await repository.load_rejection_detail(self._rejection_id)
        if detail is None:
            raise NotFoundError("Rejection", self._rejection_id)
        return detail


@dataclass
class ReRaiseCommand(TransitionCommand):
    ticket_id: str
    reason: str
    re_raised_by: str
    re_raised_at: datetime | None = None
    attachment_ids: Sequence[str] = ()

    name: ClassVar[str] = "re_raise"
    required_fields: ClassVar[tuple[str, ...]] = ("ticket_id", "reason", "re_raised_by")

    _ticket: Ticket | None = field(default=None, init=False, repr=False)
    _re_raise_id: str | None = field(default=None, init=False, repr=False)
    _handler_ids: list[str] = field(default_factory=list, init=False, repr=False)

    async def load(self, ctx: TransitionContext) -> None:
        self._ticket = await ctx.require_ticket(self.ticket_id)
        await ctx.require_user(self.re_raised_by, "User (re_raised_by)")
        ctx.check_transition(self._ticket, Transition.RE_RAISE)

    async def apply(self, ctx: TransitionContext) -> None:
        self._re_raise_id = _new_id()
        await ctx.repository.create_re_raise(
            ReRaise(
                id=self._re_raise_id,
                ticket_id=self.ticket_id,
                reason=self.reason,
                re_raised_by=self.re_raised_by,
                re_raised_at=self.re_raised_at or ctx.now,
            )
        )
        await ctx.attachments.link(AttachmentOwner.RE_RAISE, self._re_raise_id, self.attachment_ids)
        await ctx.repository.update_ticket_status(
            self.ticket_id, ctx.state_machine.target(Transition.RE_RAISE), ctx.now
        )
        tier = await ctx.set_current_tier_status(self.ticket_id, TierStatus.PENDING)
        resolutions = await ctx.repository.list_resolutions(self.ticket_id)
        self._handler_ids = [resolution.resolved_by for resolution in resolutions]
        if tier is not None and tier.handler_id:
            self._handler_ids.append(tier.handler_id)

    def history(self) -> HistoryRecord:
        return HistoryRecord(
            ticket_id=self.ticket_id,
            actor_id=self.re_raised_by,
            action=HistoryAction.RE_RAISED,
            notes=f"Issue re-raised. Reason: {self.reason}",
        )

    def event(self) -> TransitionEvent | None:
        assert self._ticket is not None
        return TransitionEvent(
            type=NotificationType.RE_RAISED,
            ticket_id=self.ticket_id,
            actor_id=self.re_raised_by,
            recipient_ids=_recipients(self._handler_ids, exclude=self.re_raised_by),
            title=f"Issue Reopened: {self._ticket.title}",
            message=f"Issue \"{self._ticket.title}\" was re-raised. Reason: {self.reason}",
            metadata={"re_raise_id": self._re_raise_id, "raise_reason": self.reason},
        )

    async def result(self, repository: EntityRepository) -> Any:
        assert self._re_raise_id is not None
        detail = await repository.load_re_raise_detail(self._re_raise_id)
        if detail is None:
            raise NotFoundError("Re-raise", self._re_raise_id)
        return detail


# reversals ----------------------------------------------------------------


@dataclass
class _ReversalCommand(TransitionCommand):
    """Delete an outcome record and roll the ticket back if it was the last one."""

    record_id: str
    actor_id: str | None = None

    required_fields: ClassVar[tuple[str, ...]] = ("record_id",)
    label: ClassVar[str]
    owner: ClassVar[AttachmentOwner]
    reverted_status: ClassVar[TicketStatus]

    _ticket_id: str | None = field(default=None, init=False, repr=False)
    _reverted: bool = field(default=False, init=False, repr=False)
    _status: TicketStatus | None = field(default=None, init=False, repr=False)

    @abstractmethod
    async def _find_ticket_id(self, repository: EntityRepository) -> str | None:
        ...

    @abstractmethod
    async def _delete(self, repository: EntityRepository) -> None:
        ...

    @abstractmethod
    async def _remaining(self, repository: EntityRepository, ticket_id: str) -> int:
        ...

    async def _on_revert(self, ctx: TransitionContext, ticket_id: str) -> None:
        return None

    async def load(self, ctx: TransitionContext) -> None:
        ticket_id = await self._find_ticket_id(ctx.repository)
        if ticket_id is None:
            raise NotFoundError(self.label, self.record_id)
        self._ticket_id = ticket_id
        ticket = await ctx.require_ticket(ticket_id)
        self._status = ticket.status
        if self.actor_id is not None:
            await ctx.require_user(self.actor_id, "User")

    async def apply(self, ctx: TransitionContext) -> None:
        assert self._ticket_id is not None
        await ctx.attachments.unlink_all(self.owner, self.record_id)
        await self._delete(ctx.repository)
        if await self._remaining(ctx.repository, self._ticket_id) == 0:
            ticket = await ctx.repository.update_ticket_status(self._ticket_id, self.reverted_status, ctx.now)
            await self._on_revert(ctx, self._ticket_id)
            self._status = ticket.status
            self._reverted = True

    def history(self) -> HistoryRecord:
        assert self._ticket_id is not None and self._status is not None
        if self._reverted:
            notes = f"{self.label} {self.record_id} deleted. Issue reverted to {self._status.value}."
        else:
            notes = f"{self.label} {self.record_id} deleted. Other records remain, status unchanged."
        return HistoryRecord(
            ticket_id=self._ticket_id,
            actor_id=self.actor_id,
            action=HistoryAction.REVERTED,
            notes=notes,
        )

    async def result(self, repository: EntityRepository) -> Any:
        assert self._ticket_id is not None and self._status is not None
        return ReversalResult(
            deleted_id=self.record_id,
            ticket_id=self._ticket_id,
            ticket_status=self._status,
            reverted=self._reverted,
        )


@dataclass
class DeleteResolutionCommand(_ReversalCommand):
    name: ClassVar[str] = "delete_resolution"
    label: ClassVar[str] = "Resolution"
    owner: ClassVar[AttachmentOwner] = AttachmentOwner.RESOLUTION
    reverted_status: ClassVar[TicketStatus] = TicketStatus.IN_PROGRESS

    async def _find_ticket_id(self, repository: EntityRepository) -> str | None:
        resolution = await repository.get_resolution(self.record_id)
        return None if resolution is None else resolution.ticket_id

    async def _delete(self, repository: EntityRepository) -> None:
        await repository.delete_resolution(self.record_id)

    async def _remaining(self, repository: EntityRepository, ticket_id: str) -> int:
        return await repository.count_resolutions(ticket_id)

    async def _on_revert(self, ctx: TransitionContext, ticket_id: str) -> None:
        await ctx.repository.replace_tier_status(
            ticket_id, current=TierStatus.RESOLVED, new=TierStatus.ASSIGNED, updated_at=ctx.now
        )

    def history(self) -> HistoryRecord:
        record = super().history()
        record.resolution_id = self.record_id
        return record


@dataclass
class DeleteRejectionCommand(_ReversalCommand):
    name: ClassVar[str] = "delete_rejection"
    label: ClassVar[str] = "Rejection"
    owner: ClassVar[AttachmentOwner] = AttachmentOwner.REJECTION
    reverted_status: ClassVar[TicketStatus] = TicketStatus.PENDING

    async def _find_ticket_id(self, repository: EntityRepository) -> str | None:
        rejection = await repository.get_rejection(self.record_id)
        return None if rejection is None else rejection.ticket_id

    async def _delete(self, repository: EntityRepository) -> None:
        await repository.delete_rejection(self.record_id)

    async def _remaining(self, repository: EntityRepository, ticket_id: str) -> int:
        return await repository.count_rejections(ticket_id)


@dataclass
class DeleteReRaiseCommand(_ReversalCommand):
    name: ClassVar[str] = "delete_re_raise"
    label: ClassVar[str] = "Re-raise"
    owner: ClassVar[AttachmentOwner] = AttachmentOwner.RE_RAISE
    reverted_status: ClassVar[TicketStatus] = TicketStatus.RESOLVED

    async def _find_ticket_id(self, repository: EntityRepository) -> str | None:
        re_raise = await repository.get_re_raise(self.record_id)
        return None if re_raise is None else re_raise.ticket_id

    async def _delete(self, repository: EntityRepository) -> None:
        await repository.delete_re_raise(self.record_id)

    async def _remaining(self, repository: EntityRepository, ticket_id: str) -> int:
        return await repository.count_re_raises(ticket_id)
