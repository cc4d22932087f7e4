from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from .state import AssignmentStatus, HistoryAction, TicketStatus, TierStatus


@dataclass(slots=True)
class User:
    id: str
    full_name: str
    email: str | None
    is_active: bool


@dataclass(slots=True)
class Ticket:
    """Primary ticket record."""

    id: str
    title: str
    status: TicketStatus
    category: str | None
    priority: str | None
    reporter_id: str | None
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None


@dataclass(slots=True)
class Attachment:
    id: str
    file_name: str
    file_path: str
    mime_type: str | None
    created_at: datetime


@dataclass(slots=True)
class Assignment:
    """A user tasked with a ticket; hard-deleted when unassigned."""

    id: str
    ticket_id: str
    assignee_id: str
    assigned_by: str
    status: AssignmentStatus
    remarks: str | None
    assigned_at: datetime
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class Escalation:
    id: str
    ticket_id: str
    from_tier: str
    to_tier: str
    reason: str
    escalated_by: str
    escalated_at: datetime


@dataclass(slots=True)
class Tier:
    """Handling level of a ticket at a point in time."""

    id: str
    ticket_id: str
    tier_level: str
    handler_id: str | None
    status: TierStatus
    assigned_at: datetime
    remarks: str | None
    completed_at: datetime | None = None


@dataclass(slots=True)
class Resolution:
    id: str
    ticket_id: str
    reason: str
    resolved_by: str
    resolved_at: datetime


@dataclass(slots=True)
class Rejection:
    id: str
    ticket_id: str
    reason: str
    rejected_by: str
    rejected_at: datetime


@dataclass(slots=True)
class ReRaise:
    id: str
    ticket_id: str
    reason: str
    re_raised_by: str
    re_raised_at: datetime


@dataclass(slots=True)
class HistoryEntry:
    """Immutable audit record of one transition."""

    id: str
    ticket_id: str
    user_id: str | None
    action: HistoryAction
    status_at_time: TicketStatus
    notes: str | None
    created_at: datetime
    assignment_id: str | None = None
    escalation_id: str | None = None
    resolution_id: str | None = None


@dataclass(slots=True)
class AssignmentDetail:
    """Assignment joined with its ticket, both users and linked attachments."""

    assignment: Assignment
    ticket: Ticket
    assignee: User
    assigner: User
    attachments: Sequence[Attachment] = field(default_factory=list)


@dataclass(slots=True)
class EscalationDetail:
    escalation: Escalation
    ticket: Ticket
    escalator: User
    attachments: Sequence[Attachment] = field(default_factory=list)


@dataclass(slots=True)
class ResolutionDetail:
    resolution: Resolution
    ticket: Ticket
    resolver: User
    attachments: Sequence[Attachment] = field(default_factory=list)


@dataclass(slots=True)
class RejectionDetail:
    rejection: Rejection
    ticket: Ticket
    rejector: User
    attachments: Sequence[Attachment] = field(default_factory=list)


@dataclass(slots=True)
class ReRaiseDetail:
    re_raise: ReRaise
    ticket: Ticket
    re_raiser: User
    attachments: Sequence[Attachment] = field(default_factory=list)


@dataclass(slots=True)
class UnassignmentSummary:
    """What was removed; the assignment row itself no longer exists."""

    assignment_id: str
    ticket_id: str
    assignee_id: str
    assignee_name: str
    assigner_name: str
    removed_by: str
    reason: str | None


@dataclass(slots=True)
class ReversalResult:
    """Outcome of deleting a resolution, rejection or re-raise record."""

    deleted_id: str
    ticket_id: str
    ticket_status: TicketStatus
    reverted: bool
