"""Ticket lifecycle workflow: transitions, audit trail and notifications."""

from .audit import AuditLogWriter, HistoryRecord
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
    TransitionCommand,
    TransitionContext,
    UnassignByAssigneeCommand,
    UnassignCommand,
)
from .engine import WorkflowEngine
from .entities import (
    Assignment,
    AssignmentDetail,
    Attachment,
    Escalation,
    EscalationDetail,
    HistoryEntry,
    ReRaise,
    ReRaiseDetail,
    Rejection,
    RejectionDetail,
    Resolution,
    ResolutionDetail,
    ReversalResult,
    Ticket,
    Tier,
    UnassignmentSummary,
    User,
)
from .errors import (
    ConflictError,
    InvalidActorError,
    InvalidTransitionError,
    NotFoundError,
    NotificationFailure,
    TransactionFailure,
    ValidationError,
    WorkflowError,
)
from .notifications import (
    DatabaseNotificationDispatcher,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    NotificationType,
    TransitionEvent,
)
from .repository import AttachmentLinker, AttachmentOwner, EntityRepository, ensure_schema
from .service import WorkflowService
from .state import AssignmentStatus, HistoryAction, TicketStateMachine, TicketStatus, TierStatus, Transition

__all__ = [
    "AcceptCommand",
    "AssignCommand",
    "Assignment",
    "AssignmentDetail",
    "AssignmentStatus",
    "Attachment",
    "AttachmentLinker",
    "AttachmentOwner",
    "AuditLogWriter",
    "ConflictError",
    "DatabaseNotificationDispatcher",
    "DeleteReRaiseCommand",
    "DeleteRejectionCommand",
    "DeleteResolutionCommand",
    "EntityRepository",
    "EscalateCommand",
    "Escalation",
    "EscalationDetail",
    "HistoryAction",
    "HistoryEntry",
    "HistoryRecord",
    "InvalidActorError",
    "InvalidTransitionError",
    "LoggingNotificationDispatcher",
    "NotFoundError",
    "NotificationDispatcher",
    "NotificationFailure",
    "NotificationType",
    "ReRaise",
    "ReRaiseCommand",
    "ReRaiseDetail",
    "RejectCommand",
    "Rejection",
    "RejectionDetail",
    "Resolution",
    "ResolutionDetail",
    "ResolveCommand",
    "ReversalResult",
    "Ticket",
    "TicketStateMachine",
    "TicketStatus",
    "Tier",
    "TierStatus",
    "TransactionFailure",
    "Transition",
    "TransitionCommand",
    "TransitionContext",
    "TransitionEvent",
    "UnassignByAssigneeCommand",
    "UnassignCommand",
    "UnassignmentSummary",
    "User",
    "ValidationError",
    "WorkflowEngine",
    "WorkflowError",
    "WorkflowService",
    "ensure_schema",
]
