"""Database models and utilities."""

from .models import (
    AssignmentAttachmentTable,
    AssignmentTable,
    AttachmentTable,
    EscalationAttachmentTable,
    EscalationTable,
    HistoryEntryTable,
    NotificationTable,
    ReRaiseAttachmentTable,
    ReRaiseTable,
    RejectionAttachmentTable,
    RejectionTable,
    ResolutionAttachmentTable,
    ResolutionTable,
    TicketTable,
    TierTable,
    UserTable,
)

__all__ = [
    "AssignmentAttachmentTable",
    "AssignmentTable",
    "AttachmentTable",
    "EscalationAttachmentTable",
    "EscalationTable",
    "HistoryEntryTable",
    "NotificationTable",
    "ReRaiseAttachmentTable",
    "ReRaiseTable",
    "RejectionAttachmentTable",
    "RejectionTable",
    "ResolutionAttachmentTable",
    "ResolutionTable",
    "TicketTable",
    "TierTable",
    "UserTable",
]
