"""SQLModel table definitions for the ticket workflow data layer."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, JSON, String, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


def _uuid_str() -> str:
    """Generate a random UUID string."""

    return str(uuid.uuid4())


class UserTable(SQLModel, table=True):
    """User accounts referenced as assignees, assigners and actors."""

    __tablename__ = "users"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    full_name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str | None = Field(default=None, sa_column=Column(String(255), nullable=True, unique=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketTable(SQLModel, table=True):
    """Support tickets whose status is owned by the workflow engine."""

    __tablename__ = "tickets"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    title: str = Field(sa_column=Column(String(255), nullable=False))
    status: str = Field(sa_column=Column(String(50), nullable=False, index=True))
    category: str | None = Field(default=None, sa_column=Column(String(100), nullable=True))
    priority: str | None = Field(default=None, sa_column=Column(String(50), nullable=True))
    reporter_id: str | None = Field(
        default=None, sa_column=Column(String(36), ForeignKey("users.id"), nullable=True)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    resolved_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class AttachmentTable(SQLModel, table=True):
    """Uploaded files; rows are created by the upload collaborator."""

    __tablename__ = "attachments"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    file_name: str = Field(sa_column=Column(String(255), nullable=False))
    file_path: str = Field(sa_column=Column(String(1024), nullable=False))
    mime_type: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    uploaded_by: str | None = Field(
        default=None, sa_column=Column(String(36), ForeignKey("users.id"), nullable=True)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class AssignmentTable(SQLModel, table=True):
    """Live pointer from a ticket to the user currently tasked with it."""

    __tablename__ = "issue_assignments"
    __table_args__ = (UniqueConstraint("ticket_id", "assignee_id", name="uq_issue_assignments_ticket_assignee"),)

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(
        sa_column=Column(String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    assignee_id: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False, index=True))
    assigned_by: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    status: str = Field(sa_column=Column(String(50), nullable=False))
    remarks: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    assigned_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class EscalationTable(SQLModel, table=True):
    """Append-only record of a tier-to-tier handoff."""

    __tablename__ = "escalations"

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(
        sa_column=Column(String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    from_tier: str = Field(sa_column=Column(String(50), nullable=False))
    to_tier: str = Field(sa_column=Column(String(50), nullable=False))
    reason: str = Field(sa_column=Column(Text, nullable=False))
    escalated_by: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    escalated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TierTable(SQLModel, table=True):
    """Handling level of a ticket; the newest row by `assigned_at` is current."""

    __tablename__ = "tiers"

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(
        sa_column=Column(String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    tier_level: str = Field(sa_column=Column(String(50), nullable=False))
    handler_id: str | None = Field(
        default=None, sa_column=Column(String(36), ForeignKey("users.id"), nullable=True)
    )
    status: str = Field(sa_column=Column(String(50), nullable=False))
    assigned_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    completed_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    remarks: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class ResolutionTable(SQLModel, table=True):
    """Historical record of a ticket being resolved."""

    __tablename__ = "resolutions"

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(
        sa_column=Column(String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    reason: str = Field(sa_column=Column(Text, nullable=False))
    resolved_by: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    resolved_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class RejectionTable(SQLModel, table=True):
    """Historical record of a ticket being rejected."""

    __tablename__ = "rejections"

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(
        sa_column=Column(String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    reason: str = Field(sa_column=Column(Text, nullable=False))
    rejected_by: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    rejected_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class ReRaiseTable(SQLModel, table=True):
    """Historical record of a resolved ticket being reopened."""

    __tablename__ = "re_raises"

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(
        sa_column=Column(String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    reason: str = Field(sa_column=Column(Text, nullable=False))
    re_raised_by: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    re_raised_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class HistoryEntryTable(SQLModel, table=True):
    """Append-only audit trail, one row per workflow transition.

    The assignment/escalation/resolution link columns carry no foreign keys: the
    rows they point at can be hard-deleted later while the audit row stays as is.
    """

    __tablename__ = "history_entries"

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(
        sa_column=Column(String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    user_id: str | None = Field(default=None, sa_column=Column(String(36), nullable=True))
    action: str = Field(sa_column=Column(String(50), nullable=False))
    status_at_time: str = Field(sa_column=Column(String(50), nullable=False))
    assignment_id: str | None = Field(default=None, sa_column=Column(String(36), nullable=True))
    escalation_id: str | None = Field(default=None, sa_column=Column(String(36), nullable=True))
    resolution_id: str | None = Field(default=None, sa_column=Column(String(36), nullable=True))
    notes: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class AssignmentAttachmentTable(SQLModel, table=True):
    __tablename__ = "assignment_attachments"

    owner_id: str = Field(
        sa_column=Column(
            "assignment_id", String(36), ForeignKey("issue_assignments.id", ondelete="CASCADE"), primary_key=True
        )
    )
    attachment_id: str = Field(sa_column=Column(String(36), ForeignKey("attachments.id"), primary_key=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class EscalationAttachmentTable(SQLModel, table=True):
    __tablename__ = "escalation_attachments"

    owner_id: str = Field(
        sa_column=Column(
            "escalation_id", String(36), ForeignKey("escalations.id", ondelete="CASCADE"), primary_key=True
        )
    )
    attachment_id: str = Field(sa_column=Column(String(36), ForeignKey("attachments.id"), primary_key=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class ResolutionAttachmentTable(SQLModel, table=True):
    __tablename__ = "resolution_attachments"

    owner_id: str = Field(
        sa_column=Column(
            "resolution_id", String(36), ForeignKey("resolutions.id", ondelete="CASCADE"), primary_key=True
        )
    )
    attachment_id: str = Field(sa_column=Column(String(36), ForeignKey("attachments.id"), primary_key=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class RejectionAttachmentTable(SQLModel, table=True):
    __tablename__ = "rejection_attachments"

    owner_id: str = Field(
        sa_column=Column(
            "rejection_id", String(36), ForeignKey("rejections.id", ondelete="CASCADE"), primary_key=True
        )
    )
    attachment_id: str = Field(sa_column=Column(String(36), ForeignKey("attachments.id"), primary_key=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class ReRaiseAttachmentTable(SQLModel, table=True):
    __tablename__ = "re_raise_attachments"

    owner_id: str = Field(
        sa_column=Column(
            "re_raise_id", String(36), ForeignKey("re_raises.id", ondelete="CASCADE"), primary_key=True
        )
    )
    attachment_id: str = Field(sa_column=Column(String(36), ForeignKey("attachments.id"), primary_key=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class NotificationTable(SQLModel, table=True):
    """In-app notifications produced after a transition commits."""

    __tablename__ = "notifications"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    type: str = Field(sa_column=Column(String(50), nullable=False))
    sender_id: str | None = Field(default=None, sa_column=Column(String(36), nullable=True))
    receiver_id: str = Field(sa_column=Column(String(36), nullable=False, index=True))
    ticket_id: str | None = Field(default=None, sa_column=Column(String(36), nullable=True))
    title: str = Field(sa_column=Column(String(255), nullable=False))
    message: str = Field(sa_column=Column(Text, nullable=False))
    is_read: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    metadata_: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column("metadata", JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
