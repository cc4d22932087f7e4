"""Ticket workflow schema."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20240301_000001"
down_revision = None
branch_labels = None
depends_on = None

_LINK_TABLES = (
    ("assignment_attachments", "assignment_id", "issue_assignments"),
    ("escalation_attachments", "escalation_id", "escalations"),
    ("resolution_attachments", "resolution_id", "resolutions"),
    ("rejection_attachments", "rejection_id", "rejections"),
    ("re_raise_attachments", "re_raise_id", "re_raises"),
)


def _ticket_fk() -> sa.Column:
    return sa.Column(
        "ticket_id", sa.String(length=36), sa.ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True
    )


def _outcome_table(name: str, actor_column: str, timestamp_column: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        _ticket_fk(),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column(actor_column, sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(timestamp_column, sa.TIMESTAMP(timezone=True), nullable=False),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    op.create_table(
        "tickets",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False, index=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("priority", sa.String(length=50), nullable=True),
        sa.Column("reporter_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.TIMESTAMP(timezone=True), nullable=True),
    )

    op.create_table(
        "attachments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=1024), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=True),
        sa.Column("uploaded_by", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    op.create_table(
        "issue_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        _ticket_fk(),
        sa.Column("assignee_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("assigned_by", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("assigned_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint("ticket_id", "assignee_id", name="uq_issue_assignments_ticket_assignee"),
    )

    op.create_table(
        "escalations",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        _ticket_fk(),
        sa.Column("from_tier", sa.String(length=50), nullable=False),
        sa.Column("to_tier", sa.String(length=50), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("escalated_by", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("escalated_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    op.create_table(
        "tiers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        _ticket_fk(),
        sa.Column("tier_level", sa.String(length=50), nullable=False),
        sa.Column("handler_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("assigned_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    _outcome_table("resolutions", "resolved_by", "resolved_at")
    _outcome_table("rejections", "rejected_by", "rejected_at")
    _outcome_table("re_raises", "re_raised_by", "re_raised_at")

    op.create_table(
        "history_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        _ticket_fk(),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("status_at_time", sa.String(length=50), nullable=False),
        sa.Column("assignment_id", sa.String(length=36), nullable=True),
        sa.Column("escalation_id", sa.String(length=36), nullable=True),
        sa.Column("resolution_id", sa.String(length=36), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    for table_name, owner_column, owner_table in _LINK_TABLES:
        op.create_table(
            table_name,
            sa.Column(
                owner_column,
                sa.String(length=36),
                sa.ForeignKey(f"{owner_table}.id", ondelete="CASCADE"),
                primary_key=True,
                nullable=False,
            ),
            sa.Column(
                "attachment_id", sa.String(length=36), sa.ForeignKey("attachments.id"), primary_key=True, nullable=False
            ),
            sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        )

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("sender_id", sa.String(length=36), nullable=True),
        sa.Column("receiver_id", sa.String(length=36), nullable=False, index=True),
        sa.Column("ticket_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("notifications")
    for table_name, _, _ in reversed(_LINK_TABLES):
        op.drop_table(table_name)
    op.drop_table("history_entries")
    for name in ("re_raises", "rejections", "resolutions", "tiers", "escalations", "issue_assignments"):
        op.drop_table(name)
    op.drop_table("attachments")
    op.drop_table("tickets")
    op.drop_table("users")
