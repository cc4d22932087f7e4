"""Request and response models for the workflow routes."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from pydantic import BaseModel, Field

from apps.api.services.workflow import (
    AssignmentDetail,
    AssignmentStatus,
    Attachment,
    EscalationDetail,
    HistoryAction,
    HistoryEntry,
    ReRaiseDetail,
    RejectionDetail,
    ResolutionDetail,
    Ticket,
    TicketStatus,
    Tier,
    TierStatus,
    UnassignmentSummary,
    User,
)


def _iso(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


# requests -------------------------------------------------------------------


class AssignmentCreateRequest(BaseModel):
    ticket_id: str
    assignee_id: str
    assigned_by: str
    remarks: str | None = None
    attachment_ids: list[str] = Field(default_factory=list)


class UnassignRequest(BaseModel):
    removed_by: str
    reason: str | None = None


class AcceptRequest(BaseModel):
    accepted_by: str


class EscalationCreateRequest(BaseModel):
    ticket_id: str
    from_tier: str
    to_tier: str
    reason: str
    escalated_by: str
    attachment_ids: list[str] = Field(default_factory=list)


class ResolutionCreateRequest(BaseModel):
    ticket_id: str
    reason: str
    resolved_by: str
    attachment_ids: list[str] = Field(default_factory=list)


class RejectionCreateRequest(BaseModel):
    ticket_id: str
    reason: str
    rejected_by: str
    attachment_ids: list[str] = Field(default_factory=list)


class ReRaiseCreateRequest(BaseModel):
    ticket_id: str
    reason: str
    re_raised_by: str
    re_raised_at: datetime | None = None
    attachment_ids: list[str] = Field(default_factory=list)


# responses ------------------------------------------------------------------


class UserModel(BaseModel):
    id: str
    full_name: str
    email: str | None = None

    @classmethod
    def from_entity(cls, entity: User) -> "UserModel":
        return cls(id=entity.id, full_name=entity.full_name, email=entity.email)


class TicketSummaryModel(BaseModel):
    id: str
    title: str
    status: TicketStatus
    category: str | None = None
    priority: str | None = None

    @classmethod
    def from_entity(cls, entity: Ticket) -> "TicketSummaryModel":
        return cls(
            id=entity.id,
            title=entity.title,
            status=entity.status,
            category=entity.category,
            priority=entity.priority,
        )


class AttachmentModel(BaseModel):
    id: str
    file_name: str
    file_path: str
    mime_type: str | None = None

    @classmethod
    def from_entity(cls, entity: Attachment) -> "AttachmentModel":
        return cls(id=entity.id, file_name=entity.file_name, file_path=entity.file_path, mime_type=entity.mime_type)


def _attachments(items: Sequence[Attachment]) -> list[AttachmentModel]:
    return [AttachmentModel.from_entity(item) for item in items]


class AssignmentModel(BaseModel):
    id: str
    ticket_id: str
    status: AssignmentStatus
    remarks: str | None = None
    assigned_at: str
    ticket: TicketSummaryModel
    assignee: UserModel
    assigner: UserModel
    attachments: list[AttachmentModel] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: AssignmentDetail) -> "AssignmentModel":
        assignment = detail.assignment
        return cls(
            id=assignment.id,
            ticket_id=assignment.ticket_id,
            status=assignment.status,
            remarks=assignment.remarks,
            assigned_at=assignment.assigned_at.isoformat(),
            ticket=TicketSummaryModel.from_entity(detail.ticket),
            assignee=UserModel.from_entity(detail.assignee),
            assigner=UserModel.from_entity(detail.assigner),
            attachments=_attachments(detail.attachments),
        )


class RemovedAssignmentModel(BaseModel):
    id: str
    ticket_id: str
    assignee_id: str
    assignee_name: str
    assigned_by: str
    removed_by: str
    reason: str | None = None


class UnassignmentModel(BaseModel):
    message: str = "Assignment removed successfully"
    removed_assignment: RemovedAssignmentModel

    @classmethod
    def from_summary(cls, summary: UnassignmentSummary) -> "UnassignmentModel":
        return cls(
            removed_assignment=RemovedAssignmentModel(
                id=summary.assignment_id,
                ticket_id=summary.ticket_id,
                assignee_id=summary.assignee_id,
                assignee_name=summary.assignee_name,
                assigned_by=summary.assigner_name,
                removed_by=summary.removed_by,
                reason=summary.reason,
            )
        )


class EscalationModel(BaseModel):
    id: str
    ticket_id: str
    from_tier: str
    to_tier: str
    reason: str
    escalated_at: str
    ticket: TicketSummaryModel
    escalated_by: UserModel
    attachments: list[AttachmentModel] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: EscalationDetail) -> "EscalationModel":
        escalation = detail.escalation
        return cls(
            id=escalation.id,
            ticket_id=escalation.ticket_id,
            from_tier=escalation.from_tier,
            to_tier=escalation.to_tier,
            reason=escalation.reason,
            escalated_at=escalation.escalated_at.isoformat(),
            ticket=TicketSummaryModel.from_entity(detail.ticket),
            escalated_by=UserModel.from_entity(detail.escalator),
            attachments=_attachments(detail.attachments),
        )


class ResolutionModel(BaseModel):
    id: str
    ticket_id: str
    reason: str
    resolved_at: str
    ticket: TicketSummaryModel
    resolved_by: UserModel
    attachments: list[AttachmentModel] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: ResolutionDetail) -> "ResolutionModel":
        return cls(
            id=detail.resolution.id,
            ticket_id=detail.resolution.ticket_id,
            reason=detail.resolution.reason,
            resolved_at=detail.resolution.resolved_at.isoformat(),
            ticket=TicketSummaryModel.from_entity(detail.ticket),
            resolved_by=UserModel.from_entity(detail.resolver),
            attachments=_attachments(detail.attachments),
        )


class RejectionModel(BaseModel):
    id: str
    ticket_id: str
    reason: str
    rejected_at: str
    ticket: TicketSummaryModel
    rejected_by: UserModel
    attachments: list[AttachmentModel] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: RejectionDetail) -> "RejectionModel":
        return cls(
            id=detail.rejection.id,
            ticket_id=detail.rejection.ticket_id,
            reason=detail.rejection.reason,
            rejected_at=detail.rejection.rejected_at.isoformat(),
            ticket=TicketSummaryModel.from_entity(detail.ticket),
            rejected_by=UserModel.from_entity(detail.rejector),
            attachments=_attachments(detail.attachments),
        )


class ReRaiseModel(BaseModel):
    id: str
    ticket_id: str
    reason: str
    re_raised_at: str
    ticket: TicketSummaryModel
    re_raised_by: UserModel
    attachments: list[AttachmentModel] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: ReRaiseDetail) -> "ReRaiseModel":
        return cls(
            id=detail.re_raise.id,
            ticket_id=detail.re_raise.ticket_id,
            reason=detail.re_raise.reason,
            re_raised_at=detail.re_raise.re_raised_at.isoformat(),
            ticket=TicketSummaryModel.from_entity(detail.ticket),
            re_raised_by=UserModel.from_entity(detail.re_raiser),
            attachments=_attachments(detail.attachments),
        )


class TierModel(BaseModel):
    id: str
    ticket_id: str
    tier_level: str
    handler_id: str | None = None
    status: TierStatus
    assigned_at: str
    completed_at: str | None = None
    remarks: str | None = None

    @classmethod
    def from_entity(cls, entity: Tier) -> "TierModel":
        return cls(
            id=entity.id,
            ticket_id=entity.ticket_id,
            tier_level=entity.tier_level,
            handler_id=entity.handler_id,
            status=entity.status,
            assigned_at=entity.assigned_at.isoformat(),
            completed_at=_iso(entity.completed_at),
            remarks=entity.remarks,
        )


class HistoryEntryModel(BaseModel):
    id: str
    ticket_id: str
    user_id: str | None = None
    action: HistoryAction
    status_at_time: TicketStatus
    notes: str | None = None
    assignment_id: str | None = None
    escalation_id: str | None = None
    resolution_id: str | None = None
    created_at: str

    @classmethod
    def from_entity(cls, entity: HistoryEntry) -> "HistoryEntryModel":
        return cls(
            id=entity.id,
            ticket_id=entity.ticket_id,
            user_id=entity.user_id,
            action=entity.action,
            status_at_time=entity.status_at_time,
            notes=entity.notes,
            assignment_id=entity.assignment_id,
            escalation_id=entity.escalation_id,
            resolution_id=entity.resolution_id,
            created_at=entity.created_at.isoformat(),
        )
