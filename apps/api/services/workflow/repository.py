from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import SQLModel, select

from packages.db.models import (
    AssignmentAttachmentTable,
    AssignmentTable,
    AttachmentTable,
    EscalationAttachmentTable,
    EscalationTable,
    HistoryEntryTable,
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
    Ticket,
    Tier,
    User,
)
from .errors import NotFoundError
from .state import AssignmentStatus, HistoryAction, TicketStatus, TierStatus


async def ensure_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


class EntityRepository:
    """Typed data access for workflow records, bound to one session.

    Every method runs inside whatever transaction the caller opened on the
    session; the repository never commits and applies no business rules.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    # users -----------------------------------------------------------------

    async def get_user(self, user_id: str) -> User | None:
        row = await self._session.get(UserTable, user_id)
        return None if row is None else self._table_to_user(row)

    async def create_user(self, user: User) -> User:
        now = datetime.now(timezone.utc)
        self._session.add(
            UserTable(
                id=user.id,
                full_name=user.full_name,
                email=user.email,
                is_active=user.is_active,
                created_at=now,
                updated_at=now,
            )
        )
        await self._session.flush()
        return user

    # tickets ---------------------------------------------------------------

    async def get_ticket(self, ticket_id: str, *, for_update: bool = False) -> Ticket | None:
        statement = select(TicketTable).where(TicketTable.id == ticket_id)
        if for_update:
            statement = statement.with_for_update()
        result = await self._session.execute(statement)
        row = result.scalar_one_or_none()
        return None if row is None else self._table_to_ticket(row)

    async def create_ticket(self, ticket: Ticket) -> Ticket:
        self._session.add(
            TicketTable(
                id=ticket.id,
                title=ticket.title,
                status=ticket.status.value,
                category=ticket.category,
                priority=ticket.priority,
                reporter_id=ticket.reporter_id,
                created_at=ticket.created_at,
                updated_at=ticket.updated_at,
                resolved_at=ticket.resolved_at,
            )
        )
        await self._session.flush()
        return ticket

    async def update_ticket_status(
        self,
        ticket_id: str,
        status: TicketStatus,
        updated_at: datetime,
        *,
        resolved_at: datetime | None = None,
    ) -> Ticket:
        row = await self._session.get(TicketTable, ticket_id)
        if row is None:
            raise NotFoundError("Ticket", ticket_id)
        row.status = status.value
        row.updated_at = updated_at
        if resolved_at is not None:
            row.resolved_at = resolved_at
        await self._session.flush()
        return self._table_to_ticket(row)

    # assignments -----------------------------------------------------------

    async def get_assignment(self, assignment_id: str) -> Assignment | None:
        row = await self._session.get(AssignmentTable, assignment_id)
        return None if row is None else self._table_to_assignment(row)

    async def find_assignment(self, ticket_id: str, assignee_id: str) -> Assignment | None:
        result = await self._session.execute(
            select(AssignmentTable).where(
                AssignmentTable.ticket_id == ticket_id,
                AssignmentTable.assignee_id == assignee_id,
            )
        )
        row = result.scalar_one_or_none()
        return None if row is None else self._table_to_assignment(row)

    async def create_assignment(self, assignment: Assignment) -> Assignment:
        self._session.add(
            AssignmentTable(
                id=assignment.id,
                ticket_id=assignment.ticket_id,
                assignee_id=assignment.assignee_id,
                assigned_by=assignment.assigned_by,
                status=assignment.status.value,
                remarks=assignment.remarks,
                assigned_at=assignment.assigned_at,
                created_at=assignment.created_at,
                updated_at=assignment.updated_at,
            )
        )
        # flush now so a unique-constraint race surfaces inside the transaction
        await self._session.flush()
        return assignment

    async def delete_assignment(self, assignment_id: str) -> bool:
        return await self._delete(AssignmentTable, assignment_id)

    async def update_assignment_status(
        self, assignment_id: str, status: AssignmentStatus, updated_at: datetime
    ) -> Assignment:
        row = await self._session.get(AssignmentTable, assignment_id)
        if row is None:
            raise NotFoundError("Assignment", assignment_id)
        row.status = status.value
        row.updated_at = updated_at
        await self._session.flush()
        return self._table_to_assignment(row)

    async def list_assignments(
        self, *, ticket_id: str | None = None, assignee_id: str | None = None
    ) -> list[Assignment]:
        statement = select(AssignmentTable)
        if ticket_id is not None:
            statement = statement.where(AssignmentTable.ticket_id == ticket_id)
        if assignee_id is not None:
            statement = statement.where(AssignmentTable.assignee_id == assignee_id)
        result = await self._session.execute(statement.order_by(AssignmentTable.assigned_at.desc()))
        return [self._table_to_assignment(row) for row in result.scalars().all()]

    # escalations & tiers ---------------------------------------------------

    async def create_escalation(self, escalation: Escalation) -> Escalation:
        self._session.add(
            EscalationTable(
                id=escalation.id,
                ticket_id=escalation.ticket_id,
                from_tier=escalation.from_tier,
                to_tier=escalation.to_tier,
                reason=escalation.reason,
                escalated_by=escalation.escalated_by,
                escalated_at=escalation.escalated_at,
            )
        )
        await self._session.flush()
        return escalation

    async def get_escalation(self, escalation_id: str) -> Escalation | None:
        row = await self._session.get(EscalationTable, escalation_id)
        return None if row is None else self._table_to_escalation(row)

    async def list_escalations(self, ticket_id: str) -> list[Escalation]:
        result = await self._session.execute(
            select(EscalationTable)
            .where(EscalationTable.ticket_id == ticket_id)
            .order_by(EscalationTable.escalated_at.desc())
        )
        return [self._table_to_escalation(row) for row in result.scalars().all()]

    async def create_tier(self, tier: Tier) -> Tier:
        self._session.add(
            TierTable(
                id=tier.id,
                ticket_id=tier.ticket_id,
                tier_level=tier.tier_level,
                handler_id=tier.handler_id,
                status=tier.status.value,
                assigned_at=tier.assigned_at,
                completed_at=tier.completed_at,
                remarks=tier.remarks,
                created_at=tier.assigned_at,
                updated_at=tier.assigned_at,
            )
        )
        await self._session.flush()
        return tier

    async def current_tier(self, ticket_id: str) -> Tier | None:
        result = await self._session.execute(
            select(TierTable)
            .where(TierTable.ticket_id == ticket_id)
            .order_by(TierTable.assigned_at.desc(), TierTable.created_at.desc())
            .limit(1)
        )
        row = result.scalars().first()
        return None if row is None else self._table_to_tier(row)

    async def list_tiers(self, ticket_id: str) -> list[Tier]:
        result = await self._session.execute(
            select(TierTable).where(TierTable.ticket_id == ticket_id).order_by(TierTable.assigned_at.asc())
        )
        return [self._table_to_tier(row) for row in result.scalars().all()]

    async def update_tier_status(self, tier_id: str, status: TierStatus, updated_at: datetime) -> Tier:
        row = await self._session.get(TierTable, tier_id)
        if row is None:
            raise NotFoundError("Tier", tier_id)
        row.status = status.value
        row.updated_at = updated_at
        await self._session.flush()
        return self._table_to_tier(row)

    async def replace_tier_status(
        self, ticket_id: str, *, current: TierStatus, new: TierStatus, updated_at: datetime
    ) -> int:
        """Move every tier of the ticket from `current` to `new`; returns the row count."""

        result = await self._session.execute(
            select(TierTable).where(TierTable.ticket_id == ticket_id, TierTable.status == current.value)
        )
        rows = result.scalars().all()
        for row in rows:
            row.status = new.value
            row.updated_at = updated_at
        await self._session.flush()
        return len(rows)

    # outcome records -------------------------------------------------------

    async def create_resolution(self, resolution: Resolution) -> Resolution:
        self._session.add(
            ResolutionTable(
                id=resolution.id,
                ticket_id=resolution.ticket_id,
                reason=resolution.reason,
                resolved_by=resolution.resolved_by,
                resolved_at=resolution.resolved_at,
            )
        )
        await self._session.flush()
        return resolution

    async def get_resolution(self, resolution_id: str) -> Resolution | None:
        row = await self._session.get(ResolutionTable, resolution_id)
        return None if row is None else self._table_to_resolution(row)

    async def list_resolutions(self, ticket_id: str) -> list[Resolution]:
        result = await self._session.execute(
            select(ResolutionTable)
            .where(ResolutionTable.ticket_id == ticket_id)
            .order_by(ResolutionTable.resolved_at.desc())
        )
        return [self._table_to_resolution(row) for row in result.scalars().all()]

    async def delete_resolution(self, resolution_id: str) -> bool:
        return await self._delete(ResolutionTable, resolution_id)

    async def count_resolutions(self, ticket_id: str) -> int:
        return await self._count_for_ticket(ResolutionTable, ticket_id)

    async def create_rejection(self, rejection: Rejection) -> Rejection:
        self._session.add(
            RejectionTable(
                id=rejection.id,
                ticket_id=rejection.ticket_id,
                reason=rejection.reason,
                rejected_by=rejection.rejected_by,
                rejected_at=rejection.rejected_at,
            )
        )
        await self._session.flush()
        return rejection

    async def get_rejection(self, rejection_id: str) -> Rejection | None:
        row = await self._session.get(RejectionTable, rejection_id)
        return None if row is None else self._table_to_rejection(row)

    async def list_rejections(self, ticket_id: str) -> list[Rejection]:
        result = await self._session.execute(
            select(RejectionTable)
            .where(RejectionTable.ticket_id == ticket_id)
            .order_by(RejectionTable.rejected_at.desc())
        )
        return [self._table_to_rejection(row) for row in result.scalars().all()]

    async def delete_rejection(self, rejection_id: str) -> bool:
        return await self._delete(RejectionTable, rejection_id)

    async def count_rejections(self, ticket_id: str) -> int:
        return await self._count_for_ticket(RejectionTable, ticket_id)

    async def create_re_raise(self, re_raise: ReRaise) -> ReRaise:
        self._session.add(
            ReRaiseTable(
                id=re_raise.id,
                ticket_id=re_raise.ticket_id,
                reason=re_raise.reason,
                re_raised_by=re_raise.re_raised_by,
                re_raised_at=re_raise.re_raised_at,
            )
        )
        await self._session.flush()
        return re_raise

    async def get_re_raise(self, re_raise_id: str) -> ReRaise | None:
        row = await self._session.get(ReRaiseTable, re_raise_id)
        return None if row is None else self._table_to_re_raise(row)

    async def list_re_raises(self, ticket_id: str) -> list[ReRaise]:
        result = await self._session.execute(
            select(ReRaiseTable)
            .where(ReRaiseTable.ticket_id == ticket_id)
            .order_by(ReRaiseTable.re_raised_at.desc())
        )
        return [self._table_to_re_raise(row) for row in result.scalars().all()]

    async def delete_re_raise(self, re_raise_id: str) -> bool:
        return await self._delete(ReRaiseTable, re_raise_id)

    async def count_re_raises(self, ticket_id: str) -> int:
        return await self._count_for_ticket(ReRaiseTable, ticket_id)

    # history ---------------------------------------------------------------

    async def add_history_entry(self, entry: HistoryEntry) -> HistoryEntry:
        self._session.add(
            HistoryEntryTable(
                id=entry.id,
                ticket_id=entry.ticket_id,
                user_id=entry.user_id,
                action=entry.action.value,
                status_at_time=entry.status_at_time.value,
                assignment_id=entry.assignment_id,
                escalation_id=entry.escalation_id,
                resolution_id=entry.resolution_id,
                notes=entry.notes,
                created_at=entry.created_at,
            )
        )
        await self._session.flush()
        return entry

    async def list_history(self, ticket_id: str) -> list[HistoryEntry]:
        result = await self._session.execute(
            select(HistoryEntryTable)
            .where(HistoryEntryTable.ticket_id == ticket_id)
            .order_by(HistoryEntryTable.created_at.asc())
        )
        return [self._table_to_history(row) for row in result.scalars().all()]

    # attachments -----------------------------------------------------------

    async def attachments_exist(self, attachment_ids: Sequence[str]) -> set[str]:
        if not attachment_ids:
            return set()
        result = await self._session.execute(
            select(AttachmentTable.id).where(AttachmentTable.id.in_(list(attachment_ids)))
        )
        return {str(value) for value in result.scalars().all()}

    async def list_attachments(self, owner: "AttachmentOwner", owner_id: str) -> list[Attachment]:
        link = owner.table
        result = await self._session.execute(
            select(AttachmentTable)
            .join(link, link.attachment_id == AttachmentTable.id)
            .where(link.owner_id == owner_id)
            .order_by(AttachmentTable.created_at.asc())
        )
        return [self._table_to_attachment(row) for row in result.scalars().all()]

    # joined reads ----------------------------------------------------------

    async def load_assignment_detail(self, assignment_id: str) -> AssignmentDetail | None:
        assignment = await self.get_assignment(assignment_id)
        if assignment is None:
            return None
        return AssignmentDetail(
            assignment=assignment,
            ticket=await self._require_ticket(assignment.ticket_id),
            assignee=await self._require_user(assignment.assignee_id),
            assigner=await self._require_user(assignment.assigned_by),
            attachments=await self.list_attachments(AttachmentOwner.ASSIGNMENT, assignment_id),
        )

    async def load_escalation_detail(self, escalation_id: str) -> EscalationDetail | None:
        escalation = await self.get_escalation(escalation_id)
        if escalation is None:
            return None
        return EscalationDetail(
            escalation=escalation,
            ticket=await self._require_ticket(escalation.ticket_id),
            escalator=await self._require_user(escalation.escalated_by),
            attachments=await self.list_attachments(AttachmentOwner.ESCALATION, escalation_id),
        )

    async def load_resolution_detail(self, resolution_id: str) -> ResolutionDetail | None:
        resolution = await self.get_resolution(resolution_id)
        if resolution is None:
            return None
        return ResolutionDetail(
            resolution=resolution,
            ticket=await self._require_ticket(resolution.ticket_id),
            resolver=await self._require_user(resolution.resolved_by),
            attachments=await self.list_attachments(AttachmentOwner.RESOLUTION, resolution_id),
        )

    async def load_rejection_detail(self, rejection_id: str) -> RejectionDetail | None:
        rejection = await self.get_rejection(rejection_id)
        if rejection is None:
            return None
        return RejectionDetail(
            rejection=rejection,
            ticket=await self._require_ticket(rejection.ticket_id),
            rejector=await self._require_user(rejection.rejected_by),
            attachments=await self.list_attachments(AttachmentOwner.REJECTION, rejection_id),
        )

    async def load_re_raise_detail(self, re_raise_id: str) -> ReRaiseDetail | None:
        re_raise = await self.get_re_raise(re_raise_id)
        if re_raise is None:
            return None
        return ReRaiseDetail(
            re_raise=re_raise,
            ticket=await self._require_ticket(re_raise.ticket_id),
            re_raiser=await self._require_user(re_raise.re_raised_by),
            attachments=await self.list_attachments(AttachmentOwner.RE_RAISE, re_raise_id),
        )

    # helpers ---------------------------------------------------------------

    async def _require_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self.get_ticket(ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket", ticket_id)
        return ticket

    async def _require_user(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _delete(self, table: type[SQLModel], record_id: str) -> bool:
        row = await self._session.get(table, record_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def _count_for_ticket(self, table: Any, ticket_id: str) -> int:
        count = await self._session.scalar(
            select(func.count()).select_from(table).where(table.ticket_id == ticket_id)
        )
        return int(count or 0)

    @staticmethod
    def _table_to_user(row: UserTable) -> User:
        return User(id=row.id, full_name=row.full_name, email=row.email, is_active=bool(row.is_active))

    @staticmethod
    def _table_to_ticket(row: TicketTable) -> Ticket:
        return Ticket(
            id=row.id,
            title=row.title,
            status=TicketStatus(row.status),
            category=row.category,
            priority=row.priority,
            reporter_id=row.reporter_id,
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
            resolved_at=_optional_datetime(row.resolved_at),
        )

    @staticmethod
    def _table_to_attachment(row: AttachmentTable) -> Attachment:
        return Attachment(
            id=row.id,
            file_name=row.file_name,
            file_path=row.file_path,
            mime_type=row.mime_type,
            created_at=_ensure_datetime(row.created_at),
        )

    @staticmethod
    def _table_to_assignment(row: AssignmentTable) -> Assignment:
        return Assignment(
            id=row.id,
            ticket_id=row.ticket_id,
            assignee_id=row.assignee_id,
            assigned_by=row.assigned_by,
            status=AssignmentStatus(row.status),
            remarks=row.remarks,
            assigned_at=_ensure_datetime(row.assigned_at),
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
        )

    @staticmethod
    def _table_to_escalation(row: EscalationTable) -> Escalation:
        return Escalation(
            id=row.id,
            ticket_id=row.ticket_id,
            from_tier=row.from_tier,
            to_tier=row.to_tier,
            reason=row.reason,
            escalated_by=row.escalated_by,
            escalated_at=_ensure_datetime(row.escalated_at),
        )

    @staticmethod
    def _table_to_tier(row: TierTable) -> Tier:
        return Tier(
            id=row.id,
            ticket_id=row.ticket_id,
            tier_level=row.tier_level,
            handler_id=row.handler_id,
            status=TierStatus(row.status),
            assigned_at=_ensure_datetime(row.assigned_at),
            remarks=row.remarks,
            completed_at=_optional_datetime(row.completed_at),
        )

    @staticmethod
    def _table_to_resolution(row: ResolutionTable) -> Resolution:
        return Resolution(
            id=row.id,
            ticket_id=row.ticket_id,
            reason=row.reason,
            resolved_by=row.resolved_by,
            resolved_at=_ensure_datetime(row.resolved_at),
        )

    @staticmethod
    def _table_to_rejection(row: RejectionTable) -> Rejection:
        return Rejection(
            id=row.id,
            ticket_id=row.ticket_id,
            reason=row.reason,
            rejected_by=row.rejected_by,
            rejected_at=_ensure_datetime(row.rejected_at),
        )

    @staticmethod
    def _table_to_re_raise(row: ReRaiseTable) -> ReRaise:
        return ReRaise(
            id=row.id,
            ticket_id=row.ticket_id,
            reason=row.reason,
            re_raised_by=row.re_raised_by,
            re_raised_at=_ensure_datetime(row.re_raised_at),
        )

    @staticmethod
    def _table_to_history(row: HistoryEntryTable) -> HistoryEntry:
        return HistoryEntry(
            id=row.id,
            ticket_id=row.ticket_id,
            user_id=row.user_id,
            action=HistoryAction(row.action),
            status_at_time=TicketStatus(row.status_at_time),
            notes=row.notes,
            created_at=_ensure_datetime(row.created_at),
            assignment_id=row.assignment_id,
            escalation_id=row.escalation_id,
            resolution_id=row.resolution_id,
        )


class AttachmentOwner(str, Enum):
    """Record kinds that can carry attachment links, mapped to their link table."""

    ASSIGNMENT = "assignment"
    ESCALATION = "escalation"
    RESOLUTION = "resolution"
    REJECTION = "rejection"
    RE_RAISE = "re_raise"

    @property
    def table(self) -> Any:
        return _LINK_TABLES[self]


_LINK_TABLES: dict[AttachmentOwner, Any] = {
    AttachmentOwner.ASSIGNMENT: AssignmentAttachmentTable,
    AttachmentOwner.ESCALATION: EscalationAttachmentTable,
    AttachmentOwner.RESOLUTION: ResolutionAttachmentTable,
    AttachmentOwner.REJECTION: RejectionAttachmentTable,
    AttachmentOwner.RE_RAISE: ReRaiseAttachmentTable,
}


class AttachmentLinker:
    """Create and remove attachment links inside the caller's transaction."""

    def __init__(self, repository: EntityRepository) -> None:
        self._repository = repository

    async def link(self, owner: AttachmentOwner, owner_id: str, attachment_ids: Sequence[str] | None) -> int:
        ids = list(dict.fromkeys(attachment_ids or ()))
        if not ids:
            return 0
        known = await self._repository.attachments_exist(ids)
        missing = [attachment_id for attachment_id in ids if attachment_id not in known]
        if missing:
            raise NotFoundError("Attachment", missing[0])

        session = self._repository.session
        now = datetime.now(timezone.utc)
        for attachment_id in ids:
            session.add(owner.table(owner_id=owner_id, attachment_id=attachment_id, created_at=now))
        await session.flush()
        return len(ids)

    async def unlink_all(self, owner: AttachmentOwner, owner_id: str) -> int:
        session = self._repository.session
        link = owner.table
        result = await session.execute(select(link).where(link.owner_id == owner_id))
        rows = result.scalars().all()
        for row in rows:
            await session.delete(row)
        await session.flush()
        return len(rows)


def _ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")


def _optional_datetime(value: datetime | None) -> datetime | None:
    return None if value is None else _ensure_datetime(value)
