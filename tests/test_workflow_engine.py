from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from apps.api.metrics import NOTIFICATION_FAILURES_TOTAL, TRANSITIONS_TOTAL
from apps.api.services.workflow import (
    AssignCommand,
    AssignmentStatus,
    AuditLogWriter,
    ConflictError,
    EntityRepository,
    HistoryAction,
    InvalidActorError,
    InvalidTransitionError,
    NotFoundError,
    NotificationType,
    TicketStatus,
    TierStatus,
    TransactionFailure,
    ValidationError,
    WorkflowEngine,
    WorkflowService,
)
from packages.db.models import AssignmentAttachmentTable, ResolutionAttachmentTable, UserTable


async def _ticket(session_factory, ticket_id):
    async with session_factory() as session:
        return await EntityRepository(session).get_ticket(ticket_id)


async def _history(session_factory, ticket_id):
    async with session_factory() as session:
        return await EntityRepository(session).list_history(ticket_id)


async def _current_tier(session_factory, ticket_id):
    async with session_factory() as session:
        return await EntityRepository(session).current_tier(ticket_id)


# assign -------------------------------------------------------------------


@pytest.mark.asyncio
async def test_assign_creates_assignment_history_and_event(service, session_factory, seed, dispatcher):
    detail = await service.assign(
        ticket_id=seed.ticket.id,
        assignee_id=seed.agent.id,
        assigned_by=seed.supervisor.id,
        remarks="Check the VPN logs",
        attachment_ids=seed.attachment_ids,
    )

    assert detail.assignee.id == seed.agent.id
    assert detail.assigner.id == seed.supervisor.id
    assert detail.ticket.status == TicketStatus.PENDING
    assert {item.id for item in detail.attachments} == set(seed.attachment_ids)

    history = await _history(session_factory, seed.ticket.id)
    assert len(history) == 1
    entry = history[0]
    assert entry.action == HistoryAction.ASSIGNED
    assert entry.user_id == seed.supervisor.id
    assert entry.assignment_id == detail.assignment.id
    assert entry.status_at_time == TicketStatus.PENDING
    assert entry.notes == "Issue assigned to Avery Agent. Remarks: Check the VPN logs"

    assert len(dispatcher.events) == 1
    event = dispatcher.events[0]
    assert event.type == NotificationType.ASSIGNED
    assert list(event.recipient_ids) == [seed.agent.id, seed.supervisor.id]


@pytest.mark.asyncio
async def test_duplicate_assign_returns_existing_assignment_id(service, session_factory, seed, dispatcher):
    first = await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id)

    with pytest.raises(ConflictError) as excinfo:
        await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.reporter.id)

    assert excinfo.value.existing_id == first.assignment.id
    assert len(await _history(session_factory, seed.ticket.id)) == 1
    assert len(dispatcher.events) == 1


@pytest.mark.asyncio
async def test_concurrent_assign_race_maps_constraint_to_conflict(workflow_engine, service, seed):
    class RacingAssignCommand(AssignCommand):
        async def load(self, ctx):
            # skip the duplicate lookup, as a racing request that read before the other commit would
            self._ticket = await ctx.require_ticket(self.ticket_id)
            self._assignee = await ctx.require_user(self.assignee_id, "Assignee")

    winner = await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id)

    with pytest.raises(ConflictError) as excinfo:
        await workflow_engine.execute(
            RacingAssignCommand(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.reporter.id)
        )

    assert excinfo.value.existing_id == winner.assignment.id


@pytest.mark.asyncio
async def test_failed_history_write_rolls_back_everything(session_factory, seed, dispatcher, metrics):
    class FailingAuditWriter(AuditLogWriter):
        async def append(self, record, *, status_at_time, recorded_at=None):
            raise OperationalError("INSERT INTO history_entries", {}, Exception("disk full"))

    service = WorkflowService(
        WorkflowEngine(session_factory, dispatcher=dispatcher, metrics=metrics, audit_writer_factory=FailingAuditWriter)
    )

    with pytest.raises(TransactionFailure):
        await service.resolve(
            ticket_id=seed.ticket.id,
            reason="Replaced router",
            resolved_by=seed.agent.id,
            attachment_ids=seed.attachment_ids,
        )
    with pytest.raises(TransactionFailure):
        await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id)

    async with session_factory() as session:
        repo = EntityRepository(session)
        assert await repo.list_resolutions(seed.ticket.id) == []
        assert await repo.find_assignment(seed.ticket.id, seed.agent.id) is None
        links = await session.execute(ResolutionAttachmentTable.__table__.select())
        assert links.all() == []
    ticket = await _ticket(session_factory, seed.ticket.id)
    assert ticket.status == TicketStatus.PENDING
    assert ticket.resolved_at is None
    assert (await _current_tier(session_factory, seed.ticket.id)).status == TierStatus.ASSIGNED
    assert await _history(session_factory, seed.ticket.id) == []
    assert dispatcher.events == []
    assert metrics.counter(TRANSITIONS_TOTAL).value(labels={"command": "resolve", "outcome": "failed"}) == 1
    assert metrics.counter(TRANSITIONS_TOTAL).value(labels={"command": "assign", "outcome": "failed"}) == 1


@pytest.mark.asyncio
async def test_assign_rejects_inactive_missing_and_invalid_input(service, session_factory, seed, dispatcher):
    with pytest.raises(InvalidActorError):
        await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.inactive.id, assigned_by=seed.supervisor.id)
    with pytest.raises(NotFoundError) as excinfo:
        await service.assign(ticket_id="missing", assignee_id=seed.agent.id, assigned_by=seed.supervisor.id)
    assert excinfo.value.entity == "Ticket"
    with pytest.raises(NotFoundError) as excinfo:
        await service.assign(
            ticket_id=seed.ticket.id,
            assignee_id=seed.agent.id,
            assigned_by=seed.supervisor.id,
            attachment_ids=["not-uploaded"],
        )
    assert excinfo.value.entity == "Attachment"
    with pytest.raises(ValidationError):
        await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by="  ")

    async with session_factory() as session:
        assert await EntityRepository(session).list_assignments(ticket_id=seed.ticket.id) == []
    assert await _history(session_factory, seed.ticket.id) == []
    assert dispatcher.events == []


# unassign -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_unassign_by_id_removes_assignment_and_links(service, session_factory, seed, dispatcher):
    detail = await service.assign(
        ticket_id=seed.ticket.id,
        assignee_id=seed.agent.id,
        assigned_by=seed.supervisor.id,
        attachment_ids=seed.attachment_ids[:1],
    )

    summary = await service.unassign(detail.assignment.id, removed_by=seed.supervisor.id, reason="Shift ended")

    assert summary.assignee_name == "Avery Agent"
    assert summary.assigner_name == "Sam Supervisor"
    assert summary.removed_by == "Sam Supervisor"
    async with session_factory() as session:
        assert await EntityRepository(session).get_assignment(detail.assignment.id) is None
        links = await session.execute(AssignmentAttachmentTable.__table__.select())
        assert links.all() == []

    history = await _history(session_factory, seed.ticket.id)
    assert [entry.action for entry in history] == [HistoryAction.ASSIGNED, HistoryAction.UNASSIGNED]
    assert history[-1].notes == "Assignment removed for Avery Agent. Reason: Shift ended"
    assert history[-1].status_at_time == TicketStatus.PENDING

    event = dispatcher.events[-1]
    assert event.type == NotificationType.UNASSIGNED
    assert event.metadata["reason"] == "Shift ended"
    assert list(event.recipient_ids) == [seed.agent.id, seed.supervisor.id]

    with pytest.raises(NotFoundError):
        await service.unassign(detail.assignment.id, removed_by=seed.supervisor.id)


@pytest.mark.asyncio
async def test_unassign_by_assignee_defaults_reason(service, session_factory, seed, dispatcher):
    await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id)

    summary = await service.unassign_by_assignee(seed.ticket.id, seed.agent.id, removed_by=seed.agent.id)

    assert summary.reason is None
    history = await _history(session_factory, seed.ticket.id)
    assert history[-1].notes == "Assignment removed for Avery Agent. No reason provided"
    assert dispatcher.events[-1].metadata["reason"] == "Assignment removed by assignee Avery Agent"

    with pytest.raises(NotFoundError) as excinfo:
        await service.unassign_by_assignee(seed.ticket.id, seed.agent.id, removed_by=seed.supervisor.id)
    assert "No assignment found for user Avery Agent" in str(excinfo.value)


@pytest.mark.asyncio
async def test_inactive_user_can_still_be_unassigned(service, session_factory, seed):
    detail = await service.assign(
        ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id
    )
    async with session_factory() as session:
        async with session.begin():
            row = await session.get(UserTable, seed.agent.id)
            row.is_active = False

    summary = await service.unassign(detail.assignment.id, removed_by=seed.supervisor.id)
    assert summary.assignment_id == detail.assignment.id

    with pytest.raises(InvalidActorError):
        await service.unassign_by_assignee(seed.ticket.id, seed.reporter.id, removed_by=seed.inactive.id)


@pytest.mark.asyncio
async def test_accept_moves_ticket_in_progress_and_marks_assignment(service, session_factory, seed, dispatcher):
    assignment = await service.assign(
        ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id
    )

    ticket = await service.accept(seed.ticket.id, accepted_by=seed.agent.id)

    assert ticket.status == TicketStatus.IN_PROGRESS
    assert (await _current_tier(session_factory, seed.ticket.id)).status == TierStatus.ASSIGNED
    async with session_factory() as session:
        stored = await EntityRepository(session).get_assignment(assignment.assignment.id)
    assert stored.status == AssignmentStatus.ACCEPTED

    entry = (await _history(session_factory, seed.ticket.id))[-1]
    assert entry.action == HistoryAction.ACCEPTED
    assert entry.status_at_time == TicketStatus.IN_PROGRESS
    assert entry.assignment_id == assignment.assignment.id
    assert len(dispatcher.events) == 1

    with pytest.raises(InvalidTransitionError):
        await service.accept(seed.ticket.id, accepted_by=seed.agent.id)


@pytest.mark.asyncio
async def test_accept_after_re_raise_reopens_current_tier(service, session_factory, seed):
    await service.resolve(ticket_id=seed.ticket.id, reason="Replaced router", resolved_by=seed.agent.id)
    await service.re_raise(ticket_id=seed.ticket.id, reason="Back again", re_raised_by=seed.reporter.id)
    assert (await _current_tier(session_factory, seed.ticket.id)).status == TierStatus.PENDING

    ticket = await service.accept(seed.ticket.id, accepted_by=seed.supervisor.id)

    assert ticket.status == TicketStatus.IN_PROGRESS
    assert (await _current_tier(session_factory, seed.ticket.id)).status == TierStatus.ASSIGNED
    assert (await _history(session_factory, seed.ticket.id))[-1].assignment_id is None

    with pytest.raises(InvalidActorError):
        await service.accept(seed.ticket.id, accepted_by=seed.inactive.id)


# escalate / resolve / reject / re-raise -----------------------------------


@pytest.mark.asyncio
async def test_escalate_creates_new_current_tier(service, session_factory, seed, dispatcher):
    detail = await service.escalate(
        ticket_id=seed.ticket.id,
        from_tier="tier1",
        to_tier="tier2",
        reason="Needs network team",
        escalated_by=seed.agent.id,
        attachment_ids=seed.attachment_ids,
    )

    assert detail.escalator.id == seed.agent.id
    assert len(detail.attachments) == 2
    tier = await _current_tier(session_factory, seed.ticket.id)
    assert tier.tier_level == "tier2"
    assert tier.status == TierStatus.PENDING
    assert tier.remarks == "Escalated from tier1"

    history = await _history(session_factory, seed.ticket.id)
    assert history[-1].action == HistoryAction.PENDING
    assert history[-1].escalation_id == detail.escalation.id
    assert history[-1].notes == "Escalated from tier tier1 to tier tier2. Reason: Needs network team"
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.PENDING
    assert dispatcher.events == []

    with pytest.raises(ValidationError):
        await service.escalate(
            ticket_id=seed.ticket.id, from_tier="tier2", to_tier="", reason="x", escalated_by=seed.agent.id
        )


@pytest.mark.asyncio
async def test_resolve_stamps_ticket_and_current_tier(service, session_factory, seed, dispatcher):
    detail = await service.resolve(ticket_id=seed.ticket.id, reason="Replaced router", resolved_by=seed.agent.id)

    ticket = await _ticket(session_factory, seed.ticket.id)
    assert ticket.status == TicketStatus.RESOLVED
    assert ticket.resolved_at is not None
    assert (await _current_tier(session_factory, seed.ticket.id)).status == TierStatus.RESOLVED

    entry = (await _history(session_factory, seed.ticket.id))[-1]
    assert entry.action == HistoryAction.RESOLVED
    assert entry.resolution_id == detail.resolution.id
    assert entry.notes == "Issue resolved. Reason: Replaced router"
    assert dispatcher.events == []

    with pytest.raises(InvalidTransitionError):
        await service.resolve(ticket_id=seed.ticket.id, reason="again", resolved_by=seed.agent.id)


@pytest.mark.asyncio
async def test_resolve_without_tier_skips_tier_update(service, session_factory, seed, ticket_factory):
    ticket, _ = await ticket_factory(reporter_id=seed.reporter.id, with_tier=False)

    await service.resolve(ticket_id=ticket.id, reason="Self-healed", resolved_by=seed.agent.id)

    assert (await _ticket(session_factory, ticket.id)).status == TicketStatus.RESOLVED
    assert await _current_tier(session_factory, ticket.id) is None


@pytest.mark.asyncio
async def test_reject_notifies_reporter_and_resolvers(service, session_factory, seed, dispatcher):
    await service.resolve(ticket_id=seed.ticket.id, reason="Replaced router", resolved_by=seed.agent.id)

    detail = await service.reject(ticket_id=seed.ticket.id, reason="Still failing", rejected_by=seed.supervisor.id)

    assert detail.rejector.id == seed.supervisor.id
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.REJECTED
    assert (await _current_tier(session_factory, seed.ticket.id)).status == TierStatus.REJECTED
    event = dispatcher.events[-1]
    assert event.type == NotificationType.REJECTED
    assert list(event.recipient_ids) == [seed.reporter.id, seed.agent.id]

    with pytest.raises(InvalidTransitionError):
        await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id)


@pytest.mark.asyncio
async def test_re_raise_requires_resolved_ticket(service, session_factory, seed, dispatcher):
    with pytest.raises(InvalidTransitionError):
        await service.re_raise(ticket_id=seed.ticket.id, reason="Back again", re_raised_by=seed.reporter.id)

    await service.resolve(ticket_id=seed.ticket.id, reason="Replaced router", resolved_by=seed.agent.id)
    raised_at = datetime(2024, 3, 4, 9, 30, tzinfo=timezone.utc)
    detail = await service.re_raise(
        ticket_id=seed.ticket.id, reason="Back again", re_raised_by=seed.reporter.id, re_raised_at=raised_at
    )

    assert detail.re_raise.re_raised_at == raised_at
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.RE_RAISED
    assert (await _current_tier(session_factory, seed.ticket.id)).status == TierStatus.PENDING
    event = dispatcher.events[-1]
    assert event.type == NotificationType.RE_RAISED
    assert list(event.recipient_ids) == [seed.agent.id]


# reversals ----------------------------------------------------------------


@pytest.mark.asyncio
async def test_deleting_last_resolution_reverts_ticket_and_tiers(service, session_factory, seed, dispatcher):
    first = await service.resolve(ticket_id=seed.ticket.id, reason="Attempt one", resolved_by=seed.agent.id)
    await service.re_raise(ticket_id=seed.ticket.id, reason="Not fixed", re_raised_by=seed.reporter.id)
    second = await service.resolve(ticket_id=seed.ticket.id, reason="Attempt two", resolved_by=seed.agent.id)
    events_before = len(dispatcher.events)

    partial = await service.delete_resolution(first.resolution.id, actor_id=seed.supervisor.id)
    assert partial.reverted is False
    assert partial.ticket_status == TicketStatus.RESOLVED
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.RESOLVED

    final = await service.delete_resolution(second.resolution.id)
    assert final.reverted is True
    assert final.ticket_status == TicketStatus.IN_PROGRESS
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.IN_PROGRESS
    assert (await _current_tier(session_factory, seed.ticket.id)).status == TierStatus.ASSIGNED

    history = await _history(session_factory, seed.ticket.id)
    assert [entry.action for entry in history[-2:]] == [HistoryAction.REVERTED, HistoryAction.REVERTED]
    assert history[-1].status_at_time == TicketStatus.IN_PROGRESS
    assert history[-1].resolution_id == second.resolution.id
    assert len(dispatcher.events) == events_before

    with pytest.raises(NotFoundError):
        await service.delete_resolution(second.resolution.id)


@pytest.mark.asyncio
async def test_deleting_last_rejection_returns_ticket_to_pending(service, session_factory, seed):
    rejection = await service.reject(ticket_id=seed.ticket.id, reason="Duplicate", rejected_by=seed.supervisor.id)

    result = await service.delete_rejection(rejection.rejection.id, actor_id=seed.supervisor.id)

    assert result.reverted is True
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.PENDING
    history = await _history(session_factory, seed.ticket.id)
    assert history[-1].action == HistoryAction.REVERTED
    assert history[-1].user_id == seed.supervisor.id


@pytest.mark.asyncio
async def test_rejecting_twice_keeps_ticket_rejected_until_last_rejection_deleted(service, session_factory, seed):
    first = await service.reject(ticket_id=seed.ticket.id, reason="Duplicate", rejected_by=seed.supervisor.id)
    second = await service.reject(ticket_id=seed.ticket.id, reason="Still a duplicate", rejected_by=seed.agent.id)
    assert second.ticket.status == TicketStatus.REJECTED

    partial = await service.delete_rejection(first.rejection.id)
    assert partial.reverted is False
    assert partial.ticket_status == TicketStatus.REJECTED
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.REJECTED

    final = await service.delete_rejection(second.rejection.id)
    assert final.reverted is True
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.PENDING


@pytest.mark.asyncio
async def test_deleting_one_of_two_re_raises_keeps_ticket_re_raised(service, session_factory, seed):
    await service.resolve(ticket_id=seed.ticket.id, reason="Attempt one", resolved_by=seed.agent.id)
    first = await service.re_raise(ticket_id=seed.ticket.id, reason="Not fixed", re_raised_by=seed.reporter.id)
    await service.resolve(ticket_id=seed.ticket.id, reason="Attempt two", resolved_by=seed.agent.id)
    second = await service.re_raise(ticket_id=seed.ticket.id, reason="Still not fixed", re_raised_by=seed.reporter.id)

    partial = await service.delete_re_raise(first.re_raise.id, actor_id=seed.supervisor.id)
    assert partial.reverted is False
    assert partial.ticket_status == TicketStatus.RE_RAISED
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.RE_RAISED
    entry = (await _history(session_factory, seed.ticket.id))[-1]
    assert entry.action == HistoryAction.REVERTED
    assert entry.status_at_time == TicketStatus.RE_RAISED

    final = await service.delete_re_raise(second.re_raise.id)
    assert final.reverted is True
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.RESOLVED


@pytest.mark.asyncio
async def test_assign_resolve_re_raise_and_revert_scenario(service, session_factory, seed):
    assignment = await service.assign(
        ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id
    )
    assert assignment.ticket.status == TicketStatus.PENDING

    await service.resolve(ticket_id=seed.ticket.id, reason="Patched client", resolved_by=seed.agent.id)
    assert (await _current_tier(session_factory, seed.ticket.id)).status == TierStatus.RESOLVED

    re_raise = await service.re_raise(ticket_id=seed.ticket.id, reason="Drops again", re_raised_by=seed.reporter.id)
    assert re_raise.ticket.status == TicketStatus.RE_RAISED

    reversal = await service.delete_re_raise(re_raise.re_raise.id)
    assert reversal.ticket_status == TicketStatus.RESOLVED

    history = await _history(session_factory, seed.ticket.id)
    assert [(entry.action, entry.status_at_time) for entry in history] == [
        (HistoryAction.ASSIGNED, TicketStatus.PENDING),
        (HistoryAction.RESOLVED, TicketStatus.RESOLVED),
        (HistoryAction.RE_RAISED, TicketStatus.RE_RAISED),
        (HistoryAction.REVERTED, TicketStatus.RESOLVED),
    ]
    assert (await _ticket(session_factory, seed.ticket.id)).status == TicketStatus.RESOLVED


# notifications ------------------------------------------------------------


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_committed_transition(session_factory, seed, metrics):
    dispatcher = AsyncMock()
    dispatcher.notify.side_effect = RuntimeError("mail relay down")
    service = WorkflowService(WorkflowEngine(session_factory, dispatcher=dispatcher, metrics=metrics))

    detail = await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id)

    dispatcher.notify.assert_awaited_once()
    async with session_factory() as session:
        assert await EntityRepository(session).get_assignment(detail.assignment.id) is not None
    assert len(await _history(session_factory, seed.ticket.id)) == 1
    assert metrics.counter(NOTIFICATION_FAILURES_TOTAL).value(labels={"command": "assign"}) == 1
    assert metrics.counter(TRANSITIONS_TOTAL).value(labels={"command": "assign", "outcome": "committed"}) == 1


@pytest.mark.asyncio
async def test_rejected_commands_are_counted(service, seed, metrics):
    with pytest.raises(InvalidTransitionError):
        await service.re_raise(ticket_id=seed.ticket.id, reason="early", re_raised_by=seed.reporter.id)

    assert metrics.counter(TRANSITIONS_TOTAL).value(labels={"command": "re_raise", "outcome": "rejected"}) == 1
    assert metrics.distribution("workflow_transition_duration_seconds").count(labels={"command": "re_raise"}) == 1


@pytest.mark.asyncio
async def test_engine_uses_injected_clock(session_factory, seed, dispatcher, metrics):
    fixed = datetime.now(timezone.utc) + timedelta(days=1)
    service = WorkflowService(
        WorkflowEngine(session_factory, dispatcher=dispatcher, metrics=metrics, clock=lambda: fixed)
    )

    detail = await service.resolve(ticket_id=seed.ticket.id, reason="Fixed", resolved_by=seed.agent.id)

    assert detail.resolution.resolved_at == fixed
    assert detail.ticket.resolved_at == fixed
    entry = (await _history(session_factory, seed.ticket.id))[-1]
    assert entry.created_at == fixed


@pytest.mark.asyncio
async def test_result_falls_back_to_transaction_view_when_record_is_gone(session_factory, seed, metrics, caplog):
    class DeletingDispatcher:
        async def notify(self, event, *, session=None):
            async with session_factory() as other:
                async with other.begin():
                    await EntityRepository(other).delete_assignment(event.metadata["assignment_id"])

    caplog.set_level(logging.WARNING, logger="apps.api.services.workflow.engine")
    service = WorkflowService(WorkflowEngine(session_factory, dispatcher=DeletingDispatcher(), metrics=metrics))

    detail = await service.assign(ticket_id=seed.ticket.id, assignee_id=seed.agent.id, assigned_by=seed.supervisor.id)

    assert detail.assignee.id == seed.agent.id
    assert detail.ticket.id == seed.ticket.id
    async with session_factory() as session:
        assert await EntityRepository(session).get_assignment(detail.assignment.id) is None
    assert "read back failed" in caplog.text
