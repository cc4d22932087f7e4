from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from apps.api.dependencies.workflow import get_workflow_service
from apps.api.main import create_app
from apps.api.services.workflow import (
    Assignment,
    AssignmentDetail,
    AssignmentStatus,
    ConflictError,
    Escalation,
    EscalationDetail,
    HistoryAction,
    HistoryEntry,
    InvalidActorError,
    InvalidTransitionError,
    NotFoundError,
    ReRaise,
    ReRaiseDetail,
    Rejection,
    RejectionDetail,
    Resolution,
    ResolutionDetail,
    ReversalResult,
    Ticket,
    TicketStatus,
    Tier,
    TierStatus,
    TransactionFailure,
    UnassignmentSummary,
    User,
    ValidationError,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _user(name: str) -> User:
    return User(id=str(uuid4()), full_name=name, email=None, is_active=True)


def _ticket(status: TicketStatus = TicketStatus.PENDING) -> Ticket:
    return Ticket(
        id=str(uuid4()),
        title="Printer offline",
        status=status,
        category="hardware",
        priority="low",
        reporter_id=None,
        created_at=NOW,
        updated_at=NOW,
    )


def _assignment_detail() -> AssignmentDetail:
    ticket = _ticket()
    assignee, assigner = _user("Avery Agent"), _user("Sam Supervisor")
    return AssignmentDetail(
        assignment=Assignment(
            id=str(uuid4()),
            ticket_id=ticket.id,
            assignee_id=assignee.id,
            assigned_by=assigner.id,
            status=AssignmentStatus.PENDING,
            remarks="please look",
            assigned_at=NOW,
            created_at=NOW,
            updated_at=NOW,
        ),
        ticket=ticket,
        assignee=assignee,
        assigner=assigner,
    )


@pytest.fixture
def workflow_client():
    app = create_app()
    service = AsyncMock()

    async def override_service():
        return service

    app.dependency_overrides[get_workflow_service] = override_service
    client = TestClient(app)
    try:
        yield client, service
    finally:
        app.dependency_overrides.clear()


def test_assign_endpoint_returns_created(workflow_client):
    client, service = workflow_client
    detail = _assignment_detail()
    service.assign = AsyncMock(return_value=detail)

    response = client.post(
        "/assignments",
        json={
            "ticket_id": detail.ticket.id,
            "assignee_id": detail.assignee.id,
            "assigned_by": detail.assigner.id,
            "remarks": "please look",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == detail.assignment.id
    assert body["assignee"]["full_name"] == "Avery Agent"
    assert body["ticket"]["status"] == "pending"
    service.assign.assert_awaited_once_with(
        ticket_id=detail.ticket.id,
        assignee_id=detail.assignee.id,
        assigned_by=detail.assigner.id,
        remarks="please look",
        attachment_ids=[],
    )


def test_assign_conflict_reports_existing_assignment(workflow_client):
    client, service = workflow_client
    service.assign = AsyncMock(
        side_effect=ConflictError("This user is already assigned to the issue.", existing_id="existing-1")
    )

    response = client.post("/assignments", json={"ticket_id": "t", "assignee_id": "a", "assigned_by": "b"})

    assert response.status_code == 409
    assert response.json() == {
        "detail": "This user is already assigned to the issue.",
        "assignment_id": "existing-1",
    }


def test_assign_missing_field_is_rejected_by_request_validation(workflow_client):
    client, service = workflow_client

    response = client.post("/assignments", json={"ticket_id": "t"})

    assert response.status_code == 422
    service.assign.assert_not_called()


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (NotFoundError("Ticket", "t"), 404),
        (InvalidActorError("Assigner", "u"), 404),
        (InvalidTransitionError("Cannot assign ticket t while it is rejected"), 409),
        (ValidationError("assigned_by is required"), 400),
        (TransactionFailure("assign could not be committed"), 503),
    ],
)
def test_workflow_errors_map_to_status_codes(workflow_client, error, status_code):
    client, service = workflow_client
    service.assign = AsyncMock(side_effect=error)

    response = client.post("/assignments", json={"ticket_id": "t", "assignee_id": "a", "assigned_by": "b"})

    assert response.status_code == status_code
    assert response.json()["detail"] == str(error)
    assert "assignment_id" not in response.json()


def test_unassign_routes_pass_actor_and_reason(workflow_client):
    client, service = workflow_client
    summary = UnassignmentSummary(
        assignment_id="as-1",
        ticket_id="t-1",
        assignee_id="u-1",
        assignee_name="Avery Agent",
        assigner_name="Sam Supervisor",
        removed_by="Sam Supervisor",
        reason="Shift ended",
    )
    service.unassign = AsyncMock(return_value=summary)
    service.unassign_by_assignee = AsyncMock(return_value=summary)

    by_id = client.request("DELETE", "/assignments/as-1", json={"removed_by": "u-9", "reason": "Shift ended"})
    by_pair = client.request("DELETE", "/tickets/t-1/assignees/u-1", json={"removed_by": "u-9"})

    assert by_id.status_code == 200
    assert by_id.json()["message"] == "Assignment removed successfully"
    assert by_id.json()["removed_assignment"]["assignee_name"] == "Avery Agent"
    service.unassign.assert_awaited_once_with("as-1", removed_by="u-9", reason="Shift ended")
    assert by_pair.status_code == 200
    service.unassign_by_assignee.assert_awaited_once_with("t-1", "u-1", removed_by="u-9", reason=None)


def test_escalate_endpoint_returns_created(workflow_client):
    client, service = workflow_client
    ticket = _ticket()
    escalator = _user("Avery Agent")
    service.escalate = AsyncMock(
        return_value=EscalationDetail(
            escalation=Escalation(
                id="esc-1",
                ticket_id=ticket.id,
                from_tier="tier1",
                to_tier="tier2",
                reason="Needs network team",
                escalated_by=escalator.id,
                escalated_at=NOW,
            ),
            ticket=ticket,
            escalator=escalator,
        )
    )

    response = client.post(
        "/escalations",
        json={
            "ticket_id": ticket.id,
            "from_tier": "tier1",
            "to_tier": "tier2",
            "reason": "Needs network team",
            "escalated_by": escalator.id,
        },
    )

    assert response.status_code == 201
    assert response.json()["to_tier"] == "tier2"
    assert response.json()["escalated_by"]["id"] == escalator.id


def test_resolution_create_and_delete(workflow_client):
    client, service = workflow_client
    ticket = _ticket(TicketStatus.RESOLVED)
    resolver = _user("Avery Agent")
    service.resolve = AsyncMock(
        return_value=ResolutionDetail(
            resolution=Resolution(
                id="res-1", ticket_id=ticket.id, reason="Fixed", resolved_by=resolver.id, resolved_at=NOW
            ),
            ticket=ticket,
            resolver=resolver,
        )
    )
    service.delete_resolution = AsyncMock(
        return_value=ReversalResult(
            deleted_id="res-1", ticket_id=ticket.id, ticket_status=TicketStatus.IN_PROGRESS, reverted=True
        )
    )

    created = client.post("/resolutions", json={"ticket_id": ticket.id, "reason": "Fixed", "resolved_by": resolver.id})
    deleted = client.delete("/resolutions/res-1", params={"actor_id": resolver.id})

    assert created.status_code == 201
    assert created.json()["resolved_at"] == NOW.isoformat()
    assert deleted.status_code == 204
    service.delete_resolution.assert_awaited_once_with("res-1", actor_id=resolver.id)


def test_reversal_of_unknown_record_is_not_found(workflow_client):
    client, service = workflow_client
    service.delete_re_raise = AsyncMock(side_effect=NotFoundError("Re-raise", "rr-1"))

    response = client.delete("/re-raises/rr-1")

    assert response.status_code == 404
    service.delete_re_raise.assert_awaited_once_with("rr-1", actor_id=None)


def test_ticket_history_and_current_tier(workflow_client):
    client, service = workflow_client
    service.history = AsyncMock(
        return_value=[
            HistoryEntry(
                id="h-1",
                ticket_id="t-1",
                user_id="u-1",
                action=HistoryAction.ASSIGNED,
                status_at_time=TicketStatus.PENDING,
                notes="Issue assigned to Avery Agent.",
                created_at=NOW,
                assignment_id="as-1",
            )
        ]
    )
    service.current_tier = AsyncMock(
        return_value=Tier(
            id="tier-1",
            ticket_id="t-1",
            tier_level="tier2",
            handler_id=None,
            status=TierStatus.PENDING,
            assigned_at=NOW,
            remarks="Escalated from tier1",
        )
    )

    history = client.get("/tickets/t-1/history")
    tier = client.get("/tickets/t-1/tiers/current")

    assert history.status_code == 200
    assert history.json()[0]["action"] == "assigned"
    assert history.json()[0]["status_at_time"] == "pending"
    assert tier.json()["tier_level"] == "tier2"
    service.history.assert_awaited_once_with("t-1")


def test_latest_assignment_for_ticket(workflow_client):
    client, service = workflow_client
    detail = _assignment_detail()
    service.latest_assignment = AsyncMock(return_value=detail)

    response = client.get(f"/tickets/{detail.ticket.id}/assignments/latest")

    assert response.status_code == 200
    assert response.json()["id"] == detail.assignment.id


def test_routes_report_unavailable_service_without_override():
    client = TestClient(create_app())

    response = client.get("/tickets/t-1/history")

    assert response.status_code == 503


def test_ping_and_metrics_endpoints():
    client = TestClient(create_app())

    assert client.get("/ping").json() == {"status": "ok"}
    assert client.get("/ping/db").status_code == 503
    metrics = client.get("/metrics").json()
    assert "workflow_transitions_total" in metrics
    assert metrics["workflow_transitions_total"]["type"] == "counter"


def test_rejection_create_and_delete(workflow_client):
    client, service = workflow_client
    ticket = _ticket(TicketStatus.REJECTED)
    rejector = _user("Sam Supervisor")
    service.reject = AsyncMock(
        return_value=RejectionDetail(
            rejection=Rejection(
                id="rej-1", ticket_id=ticket.id, reason="Duplicate", rejected_by=rejector.id, rejected_at=NOW
            ),
            ticket=ticket,
            rejector=rejector,
        )
    )
    service.delete_rejection = AsyncMock(
        return_value=ReversalResult(
            deleted_id="rej-1", ticket_id=ticket.id, ticket_status=TicketStatus.PENDING, reverted=True
        )
    )

    created = client.post(
        "/rejections", json={"ticket_id": ticket.id, "reason": "Duplicate", "rejected_by": rejector.id}
    )
    deleted = client.delete("/rejections/rej-1")

    assert created.status_code == 201
    assert created.json()["rejected_by"]["full_name"] == "Sam Supervisor"
    assert created.json()["ticket"]["status"] == "rejected"
    service.reject.assert_awaited_once_with(
        ticket_id=ticket.id, reason="Duplicate", rejected_by=rejector.id, attachment_ids=[]
    )
    assert deleted.status_code == 204
    assert deleted.content == b""
    service.delete_rejection.assert_awaited_once_with("rej-1", actor_id=None)


def test_rejection_routes_report_missing_records(workflow_client):
    client, service = workflow_client
    service.reject = AsyncMock(side_effect=NotFoundError("Ticket", "t-404"))
    service.delete_rejection = AsyncMock(side_effect=NotFoundError("Rejection", "rej-404"))

    created = client.post("/rejections", json={"ticket_id": "t-404", "reason": "Duplicate", "rejected_by": "u"})
    deleted = client.delete("/rejections/rej-404", params={"actor_id": "u"})

    assert created.status_code == 404
    assert deleted.status_code == 404
    service.delete_rejection.assert_awaited_once_with("rej-404", actor_id="u")


def test_re_raise_create_and_delete(workflow_client):
    client, service = workflow_client
    ticket = _ticket(TicketStatus.RE_RAISED)
    reporter = _user("Rita Reporter")
    raised_at = datetime(2024, 3, 4, 9, 30, tzinfo=timezone.utc)
    service.re_raise = AsyncMock(
        return_value=ReRaiseDetail(
            re_raise=ReRaise(
                id="rr-1", ticket_id=ticket.id, reason="Drops again", re_raised_by=reporter.id, re_raised_at=raised_at
            ),
            ticket=ticket,
            re_raiser=reporter,
        )
    )
    service.delete_re_raise = AsyncMock(
        return_value=ReversalResult(
            deleted_id="rr-1", ticket_id=ticket.id, ticket_status=TicketStatus.RESOLVED, reverted=True
        )
    )

    created = client.post(
        "/re-raises",
        json={
            "ticket_id": ticket.id,
            "reason": "Drops again",
            "re_raised_by": reporter.id,
            "re_raised_at": raised_at.isoformat(),
        },
    )
    deleted = client.delete("/re-raises/rr-1", params={"actor_id": reporter.id})

    assert created.status_code == 201
    assert created.json()["re_raised_at"] == raised_at.isoformat()
    assert created.json()["re_raised_by"]["id"] == reporter.id
    service.re_raise.assert_awaited_once_with(
        ticket_id=ticket.id,
        reason="Drops again",
        re_raised_by=reporter.id,
        re_raised_at=raised_at,
        attachment_ids=[],
    )
    assert deleted.status_code == 204
    service.delete_re_raise.assert_awaited_once_with("rr-1", actor_id=reporter.id)


def test_re_raise_of_unresolved_ticket_is_conflict(workflow_client):
    client, service = workflow_client
    service.re_raise = AsyncMock(side_effect=InvalidTransitionError("Cannot re-raise ticket t-1 while it is pending"))

    response = client.post("/re-raises", json={"ticket_id": "t-1", "reason": "x", "re_raised_by": "u"})

    assert response.status_code == 409


def test_accept_endpoint_returns_ticket_in_progress(workflow_client):
    client, service = workflow_client
    ticket = _ticket(TicketStatus.IN_PROGRESS)
    service.accept = AsyncMock(return_value=ticket)

    response = client.post(f"/tickets/{ticket.id}/accept", json={"accepted_by": "u-1"})

    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    service.accept.assert_awaited_once_with(ticket.id, accepted_by="u-1")
