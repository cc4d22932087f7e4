"""Ticket scoped routes: acceptance plus assignment, outcome, tier and history reads."""

from __future__ import annotations

from fastapi import APIRouter

from apps.api.api.schemas import (
    AcceptRequest,
    AssignmentModel,
    EscalationModel,
    HistoryEntryModel,
    RejectionModel,
    ReRaiseModel,
    ResolutionModel,
    TicketSummaryModel,
    TierModel,
)
from apps.api.dependencies.workflow import WorkflowServiceDep

router = APIRouter(prefix="/tickets/{ticket_id}", tags=["tickets"])


@router.post("/accept", response_model=TicketSummaryModel)
async def accept_ticket(ticket_id: str, payload: AcceptRequest, service: WorkflowServiceDep) -> TicketSummaryModel:
    return TicketSummaryModel.from_entity(await service.accept(ticket_id, accepted_by=payload.accepted_by))


@router.get("/assignments", response_model=list[AssignmentModel])
async def list_assignments(ticket_id: str, service: WorkflowServiceDep) -> list[AssignmentModel]:
    details = await service.list_ticket_assignments(ticket_id)
    return [AssignmentModel.from_detail(detail) for detail in details]


@router.get("/assignments/latest", response_model=AssignmentModel)
async def latest_assignment(ticket_id: str, service: WorkflowServiceDep) -> AssignmentModel:
    return AssignmentModel.from_detail(await service.latest_assignment(ticket_id))


@router.get("/escalations", response_model=list[EscalationModel])
async def list_escalations(ticket_id: str, service: WorkflowServiceDep) -> list[EscalationModel]:
    return [EscalationModel.from_detail(detail) for detail in await service.list_escalations(ticket_id)]


@router.get("/resolutions", response_model=list[ResolutionModel])
async def list_resolutions(ticket_id: str, service: WorkflowServiceDep) -> list[ResolutionModel]:
    return [ResolutionModel.from_detail(detail) for detail in await service.list_resolutions(ticket_id)]


@router.get("/resolutions/latest", response_model=ResolutionModel)
async def latest_resolution(ticket_id: str, service: WorkflowServiceDep) -> ResolutionModel:
    return ResolutionModel.from_detail(await service.latest_resolution(ticket_id))


@router.get("/rejections", response_model=list[RejectionModel])
async def list_rejections(ticket_id: str, service: WorkflowServiceDep) -> list[RejectionModel]:
    return [RejectionModel.from_detail(detail) for detail in await service.list_rejections(ticket_id)]


@router.get("/re-raises", response_model=list[ReRaiseModel])
async def list_re_raises(ticket_id: str, service: WorkflowServiceDep) -> list[ReRaiseModel]:
    return [ReRaiseModel.from_detail(detail) for detail in await service.list_re_raises(ticket_id)]


@router.get("/tiers", response_model=list[TierModel])
async def list_tiers(ticket_id: str, service: WorkflowServiceDep) -> list[TierModel]:
    return [TierModel.from_entity(tier) for tier in await service.list_tiers(ticket_id)]


@router.get("/tiers/current", response_model=TierModel)
async def current_tier(ticket_id: str, service: WorkflowServiceDep) -> TierModel:
    return TierModel.from_entity(await service.current_tier(ticket_id))


@router.get("/history", response_model=list[HistoryEntryModel])
async def ticket_history(ticket_id: str, service: WorkflowServiceDep) -> list[HistoryEntryModel]:
    return [HistoryEntryModel.from_entity(entry) for entry in await service.history(ticket_id)]
