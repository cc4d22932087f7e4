from __future__ import annotations

from fastapi import APIRouter, status

from apps.api.api.schemas import AssignmentCreateRequest, AssignmentModel, UnassignmentModel, UnassignRequest
from apps.api.dependencies.workflow import WorkflowServiceDep

router = APIRouter(tags=["assignments"])


@router.post("/assignments", response_model=AssignmentModel, status_code=status.HTTP_201_CREATED)
async def assign_ticket(payload: AssignmentCreateRequest, service: WorkflowServiceDep) -> AssignmentModel:
    detail = await service.assign(
        ticket_id=payload.ticket_id,
        assignee_id=payload.assignee_id,
        assigned_by=payload.assigned_by,
        remarks=payload.remarks,
        attachment_ids=payload.attachment_ids,
    )
    return AssignmentModel.from_detail(detail)


@router.get("/assignments/{assignment_id}", response_model=AssignmentModel)
async def get_assignment(assignment_id: str, service: WorkflowServiceDep) -> AssignmentModel:
    return AssignmentModel.from_detail(await service.get_assignment(assignment_id))


@router.delete("/assignments/{assignment_id}", response_model=UnassignmentModel)
async def unassign(assignment_id: str, payload: UnassignRequest, service: WorkflowServiceDep) -> UnassignmentModel:
    summary = await service.unassign(assignment_id, removed_by=payload.removed_by, reason=payload.reason)
    return UnassignmentModel.from_summary(summary)


@router.delete("/tickets/{ticket_id}/assignees/{assignee_id}", response_model=UnassignmentModel)
async def unassign_assignee(
    ticket_id: str,
    assignee_id: str,
    payload: UnassignRequest,
    service: WorkflowServiceDep,
) -> UnassignmentModel:
    summary = await service.unassign_by_assignee(
        ticket_id, assignee_id, removed_by=payload.removed_by, reason=payload.reason
    )
    return UnassignmentModel.from_summary(summary)


@router.get("/users/{user_id}/assignments", response_model=list[AssignmentModel])
async def list_user_assignments(user_id: str, service: WorkflowServiceDep) -> list[AssignmentModel]:
    details = await service.list_user_assignments(user_id)
    return [AssignmentModel.from_detail(detail) for detail in details]
