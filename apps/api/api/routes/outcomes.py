"""Resolutions, rejections and re-raises together with their reversals."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from apps.api.api.schemas import (
    RejectionCreateRequest,
    RejectionModel,
    ReRaiseCreateRequest,
    ReRaiseModel,
    ResolutionCreateRequest,
    ResolutionModel,
)
from apps.api.dependencies.workflow import WorkflowServiceDep

router = APIRouter(tags=["outcomes"])

ActorQuery = Query(default=None, description="User performing the deletion, recorded on the history entry")


@router.post("/resolutions", response_model=ResolutionModel, status_code=status.HTTP_201_CREATED)
async def resolve_ticket(payload: ResolutionCreateRequest, service: WorkflowServiceDep) -> ResolutionModel:
    detail = await service.resolve(
        ticket_id=payload.ticket_id,
        reason=payload.reason,
        resolved_by=payload.resolved_by,
        attachment_ids=payload.attachment_ids,
    )
    return ResolutionModel.from_detail(detail)


@router.get("/resolutions/{resolution_id}", response_model=ResolutionModel)
async def get_resolution(resolution_id: str, service: WorkflowServiceDep) -> ResolutionModel:
    return ResolutionModel.from_detail(await service.get_resolution(resolution_id))


@router.delete("/resolutions/{resolution_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resolution(
    resolution_id: str, service: WorkflowServiceDep, actor_id: str | None = ActorQuery
) -> None:
    await service.delete_resolution(resolution_id, actor_id=actor_id)


@router.post("/rejections", response_model=RejectionModel, status_code=status.HTTP_201_CREATED)
async def reject_ticket(payload: RejectionCreateRequest, service: WorkflowServiceDep) -> RejectionModel:
    detail = await service.reject(
        ticket_id=payload.ticket_id,
        reason=payload.reason,
        rejected_by=payload.rejected_by,
        attachment_ids=payload.attachment_ids,
    )
    return RejectionModel.from_detail(detail)


@router.get("/rejections/{rejection_id}", response_model=RejectionModel)
async def get_rejection(rejection_id: str, service: WorkflowServiceDep) -> RejectionModel:
    return RejectionModel.from_detail(await service.get_rejection(rejection_id))


@router.delete("/rejections/{rejection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rejection(
    rejection_id: str, service: WorkflowServiceDep, actor_id: str | None = ActorQuery
) -> None:
    await service.delete_rejection(rejection_id, actor_id=actor_id)


@router.post("/re-raises", response_model=ReRaiseModel, status_code=status.HTTP_201_CREATED)
async def re_raise_ticket(payload: ReRaiseCreateRequest, service: WorkflowServiceDep) -> ReRaiseModel:
    detail = await service.re_raise(
        ticket_id=payload.ticket_id,
        reason=payload.reason,
        re_raised_by=payload.re_raised_by,
        re_raised_at=payload.re_raised_at,
        attachment_ids=payload.attachment_ids,
    )
    return ReRaiseModel.from_detail(detail)


@router.get("/re-raises/{re_raise_id}", response_model=ReRaiseModel)
async def get_re_raise(re_raise_id: str, service: WorkflowServiceDep) -> ReRaiseModel:
    return ReRaiseModel.from_detail(await service.get_re_raise(re_raise_id))


@router.delete("/re-raises/{re_raise_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_re_raise(
    re_raise_id: str, service: WorkflowServiceDep, actor_id: str | None = ActorQuery
) -> None:
    await service.delete_re_raise(re_raise_id, actor_id=actor_id)
