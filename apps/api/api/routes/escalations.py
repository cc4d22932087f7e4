from __future__ import annotations

from fastapi import APIRouter, status

from apps.api.api.schemas import EscalationCreateRequest, EscalationModel
from apps.api.dependencies.workflow import WorkflowServiceDep

router = APIRouter(prefix="/escalations", tags=["escalations"])


@router.post("", response_model=EscalationModel, status_code=status.HTTP_201_CREATED)
async def escalate_ticket(payload: EscalationCreateRequest, service: WorkflowServiceDep) -> EscalationModel:
    detail = await service.escalate(
        ticket_id=payload.ticket_id,
        from_tier=payload.from_tier,
        to_tier=payload.to_tier,
        reason=payload.reason,
        escalated_by=payload.escalated_by,
        attachment_ids=payload.attachment_ids,
    )
    return EscalationModel.from_detail(detail)


@router.get("/{escalation_id}", response_model=EscalationModel)
async def get_escalation(escalation_id: str, service: WorkflowServiceDep) -> EscalationModel:
    return EscalationModel.from_detail(await service.get_escalation(escalation_id))
