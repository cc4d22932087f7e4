from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from apps.api.services.workflow import WorkflowService


async def get_workflow_service(request: Request) -> WorkflowService:
    service = getattr(request.app.state, "workflow_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Workflow service is not available")
    return service


WorkflowServiceDep = Annotated[WorkflowService, Depends(get_workflow_service)]
