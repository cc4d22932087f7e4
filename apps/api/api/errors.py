"""Map workflow errors onto HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from apps.api.services.workflow import (
    ConflictError,
    InvalidActorError,
    NotFoundError,
    TransactionFailure,
    ValidationError,
    WorkflowError,
)

logger = logging.getLogger(__name__)


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def _conflict(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ConflictError)
    content: dict[str, str] = {"detail": str(exc)}
    if exc.existing_id is not None:
        content["assignment_id"] = exc.existing_id
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=content)


async def _validation(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def _transaction_failure(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
        headers={"Retry-After": "1"},
    )


async def _workflow_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled workflow error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, _not_found)
    # inactive users are reported as missing
    app.add_exception_handler(InvalidActorError, _not_found)
    app.add_exception_handler(ConflictError, _conflict)
    app.add_exception_handler(ValidationError, _validation)
    app.add_exception_handler(TransactionFailure, _transaction_failure)
    app.add_exception_handler(WorkflowError, _workflow_error)
