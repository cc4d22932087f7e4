from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from apps.api.metrics import metrics_registry

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/ping", summary="Public health check")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ping/db", summary="Database connectivity check")
async def ping_database(request: Request) -> dict[str, str]:
    health_check = getattr(request.app.state, "db_health_check", None)
    if health_check is None:
        raise HTTPException(status_code=503, detail="Database is not configured")
    try:
        await health_check.test_connection()
    except (SQLAlchemyError, OSError, TimeoutError) as exc:
        logger.warning("database health check failed: %s", exc)
        raise HTTPException(status_code=503, detail="Database is unreachable") from exc
    return {"status": "ok"}


@router.get("/metrics", summary="In-process workflow metrics")
async def metrics() -> dict[str, object]:
    return metrics_registry.export()
