from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from apps.api.api.errors import register_exception_handlers
from apps.api.api.routes import assignments, escalations, outcomes, ping, tickets
from apps.api.core.config import Settings, get_settings
from apps.api.core.logging import configure_logging, init_tracer, shutdown_tracer
from apps.api.services.health import DatabaseHealthCheck
from apps.api.services.workflow import (
    DatabaseNotificationDispatcher,
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    WorkflowEngine,
    WorkflowService,
    ensure_schema,
)


def _to_asyncpg_dsn(dsn: str) -> str:
    """Ensure the SQLAlchemy DSN uses the asyncpg driver."""

    if dsn.startswith("postgresql+asyncpg://"):
        return dsn
    if dsn.startswith("postgresql://"):
        return "postgresql+asyncpg://" + dsn[len("postgresql://") :]
    return dsn


def build_dispatcher(settings: Settings, session_factory: async_sessionmaker) -> NotificationDispatcher:
    if settings.notification_backend == "log":
        return LoggingNotificationDispatcher()
    return DatabaseNotificationDispatcher(session_factory)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider

    db_engine = create_async_engine(
        _to_asyncpg_dsn(settings.database_url), echo=settings.database_echo, future=True
    )
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    app.state.db_engine = db_engine
    app.state.db_session_factory = session_factory
    app.state.db_health_check = DatabaseHealthCheck(db_engine)
    app.state.workflow_service = None
    try:
        if settings.create_schema_on_startup:
            await ensure_schema(db_engine)
        engine = WorkflowEngine(session_factory, dispatcher=build_dispatcher(settings, session_factory))
        app.state.workflow_service = WorkflowService(engine)
    except Exception:  # pragma: no cover - service initialisation best effort
        logger.exception("workflow service unavailable; database initialisation failed")
    try:
        yield
    finally:
        await db_engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(ping.router)
    app.include_router(assignments.router)
    app.include_router(escalations.router)
    app.include_router(outcomes.router)
    app.include_router(tickets.router)
    return app


app = create_app()
