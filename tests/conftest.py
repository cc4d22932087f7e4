from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from apps.api.metrics import MetricsRegistry
from apps.api.services.workflow import (
    EntityRepository,
    Ticket,
    TicketStatus,
    Tier,
    TierStatus,
    TransitionEvent,
    User,
    WorkflowEngine,
    WorkflowService,
    ensure_schema,
)
from packages.db.models import AttachmentTable


class RecordingDispatcher:
    def __init__(self) -> None:
        self.events: list[TransitionEvent] = []

    async def notify(self, event: TransitionEvent, *, session=None) -> None:
        self.events.append(event)


@dataclass
class SeedData:
    reporter: User
    agent: User
    supervisor: User
    inactive: User
    ticket: Ticket
    tier: Tier
    attachment_ids: list[str]


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    await ensure_schema(engine)
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_ticket(
    session_factory: async_sessionmaker,
    *,
    reporter_id: str | None,
    status: TicketStatus = TicketStatus.PENDING,
    with_tier: bool = True,
) -> tuple[Ticket, Tier | None]:
    """Stand in for ticket intake: a ticket plus its initial tier."""

    now = datetime.now(timezone.utc) - timedelta(minutes=5)
    ticket = Ticket(
        id=str(uuid.uuid4()),
        title="VPN drops every hour",
        status=status,
        category="network",
        priority="high",
        reporter_id=reporter_id,
        created_at=now,
        updated_at=now,
    )
    tier = None
    async with session_factory() as session:
        async with session.begin():
            repository = EntityRepository(session)
            await repository.create_ticket(ticket)
            if with_tier:
                tier = await repository.create_tier(
                    Tier(
                        id=str(uuid.uuid4()),
                        ticket_id=ticket.id,
                        tier_level="tier1",
                        handler_id=None,
                        status=TierStatus.ASSIGNED,
                        assigned_at=now,
                        remarks="Initial tier",
                    )
                )
    return ticket, tier


@pytest_asyncio.fixture
async def seed(session_factory: async_sessionmaker) -> SeedData:
    users = {
        name: User(id=str(uuid.uuid4()), full_name=full_name, email=f"{name}@example.com", is_active=active)
        for name, full_name, active in (
            ("reporter", "Rita Reporter", True),
            ("agent", "Avery Agent", True),
            ("supervisor", "Sam Supervisor", True),
            ("inactive", "Ina Active", False),
        )
    }
    attachment_ids = [str(uuid.uuid4()), str(uuid.uuid4())]
    async with session_factory() as session:
        async with session.begin():
            repository = EntityRepository(session)
            for user in users.values():
                await repository.create_user(user)
            for index, attachment_id in enumerate(attachment_ids):
                session.add(
                    AttachmentTable(
                        id=attachment_id,
                        file_name=f"screenshot-{index}.png",
                        file_path=f"/uploads/screenshot-{index}.png",
                        mime_type="image/png",
                        uploaded_by=users["reporter"].id,
                    )
                )

    ticket, tier = await create_ticket(session_factory, reporter_id=users["reporter"].id)
    assert tier is not None
    return SeedData(
        reporter=users["reporter"],
        agent=users["agent"],
        supervisor=users["supervisor"],
        inactive=users["inactive"],
        ticket=ticket,
        tier=tier,
        attachment_ids=attachment_ids,
    )


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def metrics() -> MetricsRegistry:
    return MetricsRegistry()


@pytest.fixture
def workflow_engine(session_factory, dispatcher, metrics) -> WorkflowEngine:
    return WorkflowEngine(session_factory, dispatcher=dispatcher, metrics=metrics)


@pytest.fixture
def service(workflow_engine: WorkflowEngine) -> WorkflowService:
    return WorkflowService(workflow_engine)


@pytest.fixture
def ticket_factory(session_factory: async_sessionmaker):
    async def factory(**kwargs):
        return await create_ticket(session_factory, **kwargs)

    return factory
