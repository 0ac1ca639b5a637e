"""
Pytest configuration: in-memory SQLite behind the record store, a
controllable clock and a notifier that records instead of delivering.
"""
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import kids_scheduler.models  # noqa: F401
from kids_scheduler.database import get_store
from kids_scheduler.errors import DeliveryError
from kids_scheduler.main import app
from kids_scheduler.models.base import Base
from kids_scheduler.schemas.invitation import RecipientInfo, SenderInfo
from kids_scheduler.services.notifier import Notifier, get_notifier
from kids_scheduler.services.record_store import RecordStore
from kids_scheduler.services.workflow import FriendWorkflow

# In-memory SQLite stands in for PostgreSQL in tests
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingNotifier(Notifier):
    def __init__(self):
        self.approvals: list[dict] = []
        self.emails: list[str] = []
        self.friendships: list[str] = []
        self.fail = False

    async def notify_approval_needed(
        self, parent_id, request_type, child_name, other_child_name, request_id
    ):
        self.approvals.append(
            {
                "parent_id": parent_id,
                "request_type": request_type,
                "child_name": child_name,
                "other_child_name": other_child_name,
                "request_id": request_id,
            }
        )
        if self.fail:
            raise DeliveryError("push", "gateway unavailable")

    async def notify_email_invitation(self, invitation):
        self.emails.append(invitation.id)
        if self.fail:
            raise DeliveryError("email", "SMTP unavailable")

    async def notify_friendship_created(self, friendship):
        self.friendships.append(friendship.id)
        if self.fail:
            raise DeliveryError("push", "gateway unavailable")


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def store(db_engine):
    session_maker = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    return RecordStore(session_maker)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def workflow(store, notifier, clock):
    return FriendWorkflow(store, notifier, clock=clock)


@pytest.fixture
def sender():
    return SenderInfo(
        child_id="child-a",
        child_name="Alex",
        parent_id="parent-a",
        parent_name="Pat Adams",
        parent_email="pat.adams@example.com",
    )


@pytest.fixture
def recipient():
    return RecipientInfo(
        child_id="child-b",
        child_name="Sam",
        parent_id="parent-b",
        parent_name="Robin Baker",
    )


@pytest_asyncio.fixture
async def client(store, notifier):
    """AsyncClient for the FastAPI app with store and notifier overridden."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
