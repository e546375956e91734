"""Async test fixtures for form backend tests using SQLite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from formbackend.config import settings
from formbackend.database import build_engine, build_session_factory, init_models
from formbackend.models.form import Form
from formbackend.security.rate_limit import SlidingWindowRateLimiter
from formbackend.services import form_svc
from formbackend.services.notify_svc import Notification, NotificationDispatcher
from formbackend.services.submission_store import SubmissionStore

DASHBOARD_TOKEN = "test-token-123"


class ManualClock:
    """Monotonic-style clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualDatetimeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingChannel:
    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def send(self, message: Notification) -> None:
        self.sent.append(message)


class FailingChannel:
    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, message: Notification) -> None:
        self.attempts += 1
        raise ConnectionError("mail relay unavailable")


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def engine():
    eng = build_engine("sqlite+aiosqlite:///:memory:", echo=False)
    await init_models(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def form(db: AsyncSession) -> Form:
    return await form_svc.create_form(
        db, owner_email="owner@example.com", name="Contact Form", honeypot_field="_website"
    )


@pytest.fixture
def clock() -> ManualDatetimeClock:
    return ManualDatetimeClock()


@pytest.fixture
def store(session_factory, clock) -> SubmissionStore:
    return SubmissionStore(session_factory, clock=clock)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def dispatcher(channel) -> NotificationDispatcher:
    return NotificationDispatcher(channel, "http://test")


@pytest.fixture
def limiter_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def app(engine, channel, limiter_clock, monkeypatch: pytest.MonkeyPatch):
    from formbackend.app import create_app

    monkeypatch.setattr(settings, "dashboard_auth_token", DASHBOARD_TOKEN)
    limiter = SlidingWindowRateLimiter(window_seconds=60, max_points=5, clock=limiter_clock)
    return create_app(engine=engine, rate_limiter=limiter, channel=channel)


@pytest_asyncio.fixture
async def client(app):
    """HTTPX async test client against a freshly built app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await app.state.dispatcher.drain(timeout=5)
