import asyncio
from contextlib import contextmanager
from typing import Any, AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from libs.auth.models import AuthUser
from libs.db.base import Base
from services.servewell_service import models as _servewell_models  # noqa: F401


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_member_user(user_id: str = "member-auth-1", **overrides) -> AuthUser:
    data = {"sub": user_id, "email": "member@example.com", "role": "authenticated"}
    data.update(overrides)
    return AuthUser(**data)


def make_coordinator_user(user_id: str = "coordinator-1", **overrides) -> AuthUser:
    data = {"sub": user_id, "email": "coordinator@example.com", "role": "coordinator"}
    data.update(overrides)
    return AuthUser(**data)


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily authenticate every request to ``app`` as ``user``."""
    from libs.auth.dependencies import get_current_user

    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


class RecordingNotifier:
    """Notifier that keeps every message instead of sending it."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict[str, Any]] = []

    async def notify(
        self,
        recipient_id: str,
        type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> bool:
        if self.fail:
            raise RuntimeError("notification gateway down")
        self.sent.append(
            {
                "recipient_id": recipient_id,
                "type": type,
                "title": title,
                "message": message,
                "action_url": action_url,
                "metadata": metadata or {},
            }
        )
        return True

    def types(self) -> list[str]:
        return [n["type"] for n in self.sent]

    def to(self, recipient_id: str) -> list[dict[str, Any]]:
        return [n for n in self.sent if n["recipient_id"] == recipient_id]


class StubOracle:
    """Scoring oracle returning a canned payload, an error, or nothing in time."""

    def __init__(self, payload: Any = None, error: Optional[Exception] = None, delay: float = 0):
        self.payload = payload
        self.error = error
        self.delay = delay
        self.requests: list[dict] = []

    async def score(self, request: dict) -> dict:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if callable(self.payload):
            return self.payload(request)
        return self.payload


def oracle_item(opportunity_id, spiritual=0.9, skill=0.8, availability=0.7, passion=0.6, **extra):
    item = {
        "opportunityId": str(opportunity_id),
        "spiritualFitScore": spiritual,
        "skillFitScore": skill,
        "availabilityScore": availability,
        "passionScore": passion,
        "explanation": "Strong fit",
        "reasons": ["Gifted for it"],
    }
    item.update(extra)
    return item


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    Fresh SQLite file per test.

    A file (not :memory:) so that separate sessions get separate connections
    and concurrent writers contend for the database lock like they would on
    Postgres row locks.
    """
    db_path = tmp_path / "servewell-test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}", connect_args={"timeout": 5}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest.fixture
def oracle_holder() -> dict:
    """Oracle the API uses for this test; None means fallback scoring."""
    return {"oracle": None}


@pytest_asyncio.fixture
async def client(
    session_factory, notifier, oracle_holder
) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient bound to the ServeWell app with the database, auth, oracle,
    and notifier swapped for test doubles. Requests default to a member user.
    """
    from libs.auth.dependencies import get_current_user
    from libs.db.session import get_async_db
    from services.servewell_service.app.main import app
    from services.servewell_service.dependencies import (
        get_notifier,
        get_scoring_oracle,
        get_session_factory,
    )

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_db] = _get_test_db
    app.dependency_overrides[get_current_user] = lambda: make_member_user()
    app.dependency_overrides[get_scoring_oracle] = lambda: oracle_holder["oracle"]
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def app():
    from services.servewell_service.app.main import app

    return app
