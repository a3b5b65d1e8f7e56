# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("HUGGINGFACE_API_KEY", "")

from safeyak.api.v1.dependencies import get_moderation_policy_dep
from safeyak.core.errors import ScorerUnavailable
from safeyak.db.session import Base
from safeyak.db.session import get_db as app_get_session
from safeyak.main import app as fastapi_app
from safeyak.services.autolock import AutoLockEngine
from safeyak.services.content import ContentLifecycleManager
from safeyak.services.moderation import ModerationPolicy
from safeyak.services.realtime import get_realtime_channel
from safeyak.services.reputation import ReputationLedger

TEST_DB_URL = "sqlite://"

AUTHOR = "author-aaaaaaaa"
OTHER = "author-bbbbbbbb"


class FakeScorer:
    """Toxicity scorer returning a fixed value, or raising ``error``."""

    def __init__(self, toxicity: float = 0.0) -> None:
        self.toxicity = toxicity
        self.error: Exception | None = None
        self.calls: list[str] = []

    async def score(self, text: str) -> float:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.toxicity


class FakeClock:
    """Manually advanced clock for cooldown and lock timestamps."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def scorer() -> FakeScorer:
    return FakeScorer()


@pytest.fixture()
def unavailable_scorer() -> FakeScorer:
    fake = FakeScorer()
    fake.error = ScorerUnavailable("backend timed out")
    return fake


@pytest.fixture()
def policy(scorer: FakeScorer) -> ModerationPolicy:
    return ModerationPolicy(
        scorer,
        hide_threshold=0.90,
        blur_threshold=0.60,
        unconfigured_mode="open",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ledger(db_session: Session) -> ReputationLedger:
    return ReputationLedger(db_session, strike_penalty=5, upvote_delta=1, bookmark_delta=2)


@pytest.fixture()
def autolock(db_session: Session, clock: FakeClock) -> AutoLockEngine:
    return AutoLockEngine(db_session, violation_threshold=3, lock_on_severe=True, clock=clock)


@pytest.fixture()
def manager(
    db_session: Session,
    policy: ModerationPolicy,
    ledger: ReputationLedger,
    autolock: AutoLockEngine,
    clock: FakeClock,
) -> ContentLifecycleManager:
    return ContentLifecycleManager(
        db_session,
        policy,
        ledger=ledger,
        autolock=autolock,
        cooldown_seconds=15,
        clock=clock,
    )


@pytest.fixture()
def channel():
    return get_realtime_channel()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(app: FastAPI, db_session: Session, policy: ModerationPolicy) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_moderation_policy_dep] = lambda: policy
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_moderation_policy_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def author_headers() -> dict[str, str]:
    return {"X-Author-Hash": AUTHOR}


@pytest.fixture()
def other_headers() -> dict[str, str]:
    return {"X-Author-Hash": OTHER}
