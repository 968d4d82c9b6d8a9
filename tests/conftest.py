"""
Pytest fixtures for the contract service test suite.

Provides:
- Settings pointing at an in-memory SQLite database
- A database session with the schema created
- A FastAPI TestClient running the app lifespan
- Actors, a controllable clock and a JWT factory
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from contractflow.auth import create_access_token
from contractflow.config import Settings
from contractflow.database import Base, create_db_engine, create_session_factory
from contractflow.domain.contracts.actors import Actor, Role
from contractflow.domain.contracts.entities import ContractDraft
from contractflow.domain.contracts.lifecycle import ContractLifecycle
from contractflow.main import create_app

OWNER_ID = "O1"
CLIENT_ID = "C1"
STRANGER_ID = "X9"


class StepClock:
    """Clock that advances one second per reading"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        max_conflict_retries=3,
        db_log_slow_queries=False,
    )


@pytest.fixture
def db(settings):
    engine = create_db_engine(settings)
    Base.metadata.create_all(bind=engine)
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def lifecycle(clock) -> ContractLifecycle:
    return ContractLifecycle(clock=clock)


@pytest.fixture
def owner() -> Actor:
    return Actor(user_id=OWNER_ID, role=Role.FREELANCER, email="owner@example.com")


@pytest.fixture
def client_actor() -> Actor:
    return Actor(user_id=CLIENT_ID, role=Role.CLIENT, email="client@example.com")


@pytest.fixture
def stranger() -> Actor:
    return Actor(user_id=STRANGER_ID, role=Role.FREELANCER)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="A1", role=Role.ADMIN)


@pytest.fixture
def draft_payload() -> ContractDraft:
    return ContractDraft(
        client_id=CLIENT_ID,
        client_email="client@example.com",
        title="Website redesign",
        content="Redesign of the marketing site",
        terms="Net 30",
        deliverables=["Wireframes", "Final designs"],
        amount=5000,
        currency="USD",
        timeline="6 weeks",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def api(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(settings):
    def make(user_id: str, role: str, email: str = None) -> dict:
        token = create_access_token(settings, user_id, role, email=email)
        return {"Authorization": f"Bearer {token}"}

    return make
