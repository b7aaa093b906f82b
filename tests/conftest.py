"""Shared test fixtures for the Dionysus test suite."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dionysus.core import dependencies
from dionysus.db.database import get_db, init_db
from dionysus.services import project_service
from dionysus.services.ai_service import AIService, AIServiceConfig
from dionysus.services.billing_service import BillingService
from dionysus.services.commit_service import CommitService
from dionysus.services.github_service import CommitInfo, GitHubService
from dionysus.services.identity_service import IdentityService, UserProfile
from dionysus.services.notification_service import NotificationService

USER_ID = "user_1"
OTHER_USER_ID = "user_2"
REPO_URL = "https://github.com/octo/demo"

SAMPLE_DIFF = (
    "diff --git a/app.py b/app.py\n"
    "--- a/app.py\n"
    "+++ b/app.py\n"
    "@@ -1 +1 @@\n"
    "-print('hi')\n"
    "+print('hello')\n"
)


def make_commit_info(
    sha: str,
    message: str = "Update app",
    date: str = "2026-10-10T12:00:00Z",
) -> CommitInfo:
    return CommitInfo(
        commit_hash=sha,
        commit_message=message,
        commit_author_name="Ada Lovelace",
        commit_author_avatar="https://avatars.githubusercontent.com/u/1",
        commit_date=date,
    )


# ── Database ─────────────────────────────────────────────────────────────────


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_project(db):
    """Create a project owned by ``user_id``."""
    def _make(
        name: str = "Demo",
        github_url: str = REPO_URL,
        user_id: str = USER_ID,
        github_token: Optional[str] = None,
    ):
        return project_service.create_project(
            db,
            user_id=user_id,
            user_name="Ada Lovelace",
            name=name,
            github_url=github_url,
            github_token=github_token,
        )
    return _make


# ── Services ─────────────────────────────────────────────────────────────────


@pytest.fixture
def github_service():
    """GitHub adapter returning ``commits`` and a fixed diff."""
    service = MagicMock(spec=GitHubService)
    service.commits = []
    service.get_commit_hashes = AsyncMock(side_effect=lambda *a, **kw: list(service.commits))
    service.get_commit_diff = AsyncMock(return_value=SAMPLE_DIFF)
    return service


@pytest.fixture
def ai_service():
    service = AIService(AIServiceConfig(api_key="test-key", context_commits=20))
    service.summarise_commit = AsyncMock(return_value="- Greets with hello")
    service.ask_repo_question = AsyncMock(return_value="The greeting changed to hello.")
    return service


@pytest.fixture
def commit_service(github_service, ai_service):
    return CommitService(github_service, ai_service)


@pytest.fixture
def identity_service():
    service = MagicMock(spec=IdentityService)
    profile = UserProfile(
        id=USER_ID,
        first_name="Ada",
        last_name="Lovelace",
        username="ada",
        email_addresses=["ada@example.com"],
    )
    service.get_user = AsyncMock(return_value=profile)
    service.find_user = AsyncMock(return_value=profile)
    return service


@pytest.fixture
def notification_service():
    service = MagicMock(spec=NotificationService)
    service.send_auth_notification = AsyncMock(return_value=True)
    return service


@pytest.fixture
def billing_service():
    return BillingService(checkout_delay_seconds=0)


# ── API ──────────────────────────────────────────────────────────────────────


@pytest.fixture
def app(
    session_factory,
    github_service,
    ai_service,
    commit_service,
    identity_service,
    notification_service,
    billing_service,
):
    from dionysus.main import create_app

    app = create_app()

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[dependencies.get_github_service] = lambda: github_service
    app.dependency_overrides[dependencies.get_ai_service] = lambda: ai_service
    app.dependency_overrides[dependencies.get_commit_service] = lambda: commit_service
    app.dependency_overrides[dependencies.get_identity_service] = lambda: identity_service
    app.dependency_overrides[dependencies.get_notification_service] = lambda: notification_service
    app.dependency_overrides[dependencies.get_billing_service] = lambda: billing_service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Client signed in as ``USER_ID``."""
    return TestClient(app, headers={"X-User-Id": USER_ID})


@pytest.fixture
def anonymous_client(app):
    return TestClient(app)


@pytest.fixture
def other_client(app):
    return TestClient(app, headers={"X-User-Id": OTHER_USER_ID})


# ── Outbound HTTP ────────────────────────────────────────────────────────────


@pytest.fixture
def mock_http(monkeypatch):
    """Route ``httpx.AsyncClient`` through ``handler``; returns the requests it saw."""
    real_client = httpx.AsyncClient

    def _install(handler):
        seen = []

        def _record(request):
            seen.append(request)
            return handler(request)

        transport = httpx.MockTransport(_record)
        monkeypatch.setattr(
            httpx,
            "AsyncClient",
            lambda *args, **kwargs: real_client(*args, transport=transport, **kwargs),
        )
        return seen
    return _install
