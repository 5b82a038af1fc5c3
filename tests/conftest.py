"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("LOG_FEED_BACKEND", "memory")

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi import Depends  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.webhooks import get_webhook_dispatcher  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.services.log_feed import InMemoryLogFeed, LogFeed, get_log_feed  # noqa: E402
from app.services.webhook_service import WebhookDispatcher  # noqa: E402


@pytest.fixture
def test_db():
    """Create a test database for testing."""
    # Use in-memory SQLite shared across threads for tests
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        try:
            db = TestingSessionLocal()
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    yield TestingSessionLocal

    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.clear()


@pytest.fixture
def db_session(test_db):
    """A session on the test database."""
    db = test_db()
    yield db
    db.close()


@pytest.fixture
def feed():
    """A fresh in-memory change feed wired into the app."""
    log_feed = InMemoryLogFeed()
    app.dependency_overrides[get_log_feed] = lambda: log_feed
    yield log_feed


@pytest.fixture
def client(test_db, feed):
    """Test client bound to the test database and feed."""
    return TestClient(app)


@pytest.fixture
def webhook_endpoint(test_db, feed):
    """
    Route outbound webhook POSTs to a mock handler.

    Call the returned function with an ``httpx.MockTransport`` handler;
    every request sent is also collected in ``sent``.
    """
    sent = []

    def use(handler):
        def recording_handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return handler(request)

        transport = httpx.MockTransport(recording_handler)

        def override_dispatcher(
            db: Session = Depends(get_db), log_feed: LogFeed = Depends(get_log_feed)
        ) -> WebhookDispatcher:
            return WebhookDispatcher(db, log_feed, transport=transport)

        app.dependency_overrides[get_webhook_dispatcher] = override_dispatcher
        return sent

    return use
