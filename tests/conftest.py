"""Pytest configuration and shared fixtures."""
import os

# Keep the module-level app in triage.main off the local disk
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from triage.database import Base, make_engine
from triage.models.domain import Complaint, Notification
from triage.models.enums import Urgency, Category, Department
from triage.services.classifier import Classification
from triage.services.feed import SnapshotFeed
from triage.services.lifecycle import LifecycleEngine
from triage.store import ComplaintStore

ADMIN_HEADERS = {"X-User-Id": "admin01", "X-User-Email": "admin@example.com"}
CITIZEN_HEADERS = {"X-User-Id": "citizen-1", "X-User-Email": "user@example.com"}
OTHER_CITIZEN_HEADERS = {"X-User-Id": "citizen-2", "X-User-Email": "neighbour@example.com"}


class StubClassifier:
    """Returns a fixed classification and records what it was asked."""

    def __init__(self, result=None):
        self.result = result or Classification(Urgency.HIGH, Category.SAFETY, Department.PUBLIC_WORKS)
        self.calls = []

    def classify(self, text):
        self.calls.append(text)
        return self.result


@pytest.fixture
def session_factory():
    """Create a fresh in-memory database for each test."""
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)

    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)

    engine.dispose()


@pytest.fixture
def store(session_factory):
    return ComplaintStore(session_factory)


@pytest.fixture
def feed(store):
    feed = SnapshotFeed(store).open()
    yield feed
    feed.close()


@pytest.fixture
def classifier():
    return StubClassifier()


@pytest.fixture
def lifecycle(feed, classifier):
    return LifecycleEngine(feed, classifier)


@pytest.fixture
def sample_complaint(lifecycle):
    """A complaint in Submitted state, not yet classified."""
    complaint_id = lifecycle.create_complaint(
        text="Streetlight on Elm Street has been out for a week",
        submitted_by="citizen-1"
    )
    return lifecycle.feed.find(complaint_id)


@pytest.fixture
def client(session_factory, classifier):
    from triage.main import create_app

    app = create_app(session_factory, classifier=classifier)
    with TestClient(app) as test_client:
        yield test_client
    app.state.feed.close()
