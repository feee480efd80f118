"""
Fixtures for enrollment tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.modules.enrollment.models import Submission, SubmissionStatus
from app.modules.enrollment.schemas import SubmitRequest


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def background():
    """Stand-in for FastAPI BackgroundTasks."""
    tasks = MagicMock()
    tasks.add_task = MagicMock()
    return tasks


@pytest.fixture
def valid_submit_request():
    return SubmitRequest(
        nom="  Awa Traoré  ",
        email="awa.traore@example.com",
        whatsapp="0701020304",
        projet="Une boutique en ligne de produits cosmétiques locaux.",
    )


@pytest.fixture
def make_submission():
    """Build real Submission objects (not persisted) in a given status."""

    def _make(status: SubmissionStatus = SubmissionStatus.PENDING_REVIEW, **overrides):
        fields = {
            "id": uuid4(),
            "name": "Awa Traoré",
            "email": "awa.traore@example.com",
            "whatsapp": "0701020304",
            "project": "Une boutique en ligne de produits cosmétiques locaux.",
            "status": status,
            "payment_attempts": 0,
            "created_at": datetime.now(UTC),
        }
        fields.update(overrides)
        return Submission(**fields)

    return _make


@pytest.fixture
def submission_store(make_submission):
    """
    In-memory replacement for repository.create / repository.get_by_id.

    update_status stays the real repository function so the state machine
    is exercised.
    """
    store: dict = {}

    async def create(db, *, name, email, whatsapp, project):
        submission = make_submission(name=name, email=email, whatsapp=whatsapp, project=project)
        store[submission.id] = submission
        return submission

    async def get_by_id(db, id, *, lock=False):
        return store.get(id)

    def add(submission):
        store[submission.id] = submission
        return submission

    return MagicMock(store=store, create=create, get_by_id=get_by_id, add=add)
