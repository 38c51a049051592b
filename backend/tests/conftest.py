"""
Pytest configuration and shared fixtures for testing.
"""
import os

# Keep the app's import-time table creation away from any real database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

import asyncio  # noqa: E402
import json  # noqa: E402
import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from quizhub import schemas  # noqa: E402
from quizhub.database import Base, get_session_factory  # noqa: E402
from quizhub.dependencies import get_registry  # noqa: E402
from quizhub.errors import PersistenceError  # noqa: E402
from quizhub.main import app  # noqa: E402
from quizhub.models import Question  # noqa: E402
from quizhub.services.session_engine import SessionRegistry  # noqa: E402

ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Email": "admin@test.com"}
STUDENT_HEADERS = {"X-User-Id": "student-1", "X-User-Email": "student@example.com"}


def make_question(subject="Python", difficulty="Easy", correct_answer=0, qid=None, **kwargs):
    """Build a four-option question value."""
    return schemas.Question(
        id=qid or str(uuid.uuid4()),
        subject=subject,
        question=kwargs.pop("question", f"{subject} {difficulty} question"),
        options=kwargs.pop("options", ["a", "b", "c", "d"]),
        correct_answer=correct_answer,
        difficulty=difficulty,
        explanation=kwargs.pop("explanation", "because"),
        **kwargs,
    )


def make_test(correct_answers, duration=15, difficulty="Easy", test_id="python-easy"):
    """Build a test whose questions have the given correct answers, in order."""
    return schemas.TestDefinition(
        id=test_id,
        title="Python Easy",
        subject="Python",
        duration=duration,
        difficulty=difficulty,
        questions=[
            make_question(correct_answer=answer, qid=str(i), difficulty=difficulty)
            for i, answer in enumerate(correct_answers)
        ],
    )


class FakeRecorder:
    """In-memory stand-in for ResultRecorder.save."""

    def __init__(self, fail=False):
        self.fail = fail
        self.saved = []

    async def save(self, result):
        # Yield to the loop so racing callers get a chance to interleave
        await asyncio.sleep(0)
        if self.fail:
            raise PersistenceError("permission denied")
        stored = result.model_copy(update={
            "id": f"result-{len(self.saved) + 1}",
            "completed_at": datetime.now(timezone.utc),
        })
        self.saved.append(stored)
        return stored


@pytest.fixture
def recorder():
    return FakeRecorder()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def seed_questions(session_factory, questions):
    """Insert question values, oldest first, so the bank lists them newest first."""
    base_time = datetime(2026, 1, 1, tzinfo=timezone.utc)
    with session_factory() as db:
        for offset, q in enumerate(questions):
            db.add(Question(
                id=q.id,
                subject=q.subject,
                question=q.question,
                options=json.dumps(q.options),
                correct_answer=q.correct_answer,
                difficulty=q.difficulty,
                explanation=q.explanation,
                created_at=base_time + timedelta(minutes=offset),
            ))
        db.commit()


@pytest.fixture
def registry():
    registry = SessionRegistry(run_timers=False)
    yield registry
    registry.shutdown()


@pytest.fixture
def client(session_factory, registry):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
