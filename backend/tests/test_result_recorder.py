"""
Tests for the SQLAlchemy-backed result recorder and question repository.
"""
import json
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from quizhub import schemas
from quizhub.errors import DataFetchError, PersistenceError
from quizhub.models import TestResult as TestResultRow
from quizhub.services.question_repository import QuestionRepository
from quizhub.services.result_recorder import ResultRecorder, summarize

from conftest import make_question, make_test, seed_questions


def make_result(user_id="user-1", score=50, time_spent=120, test=None):
    if test is None:
        test = make_test([0, 1])
    return schemas.TestResult(
        user_id=user_id,
        test_id=test.id,
        test_title=test.title,
        score=score,
        total_questions=len(test.questions),
        correct_answers=1,
        answers=[0, 2],
        time_spent=time_spent,
        questions=test.questions,
    )


def broken_factory():
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestResultRecorder:
    """Tests for ResultRecorder."""

    @pytest.mark.asyncio
    async def test_save_assigns_id_and_timestamp(self, session_factory):
        recorder = ResultRecorder(session_factory)

        saved = await recorder.save(make_result())

        assert saved.id
        assert saved.completed_at is not None
        assert saved.answers == [0, 2]
        assert [q.correct_answer for q in saved.questions] == [0, 1]

    @pytest.mark.asyncio
    async def test_list_for_user_is_newest_first_and_scoped(self, session_factory):
        with session_factory() as db:
            for index, (user_id, day) in enumerate([("user-1", 1), ("user-1", 3), ("user-2", 2), ("user-1", 2)]):
                db.add(TestResultRow(
                    id=f"r{index}", user_id=user_id, test_id="python-easy", test_title="Python Easy",
                    score=10 * day, total_questions=2, correct_answers=1,
                    answers=json.dumps([0, 1]), time_spent=60,
                    completed_at=datetime(2026, 1, day),
                ))
            db.commit()
        recorder = ResultRecorder(session_factory)

        results = await recorder.list_for_user("user-1")

        assert [r.id for r in results] == ["r1", "r3", "r0"]
        assert all(r.user_id == "user-1" for r in results)
        assert len(await recorder.list_all()) == 4

    @pytest.mark.asyncio
    async def test_get_returns_none_for_unknown_id(self, session_factory):
        recorder = ResultRecorder(session_factory)

        assert await recorder.get("missing") is None

    @pytest.mark.asyncio
    async def test_summary(self, session_factory):
        recorder = ResultRecorder(session_factory)
        await recorder.save(make_result(score=50, time_spent=1800))
        await recorder.save(make_result(score=75, time_spent=1800))
        await recorder.save(make_result(user_id="user-2", score=0, time_spent=60))

        summary = await recorder.summary("user-1")

        assert summary.tests_taken == 2
        assert summary.average_score == 63
        assert summary.hours_studied == 1.0

    @pytest.mark.asyncio
    async def test_save_failure_raises_persistence_error(self):
        recorder = ResultRecorder(broken_factory)

        with pytest.raises(PersistenceError):
            await recorder.save(make_result())

    @pytest.mark.asyncio
    async def test_list_failure_raises_data_fetch_error(self):
        recorder = ResultRecorder(broken_factory)

        with pytest.raises(DataFetchError):
            await recorder.list_for_user("user-1")


def test_summarize_empty():
    summary = summarize([])

    assert summary.tests_taken == 0
    assert summary.average_score == 0
    assert summary.hours_studied == 0.0


def test_summarize_rounds_hours_half_up():
    # 540s = 0.15h -> 0.2
    summary = summarize([make_result(time_spent=540)])

    assert summary.hours_studied == 0.2


class TestQuestionRepository:
    """Tests for QuestionRepository."""

    @pytest.mark.asyncio
    async def test_fetch_is_newest_first(self, session_factory):
        seed_questions(session_factory, [make_question(qid="old"), make_question(qid="new")])
        repository = QuestionRepository(session_factory)

        questions = await repository.fetch_questions()

        assert [q.id for q in questions] == ["new", "old"]
        assert questions[0].options == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_fetch_filters_by_subject(self, session_factory):
        seed_questions(session_factory, [make_question("Python"), make_question("React")])
        repository = QuestionRepository(session_factory)

        questions = await repository.fetch_questions("React")

        assert [q.subject for q in questions] == ["React"]

    @pytest.mark.asyncio
    async def test_fetch_failure_raises_data_fetch_error(self):
        repository = QuestionRepository(broken_factory)

        with pytest.raises(DataFetchError):
            await repository.fetch_questions()

    @pytest.mark.asyncio
    async def test_add_update_delete(self, session_factory):
        repository = QuestionRepository(session_factory)
        payload = schemas.QuestionCreate(
            subject="Python", question="2 + 2?", options=["3", "4"],
            correct_answer=1, difficulty="Easy",
        )

        added = await repository.add_question(payload, created_by="admin-1")
        updated = await repository.update_question(added.id, schemas.QuestionUpdate(explanation="math"))
        deleted = await repository.delete_question(added.id)

        assert added.created_by == "admin-1"
        assert updated.explanation == "math"
        assert updated.options == ["3", "4"]
        assert deleted is True
        assert await repository.fetch_questions() == []

    @pytest.mark.asyncio
    async def test_update_rejects_out_of_range_answer(self, session_factory):
        seed_questions(session_factory, [make_question(qid="q1", correct_answer=3)])
        repository = QuestionRepository(session_factory)

        with pytest.raises(ValueError):
            await repository.update_question("q1", schemas.QuestionUpdate(options=["only"]))

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, session_factory):
        repository = QuestionRepository(session_factory)

        assert await repository.update_question("missing", schemas.QuestionUpdate(subject="x")) is None
