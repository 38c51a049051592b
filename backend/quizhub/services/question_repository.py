"""
Question Repository - Reads and edits the question bank.

Reads are what the test list is built from; the admin routes use the
write operations. Every call opens its own short-lived database session
and runs in the threadpool so the event loop (and any running session
timers) never block on storage.
"""

import json
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from quizhub.errors import DataFetchError, PersistenceError
from quizhub.models.question import Question
from quizhub.schemas import Question as QuestionValue, QuestionCreate, QuestionUpdate
from quizhub.logging_config import get_logger, log_with_context

db_logger = get_logger("db")


class QuestionRepository:
    """SQLAlchemy-backed question bank."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    # ── reads ─────────────────────────────────────────────────

    def _fetch_questions(self, subject: Optional[str] = None) -> List[QuestionValue]:
        start_time = time.time()
        try:
            with self._session_factory() as db:
                query = db.query(Question)
                if subject:
                    query = query.filter(Question.subject == subject)
                rows = query.order_by(Question.created_at.desc()).all()
                questions = [row.to_value() for row in rows]
        except SQLAlchemyError as e:
            log_with_context(db_logger, "ERROR", "Failed to fetch questions: {}".format(e),
                             context={"subject": subject})
            raise DataFetchError(str(e)) from e

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(db_logger, "DEBUG", "Fetched {} questions".format(len(questions)),
                         context={"subject": subject},
                         extra_data={"duration_ms": round(duration_ms, 2)})
        return questions

    async def fetch_questions(self, subject: Optional[str] = None) -> List[QuestionValue]:
        """
        Fetch the question bank, newest first.

        Raises:
            DataFetchError: storage could not be read
        """
        return await run_in_threadpool(self._fetch_questions, subject)

    # ── admin writes ──────────────────────────────────────────

    def _add_question(self, payload: QuestionCreate, created_by: Optional[str]) -> QuestionValue:
        try:
            with self._session_factory() as db:
                row = Question(
                    id=str(uuid.uuid4()),
                    subject=payload.subject,
                    question=payload.question,
                    options=json.dumps(payload.options),
                    correct_answer=payload.correct_answer,
                    difficulty=payload.difficulty,
                    explanation=payload.explanation,
                    created_at=datetime.now(timezone.utc),
                    created_by=created_by,
                )
                db.add(row)
                db.commit()
                db.refresh(row)
                value = row.to_value()
        except SQLAlchemyError as e:
            log_with_context(db_logger, "ERROR", "Failed to add question: {}".format(e))
            raise PersistenceError(str(e)) from e

        log_with_context(db_logger, "INFO", "Added question to {} ({})".format(value.subject, value.difficulty),
                         context={"question_id": value.id, "user_id": created_by})
        return value

    async def add_question(self, payload: QuestionCreate, created_by: Optional[str] = None) -> QuestionValue:
        return await run_in_threadpool(self._add_question, payload, created_by)

    def _update_question(self, question_id: str, updates: QuestionUpdate) -> Optional[QuestionValue]:
        changes = updates.model_dump(exclude_unset=True, exclude_none=True)
        try:
            with self._session_factory() as db:
                row = db.query(Question).filter(Question.id == question_id).first()
                if row is None:
                    return None

                options = changes.get("options", row.options_list)
                correct_answer = changes.get("correct_answer", row.correct_answer)
                if not options or not 0 <= correct_answer < len(options):
                    raise ValueError("correct_answer must index into options")

                for field, new_value in changes.items():
                    if field == "options":
                        new_value = json.dumps(new_value)
                    setattr(row, field, new_value)
                db.commit()
                db.refresh(row)
                value = row.to_value()
        except SQLAlchemyError as e:
            log_with_context(db_logger, "ERROR", "Failed to update question: {}".format(e),
                             context={"question_id": question_id})
            raise PersistenceError(str(e)) from e

        log_with_context(db_logger, "INFO", "Updated question fields: {}".format(", ".join(sorted(changes))),
                         context={"question_id": question_id})
        return value

    async def update_question(self, question_id: str, updates: QuestionUpdate) -> Optional[QuestionValue]:
        """
        Apply a partial edit. Returns None when the question does not exist.

        Raises:
            ValueError: the edit would leave correct_answer outside options
            PersistenceError: storage rejected the write
        """
        return await run_in_threadpool(self._update_question, question_id, updates)

    def _delete_question(self, question_id: str) -> bool:
        try:
            with self._session_factory() as db:
                deleted = db.query(Question).filter(Question.id == question_id).delete()
                db.commit()
        except SQLAlchemyError as e:
            log_with_context(db_logger, "ERROR", "Failed to delete question: {}".format(e),
                             context={"question_id": question_id})
            raise PersistenceError(str(e)) from e

        if deleted:
            log_with_context(db_logger, "INFO", "Deleted question", context={"question_id": question_id})
        return bool(deleted)

    async def delete_question(self, question_id: str) -> bool:
        return await run_in_threadpool(self._delete_question, question_id)
