"""
Result Recorder - Persists finished attempts and reads them back.

The session engine hands every completed attempt to `save` exactly once.
The summary view reads prior results through `list_for_user` and
`summary`. Storage failures surface as PersistenceError (writes) or
DataFetchError (reads); nothing here retries.
"""

import time
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from quizhub.errors import DataFetchError, PersistenceError
from quizhub.models.test_result import TestResult
from quizhub.schemas import ResultSummary, TestResult as TestResultValue
from quizhub.services.scoring import round_half_up
from quizhub.logging_config import get_logger, log_with_context

logger = get_logger("results")


def summarize(results: List[TestResultValue]) -> ResultSummary:
    """
    Aggregate a user's results for the test list header.

    average_score is rounded half-up to an integer; hours_studied is
    rounded half-up to one decimal place.
    """
    if not results:
        return ResultSummary(tests_taken=0, average_score=0, hours_studied=0.0)

    total_score = sum(r.score for r in results)
    total_seconds = sum(r.time_spent for r in results)
    return ResultSummary(
        tests_taken=len(results),
        average_score=round_half_up(total_score, len(results)),
        hours_studied=round_half_up(total_seconds * 10, 3600) / 10,
    )


class ResultRecorder:
    """SQLAlchemy-backed result store."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def _save(self, result: TestResultValue) -> TestResultValue:
        start_time = time.time()
        try:
            with self._session_factory() as db:
                row = TestResult.from_value(result, completed_at=datetime.now(timezone.utc))
                db.add(row)
                db.commit()
                db.refresh(row)
                saved = row.to_value()
        except SQLAlchemyError as e:
            log_with_context(logger, "ERROR", "Failed to save test result: {}".format(e),
                             context={"user_id": result.user_id, "test_id": result.test_id})
            raise PersistenceError(str(e)) from e

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "INFO",
            "Saved result for {}: {}% ({}/{})".format(
                result.test_id, result.score, result.correct_answers, result.total_questions),
            context={"result_id": saved.id, "user_id": result.user_id, "test_id": result.test_id},
            extra_data={"duration_ms": round(duration_ms, 2), "time_spent": result.time_spent})
        return saved

    async def save(self, result: TestResultValue) -> TestResultValue:
        """
        Persist a completed attempt.

        Returns:
            The stored result with its assigned id and completed_at

        Raises:
            PersistenceError: storage rejected the write
        """
        return await run_in_threadpool(self._save, result)

    def _list(self, user_id: Optional[str]) -> List[TestResultValue]:
        try:
            with self._session_factory() as db:
                query = db.query(TestResult)
                if user_id is not None:
                    query = query.filter(TestResult.user_id == user_id)
                rows = query.order_by(TestResult.completed_at.desc()).all()
                return [row.to_value() for row in rows]
        except SQLAlchemyError as e:
            log_with_context(logger, "ERROR", "Failed to list test results: {}".format(e),
                             context={"user_id": user_id})
            raise DataFetchError(str(e)) from e

    async def list_for_user(self, user_id: str) -> List[TestResultValue]:
        """
        All results for one user, newest first.

        Raises:
            DataFetchError: storage could not be read
        """
        return await run_in_threadpool(self._list, user_id)

    async def list_all(self) -> List[TestResultValue]:
        """Every recorded result, newest first (admin view)."""
        return await run_in_threadpool(self._list, None)

    def _get(self, result_id: str) -> Optional[TestResultValue]:
        try:
            with self._session_factory() as db:
                row = db.query(TestResult).filter(TestResult.id == result_id).first()
                return row.to_value() if row else None
        except SQLAlchemyError as e:
            log_with_context(logger, "ERROR", "Failed to load test result: {}".format(e),
                             context={"result_id": result_id})
            raise DataFetchError(str(e)) from e

    async def get(self, result_id: str) -> Optional[TestResultValue]:
        return await run_in_threadpool(self._get, result_id)

    async def summary(self, user_id: str) -> ResultSummary:
        return summarize(await self.list_for_user(user_id))
