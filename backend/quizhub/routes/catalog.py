"""
Test catalogue route - the test list screen.

Loads the question bank and the caller's prior results concurrently,
assembles the available tests and returns them with summary statistics.
A storage failure on either read degrades to an empty list; it never
blocks test-taking.
"""

import asyncio
import time
from typing import List

from fastapi import APIRouter, Depends

from quizhub.dependencies import CurrentUser, get_current_user, get_recorder, get_repository
from quizhub.errors import DataFetchError
from quizhub.schemas import Question, TestDefinition, TestResult, TestSummary
from quizhub.services.assembler import build_tests
from quizhub.services.question_repository import QuestionRepository
from quizhub.services.result_recorder import ResultRecorder, summarize
from quizhub.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


async def fetch_questions_or_empty(repository: QuestionRepository) -> List[Question]:
    try:
        return await repository.fetch_questions()
    except DataFetchError as e:
        log_with_context(logger, "WARNING", "Question bank unavailable; continuing with none",
                         extra_data={"error": str(e)})
        return []


async def fetch_results_or_empty(recorder: ResultRecorder, user_id: str) -> List[TestResult]:
    try:
        return await recorder.list_for_user(user_id)
    except DataFetchError as e:
        log_with_context(logger, "WARNING", "Prior results unavailable; continuing with none",
                         context={"user_id": user_id}, extra_data={"error": str(e)})
        return []


async def load_tests(repository: QuestionRepository) -> List[TestDefinition]:
    """Fetch the question bank and assemble the available tests."""
    return build_tests(await fetch_questions_or_empty(repository))


def serialize_result(result: TestResult) -> dict:
    """Result as listed to its owner (the question snapshot is left out)."""
    return result.model_dump(mode="json", exclude={"questions"})


@router.get("/api/tests")
async def list_tests(
    user: CurrentUser = Depends(get_current_user),
    repository: QuestionRepository = Depends(get_repository),
    recorder: ResultRecorder = Depends(get_recorder),
):
    """Available tests plus the caller's prior results and aggregates."""
    start_time = time.time()

    questions, results = await asyncio.gather(
        fetch_questions_or_empty(repository),
        fetch_results_or_empty(recorder, user.id),
    )
    tests = build_tests(questions)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Listed {} tests and {} prior results".format(len(tests), len(results)),
        context={"user_id": user.id},
        extra_data={"duration_ms": round(duration_ms, 2)})

    return {
        "tests": [TestSummary.from_test(t).model_dump() for t in tests],
        "results": [serialize_result(r) for r in results],
        "summary": summarize(results).model_dump(),
    }
