"""
Session API routes - drive the caller's test-taking session.

Provides endpoints for:
- Starting a test (always a fresh attempt)
- Reading the current session state
- Answering, moving between questions and submitting
- Reviewing a completed attempt
- Dismissing the session back to the test list
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from quizhub.dependencies import (
    CurrentUser, get_current_user, get_recorder, get_registry, get_repository
)
from quizhub.errors import InvalidSessionState
from quizhub.schemas import PublicQuestion, TestSummary
from quizhub.services.assembler import find_test
from quizhub.services.question_repository import QuestionRepository
from quizhub.services.result_recorder import ResultRecorder
from quizhub.services.session_engine import SessionRegistry, SessionStatus, TestSession, format_time
from quizhub.routes.catalog import load_tests, serialize_result
from quizhub.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class StartRequest(BaseModel):
    test_id: str


class AnswerRequest(BaseModel):
    option_index: int


def serialize_session(session: TestSession) -> dict:
    """Serialize a session to what the quiz screen needs."""
    state = session.state
    if state is None:
        return {"status": SessionStatus.IDLE.value}

    current = state.test.questions[state.current_index] if state.question_count else None
    data = {
        "status": session.status.value,
        "test": TestSummary.from_test(state.test).model_dump(),
        "current_index": state.current_index,
        "question": PublicQuestion.from_question(current).model_dump() if current else None,
        "answers": list(state.answers),
        "time_left": state.time_left,
        "time_left_display": format_time(state.time_left),
        "progress": round(session.progress, 2),
        "is_last_question": state.current_index >= state.question_count - 1,
    }
    if state.result is not None:
        data["result"] = serialize_result(state.result)
        data["saved"] = state.saved
        data["save_error"] = state.save_error
    return data


def _conflict(e: InvalidSessionState) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


@router.post("/api/session")
async def start_session(
    request: StartRequest,
    user: CurrentUser = Depends(get_current_user),
    repository: QuestionRepository = Depends(get_repository),
    recorder: ResultRecorder = Depends(get_recorder),
    registry: SessionRegistry = Depends(get_registry),
):
    """Start a fresh attempt at one of the available tests."""
    test = find_test(await load_tests(repository), request.test_id)
    if test is None:
        raise HTTPException(status_code=404, detail="Test not found")

    session = registry.get(user.id, recorder)
    session.start(test, recorder=recorder)

    log_with_context(logger, "INFO", "Started test {}".format(test.id),
                     context={"user_id": user.id, "test_id": test.id})
    return serialize_session(session)


@router.get("/api/session")
async def get_session(user: CurrentUser = Depends(get_current_user),
                      registry: SessionRegistry = Depends(get_registry)):
    session = registry.peek(user.id)
    if session is None:
        return {"status": SessionStatus.IDLE.value}
    return serialize_session(session)


def _active_session(user: CurrentUser, registry: SessionRegistry) -> TestSession:
    session = registry.peek(user.id)
    if session is None or session.state is None:
        raise HTTPException(status_code=409, detail="No test in progress")
    return session


@router.post("/api/session/answer")
async def select_answer(request: AnswerRequest,
                        user: CurrentUser = Depends(get_current_user),
                        registry: SessionRegistry = Depends(get_registry)):
    session = _active_session(user, registry)
    if session.status != SessionStatus.IN_PROGRESS:
        raise _conflict(InvalidSessionState("select an answer", session.status.value))
    state = session.state
    if state.question_count:
        options = state.test.questions[state.current_index].options
        if not 0 <= request.option_index < len(options):
            raise HTTPException(status_code=400, detail="option_index out of range")
    try:
        session.select_answer(request.option_index)
    except InvalidSessionState as e:
        raise _conflict(e)
    return serialize_session(session)


@router.post("/api/session/next")
async def next_question(user: CurrentUser = Depends(get_current_user),
                        registry: SessionRegistry = Depends(get_registry)):
    session = _active_session(user, registry)
    try:
        session.next()
    except InvalidSessionState as e:
        raise _conflict(e)
    return serialize_session(session)


@router.post("/api/session/previous")
async def previous_question(user: CurrentUser = Depends(get_current_user),
                            registry: SessionRegistry = Depends(get_registry)):
    session = _active_session(user, registry)
    try:
        session.previous()
    except InvalidSessionState as e:
        raise _conflict(e)
    return serialize_session(session)


@router.post("/api/session/submit")
async def submit_session(user: CurrentUser = Depends(get_current_user),
                         registry: SessionRegistry = Depends(get_registry)):
    """Submit the attempt. Submitting an already completed attempt is a no-op."""
    session = _active_session(user, registry)
    await session.submit()
    return serialize_session(session)


@router.get("/api/session/review")
async def review_session(user: CurrentUser = Depends(get_current_user),
                         registry: SessionRegistry = Depends(get_registry)):
    session = _active_session(user, registry)
    try:
        review = session.review()
    except InvalidSessionState as e:
        raise _conflict(e)
    return {
        "result": serialize_result(session.result),
        "review": [item.model_dump() for item in review],
    }


@router.delete("/api/session")
async def dismiss_session(user: CurrentUser = Depends(get_current_user),
                          registry: SessionRegistry = Depends(get_registry)):
    """Discard the session and return to the test list."""
    registry.discard(user.id)
    return {"status": SessionStatus.IDLE.value}
