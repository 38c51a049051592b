"""
Session Engine - Runs one timed test attempt for one user.

Lifecycle:
    Idle --start--> InProgress --submit / timer--> Completed --dismiss--> Idle

All per-attempt fields live in a single SessionState owned by the
TestSession. The countdown is an asyncio task bound to that state; it is
cancelled on every exit path (submit, dismiss, restart, shutdown) and a
stale timer can never touch a newer state because every tick checks the
state it was started for.

Timer-driven and user-driven submits share one lock, so exactly one
TestResult is produced per attempt no matter how they interleave.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from quizhub import config
from quizhub.errors import InvalidSessionState, PersistenceError
from quizhub.schemas import UNANSWERED, ReviewItem, TestDefinition, TestResult
from quizhub.services.scoring import build_review, score_answers
from quizhub.logging_config import get_logger, log_with_context

logger = get_logger("session")


class SessionStatus(str, Enum):
    IDLE = "Idle"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


@dataclass
class SessionState:
    """Mutable runtime state of one attempt."""
    test: TestDefinition
    answers: List[int]
    time_left: int
    current_index: int = 0
    # Set as soon as a submit begins; blocks further ticks and edits
    completed: bool = False
    result: Optional[TestResult] = None
    saved: bool = False
    save_error: Optional[str] = None

    @classmethod
    def fresh(cls, test: TestDefinition) -> "SessionState":
        return cls(
            test=test,
            answers=[UNANSWERED] * len(test.questions),
            time_left=test.duration * 60,
        )

    @property
    def question_count(self) -> int:
        return len(self.test.questions)

    @property
    def time_spent(self) -> int:
        return self.test.duration * 60 - self.time_left


def format_time(seconds: int) -> str:
    """Render a countdown as m:ss, e.g. 905 -> '15:05'."""
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes}:{secs:02d}"


class TestSession:
    """
    One user's test-taking session.

    Args:
        user_id: Owner of the session; stamped on the recorded result
        recorder: Object with an async `save(result)` returning the stored result
        tick_seconds: Timer period; defaults to the configured 1 Hz
        run_timer: Start the background countdown on `start`. When False the
            countdown only moves through explicit `tick()` calls.
    """

    def __init__(self, user_id: str, recorder, tick_seconds: Optional[float] = None,
                 run_timer: bool = True):
        self.user_id = user_id
        self._recorder = recorder
        self._tick_seconds = config.TICK_SECONDS if tick_seconds is None else tick_seconds
        self._run_timer = run_timer
        self._state: Optional[SessionState] = None
        self._timer: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    # ── inspection ────────────────────────────────────────────

    @property
    def state(self) -> Optional[SessionState]:
        return self._state

    @property
    def status(self) -> SessionStatus:
        if self._state is None:
            return SessionStatus.IDLE
        if self._state.result is not None:
            return SessionStatus.COMPLETED
        return SessionStatus.IN_PROGRESS

    @property
    def result(self) -> Optional[TestResult]:
        return self._state.result if self._state else None

    @property
    def progress(self) -> float:
        """Percentage position through the test, counting the current question."""
        state = self._state
        if state is None or not state.question_count:
            return 0.0
        return (state.current_index + 1) / state.question_count * 100

    def _context(self) -> Dict[str, str]:
        context = {"user_id": self.user_id}
        if self._state is not None:
            context["test_id"] = self._state.test.id
        return context

    def _require_in_progress(self, operation: str) -> SessionState:
        state = self._state
        if state is None or state.completed:
            raise InvalidSessionState(operation, self.status.value)
        return state

    # ── transitions ───────────────────────────────────────────

    def start(self, test: TestDefinition, recorder=None) -> SessionState:
        """
        Begin a fresh attempt at `test`.

        Allowed from any state. A session already in progress is discarded
        (timer cancelled, nothing recorded) before the new one starts.
        A `recorder` given here replaces the one this session was created
        with, so each attempt saves through the store of the request that
        started it.
        """
        if self._state is not None and not self._state.completed:
            log_with_context(logger, "WARNING", "Restarting over an unfinished session",
                             context=self._context())
        self._cancel_timer()

        if recorder is not None:
            self._recorder = recorder
        self._state = SessionState.fresh(test)
        if self._run_timer:
            self._timer = asyncio.get_running_loop().create_task(self._run_countdown(self._state))

        log_with_context(logger, "INFO", "Session started: {}".format(test.title),
                         context=self._context(),
                         extra_data={"questions": len(test.questions), "time_left": self._state.time_left})
        return self._state

    def select_answer(self, option_index: int) -> None:
        """Record `option_index` for the current question, replacing any earlier choice."""
        state = self._require_in_progress("select an answer")
        state.answers[state.current_index] = option_index

    def next(self) -> int:
        state = self._require_in_progress("move to the next question")
        if state.current_index < state.question_count - 1:
            state.current_index += 1
        return state.current_index

    def previous(self) -> int:
        state = self._require_in_progress("move to the previous question")
        if state.current_index > 0:
            state.current_index -= 1
        return state.current_index

    async def tick(self) -> None:
        """
        Advance the countdown by one second.

        Reaching zero submits the attempt. Ticks outside InProgress are ignored.
        """
        state = self._state
        if state is not None:
            await self._tick(state)

    async def _tick(self, state: SessionState) -> None:
        async with self._lock:
            if state is not self._state or state.completed:
                return
            if state.time_left > 0:
                state.time_left -= 1
            if state.time_left == 0:
                log_with_context(logger, "INFO", "Time expired; submitting automatically",
                                 context=self._context())
                await self._submit_locked(state, trigger="timer")

    async def submit(self) -> TestResult:
        """
        Finish the attempt, score it and hand the result to the recorder.

        Calling submit again after completion returns the existing result
        without recording anything.

        Raises:
            InvalidSessionState: no attempt has been started
        """
        async with self._lock:
            state = self._state
            if state is None:
                raise InvalidSessionState("submit", SessionStatus.IDLE.value)
            if state.completed:
                log_with_context(logger, "DEBUG", "Submit ignored; session already completed",
                                 context=self._context())
                return state.result
            return await self._submit_locked(state, trigger="manual")

    async def _submit_locked(self, state: SessionState, trigger: str) -> TestResult:
        state.completed = True
        self._cancel_timer()

        outcome = score_answers(state.test, state.answers)
        result = TestResult(
            user_id=self.user_id,
            test_id=state.test.id,
            test_title=state.test.title,
            score=outcome.percentage,
            total_questions=state.question_count,
            correct_answers=outcome.correct_count,
            answers=list(state.answers),
            time_spent=state.time_spent,
            questions=list(state.test.questions),
        )

        try:
            result = await self._recorder.save(result)
            state.saved = True
        except PersistenceError as e:
            # Keep the local result so the review still works; no retry
            state.save_error = str(e)
            log_with_context(logger, "ERROR", "Result could not be saved; keeping local review",
                             context=self._context(), extra_data={"error": str(e)})
        except asyncio.CancelledError:
            state.save_error = "Save was interrupted"
            log_with_context(logger, "WARNING", "Result save cancelled; keeping local review",
                             context=self._context())
            raise
        except Exception as e:
            state.save_error = str(e)
            log_with_context(logger, "ERROR", "Unexpected error saving result; keeping local review",
                             context=self._context(), extra_data={"error": str(e)}, exc_info=True)
        finally:
            # Completed must always carry a result, whatever happened to the save
            state.result = result

        log_with_context(logger, "INFO",
            "Session completed ({}): {}% ({}/{})".format(
                trigger, result.score, result.correct_answers, result.total_questions),
            context={**self._context(), "result_id": result.id},
            extra_data={"trigger": trigger, "time_spent": result.time_spent, "saved": state.saved})
        return result

    def dismiss(self) -> None:
        """Discard the session (finished or not) and return to Idle."""
        if self._state is None:
            return
        log_with_context(logger, "INFO", "Session dismissed",
                         context=self._context(), extra_data={"status": self.status.value})
        self._cancel_timer()
        self._state = None

    def review(self) -> List[ReviewItem]:
        """Per-question review of the completed attempt."""
        state = self._state
        if state is None or state.result is None:
            raise InvalidSessionState("review answers", self.status.value)
        return build_review(state.test.questions, state.result.answers)

    # ── timer ─────────────────────────────────────────────────

    async def _run_countdown(self, state: SessionState) -> None:
        while state is self._state and not state.completed:
            await asyncio.sleep(self._tick_seconds)
            await self._tick(state)

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        # A timer-driven submit runs inside the timer task itself; that task
        # ends on its own once the state is completed.
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    def close(self) -> None:
        """Cancel any running timer without changing state."""
        self._cancel_timer()


class SessionRegistry:
    """
    In-memory map of user id -> TestSession.

    Each user owns at most one session; sessions are never shared.
    """

    def __init__(self, tick_seconds: Optional[float] = None, run_timers: bool = True):
        self._tick_seconds = tick_seconds
        self._run_timers = run_timers
        self._sessions: Dict[str, TestSession] = {}

    def get(self, user_id: str, recorder) -> TestSession:
        session = self._sessions.get(user_id)
        if session is None:
            session = TestSession(user_id, recorder, tick_seconds=self._tick_seconds,
                                  run_timer=self._run_timers)
            self._sessions[user_id] = session
        return session

    def peek(self, user_id: str) -> Optional[TestSession]:
        return self._sessions.get(user_id)

    def discard(self, user_id: str) -> None:
        session = self._sessions.pop(user_id, None)
        if session is not None:
            session.dismiss()

    def shutdown(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
