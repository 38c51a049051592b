"""
Test Assembler - Groups the question bank into runnable tests.

Assembly rules:
1. Walk the configured subject list (not the subjects present in the data)
2. Skip a subject with fewer than MIN_QUESTIONS_PER_TEST questions
3. Within a subject, skip a difficulty with fewer than MIN_QUESTIONS_PER_TEST questions
4. Each surviving (subject, difficulty) pair becomes one test holding the
   first TEST_SIZE matching questions, in the order they were fetched
5. If no pair survives, return the built-in sample test so the list is never empty

Assembly is a pure transformation: it never raises and never touches storage.
"""

import time
from typing import Iterable, List, Optional

from quizhub import config
from quizhub.schemas import DIFFICULTIES, Question, TestDefinition
from quizhub.logging_config import get_logger, log_with_context

# Channel logger for assembly operations
logger = get_logger("assembler")


SAMPLE_TEST = TestDefinition(
    id="javascript-basics",
    title="JavaScript Fundamentals",
    subject="JavaScript",
    duration=15,
    difficulty="Easy",
    questions=[
        Question(
            id="1",
            subject="JavaScript",
            question="What is the correct way to declare a variable in JavaScript?",
            options=["var myVar = 5;", "variable myVar = 5;", "v myVar = 5;", "declare myVar = 5;"],
            correct_answer=0,
            difficulty="Easy",
            explanation="In JavaScript, variables are declared using var, let, or const keywords.",
        ),
        Question(
            id="2",
            subject="JavaScript",
            question="Which method is used to add an element to the end of an array?",
            options=["append()", "push()", "add()", "insert()"],
            correct_answer=1,
            difficulty="Easy",
            explanation="The push() method adds one or more elements to the end of an array.",
        ),
    ],
)


def make_test_id(subject: str, difficulty: str) -> str:
    """Deterministic test id, e.g. ('Python', 'Easy') -> 'python-easy'."""
    return f"{subject.lower()}-{difficulty.lower()}"


def build_tests(questions: Iterable[Question],
                subjects: Optional[List[str]] = None,
                min_questions: Optional[int] = None,
                test_size: Optional[int] = None) -> List[TestDefinition]:
    """
    Build the list of available tests from the fetched question set.

    Args:
        questions: Question bank in fetch order
        subjects: Subject list; defaults to the configured subjects
        min_questions: Threshold per subject and per difficulty
        test_size: Maximum questions per test

    Returns:
        One TestDefinition per qualifying (subject, difficulty) pair, or
        a single-element list holding SAMPLE_TEST when none qualify
    """
    start_time = time.time()

    subjects = config.SUBJECTS if subjects is None else subjects
    min_questions = config.MIN_QUESTIONS_PER_TEST if min_questions is None else min_questions
    test_size = config.TEST_SIZE if test_size is None else test_size

    questions = list(questions)
    tests = []

    for subject in subjects:
        subject_questions = [q for q in questions if q.subject == subject]
        if len(subject_questions) < min_questions:
            continue

        for difficulty in DIFFICULTIES:
            matching = [q for q in subject_questions if q.difficulty == difficulty]
            if len(matching) < min_questions:
                continue

            tests.append(TestDefinition(
                id=make_test_id(subject, difficulty),
                title=f"{subject} {difficulty}",
                subject=subject,
                duration=config.DURATION_MINUTES[difficulty],
                difficulty=difficulty,
                # Copy by value so later bank edits cannot reach a running session
                questions=[q.model_copy(deep=True) for q in matching[:test_size]],
            ))

    duration_ms = (time.time() - start_time) * 1000

    if not tests:
        log_with_context(logger, "INFO",
            "No subject/difficulty pair met the threshold; using sample test",
            extra_data={"question_count": len(questions), "duration_ms": round(duration_ms, 2)})
        return [SAMPLE_TEST.model_copy(deep=True)]

    log_with_context(logger, "INFO",
        "Assembled {} tests from {} questions".format(len(tests), len(questions)),
        extra_data={"test_ids": [t.id for t in tests], "duration_ms": round(duration_ms, 2)})

    return tests


def find_test(tests: Iterable[TestDefinition], test_id: str) -> Optional[TestDefinition]:
    """Return the test with the given id, or None."""
    return next((t for t in tests if t.id == test_id), None)
