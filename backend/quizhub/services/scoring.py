"""
Scoring Service - Exact-match grading for multiple-choice tests.

Implements the scoring formula:
1. A question is correct when answers[i] == questions[i].correct_answer
2. Unanswered slots hold the -1 sentinel and therefore never match
3. percentage = round_half_up(correct / total * 100)

Everything here is pure. The session engine guarantees that the answer
buffer has exactly one slot per question.
"""

from typing import List, NamedTuple, Sequence

from quizhub.schemas import UNANSWERED, ReviewItem, TestDefinition, Question
from quizhub.logging_config import get_logger, log_with_context

# Channel logger for scoring operations
logger = get_logger("scoring")


class ScoreOutcome(NamedTuple):
    percentage: int
    correct_count: int
    per_question: List[bool]


def round_half_up(numerator: int, denominator: int) -> int:
    """
    Round numerator/denominator to the nearest integer, halves going up.

    Integer arithmetic only, so 0.5 boundaries are exact (the built-in
    round() would send 2.5 to 2).
    """
    if denominator <= 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


def score_answers(test: TestDefinition, answers: Sequence[int]) -> ScoreOutcome:
    """
    Grade an answer buffer against a test.

    Args:
        test: The test that was taken
        answers: One selected option index (or -1) per question

    Returns:
        ScoreOutcome with the 0-100 percentage, the correct count and a
        per-question correctness list
    """
    per_question = [
        answer == question.correct_answer
        for question, answer in zip(test.questions, answers)
    ]
    correct_count = sum(per_question)
    total = len(test.questions)
    percentage = round_half_up(correct_count * 100, total)

    log_with_context(logger, "DEBUG",
        "Scored {}: {}/{} correct ({}%)".format(test.id, correct_count, total, percentage),
        context={"test_id": test.id},
        extra_data={"percentage": percentage, "correct": correct_count, "total": total})

    return ScoreOutcome(percentage, correct_count, per_question)


def _option_text(question: Question, index: int) -> str:
    if index == UNANSWERED or not 0 <= index < len(question.options):
        return "Not answered"
    return question.options[index]


def build_review(questions: Sequence[Question], answers: Sequence[int]) -> List[ReviewItem]:
    """Pair each question with the user's answer for the results screen."""
    review = []
    for index, question in enumerate(questions):
        selected = answers[index] if index < len(answers) else UNANSWERED
        review.append(ReviewItem(
            index=index,
            question=question.question,
            options=list(question.options),
            selected=selected,
            correct_answer=question.correct_answer,
            is_correct=selected == question.correct_answer,
            selected_text=_option_text(question, selected),
            correct_text=_option_text(question, question.correct_answer),
            explanation=question.explanation,
        ))
    return review
