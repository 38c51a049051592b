"""
Tests for the scorer and the answer review builder.
"""
import pytest

from quizhub.schemas import UNANSWERED
from quizhub.services.scoring import build_review, round_half_up, score_answers

from conftest import make_test


class TestScoreAnswers:
    """Tests for score_answers."""

    def test_all_correct_scores_100(self):
        test = make_test([0, 1, 2, 3])

        outcome = score_answers(test, [0, 1, 2, 3])

        assert outcome.percentage == 100
        assert outcome.correct_count == 4
        assert outcome.per_question == [True, True, True, True]

    def test_all_unanswered_scores_zero(self):
        test = make_test([0, 1, 2])

        outcome = score_answers(test, [UNANSWERED] * 3)

        assert outcome.correct_count == 0
        assert outcome.percentage == 0

    def test_one_of_two_correct_is_fifty(self):
        test = make_test([0, 1])

        outcome = score_answers(test, [0, 2])

        assert outcome.correct_count == 1
        assert outcome.percentage == 50
        assert outcome.per_question == [True, False]

    def test_percentage_rounds_to_nearest(self):
        test = make_test([0, 0, 0])

        assert score_answers(test, [0, 1, 1]).percentage == 33
        assert score_answers(test, [0, 0, 1]).percentage == 67

    def test_half_rounds_up(self):
        test = make_test([0] * 8)

        # 1/8 = 12.5%
        assert score_answers(test, [0] + [1] * 7).percentage == 13


@pytest.mark.parametrize("numerator,denominator,expected", [
    (0, 5, 0),
    (250, 100, 3),
    (249, 100, 2),
    (5, 2, 3),
    (7, 0, 0),
])
def test_round_half_up(numerator, denominator, expected):
    assert round_half_up(numerator, denominator) == expected


class TestBuildReview:
    """Tests for build_review."""

    def test_review_marks_answers_and_texts(self):
        test = make_test([0, 1])

        review = build_review(test.questions, [0, UNANSWERED])

        assert review[0].is_correct is True
        assert review[0].selected_text == "a"
        assert review[1].is_correct is False
        assert review[1].selected_text == "Not answered"
        assert review[1].correct_text == "b"
        assert review[1].explanation == "because"

    def test_short_answer_buffer_counts_as_unanswered(self):
        test = make_test([0, 1])

        review = build_review(test.questions, [0])

        assert review[1].selected == UNANSWERED
