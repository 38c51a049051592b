"""
Pydantic value objects passed between the services and the HTTP layer.

These are plain in-memory snapshots: a TestDefinition copies its questions
at assembly time, so later edits to the question bank never reach a
session that is already running.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

Difficulty = Literal["Easy", "Medium", "Hard"]
DIFFICULTIES: List[str] = ["Easy", "Medium", "Hard"]

# Answer-buffer slot value for a question the user has not answered.
# Never equal to a valid option index.
UNANSWERED = -1


class Question(BaseModel):
    """A multiple-choice item from the question bank."""
    id: str
    subject: str
    question: str
    options: List[str]
    correct_answer: int
    difficulty: Difficulty
    explanation: str = ""
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None


class PublicQuestion(BaseModel):
    """Question as shown while a test is running (no answer key)."""
    id: str
    question: str
    options: List[str]

    @classmethod
    def from_question(cls, question: Question) -> "PublicQuestion":
        return cls(id=question.id, question=question.question, options=list(question.options))


class QuestionCreate(BaseModel):
    """Admin payload for adding a question."""
    subject: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=1)
    correct_answer: int = Field(..., ge=0)
    difficulty: Difficulty
    explanation: str = ""

    @model_validator(mode="after")
    def check_correct_answer(self):
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must index into options")
        return self


class QuestionUpdate(BaseModel):
    """Admin payload for a partial question edit."""
    subject: Optional[str] = None
    question: Optional[str] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[int] = Field(None, ge=0)
    difficulty: Optional[Difficulty] = None
    explanation: Optional[str] = None


class TestDefinition(BaseModel):
    """A named, timed, fixed-size quiz assembled from the question bank."""
    id: str
    title: str
    subject: str
    duration: int = Field(..., description="Duration in minutes")
    difficulty: Difficulty
    questions: List[Question]


class TestSummary(BaseModel):
    """TestDefinition as listed to the user, without answer keys."""
    id: str
    title: str
    subject: str
    duration: int
    difficulty: Difficulty
    question_count: int

    @classmethod
    def from_test(cls, test: TestDefinition) -> "TestSummary":
        return cls(
            id=test.id,
            title=test.title,
            subject=test.subject,
            duration=test.duration,
            difficulty=test.difficulty,
            question_count=len(test.questions),
        )


class TestResult(BaseModel):
    """
    Immutable record of one completed attempt.

    `id` and `completed_at` are assigned by the result recorder when the
    result is saved. `questions` is the snapshot the review is rebuilt from.
    """
    model_config = {"frozen": True}

    id: Optional[str] = None
    user_id: str
    test_id: str
    test_title: str
    score: int
    total_questions: int
    correct_answers: int
    answers: List[int]
    time_spent: int
    completed_at: Optional[datetime] = None
    questions: List[Question] = Field(default_factory=list)


class ReviewItem(BaseModel):
    """One row of the post-test answer review."""
    index: int
    question: str
    options: List[str]
    selected: int
    correct_answer: int
    is_correct: bool
    selected_text: str
    correct_text: str
    explanation: str = ""


class ResultSummary(BaseModel):
    """Simple aggregates over a user's prior results."""
    tests_taken: int
    average_score: int
    hours_studied: float
