"""
Question model - one multiple-choice item in the question bank.

Options are stored as a JSON array in a text column, in display order.
"""

import uuid
import json
from datetime import datetime, timezone
from sqlalchemy import Column, Text, Integer, DateTime, Index, String
from quizhub.database import Base
from quizhub.schemas import Question as QuestionValue


class Question(Base):
    """
    SQLAlchemy model for the questions table.

    `correct_answer` is an index into the options array. The admin API
    validates it on write; rows loaded from elsewhere are trusted.
    """
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique question identifier")
    subject = Column(Text, nullable=False,
                     doc="Free-text category, e.g. 'Python'")
    question = Column(Text, nullable=False,
                      doc="Prompt text")
    options = Column(Text, nullable=False, default="[]",
                     doc="Answer options as a JSON array of strings")
    correct_answer = Column(Integer, nullable=False,
                            doc="Index of the correct option")
    difficulty = Column(Text, nullable=False,
                        doc="Difficulty tier: Easy | Medium | Hard")
    explanation = Column(Text, nullable=False, default="",
                         doc="Shown next to the answer during review")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        doc="When the question was added")
    created_by = Column(String(128), nullable=True,
                        doc="User id of the admin who added it")

    __table_args__ = (
        Index("ix_questions_subject", "subject"),
        Index("ix_questions_created_at", "created_at"),
    )

    @property
    def options_list(self):
        """Parse options JSON string to list."""
        if isinstance(self.options, list):
            return self.options
        try:
            return json.loads(self.options) if self.options else []
        except (json.JSONDecodeError, TypeError):
            return []

    def to_value(self) -> QuestionValue:
        """Detach the row into an immutable value object."""
        return QuestionValue(
            id=str(self.id),
            subject=self.subject,
            question=self.question,
            options=self.options_list,
            correct_answer=self.correct_answer,
            difficulty=self.difficulty,
            explanation=self.explanation or "",
            created_at=self.created_at,
            created_by=self.created_by,
        )

    def __repr__(self):
        return f"<Question(id={self.id}, subject='{self.subject}', difficulty='{self.difficulty}')>"
