"""SQLModel data models.

This module defines the reference API's database tables using SQLModel.
Questions carry their four choices as fixed columns to match the wire
format; answers and test-history rows reference users by plain id since
authentication lives outside this service.
"""

from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


class Question(SQLModel, table=True):
    """A four-choice question belonging to a subject.

    `correct_answer` is the 1-based index of the correct choice.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    subject_id: int = Field(index=True)
    question_text: str
    answer1: str
    answer2: str
    answer3: str
    answer4: str
    correct_answer: int


class UserAnswer(SQLModel, table=True):
    """One recorded answer. `selected_answer` is -1 when the question timed out."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    question_id: int = Field(foreign_key='question.id', index=True)
    selected_answer: int
    is_correct: bool = False
    test_history_id: Optional[int] = Field(default=None, foreign_key='testhistory.id')
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TestHistory(SQLModel, table=True):
    """Durable summary of one assessment session."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    score: int = 0
    questions: int = 0
    timed: bool = False
    tutor: bool = False
    question_mode: str = 'unused'
    new_questions: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
