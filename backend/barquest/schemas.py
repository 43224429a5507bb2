"""Pydantic request/response schemas for the question bank and history API.

Schemas keep the wire shapes stable for both sides: the reference API
validates incoming payloads with them and the session client serializes
its requests and parses responses through them. Field names follow the
wire format; camelCase payloads are exposed under snake_case attributes
via aliases.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class QuestionRequest(_Wire):
    """Payload for filtered question retrieval."""
    subject_ids: List[int] = Field(alias="subjectIds")
    max_questions: int = Field(alias="maxQuestions", ge=1, le=120)
    question_mode: str = Field(alias="questionMode")
    user_id: int = Field(alias="userId")


class QuestionOut(_Wire):
    """A question as returned by the question bank."""
    id: int
    question_text: str = Field(alias="questionText")
    answer1: str
    answer2: str
    answer3: str
    answer4: str
    correct_answer: int = Field(alias="correctAnswer", ge=1, le=4)


class AnswerIn(BaseModel):
    """Answer submission; `selected_answer` is -1 when nothing was chosen."""
    user_id: int
    question_id: int
    selected_answer: int = Field(ge=-1, le=4)
    is_correct: bool
    test_history_id: Optional[int] = None


class AnswerAck(BaseModel):
    status: str = "ok"
    id: Optional[int] = None


class HistoryIn(_Wire):
    """Snapshot of a session used to create a test-history record."""
    user_id: int = Field(alias="userId")
    score: int = Field(ge=0)
    questions: int = Field(ge=0)
    timed: bool
    tutor: bool
    question_mode: str = Field(alias="questionMode")
    new_questions: int = Field(alias="newQuestions", ge=0)


class HistoryUpdate(HistoryIn):
    """Final snapshot sent on completion, addressed by record id."""
    test_history_id: int = Field(alias="testHistoryId")


class HistoryCreated(BaseModel):
    id: Optional[int] = None


class Ack(BaseModel):
    status: str = "ok"
