"""Domain types shared by the session components.

Value objects (configuration, questions, submissions, results) are frozen
pydantic models. `SessionState` is the single mutable aggregate and is
owned exclusively by the state machine.
"""

from enum import Enum
from typing import FrozenSet, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..schemas import AnswerIn, HistoryIn, HistoryUpdate, QuestionOut

NO_ANSWER = -1
MIN_QUESTIONS = 1
MAX_QUESTIONS = 120
DEFAULT_SECONDS_PER_QUESTION = 100
CHOICE_COUNT = 4


class QuestionMode(str, Enum):
    ALL = "all"
    UNUSED = "unused"
    INCORRECT = "incorrect"


class SessionPhase(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    ANSWERED = "answered"
    COMPLETED = "completed"


class NextAction(str, Enum):
    """What the primary control does next: submit, move on, or finish."""
    SUBMIT = "submit"
    NEXT = "next"
    FINISH = "finish"


class SessionConfig(BaseModel):
    """Validated, immutable session parameters."""
    model_config = ConfigDict(frozen=True)

    tutor_mode: bool = False
    timed_mode: bool = False
    subject_ids: FrozenSet[int] = frozenset()
    question_mode: QuestionMode = QuestionMode.UNUSED
    max_questions: int = Field(default=MIN_QUESTIONS, ge=MIN_QUESTIONS, le=MAX_QUESTIONS)
    seconds_per_question: int = Field(default=DEFAULT_SECONDS_PER_QUESTION, gt=0)


class Question(BaseModel):
    """A multiple-choice question with four 1-based choices."""
    model_config = ConfigDict(frozen=True)

    id: int
    question_text: str
    choices: Tuple[str, str, str, str]
    correct_answer: int = Field(ge=1, le=CHOICE_COUNT)

    @classmethod
    def from_wire(cls, item: QuestionOut) -> "Question":
        return cls(
            id=item.id,
            question_text=item.question_text,
            choices=(item.answer1, item.answer2, item.answer3, item.answer4),
            correct_answer=item.correct_answer,
        )

    def choice(self, number: int) -> str:
        """Return the text of choice `number` (1..4)."""
        if not 1 <= number <= CHOICE_COUNT:
            raise IndexError(f"choice number out of range: {number}")
        return self.choices[number - 1]

    def is_correct(self, answer: Optional[int]) -> bool:
        return answer is not None and answer == self.correct_answer


class AnswerSubmission(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    question_id: int
    selected_answer: int
    is_correct: bool
    test_history_id: Optional[int] = None

    def to_wire(self) -> AnswerIn:
        return AnswerIn(**self.model_dump())


class TestHistoryRecord(BaseModel):
    """Local mirror of the remote test-history record."""
    id: Optional[int] = None
    user_id: int
    score: int = 0
    total_questions: int = 0
    timed: bool = False
    tutor: bool = False
    question_mode: QuestionMode = QuestionMode.UNUSED
    new_questions: int = 0

    @classmethod
    def for_session(cls, config: SessionConfig, user_id: int, total_questions: int) -> "TestHistoryRecord":
        return cls(
            user_id=user_id,
            total_questions=total_questions,
            timed=config.timed_mode,
            tutor=config.tutor_mode,
            question_mode=config.question_mode,
            new_questions=config.max_questions,
        )

    def to_create(self) -> HistoryIn:
        return HistoryIn(
            user_id=self.user_id,
            score=self.score,
            questions=self.total_questions,
            timed=self.timed,
            tutor=self.tutor,
            question_mode=self.question_mode.value,
            new_questions=self.new_questions,
        )

    def to_update(self) -> HistoryUpdate:
        if self.id is None:
            raise ValueError("test history has no id yet")
        return HistoryUpdate(test_history_id=self.id, **self.to_create().model_dump())


class SessionState(BaseModel):
    """Mutable per-session progress."""
    phase: SessionPhase = SessionPhase.LOADING
    current_index: int = 0
    selected_answer: Optional[int] = None
    time_remaining: int = DEFAULT_SECONDS_PER_QUESTION
    answered: bool = False
    submitted_question_ids: Set[int] = Field(default_factory=set)
    score: int = 0


class SessionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int
    total: int

    @property
    def incorrect(self) -> int:
        return self.total - self.score

    @property
    def percentage(self) -> float:
        return (self.score / self.total) * 100 if self.total > 0 else 0.0


class ChoiceFeedback(BaseModel):
    """Tutor-mode outcome for one choice of an answered question."""
    model_config = ConfigDict(frozen=True)

    number: int
    text: str
    is_correct: bool
    is_selected: bool


class SessionSnapshot(BaseModel):
    """Headless view of the session, enough to render any front end."""
    model_config = ConfigDict(frozen=True)

    phase: SessionPhase
    question_number: int
    total_questions: int
    question: Optional[Question] = None
    selected_answer: Optional[int] = None
    time_remaining: int
    time_fraction: float
    clock: str
    score: int
    next_action: Optional[NextAction] = None
    feedback: Optional[List[ChoiceFeedback]] = None


def format_clock(seconds: int) -> str:
    """Render seconds as `m:ss`."""
    minutes, rest = divmod(max(0, seconds), 60)
    return f"{minutes}:{rest:02d}"
