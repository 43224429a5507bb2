"""Session configuration resolver.

Turns the query-style parameters produced by the "new test" form into a
`SessionConfig`. Every malformed value falls back to a documented default;
nothing here raises. `encode_session_params` is the inverse used when the
form builds the parameters.
"""

import json
import logging
from typing import Mapping, Optional

from ..errors import ValidationError
from .domain import (
    DEFAULT_SECONDS_PER_QUESTION,
    MAX_QUESTIONS,
    MIN_QUESTIONS,
    QuestionMode,
    SessionConfig,
)

logger = logging.getLogger("barquest.session")

DEFAULT_QUESTION_MODE = QuestionMode.UNUSED

# Defaults of the settings form, which differ from the resolver's.
DEFAULT_FORM_CONFIG = SessionConfig(
    tutor_mode=True,
    timed_mode=True,
    question_mode=QuestionMode.ALL,
    max_questions=MIN_QUESTIONS,
)


def _flag(raw: Optional[str]) -> bool:
    return raw == "true"


def _question_mode(raw: Optional[str]) -> QuestionMode:
    if raw is None:
        return DEFAULT_QUESTION_MODE
    try:
        return QuestionMode(raw)
    except ValueError:
        _warn(ValidationError("questionMode", raw, DEFAULT_QUESTION_MODE.value))
        return DEFAULT_QUESTION_MODE


def _int(field: str, raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        _warn(ValidationError(field, raw, default))
        return default


def _subject_ids(raw: Optional[str]) -> frozenset:
    if raw is None:
        return frozenset()
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise TypeError("selectedSubjects must be a list")
        # bool is an int subclass but never a subject id
        if any(isinstance(v, bool) for v in data):
            raise TypeError("selectedSubjects must hold numbers")
        return frozenset(int(v) for v in data)
    except (ValueError, TypeError):
        _warn(ValidationError("selectedSubjects", raw, []))
        return frozenset()


def _warn(err: ValidationError) -> None:
    logger.warning("session_param_invalid %s", json.dumps(
        {"field": err.field, "raw": str(err.raw), "default": err.default}, ensure_ascii=True, default=str))


def resolve_session_config(params: Mapping[str, str]) -> SessionConfig:
    """Build a `SessionConfig` from raw transport parameters.

    `numberOfQuestions` is clamped to [1, 120] and a non-positive
    `secondsPerQuestion` falls back to 100. An empty `subject_ids` means no
    questions are available; callers must not treat it as fatal.
    """
    max_questions = _int("numberOfQuestions", params.get("numberOfQuestions"), MIN_QUESTIONS)
    seconds = _int("secondsPerQuestion", params.get("secondsPerQuestion"), DEFAULT_SECONDS_PER_QUESTION)
    if seconds <= 0:
        _warn(ValidationError("secondsPerQuestion", seconds, DEFAULT_SECONDS_PER_QUESTION))
        seconds = DEFAULT_SECONDS_PER_QUESTION
    return SessionConfig(
        tutor_mode=_flag(params.get("isTutor")),
        timed_mode=_flag(params.get("isTimed")),
        subject_ids=_subject_ids(params.get("selectedSubjects")),
        question_mode=_question_mode(params.get("questionMode")),
        max_questions=min(MAX_QUESTIONS, max(MIN_QUESTIONS, max_questions)),
        seconds_per_question=seconds,
    )


def encode_session_params(config: SessionConfig) -> dict:
    """Encode a config into the transport parameters `resolve_session_config` reads."""
    return {
        "isTutor": "true" if config.tutor_mode else "false",
        "isTimed": "true" if config.timed_mode else "false",
        "selectedSubjects": json.dumps([str(s) for s in sorted(config.subject_ids)]),
        "questionMode": config.question_mode.value,
        "numberOfQuestions": str(config.max_questions),
        "secondsPerQuestion": str(config.seconds_per_question),
    }
