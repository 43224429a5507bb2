"""Headless assessment session: configuration, questions, lifecycle and persistence."""

from .domain import (
    NO_ANSWER,
    AnswerSubmission,
    ChoiceFeedback,
    NextAction,
    Question,
    QuestionMode,
    SessionConfig,
    SessionPhase,
    SessionResult,
    SessionSnapshot,
)
from .resolver import DEFAULT_FORM_CONFIG, encode_session_params, resolve_session_config

__all__ = [
    "NO_ANSWER",
    "AnswerSubmission",
    "ChoiceFeedback",
    "DEFAULT_FORM_CONFIG",
    "NextAction",
    "Question",
    "QuestionMode",
    "SessionConfig",
    "SessionPhase",
    "SessionResult",
    "SessionSnapshot",
    "encode_session_params",
    "resolve_session_config",
]
