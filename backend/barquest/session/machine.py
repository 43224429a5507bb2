"""Session state machine.

Owns the per-question lifecycle of one assessment session:

    Loading -> InProgress(0) -> Answered(0) -> InProgress(1) -> ... -> Answered(last) -> Completed

All methods are synchronous and never wait on the network. Answers are
handed to the recorder at the moment a question becomes answered and the
aggregator is invoked once on completion. A question id is recorded at
most once: a manual submit and a timer expiry racing for the same question
produce one submission.
"""

import json
import logging
from typing import List, Optional, Sequence

from ..errors import InvalidTransitionError
from .domain import (
    CHOICE_COUNT,
    NO_ANSWER,
    AnswerSubmission,
    ChoiceFeedback,
    NextAction,
    Question,
    SessionConfig,
    SessionPhase,
    SessionResult,
    SessionSnapshot,
    SessionState,
    format_clock,
)

logger = logging.getLogger("barquest.session")


class SessionStateMachine:
    def __init__(self, config: SessionConfig, user_id: int, recorder, aggregator):
        self.config = config
        self.user_id = user_id
        self.recorder = recorder
        self.aggregator = aggregator
        self.questions: List[Question] = []
        self.state = SessionState(time_remaining=config.seconds_per_question)
        self.result: Optional[SessionResult] = None

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def current_question(self) -> Optional[Question]:
        if self.phase in (SessionPhase.IN_PROGRESS, SessionPhase.ANSWERED):
            return self.questions[self.state.current_index]
        return None

    @property
    def is_last_question(self) -> bool:
        return bool(self.questions) and self.state.current_index == len(self.questions) - 1

    def load(self, questions: Sequence[Question]) -> bool:
        """Start the session on `questions`; an empty set keeps it loading."""
        self._require(SessionPhase.LOADING, "load")
        if not questions:
            logger.warning("session_no_questions %s", json.dumps({"user_id": self.user_id}))
            return False
        self.questions = list(questions)
        self.state.current_index = 0
        self._reset_question()
        return True

    def select_answer(self, value: int) -> None:
        self._require(SessionPhase.IN_PROGRESS, "select_answer")
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= CHOICE_COUNT:
            raise ValueError(f"answer must be between 1 and {CHOICE_COUNT}: {value!r}")
        self.state.selected_answer = value

    def tick(self) -> bool:
        """Count down one second; expiry submits the current selection or -1.

        Returns False without effect unless the session is timed and the
        current question is still unanswered.
        """
        s = self.state
        if not self.config.timed_mode or s.phase is not SessionPhase.IN_PROGRESS or s.answered:
            return False
        s.time_remaining = max(0, s.time_remaining - 1)
        if s.time_remaining == 0:
            logger.info("question_timed_out %s", json.dumps(
                {"question_id": self.current_question.id, "selected_answer": s.selected_answer}))
            self._answer()
        return True

    def submit(self) -> Optional[AnswerSubmission]:
        """Answer the current question with the selected choice.

        Returns None when the question was already answered (for example
        by a timer expiry in the same turn).
        """
        if self.phase is SessionPhase.ANSWERED:
            return None
        self._require(SessionPhase.IN_PROGRESS, "submit")
        if self.state.selected_answer is None:
            raise InvalidTransitionError("select an answer before submitting")
        return self._answer()

    def advance(self) -> Optional[SessionResult]:
        """Move past an answered question; returns the result after the last one."""
        self._require(SessionPhase.ANSWERED, "advance")
        if self.is_last_question:
            self.state.phase = SessionPhase.COMPLETED
            self.result = self.aggregator.finalize(self.state.score, len(self.questions))
            logger.info("session_completed %s", json.dumps(
                {"user_id": self.user_id, "score": self.result.score, "total": self.result.total}))
            return self.result
        self.state.current_index += 1
        self._reset_question()
        return None

    def feedback(self) -> Optional[List[ChoiceFeedback]]:
        """Per-choice correctness for the answered question, in tutor mode only."""
        if not self.config.tutor_mode or self.phase is not SessionPhase.ANSWERED:
            return None
        q = self.current_question
        return [
            ChoiceFeedback(
                number=n,
                text=q.choice(n),
                is_correct=n == q.correct_answer,
                is_selected=n == self.state.selected_answer,
            )
            for n in range(1, CHOICE_COUNT + 1)
        ]

    def snapshot(self) -> SessionSnapshot:
        s = self.state
        next_action = None
        if s.phase is SessionPhase.IN_PROGRESS:
            next_action = NextAction.SUBMIT
        elif s.phase is SessionPhase.ANSWERED:
            next_action = NextAction.FINISH if self.is_last_question else NextAction.NEXT
        return SessionSnapshot(
            phase=s.phase,
            question_number=s.current_index + 1 if self.questions else 0,
            total_questions=len(self.questions),
            question=self.current_question,
            selected_answer=s.selected_answer,
            time_remaining=s.time_remaining,
            time_fraction=s.time_remaining / self.config.seconds_per_question,
            clock=format_clock(s.time_remaining),
            score=s.score,
            next_action=next_action,
            feedback=self.feedback(),
        )

    def _answer(self) -> Optional[AnswerSubmission]:
        s = self.state
        q = self.current_question
        s.answered = True
        s.phase = SessionPhase.ANSWERED
        if q.id in s.submitted_question_ids:
            logger.warning("answer_duplicate_skipped %s", json.dumps({"question_id": q.id}))
            return None
        s.submitted_question_ids.add(q.id)
        is_correct = q.is_correct(s.selected_answer)
        if is_correct:
            s.score += 1
        submission = AnswerSubmission(
            user_id=self.user_id,
            question_id=q.id,
            selected_answer=s.selected_answer if s.selected_answer is not None else NO_ANSWER,
            is_correct=is_correct,
        )
        self.recorder.record_answer(submission, score=s.score)
        return submission

    def _reset_question(self) -> None:
        s = self.state
        s.phase = SessionPhase.IN_PROGRESS
        s.selected_answer = None
        s.answered = False
        s.time_remaining = self.config.seconds_per_question

    def _require(self, phase: SessionPhase, action: str) -> None:
        if self.state.phase is not phase:
            raise InvalidTransitionError(f"{action} not allowed while {self.state.phase.value}")
