"""Business logic services used by the reference API controllers.

This module holds small service classes that coordinate repositories.
Services are intentionally thin: they perform validation, execute domain
logic and persist aggregates via repositories. Controllers translate the
`ValueError`/`LookupError` raised here into HTTP errors.
"""

from datetime import datetime, timezone
from typing import List
from sqlmodel import Session
from . import models, repositories, schemas
from .session.domain import QuestionMode


class QuestionFilterService:
    """Select questions for a session according to its question mode."""
    def __init__(self, session: Session):
        self.session = session
        self.q_repo = repositories.QuestionRepository(session)
        self.a_repo = repositories.UserAnswerRepository(session)

    def filtered(self, req: schemas.QuestionRequest) -> List[models.Question]:
        """Return up to `max_questions` random questions for the request.

        `all` draws from every question in the subjects, `unused` skips
        questions the user has answered before and `incorrect` keeps only
        questions whose latest answer by the user was wrong.
        """
        try:
            mode = QuestionMode(req.question_mode)
        except ValueError:
            raise ValueError(f"unknown questionMode: {req.question_mode}")
        if mode is QuestionMode.UNUSED:
            used = self.a_repo.answered_question_ids(req.user_id)
            return self.q_repo.get_random(req.subject_ids, req.max_questions, exclude=used)
        if mode is QuestionMode.INCORRECT:
            wrong = self.a_repo.incorrect_question_ids(req.user_id)
            return self.q_repo.get_random(req.subject_ids, req.max_questions, include=wrong)
        return self.q_repo.get_random(req.subject_ids, req.max_questions)


class AnswerService:
    """Record individual answer submissions."""
    def __init__(self, session: Session):
        self.session = session
        self.q_repo = repositories.QuestionRepository(session)
        self.a_repo = repositories.UserAnswerRepository(session)
        self.h_repo = repositories.TestHistoryRepository(session)

    def record(self, payload: schemas.AnswerIn) -> models.UserAnswer:
        """Persist one answer; the question and any history id must exist."""
        if not self.q_repo.get(payload.question_id):
            raise LookupError(f"question not found: {payload.question_id}")
        if payload.test_history_id is not None and not self.h_repo.get(payload.test_history_id):
            raise LookupError(f"test history not found: {payload.test_history_id}")
        answer = models.UserAnswer(
            user_id=payload.user_id,
            question_id=payload.question_id,
            selected_answer=payload.selected_answer,
            is_correct=payload.is_correct,
            test_history_id=payload.test_history_id,
        )
        return self.a_repo.create(answer)


class TestHistoryService:
    """Create and finalize test-history records."""
    def __init__(self, session: Session):
        self.session = session
        self.h_repo = repositories.TestHistoryRepository(session)

    def create(self, payload: schemas.HistoryIn) -> models.TestHistory:
        """Store the opening snapshot of a session."""
        record = models.TestHistory(
            user_id=payload.user_id,
            score=payload.score,
            questions=payload.questions,
            timed=payload.timed,
            tutor=payload.tutor,
            question_mode=payload.question_mode,
            new_questions=payload.new_questions,
        )
        return self.h_repo.create(record)

    def update(self, payload: schemas.HistoryUpdate) -> models.TestHistory:
        """Overwrite a record with the final snapshot of its session."""
        record = self.h_repo.get(payload.test_history_id)
        if not record:
            raise LookupError(f"test history not found: {payload.test_history_id}")
        if record.user_id != payload.user_id:
            raise ValueError("test history belongs to another user")
        if payload.score > payload.questions:
            raise ValueError("score cannot exceed question count")
        record.score = payload.score
        record.questions = payload.questions
        record.timed = payload.timed
        record.tutor = payload.tutor
        record.question_mode = payload.question_mode
        record.new_questions = payload.new_questions
        record.updated_at = datetime.now(timezone.utc)
        return self.h_repo.save(record)
