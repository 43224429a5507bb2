"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (questions,
user answers, test histories). Repositories return SQLModel objects and
perform commits/refreshes where appropriate.
"""

from typing import Iterable, List, Optional, Set
from sqlmodel import Session, select
from sqlalchemy import func
from . import models


class QuestionRepository:
    """Read access to `Question` rows plus a bulk insert used for seeding."""
    def __init__(self, session: Session):
        self.session = session

    def add_all(self, questions: Iterable[models.Question]) -> List[models.Question]:
        """Persist several questions in one commit and return them refreshed."""
        questions = list(questions)
        for q in questions:
            self.session.add(q)
        self.session.commit()
        for q in questions:
            self.session.refresh(q)
        return questions

    def get(self, question_id: int) -> Optional[models.Question]:
        """Fetch a question by id."""
        return self.session.get(models.Question, question_id)

    def get_random(self, subject_ids: Iterable[int], limit: int, include: Optional[Set[int]] = None,
                   exclude: Optional[Set[int]] = None) -> List[models.Question]:
        """Return up to `limit` random questions whose subject is in `subject_ids`.

        `include` restricts the result to the given question ids and
        `exclude` removes ids from it. Both are applied in SQL.
        """
        subject_ids = list(subject_ids)
        if not subject_ids or limit <= 0:
            return []
        stmt = select(models.Question).where(models.Question.subject_id.in_(subject_ids))
        if include is not None:
            if not include:
                return []
            stmt = stmt.where(models.Question.id.in_(include))
        if exclude:
            stmt = stmt.where(models.Question.id.not_in(exclude))
        stmt = stmt.order_by(func.random()).limit(limit)
        return list(self.session.exec(stmt).all())


class UserAnswerRepository:
    """Persist and query `UserAnswer` rows."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, answer: models.UserAnswer) -> models.UserAnswer:
        """Persist a new answer and return the managed instance."""
        self.session.add(answer)
        self.session.commit()
        self.session.refresh(answer)
        return answer

    def answered_question_ids(self, user_id: int) -> Set[int]:
        """Return ids of every question the user has answered at least once."""
        stmt = select(models.UserAnswer.question_id).where(models.UserAnswer.user_id == user_id).distinct()
        return set(self.session.exec(stmt).all())

    def incorrect_question_ids(self, user_id: int) -> Set[int]:
        """Return ids of questions whose most recent answer by the user was wrong."""
        stmt = select(models.UserAnswer).where(models.UserAnswer.user_id == user_id).order_by(
            models.UserAnswer.created_at, models.UserAnswer.id
        )
        latest = {}
        for a in self.session.exec(stmt).all():
            latest[a.question_id] = a.is_correct
        return {qid for qid, correct in latest.items() if not correct}

    def list_for_history(self, test_history_id: int) -> List[models.UserAnswer]:
        """List answers attached to a test-history record."""
        stmt = select(models.UserAnswer).where(models.UserAnswer.test_history_id == test_history_id)
        return list(self.session.exec(stmt).all())


class TestHistoryRepository:
    """Create and update `TestHistory` records."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, record: models.TestHistory) -> models.TestHistory:
        """Store a new history record and return it with its id."""
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def get(self, test_history_id: int) -> Optional[models.TestHistory]:
        return self.session.get(models.TestHistory, test_history_id)

    def save(self, record: models.TestHistory) -> models.TestHistory:
        """Commit changes made to a managed record."""
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record
