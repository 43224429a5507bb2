import os

# Keep the module-level engine off the on-disk app.db during tests.
os.environ.setdefault("BARQUEST_DB_URL", "sqlite://")

import httpx
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from barquest import models
from barquest.client import BarQuestClient
from barquest.database import create_db_and_tables, get_session
from barquest.errors import SubmissionError
from barquest.main import app
from barquest.repositories import QuestionRepository


@pytest.fixture(autouse=True)
def db_engine():
    """Give every test a fresh in-memory database behind the API."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_db_and_tables(engine)

    def _session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session
    yield engine
    app.dependency_overrides.clear()
    engine.dispose()


def make_question(subject_id: int, text: str, correct: int = 1) -> models.Question:
    return models.Question(
        subject_id=subject_id,
        question_text=text,
        answer1=f"{text} A",
        answer2=f"{text} B",
        answer3=f"{text} C",
        answer4=f"{text} D",
        correct_answer=correct,
    )


@pytest.fixture
def seed(db_engine):
    """Insert questions and return them; call as seed([(subject_id, text, correct), ...])."""
    def _seed(rows):
        with Session(db_engine) as session:
            created = QuestionRepository(session).add_all(make_question(*row) for row in rows)
            return [(q.id, q.subject_id, q.correct_answer) for q in created]
    return _seed


def asgi_client() -> BarQuestClient:
    """A session client talking to the reference API in-process.

    Must be created inside the event loop that uses it; close `client.http`.
    """
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    return BarQuestClient(http=http)


class FakeClient:
    """In-memory stand-in for `BarQuestClient` that logs every call in order."""

    def __init__(self, history_id=41, fail=()):
        self.history_id = history_id
        self.fail = set(fail)
        self.calls = []

    async def create_history(self, payload):
        self.calls.append(("create_history", payload))
        if "create_history" in self.fail:
            raise SubmissionError("create failed")
        return self.history_id

    async def submit_answer(self, payload):
        self.calls.append(("submit_answer", payload))
        if "submit_answer" in self.fail:
            raise SubmissionError("submit failed")

    async def update_history(self, payload):
        self.calls.append(("update_history", payload))
        if "update_history" in self.fail:
            raise SubmissionError("update failed")

    async def fetch_questions(self, req):
        self.calls.append(("fetch_questions", req))
        return []

    def kinds(self):
        return [kind for kind, _ in self.calls]
