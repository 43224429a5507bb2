"""Async HTTP client for the question bank and history endpoints.

The client is a thin wrapper over `httpx.AsyncClient`: it serializes the
wire schemas, checks status codes and parses responses. Any transport,
status or payload problem is re-raised as `FetchError` (reads) or
`SubmissionError` (writes) so callers only deal with the session error
taxonomy.
"""

import logging
from typing import List, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from . import schemas
from .config import settings
from .errors import FetchError, SubmissionError

logger = logging.getLogger("barquest.client")

QUESTIONS_PATH = "/api/filteredquestions"
ANSWERS_PATH = "/api/users-answers"
HISTORY_PATH = "/api/save-test-results"

_question_list = TypeAdapter(List[schemas.QuestionOut])


class BarQuestClient:
    """Client for the four endpoints a session talks to.

    Pass `http` to reuse an existing `httpx.AsyncClient` (tests mount the
    reference API through `httpx.ASGITransport`); otherwise one is created
    for `base_url` and closed by `aclose()`.
    """

    def __init__(self, base_url: Optional[str] = None, http: Optional[httpx.AsyncClient] = None,
                 timeout: Optional[float] = None):
        self._owns_http = http is None
        if http is None:
            http = httpx.AsyncClient(
                base_url=base_url or settings.API_URL,
                timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS,
            )
        self.http = http

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def fetch_questions(self, req: schemas.QuestionRequest) -> List[schemas.QuestionOut]:
        try:
            resp = await self.http.post(QUESTIONS_PATH, json=req.model_dump(mode="json", by_alias=True))
            resp.raise_for_status()
            return _question_list.validate_python(resp.json())
        except (httpx.HTTPError, ValueError, PydanticValidationError) as e:
            raise FetchError(f"question retrieval failed: {e}") from e

    async def submit_answer(self, payload: schemas.AnswerIn) -> schemas.AnswerAck:
        return await self._write("POST", ANSWERS_PATH, payload.model_dump(mode="json"), schemas.AnswerAck)

    async def create_history(self, payload: schemas.HistoryIn) -> Optional[int]:
        """Create a test-history record and return its id (None if the server sent none)."""
        body = payload.model_dump(mode="json", by_alias=True)
        created = await self._write("POST", HISTORY_PATH, body, schemas.HistoryCreated)
        return created.id

    async def update_history(self, payload: schemas.HistoryUpdate) -> schemas.Ack:
        body = payload.model_dump(mode="json", by_alias=True)
        return await self._write("PATCH", HISTORY_PATH, body, schemas.Ack)

    async def _write(self, method: str, path: str, body: dict, out):
        try:
            resp = await self.http.request(method, path, json=body)
            resp.raise_for_status()
            return out.model_validate(resp.json() if resp.content else {})
        except (httpx.HTTPError, ValueError, PydanticValidationError) as e:
            raise SubmissionError(f"{method} {path} failed: {e}") from e
