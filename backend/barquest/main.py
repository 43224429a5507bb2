"""FastAPI application entrypoint and HTTP controllers.

This module defines the reference question bank and test-history API a
session talks to. Controllers are intentionally thin: they accept
requests, delegate to services, and return JSON responses.

Endpoints implemented:
- POST /api/filteredquestions
- POST /api/users-answers
- POST /api/save-test-results
- PATCH /api/save-test-results
- GET /health
"""

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from typing import List
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import services
from .schemas import Ack, AnswerAck, AnswerIn, HistoryCreated, HistoryIn, HistoryUpdate, QuestionOut, QuestionRequest
from .config import settings

app = FastAPI(title="BarQuest Session API")
logger = logging.getLogger("barquest.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Browser sessions served from another origin call these endpoints directly in dev.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    if request.url.path.startswith("/api"):
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
    return response


@app.post('/api/filteredquestions', response_model=List[QuestionOut])
def filtered_questions(payload: QuestionRequest, db: Session = Depends(get_session)):
    """Return up to `maxQuestions` random questions from the selected subjects.

    `questionMode` selects all questions, only questions the user has never
    answered (`unused`) or only those whose latest answer was wrong
    (`incorrect`).
    """
    svc = services.QuestionFilterService(db)
    try:
        qs = svc.filtered(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [
        QuestionOut(
            id=q.id,
            question_text=q.question_text,
            answer1=q.answer1,
            answer2=q.answer2,
            answer3=q.answer3,
            answer4=q.answer4,
            correct_answer=q.correct_answer,
        )
        for q in qs
    ]


@app.post('/api/users-answers', response_model=AnswerAck)
def record_answer(payload: AnswerIn, db: Session = Depends(get_session)):
    """Store one answer; `selected_answer` is -1 for a timed-out question."""
    svc = services.AnswerService(db)
    try:
        answer = svc.record(payload)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return AnswerAck(id=answer.id)


@app.post('/api/save-test-results', response_model=HistoryCreated)
def create_test_history(payload: HistoryIn, db: Session = Depends(get_session)):
    """Create the test-history record of a session and return its id."""
    record = services.TestHistoryService(db).create(payload)
    return HistoryCreated(id=record.id)


@app.patch('/api/save-test-results', response_model=Ack)
def update_test_history(payload: HistoryUpdate, db: Session = Depends(get_session)):
    """Write the final score and question count of a session."""
    svc = services.TestHistoryService(db)
    try:
        svc.update(payload)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Ack()


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
