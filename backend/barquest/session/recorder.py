"""Answer recorder: ordered, fire-and-forget persistence of a session's writes.

Writes are queued as jobs and executed one at a time by a background task
on the running event loop, so the history record is always created before
the first answer is sent and the final update runs after every answer.
Callers never wait on a write; failures are logged and the job is marked
failed, never retried.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from ..client import BarQuestClient
from ..errors import InvalidTransitionError, SubmissionError
from .domain import AnswerSubmission, SessionConfig, TestHistoryRecord

logger = logging.getLogger("barquest.session")

Job = Callable[[], Awaitable[Optional[str]]]


class AnswerRecorder:
    def __init__(self, client: BarQuestClient, config: SessionConfig, user_id: int):
        self.client = client
        self.history = TestHistoryRecord.for_session(config, user_id, total_questions=config.max_questions)
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._jobs: list[dict] = []
        self._create_requested = False
        self._closed = False

    @property
    def history_id(self) -> Optional[int]:
        return self.history.id

    @property
    def jobs(self) -> list[dict]:
        """Copies of every job record in submission order."""
        return [dict(j) for j in self._jobs]

    def record_answer(self, submission: AnswerSubmission, *, score: int) -> None:
        """Queue `submission`, preceded by history creation on the first call.

        `score` is the running score including `submission`. The record is
        created with the score as it stood before this answer and the
        requested question count; the final update corrects both.
        """
        if not self._create_requested:
            self._create_requested = True
            before = score - 1 if submission.is_correct else score
            snapshot = self.history.model_copy(update={"score": before})
            self.enqueue("create_history", lambda: self._create_history(snapshot))
        self.enqueue("submit_answer", lambda: self._submit(submission), question_id=submission.question_id)

    def enqueue(self, kind: str, job: Job, **meta) -> None:
        """Append a write job behind every job queued so far."""
        if self._closed:
            raise InvalidTransitionError("recorder is closed")
        if self._worker is None:
            self._queue = asyncio.Queue()
            self._worker = asyncio.get_running_loop().create_task(self._run())
        record = {
            "kind": kind,
            "status": "queued",
            "created_at": datetime.now(timezone.utc).isoformat(),
            "finished_at": None,
            "error": None,
            **meta,
        }
        self._jobs.append(record)
        self._queue.put_nowait((record, job))

    async def drain(self) -> None:
        """Wait until every queued write has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        """Drain outstanding writes and stop the worker."""
        self._closed = True
        await self.drain()
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

    async def _run(self) -> None:
        while True:
            record, job = await self._queue.get()
            record["status"] = "running"
            try:
                outcome = await job()
                record["status"] = outcome or "succeeded"
            except SubmissionError as exc:
                record["status"] = "failed"
                record["error"] = str(exc)
                logger.error("write_failed %s", json.dumps(
                    {"kind": record["kind"], "history_id": self.history.id, "error": str(exc)}, ensure_ascii=True))
            except Exception as exc:
                record["status"] = "failed"
                record["error"] = str(exc)
                logger.exception("write_crashed %s", json.dumps({"kind": record["kind"]}))
            finally:
                record["finished_at"] = datetime.now(timezone.utc).isoformat()
                self._queue.task_done()

    async def _create_history(self, snapshot: TestHistoryRecord) -> None:
        history_id = await self.client.create_history(snapshot.to_create())
        self.history.id = history_id
        logger.info("history_created %s", json.dumps({"user_id": snapshot.user_id, "history_id": history_id}))

    async def _submit(self, submission: AnswerSubmission) -> None:
        # The id is only known once the create job has run.
        sent = submission.model_copy(update={"test_history_id": self.history.id})
        await self.client.submit_answer(sent.to_wire())
        logger.info("answer_recorded %s", json.dumps({
            "question_id": sent.question_id,
            "selected_answer": sent.selected_answer,
            "is_correct": sent.is_correct,
            "history_id": sent.test_history_id,
        }))
