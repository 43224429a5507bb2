"""Async orchestration of one assessment session.

The runner wires the supplier, state machine, recorder and aggregator
together on a single event loop. It owns the initial fetch, the
wall-clock countdown task and abandonment: abandoning cancels the
countdown and marks the session stale so a fetch still in flight cannot
load questions into it. Writes already queued are still drained.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from ..client import BarQuestClient
from ..config import settings
from ..errors import SessionAbandonedError
from .aggregator import ResultAggregator
from .domain import AnswerSubmission, SessionConfig, SessionPhase, SessionResult, SessionSnapshot
from .machine import SessionStateMachine
from .recorder import AnswerRecorder
from .supplier import QuestionSupplier

logger = logging.getLogger("barquest.session")


class SessionRunner:
    def __init__(self, config: SessionConfig, user_id: int, client: Optional[BarQuestClient] = None,
                 tick_seconds: Optional[float] = None):
        self.config = config
        self.user_id = user_id
        self._owns_client = client is None
        self.client = client or BarQuestClient()
        self.tick_seconds = tick_seconds if tick_seconds is not None else settings.TICK_SECONDS
        self.supplier = QuestionSupplier(self.client, user_id)
        self.recorder = AnswerRecorder(self.client, config, user_id)
        self.aggregator = ResultAggregator(self.recorder)
        self.machine = SessionStateMachine(config, user_id, self.recorder, self.aggregator)
        self._timer: Optional[asyncio.Task] = None
        self._abandoned = False

    async def __aenter__(self) -> "SessionRunner":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    @property
    def phase(self) -> SessionPhase:
        return self.machine.phase

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    @property
    def questions_available(self) -> bool:
        return bool(self.machine.questions)

    async def start(self) -> bool:
        """Fetch questions and begin; False leaves the session loading."""
        questions = await self.supplier.fetch_questions(self.config)
        if self._abandoned:
            logger.info("fetch_discarded %s", json.dumps({"user_id": self.user_id, "count": len(questions)}))
            return False
        if not self.machine.load(questions):
            return False
        self._start_timer()
        return True

    def select_answer(self, value: int) -> None:
        self._check_live()
        self.machine.select_answer(value)

    def submit(self) -> Optional[AnswerSubmission]:
        self._check_live()
        return self.machine.submit()

    def advance(self) -> Optional[SessionResult]:
        self._check_live()
        result = self.machine.advance()
        self._cancel_timer()
        if result is None:
            # Each question gets a full first tick.
            self._start_timer()
        return result

    def snapshot(self) -> SessionSnapshot:
        return self.machine.snapshot()

    def abandon(self) -> None:
        """Leave the session: stop the countdown and ignore late fetch results."""
        if self._abandoned:
            return
        self._abandoned = True
        self._cancel_timer()
        logger.info("session_abandoned %s", json.dumps({
            "user_id": self.user_id,
            "phase": self.phase.value,
            "answered": len(self.machine.state.submitted_question_ids),
        }))

    async def wait_for_writes(self) -> None:
        await self.recorder.drain()

    async def aclose(self) -> None:
        self._cancel_timer()
        await self.recorder.close()
        if self._owns_client:
            await self.client.aclose()

    async def _countdown(self) -> None:
        while self.machine.phase is not SessionPhase.COMPLETED and not self._abandoned:
            await asyncio.sleep(self.tick_seconds)
            if self._abandoned:
                return
            self.machine.tick()

    def _start_timer(self) -> None:
        if self.config.timed_mode:
            self._timer = asyncio.get_running_loop().create_task(self._countdown())

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _check_live(self) -> None:
        if self._abandoned:
            raise SessionAbandonedError("session was abandoned")
