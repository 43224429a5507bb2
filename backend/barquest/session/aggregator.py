"""Result aggregator: finalizes the test-history record on completion."""

import json
import logging
from typing import Optional

from ..errors import InvalidTransitionError
from .domain import SessionResult
from .recorder import AnswerRecorder

logger = logging.getLogger("barquest.session")


class ResultAggregator:
    """Compute the final result and queue the one history update.

    The update rides the recorder's write queue, so it is sent after the
    history record was created and every answer was written.
    """
    def __init__(self, recorder: AnswerRecorder):
        self.recorder = recorder
        self.result: Optional[SessionResult] = None

    def finalize(self, score: int, total: int) -> SessionResult:
        if self.result is not None:
            raise InvalidTransitionError("session already finalized")
        self.result = SessionResult(score=score, total=total)
        self.recorder.enqueue("update_history", self._update_history)
        return self.result

    async def _update_history(self) -> Optional[str]:
        history = self.recorder.history
        if history.id is None:
            logger.warning("history_update_skipped %s", json.dumps(
                {"user_id": history.user_id, "reason": "no_history_id"}))
            return "skipped"
        history.score = self.result.score
        history.total_questions = self.result.total
        await self.recorder.client.update_history(history.to_update())
        logger.info("history_updated %s", json.dumps({
            "history_id": history.id,
            "score": history.score,
            "questions": history.total_questions,
        }))
        return None
