"""Question supplier: forwards a session's question request to the bank."""

import json
import logging
from typing import List

from ..client import BarQuestClient
from ..errors import FetchError
from ..schemas import QuestionRequest
from .domain import Question, SessionConfig

logger = logging.getLogger("barquest.session")


class QuestionSupplier:
    """Retrieve the ordered question set for a configuration.

    Filtering by subject, question mode and count is the question bank's
    job; the result is accepted as-is. Failures degrade to an empty list.
    """
    def __init__(self, client: BarQuestClient, user_id: int):
        self.client = client
        self.user_id = user_id

    async def fetch_questions(self, config: SessionConfig) -> List[Question]:
        if not config.subject_ids:
            logger.info("questions_skipped %s", json.dumps({"user_id": self.user_id, "reason": "no_subjects"}))
            return []
        req = QuestionRequest(
            subject_ids=sorted(config.subject_ids),
            max_questions=config.max_questions,
            question_mode=config.question_mode.value,
            user_id=self.user_id,
        )
        try:
            items = await self.client.fetch_questions(req)
        except FetchError as e:
            logger.error("questions_fetch_failed %s", json.dumps(
                {"user_id": self.user_id, "error": str(e)}, ensure_ascii=True))
            return []
        questions = [Question.from_wire(item) for item in items]
        logger.info("questions_fetched %s", json.dumps(
            {"user_id": self.user_id, "count": len(questions), "mode": config.question_mode.value}))
        return questions
