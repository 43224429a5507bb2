import asyncio
import json

import httpx
import pytest

from barquest.client import BarQuestClient
from barquest.errors import FetchError, SubmissionError
from barquest.schemas import AnswerIn, HistoryIn, HistoryUpdate, QuestionRequest
from barquest.session import QuestionMode, SessionConfig
from barquest.session.supplier import QuestionSupplier

QUESTION = {
    "id": 8, "questionText": "Q?", "answer1": "a", "answer2": "b", "answer3": "c", "answer4": "d",
    "correctAnswer": 3,
}


def call(handler, fn):
    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://bank") as http:
            return await fn(BarQuestClient(http=http))
    return asyncio.run(main())


def test_fetch_sends_camel_case_request():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[QUESTION])

    req = QuestionRequest(subject_ids=[1, 2], max_questions=5, question_mode="unused", user_id=3)
    items = call(handler, lambda c: c.fetch_questions(req))
    assert seen["path"] == "/api/filteredquestions"
    assert seen["body"] == {"subjectIds": [1, 2], "maxQuestions": 5, "questionMode": "unused", "userId": 3}
    assert items[0].correct_answer == 3


@pytest.mark.parametrize("response", [
    httpx.Response(500, json={"detail": "down"}),
    httpx.Response(200, json={"not": "a list"}),
    httpx.Response(200, json=[{"id": 1}]),
    httpx.Response(200, content=b"<html>"),
])
def test_fetch_errors_become_fetch_error(response):
    req = QuestionRequest(subject_ids=[1], max_questions=1, question_mode="all", user_id=1)
    with pytest.raises(FetchError):
        call(lambda request: response, lambda c: c.fetch_questions(req))


def test_transport_failure_becomes_fetch_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    req = QuestionRequest(subject_ids=[1], max_questions=1, question_mode="all", user_id=1)
    with pytest.raises(FetchError):
        call(handler, lambda c: c.fetch_questions(req))


def test_supplier_degrades_to_empty_list():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    config = SessionConfig(subject_ids=frozenset({1}), question_mode=QuestionMode.ALL)

    async def fetch(client):
        return await QuestionSupplier(client, user_id=1).fetch_questions(config)

    assert call(handler, fetch) == []


def test_supplier_maps_choices_in_order():
    config = SessionConfig(subject_ids=frozenset({1}))

    async def fetch(client):
        return await QuestionSupplier(client, user_id=1).fetch_questions(config)

    questions = call(lambda request: httpx.Response(200, json=[QUESTION]), fetch)
    assert questions[0].choices == ("a", "b", "c", "d")
    assert questions[0].choice(3) == "c"
    assert questions[0].is_correct(3) and not questions[0].is_correct(None)


def test_history_create_and_update_payloads():
    bodies = []

    def handler(request):
        bodies.append((request.method, json.loads(request.content)))
        if request.method == "POST":
            return httpx.Response(200, json={"id": 12})
        return httpx.Response(200, json={"status": "ok"})

    created = HistoryIn(user_id=1, score=0, questions=2, timed=False, tutor=True, question_mode="all",
                        new_questions=2)
    update = HistoryUpdate(test_history_id=12, **created.model_dump())

    async def both(client):
        history_id = await client.create_history(created)
        await client.update_history(update)
        return history_id

    assert call(handler, both) == 12
    assert bodies[0] == ("POST", {"userId": 1, "score": 0, "questions": 2, "timed": False, "tutor": True,
                                  "questionMode": "all", "newQuestions": 2})
    assert bodies[1][0] == "PATCH"
    assert bodies[1][1]["testHistoryId"] == 12


def test_write_errors_become_submission_error():
    answer = AnswerIn(user_id=1, question_id=2, selected_answer=-1, is_correct=False)
    with pytest.raises(SubmissionError):
        call(lambda request: httpx.Response(404, json={"detail": "nope"}), lambda c: c.submit_answer(answer))

    def refused(request):
        raise httpx.ReadError("reset", request=request)

    with pytest.raises(SubmissionError):
        call(refused, lambda c: c.submit_answer(answer))
