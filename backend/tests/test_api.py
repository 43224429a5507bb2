from fastapi.testclient import TestClient
from barquest.main import app

client = TestClient(app)


def _history_payload(**overrides):
    payload = {
        'userId': 1,
        'score': 0,
        'questions': 2,
        'timed': True,
        'tutor': False,
        'questionMode': 'all',
        'newQuestions': 2,
    }
    payload.update(overrides)
    return payload


def _fetch(subjects, mode='all', limit=10, user=1):
    r = client.post('/api/filteredquestions', json={
        'subjectIds': subjects, 'maxQuestions': limit, 'questionMode': mode, 'userId': user})
    assert r.status_code == 200
    return r.json()


def test_filtered_questions_respect_subjects_and_limit(seed):
    seed([(1, 'Q1', 1), (1, 'Q2', 2), (2, 'Q3', 3), (3, 'Q4', 4)])
    data = _fetch([1, 2])
    assert len(data) == 3
    assert {q['questionText'] for q in data} == {'Q1', 'Q2', 'Q3'}
    first = data[0]
    assert set(first) == {'id', 'questionText', 'answer1', 'answer2', 'answer3', 'answer4', 'correctAnswer'}
    assert len(_fetch([1, 2], limit=2)) == 2
    assert _fetch([9]) == []


def test_unused_and_incorrect_modes(seed):
    ids = [row[0] for row in seed([(1, 'Q1', 1), (1, 'Q2', 2), (1, 'Q3', 3)])]
    # user 5 got Q1 right, Q2 wrong, then Q2 right again, Q3 never seen
    for qid, correct in ((ids[0], True), (ids[1], False)):
        r = client.post('/api/users-answers', json={
            'user_id': 5, 'question_id': qid, 'selected_answer': 1, 'is_correct': correct})
        assert r.status_code == 200
    unused = {q['id'] for q in _fetch([1], mode='unused', user=5)}
    assert unused == {ids[2]}
    assert {q['id'] for q in _fetch([1], mode='incorrect', user=5)} == {ids[1]}
    client.post('/api/users-answers', json={
        'user_id': 5, 'question_id': ids[1], 'selected_answer': 2, 'is_correct': True})
    assert _fetch([1], mode='incorrect', user=5) == []
    # other users are unaffected
    assert len(_fetch([1], mode='unused', user=6)) == 3


def test_unknown_question_mode_rejected():
    r = client.post('/api/filteredquestions', json={
        'subjectIds': [1], 'maxQuestions': 1, 'questionMode': 'weird', 'userId': 1})
    assert r.status_code == 400


def test_max_questions_validated():
    r = client.post('/api/filteredquestions', json={
        'subjectIds': [1], 'maxQuestions': 121, 'questionMode': 'all', 'userId': 1})
    assert r.status_code == 422


def test_history_create_answer_and_update(seed):
    qid = seed([(1, 'Q1', 2)])[0][0]
    created = client.post('/api/save-test-results', json=_history_payload())
    assert created.status_code == 200
    history_id = created.json()['id']
    assert isinstance(history_id, int)

    r = client.post('/api/users-answers', json={
        'user_id': 1, 'question_id': qid, 'selected_answer': -1, 'is_correct': False,
        'test_history_id': history_id})
    assert r.status_code == 200
    assert r.json()['status'] == 'ok'

    r = client.patch('/api/save-test-results', json=_history_payload(score=1, testHistoryId=history_id))
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}


def test_update_unknown_history_is_404():
    r = client.patch('/api/save-test-results', json=_history_payload(testHistoryId=999))
    assert r.status_code == 404


def test_update_rejects_other_user_and_impossible_score():
    history_id = client.post('/api/save-test-results', json=_history_payload()).json()['id']
    r = client.patch('/api/save-test-results', json=_history_payload(userId=2, testHistoryId=history_id))
    assert r.status_code == 400
    r = client.patch('/api/save-test-results', json=_history_payload(score=3, testHistoryId=history_id))
    assert r.status_code == 400


def test_answer_for_unknown_question_or_history_is_404(seed):
    r = client.post('/api/users-answers', json={
        'user_id': 1, 'question_id': 12345, 'selected_answer': 1, 'is_correct': True})
    assert r.status_code == 404
    qid = seed([(1, 'Q1', 1)])[0][0]
    r = client.post('/api/users-answers', json={
        'user_id': 1, 'question_id': qid, 'selected_answer': 1, 'is_correct': True, 'test_history_id': 77})
    assert r.status_code == 404


def test_answer_out_of_range_rejected(seed):
    qid = seed([(1, 'Q1', 1)])[0][0]
    r = client.post('/api/users-answers', json={
        'user_id': 1, 'question_id': qid, 'selected_answer': 5, 'is_correct': False})
    assert r.status_code == 422


def test_request_id_header_exists():
    r = client.get('/health')
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}
    assert 'X-Request-ID' in r.headers
    r2 = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r2.headers['X-Request-ID'] == 'abc123'
