from __future__ import annotations

import random

import pytest
from fastapi.testclient import TestClient

from conftest import make_items
from quiz_bot.core.quiz_manager import QuizManager
from quiz_bot.core.services.question_selector import QuestionSelector
from quiz_bot.core.stores.memory_store import (
    InMemoryNameDirectory,
    InMemoryProgressStore,
    InMemoryQuestionPool,
)
from quiz_bot.core.transport import OutboxTransport
from quiz_bot.server.api_server import create_api_app


def build_client(items=None) -> TestClient:
    outbox = OutboxTransport()
    manager = QuizManager(
        InMemoryQuestionPool(make_items(20) if items is None else items),
        InMemoryProgressStore(),
        InMemoryNameDirectory(),
        outbox,
        selector=QuestionSelector(rng=random.Random(3)),
        time_limit_seconds=60,
    )
    return TestClient(create_api_app(manager, outbox))


@pytest.fixture
def client():
    with build_client() as test_client:
        yield test_client


def first_question(client: TestClient, user_id: str) -> dict:
    messages = client.get(f"/outbox/{user_id}").json()["messages"]
    return next(message for message in messages if message["kind"] == "question")


def test_keep_alive(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "Bot is running!"


def test_welcome_lists_commands(client):
    assert client.post("/welcome", json={"user_id": "1"}).status_code == 202
    message = client.get("/outbox/1").json()["messages"][0]
    assert "Start Quiz" in message["text"]


def test_start_quiz_queues_question(client):
    response = client.post("/start", json={"user_id": "1", "username": "amina"})
    assert response.status_code == 202
    assert response.json() == {"outcome": "applied"}

    question = first_question(client, "1")
    assert question["question_index"] == 0
    assert question["total_questions"] == 10
    assert question["prompt_text"].startswith("What is the meaning of **")
    assert "<strong>" in question["prompt_html"]
    assert len(question["options"]) == 4
    assert question["time_limit_seconds"] == 60


def test_callback_answer_advances(client):
    client.post("/start", json={"user_id": "1"})
    question = first_question(client, "1")
    correct = next(o for o in question["options"] if o["callback_data"].endswith("_true"))

    response = client.post("/callback", json={"user_id": "1", "data": correct["callback_data"]})
    assert response.json() == {"outcome": "applied"}

    messages = client.get("/outbox/1").json()["messages"]
    assert messages[0]["text"] == "✅ Correct!"
    assert messages[1]["question_index"] == 1

    stale = client.post("/callback", json={"user_id": "1", "data": correct["callback_data"]})
    assert stale.json() == {"outcome": "stale"}


def test_callback_for_other_user_is_forbidden(client):
    client.post("/start", json={"user_id": "1"})
    data = first_question(client, "1")["options"][0]["callback_data"]
    response = client.post("/callback", json={"user_id": "2", "data": data})
    assert response.status_code == 403


def test_malformed_callback_is_rejected(client):
    response = client.post("/callback", json={"user_id": "1", "data": "nonsense"})
    assert response.status_code == 422


def test_explicit_answer_without_session(client):
    response = client.post("/answer", json={"user_id": "1", "question_index": 0, "is_correct": True})
    assert response.json() == {"outcome": "no_session"}


def test_answer_validation(client):
    response = client.post("/answer", json={"user_id": "1", "question_index": -1, "is_correct": True})
    assert response.status_code == 422


def test_full_round_updates_progress_and_leaderboard(client):
    client.post("/start", json={"user_id": "7", "username": "bob"})
    for index in range(10):
        client.post("/answer", json={"user_id": "7", "question_index": index, "is_correct": index % 2 == 0})

    progress = client.get("/progress/7").json()
    assert progress == {"user_id": "7", "level": 2, "score": 5, "asked_count": 10}

    leaderboard = client.get("/leaderboard").json()
    assert leaderboard["entries"] == [{"rank": 1, "display_name": "bob", "score": 5}]
    assert "@bob: 5 points" in leaderboard["text"]


def test_quit_then_progress_is_unchanged(client):
    client.post("/start", json={"user_id": "3"})
    client.post("/answer", json={"user_id": "3", "question_index": 0, "is_correct": True})

    assert client.post("/quit", json={"user_id": "3"}).json() == {"outcome": "applied"}
    assert client.post("/quit", json={"user_id": "3"}).json() == {"outcome": "no_session"}
    assert client.get("/progress/3").json()["score"] == 0


def test_empty_leaderboard(client):
    body = client.get("/leaderboard").json()
    assert body == {"text": "No scores yet.", "entries": []}


def test_start_with_empty_pool_is_unavailable():
    with build_client(items=[]) as empty_client:
        response = empty_client.post("/start", json={"user_id": "1"})
        assert response.status_code == 503
        messages = empty_client.get("/outbox/1").json()["messages"]
        assert messages[0]["text"].startswith("No questions are available")


def test_start_without_enough_distractors_is_unavailable():
    with build_client(items=make_items(3)) as small_client:
        response = small_client.post("/start", json={"user_id": "1"})
        assert response.status_code == 503
        assert small_client.get("/leaderboard").json()["entries"] == []
