"""Tests for the REST routes."""

import pytest
from fastapi.testclient import TestClient

from lingo_engine.api.routes import Services, get_services
from lingo_engine.content.provider import YamlContentProvider
from lingo_engine.main import app
from lingo_engine.storage.memory import MemoryProfileStore, MemoryProgressStore


@pytest.fixture
def client():
    services = Services(YamlContentProvider(), MemoryProfileStore(), MemoryProgressStore())
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_skill_tree_for_new_user(client):
    response = client.get("/api/languages/hindi/skills", params={"user_id": "u1"})
    assert response.status_code == 200
    states = {s["skill"]["id"]: s["unlocked"] for s in response.json()}
    assert states == {
        "basics_1": True,
        "basics_2": False,
        "numbers": False,
        "family": False,
        "food": False,
    }


def test_get_lesson(client):
    response = client.get("/api/languages/tamil/skills/numbers/lessons/2")
    assert response.status_code == 200
    body = response.json()
    assert body["lesson_id"] == "tamil_numbers_l2"
    assert len(body["exercises"]) == 10


def test_award_xp_and_progress(client):
    response = client.post("/api/users/u1/languages/hindi/xp", json={"base_xp": 10})
    assert response.status_code == 200
    assert response.json()["total_xp"] == 10
    assert response.json()["leveled_up"] is False

    progress = client.get("/api/users/u1/languages/hindi/progress").json()
    assert progress["progress"]["total_xp"] == 10
    assert progress["level_progress"] == 0.0

    profile = client.get("/api/users/u1/profile").json()
    assert profile["profile"]["total_xp"] == 10
    assert profile["level"] == 1


def test_skill_update_unlocks_next(client):
    response = client.post(
        "/api/users/u1/languages/hindi/skills/basics_1",
        json={"level": 1, "lesson_id": "hindi_basics_1_l1"},
    )
    assert response.status_code == 200
    assert response.json()["skill_progress"]["level"] == 1

    states = {
        s["skill"]["id"]: s["unlocked"]
        for s in client.get("/api/languages/hindi/skills", params={"user_id": "u1"}).json()
    }
    assert states["basics_2"] is True
    assert states["numbers"] is True


def test_complete_lesson_then_practice(client):
    lesson = client.get("/api/languages/hindi/skills/basics_1/lessons/1").json()
    results = [
        {"exercise": ex, "correct": ex["id"] != "hindi_basics_1_l1_ex4"}
        for ex in lesson["exercises"]
    ]
    response = client.post("/api/users/u1/lessons/complete", json={"lesson": lesson, "results": results})
    assert response.status_code == 200
    assert response.json()["new_achievements"] == ["first_lesson"]

    ranked = client.get("/api/users/u1/languages/hindi/practice").json()
    assert {s["id"] for s in ranked} >= {"basics_1", "basics_2", "numbers"}

    practice = client.post("/api/users/u1/languages/hindi/practice/basics_1").json()
    assert practice["is_practice"] is True
    assert "hindi_basics_1_l1_ex4" in {ex["id"] for ex in practice["exercises"]}


def test_invalid_skill_update_rejected(client):
    response = client.post(
        "/api/users/u1/languages/hindi/skills/basics_1",
        json={"level": -1, "lesson_id": "x"},
    )
    assert response.status_code == 422
