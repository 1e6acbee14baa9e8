#!/usr/bin/env python3
"""
API tests: users, tasks, schedules, feedback and the learning task,
against an in-memory database
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dayplan import config
from dayplan.celery_tasks import learning
from dayplan.database import Base, get_db
from dayplan.main import app
from dayplan.models import Feedback, Plan, User
from dayplan.scheduling.core.constants import DEFAULT_WEIGHTS, FEATURE_NAMES, Profile
from dayplan.services import scheduler_service
from dayplan.services.ai_provider import HeuristicProvider, get_ai_provider

DAY = "2025-03-17"


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(session_factory, monkeypatch):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(config, "LEARNING_ASYNC", False)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_provider] = HeuristicProvider
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_user(client, email="kid@example.com", profile="adult", timezone="UTC"):
    response = client.post("/users/", json={"email": email, "profile": profile, "timezone": timezone})
    assert response.status_code == 201
    return {"X-User-Id": str(response.json()["id"])}


def add_task(client, headers, **fields):
    payload = {"scheduled_date": DAY, **fields}
    response = client.post("/tasks/", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


def calculate(client, headers):
    response = client.post("/schedule/calculate", json={"date": DAY}, headers=headers)
    assert response.status_code == 200
    return response.json()


def seed_feedback(session_factory, user_id, plan_id, count):
    db = session_factory()
    try:
        for _ in range(count):
            db.add(Feedback(
                user_id=user_id,
                plan_id=plan_id,
                task_id="seed",
                slot_start=datetime(2025, 3, 17, 10, 0),
                slot_end=datetime(2025, 3, 17, 10, 30),
                label=1,
                features_snapshot=[0.0] * len(FEATURE_NAMES),
            ))
        db.commit()
    finally:
        db.close()


# ================================
# USERS & SETTINGS
# ================================

def test_identity_header_is_required(client):
    assert client.get("/users/me").status_code == 401
    assert client.get("/users/me", headers={"X-User-Id": "abc"}).status_code == 401
    assert client.get("/users/me", headers={"X-User-Id": "999"}).status_code == 404


def test_duplicate_email_is_rejected(client):
    create_user(client)
    response = client.post("/users/", json={"email": "kid@example.com"})
    assert response.status_code == 400


def test_settings_update_and_profile_reset(client):
    headers = create_user(client)

    response = client.put("/users/me/settings", json={
        "profile": "child_school_age",
        "meal_offsets": {"breakfast": 15, "lunch": 0, "dinner": -30},
    }, headers=headers)
    assert response.status_code == 200
    assert response.json()["profile"] == "child_school_age"
    assert response.json()["meal_offsets"]["dinner"] == -30

    model = client.get("/model/", headers=headers).json()
    assert model["weights"] == pytest.approx(DEFAULT_WEIGHTS[Profile.CHILD])

    invalid = client.put("/users/me/settings", json={"timezone": "Mars/Olympus"}, headers=headers)
    assert invalid.status_code == 422
    too_far = client.put("/users/me/settings", json={"meal_offsets": {"lunch": 45}}, headers=headers)
    assert too_far.status_code == 422


# ================================
# TASKS
# ================================

def test_task_crud_with_categorization(client):
    headers = create_user(client)

    task = add_task(client, headers, title="Homework for math", estimated_minutes=45)
    assert task["category"] == "Learning"
    assert task["ai_provider"] == "heuristic"
    assert task["ai_confidence"] == 0.95

    manual = add_task(client, headers, title="Something", category="Creative")
    assert manual["ai_provider"] == "user"

    listed = client.get("/tasks/", params={"scheduled_date": DAY}, headers=headers).json()
    assert [item["id"] for item in listed] == [task["id"], manual["id"]]

    updated = client.put(f"/tasks/{task['id']}", json={"archived": True}, headers=headers).json()
    assert updated["archived"] is True
    assert len(client.get("/tasks/", headers=headers).json()) == 1

    assert client.delete(f"/tasks/{manual['id']}", headers=headers).status_code == 200
    assert client.get(f"/tasks/{manual['id']}", headers=headers).status_code == 404


class FailingProvider(HeuristicProvider):
    def categorize(self, title, description=None):
        raise RuntimeError("provider is down")


def test_task_is_created_when_categorization_fails(client):
    headers = create_user(client)
    app.dependency_overrides[get_ai_provider] = FailingProvider

    response = client.post("/tasks/", json={"title": "Homework for math", "scheduled_date": DAY}, headers=headers)

    assert response.status_code == 201
    assert response.json()["category"] == "Learning"
    assert response.json()["ai_provider"] == "heuristic"


def test_tasks_are_private(client):
    owner = create_user(client, email="a@example.com")
    other = create_user(client, email="b@example.com")
    task = add_task(client, owner, title="Read a book")

    assert client.get(f"/tasks/{task['id']}", headers=other).status_code == 404


# ================================
# SCHEDULE
# ================================

def test_calculate_and_read_plan(client):
    headers = create_user(client)
    add_task(client, headers, title="Quarterly report", estimated_minutes=90, priority=0.9)
    add_task(client, headers, title="Gym", category="Sport activity", estimated_minutes=60)

    plan = calculate(client, headers)
    assert plan["date"] == DAY
    titles = {slot["title"] for slot in plan["slots"]}
    assert {"Quarterly report", "Gym", "Breakfast", "Lunch", "Dinner"} <= titles
    for slot in plan["slots"]:
        assert len(slot["features_snapshot"]) == len(FEATURE_NAMES)
        assert slot["reasoning"]

    stored = client.get("/schedule/", params={"date": DAY}, headers=headers).json()
    assert stored["id"] == plan["id"]
    assert len(stored["slots"]) == len(plan["slots"])

    again = calculate(client, headers)
    assert again["id"] == plan["id"]


def test_fixed_start_is_read_in_user_timezone(client):
    headers = create_user(client, timezone="Europe/Moscow")
    add_task(client, headers, title="Call grandma", category="Social", estimated_minutes=30,
             fixed_start="2025-03-17T17:00:00")

    plan = calculate(client, headers)
    call = next(slot for slot in plan["slots"] if slot["title"] == "Call grandma")
    assert call["start"].startswith("2025-03-17T17:00:00")
    assert call["start"].endswith("+03:00")


def test_empty_day_has_warning(client):
    headers = create_user(client)
    plan = calculate(client, headers)

    assert plan["slots"] == []
    assert plan["warnings"] == ["No tasks available for scheduling"]


def test_preview_does_not_store(client, session_factory):
    response = client.post("/schedule/preview", json={
        "date": DAY,
        "profile": "child_school_age",
        "tasks": [
            {"id": "school", "title": "Школа", "category": "Learning", "estimated_minutes": 240},
            {"id": "call", "title": "Call", "category": "Social", "estimated_minutes": 60,
             "fixed_start": "2025-03-17T17:00:00"},
        ],
    })
    assert response.status_code == 200
    slots = {slot["task_id"]: slot for slot in response.json()["slots"]}
    assert slots["call"]["start"].startswith("2025-03-17T17:00")
    assert "school" in slots

    db = session_factory()
    try:
        assert db.query(Plan).count() == 0
    finally:
        db.close()


# ================================
# FEEDBACK & MODEL
# ================================

def feedback_entry(slot, label=1):
    return {
        "task_id": slot["task_id"],
        "slot": {"start": slot["start"], "end": slot["end"]},
        "label": label,
        "source": "kept",
    }


def test_feedback_below_threshold_does_not_update(client):
    headers = create_user(client)
    add_task(client, headers, title="Quarterly report", estimated_minutes=60)
    plan = calculate(client, headers)
    before = client.get("/model/", headers=headers).json()["weights"]

    response = client.post("/schedule/feedback", json={
        "plan_id": plan["id"],
        "entries": [feedback_entry(plan["slots"][0])],
    }, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"stored": 1, "feedback_count": 1, "updated": False, "queued": False}
    assert client.get("/model/", headers=headers).json()["weights"] == before


def test_feedback_updates_model_after_threshold(client, session_factory):
    headers = create_user(client)
    user_id = int(headers["X-User-Id"])
    add_task(client, headers, title="Quarterly report", estimated_minutes=60)
    plan = calculate(client, headers)
    seed_feedback(session_factory, user_id, plan["id"], 19)

    response = client.post("/schedule/feedback", json={
        "plan_id": plan["id"],
        "entries": [feedback_entry(plan["slots"][0], label=0)],
    }, headers=headers)

    assert response.json()["feedback_count"] == 20
    assert response.json()["updated"] is True
    model = client.get("/model/", headers=headers).json()
    assert model["weights"] != pytest.approx(DEFAULT_WEIGHTS[Profile.ADULT])
    assert model["feature_names"] == FEATURE_NAMES

    reset = client.post("/model/reset", headers=headers).json()
    assert reset["weights"] == pytest.approx(DEFAULT_WEIGHTS[Profile.ADULT])


def test_feedback_errors(client):
    headers = create_user(client)
    add_task(client, headers, title="Quarterly report", estimated_minutes=60)
    plan = calculate(client, headers)

    missing = client.post("/schedule/feedback", json={
        "plan_id": 999,
        "entries": [feedback_entry(plan["slots"][0])],
    }, headers=headers)
    assert missing.status_code == 404

    wrong_slot = dict(plan["slots"][0], start="2025-03-17T03:00:00+00:00", end="2025-03-17T03:30:00+00:00")
    mismatch = client.post("/schedule/feedback", json={
        "plan_id": plan["id"],
        "entries": [feedback_entry(wrong_slot)],
    }, headers=headers)
    assert mismatch.status_code == 400

    empty = client.post("/schedule/feedback", json={"plan_id": plan["id"], "entries": []}, headers=headers)
    assert empty.status_code == 422


def test_feedback_is_queued_when_async(client, monkeypatch):
    queued = []

    class FakeTask:
        @staticmethod
        def apply_async(args, queue):
            queued.append((args, queue))

    monkeypatch.setattr(config, "LEARNING_ASYNC", True)
    monkeypatch.setattr(scheduler_service, "apply_feedback_task", FakeTask)

    headers = create_user(client)
    add_task(client, headers, title="Quarterly report", estimated_minutes=60)
    plan = calculate(client, headers)

    response = client.post("/schedule/feedback", json={
        "plan_id": plan["id"],
        "entries": [feedback_entry(plan["slots"][0])],
    }, headers=headers)

    assert response.json()["queued"] is True
    assert len(queued) == 1
    assert queued[0][0][0] == int(headers["X-User-Id"])
    assert queued[0][1] == "learning"


def test_edits_move_slots(client):
    headers = create_user(client)
    task = add_task(client, headers, title="Quarterly report", estimated_minutes=60)
    plan = calculate(client, headers)

    response = client.post("/schedule/edits", json={
        "plan_id": plan["id"],
        "patches": [{"task_id": str(task["id"]), "start": "2025-03-17T15:00:00", "end": "2025-03-17T16:00:00"}],
    }, headers=headers)
    assert response.status_code == 200
    assert response.json()["updated"] is False

    stored = client.get("/schedule/", params={"date": DAY}, headers=headers).json()
    moved = next(slot for slot in stored["slots"] if slot["task_id"] == str(task["id"]))
    assert moved["start"].startswith("2025-03-17T15:00")


def test_learning_task_applies_stored_feedback(client, session_factory, monkeypatch):
    headers = create_user(client)
    user_id = int(headers["X-User-Id"])
    add_task(client, headers, title="Quarterly report", estimated_minutes=60)
    plan = calculate(client, headers)
    seed_feedback(session_factory, user_id, plan["id"], 20)

    monkeypatch.setattr(learning, "SessionLocal", session_factory)
    db = session_factory()
    try:
        ids = [row.id for row in db.query(Feedback).filter(Feedback.user_id == user_id).all()]
    finally:
        db.close()

    assert learning.apply_feedback_task(user_id, ids) is True
    assert learning.apply_feedback_task(user_id, []) is False
    assert learning.apply_feedback_task(999, ids) is False

    db = session_factory()
    try:
        user = db.query(User).filter(User.id == user_id).first()
        assert user.weights != pytest.approx(DEFAULT_WEIGHTS[Profile.ADULT])
    finally:
        db.close()
