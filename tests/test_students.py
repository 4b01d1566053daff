from contextlib import contextmanager
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from unicampus.core.security import create_access_token
from unicampus.main import app
from unicampus.models import SubscriptionStatus, User


@contextmanager
def _client():
    app.dependency_overrides.clear()
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


def _auth_headers(user_id="u1", role="user"):
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture
def student(db):
    db.add(
        User(
            id="u1",
            email="student@example.com",
            full_name="Student One",
            matricule="M1",
            faculty_id="F1",
            subscription_status=SubscriptionStatus.EXPIRED,
            subscription_expiry_date=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
    )
    db.commit()
    return db


def test_me_returns_profile(student):
    with _client() as client:
        res = client.get("/api/v1/students/me", headers=_auth_headers())

    assert res.status_code == 200
    body = res.json()
    assert body["matricule"] == "M1"
    assert body["subscription_status"] == "expired"


def test_invalid_token_is_rejected(student):
    with _client() as client:
        res = client.get("/api/v1/students/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert res.status_code == 401
    assert res.json()["detail"] == "Invalid token"


def test_notification_token_is_stored(student):
    with _client() as client:
        res = client.patch(
            "/api/v1/students/me/notification-token",
            json={"token": " fcm-new "},
            headers=_auth_headers(),
        )

    assert res.status_code == 200
    student.expire_all()
    assert student.get(User, "u1").notification_token == "fcm-new"


def test_expired_subscription_has_no_access(student):
    with _client() as client:
        res = client.get("/api/v1/students/me/subscription", headers=_auth_headers())

    assert res.status_code == 200
    assert res.json()["has_access"] is False
    assert res.json()["subscription_status"] == "expired"


def test_admin_always_has_access(student):
    with _client() as client:
        res = client.get("/api/v1/students/me/subscription", headers=_auth_headers("u1", "admin"))

    assert res.json()["has_access"] is True


def test_trial_has_access(student):
    user = student.get(User, "u1")
    user.subscription_status = SubscriptionStatus.TRIAL
    student.commit()
    with _client() as client:
        res = client.get("/api/v1/students/me/subscription", headers=_auth_headers())

    assert res.json()["has_access"] is True
