from datetime import datetime, timedelta, timezone

import jwt
from fastapi.testclient import TestClient

from config import SESSION_ALGORITHM, SESSION_COOKIE_NAME, SESSION_SECRET
from conftest import PASSWORD, register
from models import User


def test_signup_creates_trial_user(client: TestClient) -> None:
    response = client.post(
        "/api/auth/signup",
        json={"email": "ada@example.com", "password": "longenough"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    user = body["user"]
    assert user["name"] == "ada"
    assert user["subscriptionTier"] == "free_trial"
    assert user["subscriptionStatus"] == "active"
    assert "password" not in user
    created = datetime.fromisoformat(user["createdAt"])
    trial_ends = datetime.fromisoformat(user["trialEndsAt"])
    assert trial_ends - created == timedelta(days=14)


def test_signup_requires_email_and_password(client: TestClient) -> None:
    response = client.post("/api/auth/signup", json={"email": "ada@example.com"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Email and password are required"}


def test_signup_rejects_short_password(client: TestClient, db) -> None:
    response = client.post("/api/auth/signup", json={"email": "ada@example.com", "password": "short"})
    assert response.status_code == 400
    assert response.json()["error"] == "Password must be at least 8 characters"
    assert db.query(User).count() == 0


def test_signup_rejects_duplicate_email(client: TestClient, db) -> None:
    payload = {"email": "ada@example.com", "password": "longenough"}
    assert client.post("/api/auth/signup", json=payload).status_code == 200
    response = client.post("/api/auth/signup", json=payload)
    assert response.status_code == 409
    assert response.json()["error"] == "User with this email already exists"
    assert db.query(User).filter(User.email == "ada@example.com").count() == 1


def test_signin_sets_cookie_and_rejects_bad_password(client: TestClient) -> None:
    client.post("/api/auth/signup", json={"email": "ada@example.com", "password": PASSWORD})

    response = client.post("/api/auth/signin", json={"email": "ada@example.com", "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["token"]
    assert SESSION_COOKIE_NAME in response.cookies

    response = client.post("/api/auth/signin", json={"email": "ada@example.com", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


def test_session_cookie_authenticates(client: TestClient) -> None:
    client.post("/api/auth/signup", json={"email": "ada@example.com", "password": PASSWORD})
    client.post("/api/auth/signin", json={"email": "ada@example.com", "password": PASSWORD})

    response = client.get("/api/auth/session")
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "ada@example.com"
    assert body["isSubscribed"] is True

    client.post("/api/auth/signout")
    client.cookies.clear()
    assert client.get("/api/auth/session").status_code == 401


def test_protected_route_without_session_is_401(client: TestClient) -> None:
    response = client.get("/api/tasks")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_tampered_token_is_401(client: TestClient) -> None:
    headers = {"Authorization": "Bearer not-a-real-token"}
    assert client.get("/api/settings", headers=headers).status_code == 401


def test_expired_token_is_401(client: TestClient, auth_context: dict) -> None:
    token = jwt.encode(
        {
            "sub": auth_context["user"]["id"],
            "email": auth_context["user"]["email"],
            "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
        },
        SESSION_SECRET,
        algorithm=SESSION_ALGORITHM,
    )
    response = client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"] == "Session expired"


def test_session_for_deleted_user_is_404(client: TestClient, auth_context: dict, db) -> None:
    db.query(User).filter(User.id == auth_context["user"]["id"]).delete()
    db.commit()

    response = client.get("/api/user", headers=auth_context["headers"])
    assert response.status_code == 404
    assert response.json()["error"] == "User not found"


def test_update_profile_and_email_conflict(client: TestClient, auth_context: dict) -> None:
    other = register(client, email="taken@example.com")
    headers = auth_context["headers"]

    response = client.patch("/api/user", json={"name": "Renamed"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Renamed"

    response = client.patch("/api/user", json={"email": other["user"]["email"]}, headers=headers)
    assert response.status_code == 409


def test_session_survives_email_change(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]

    response = client.patch("/api/user", json={"email": "Renamed@Example.com"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "renamed@example.com"

    response = client.get("/api/user", headers=headers)
    assert response.status_code == 200
    assert response.json()["user"]["id"] == auth_context["user"]["id"]
    assert response.json()["user"]["email"] == "renamed@example.com"

    response = client.post("/api/auth/signin", json={"email": "renamed@example.com", "password": PASSWORD})
    assert response.status_code == 200
