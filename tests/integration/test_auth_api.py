"""Integration tests for session authentication"""

from fastapi.testclient import TestClient

from cardsavvy.api.main import create_app

NEW_USER = {"username": "priya", "password": "s3cret!", "email": "priya@example.com", "name": "Priya Sharma"}


def test_register_logs_in_and_hides_password(client: TestClient):
    response = client.post("/api/auth/register", json=NEW_USER)

    assert response.status_code == 201
    user = response.json()
    assert user["username"] == "priya"
    assert "password" not in user
    assert client.get("/api/auth/me").json()["id"] == user["id"]


def test_register_duplicate_username_or_email(client: TestClient):
    client.post("/api/auth/register", json=NEW_USER)

    duplicate_name = client.post("/api/auth/register", json={**NEW_USER, "email": "other@example.com"})
    duplicate_email = client.post("/api/auth/register", json={**NEW_USER, "username": "priya2"})

    assert duplicate_name.status_code == 400
    assert duplicate_name.json()["message"] == "Username already exists"
    assert duplicate_email.status_code == 400
    assert duplicate_email.json()["message"] == "Email already exists"


def test_login_and_logout(client: TestClient):
    response = client.post("/api/auth/login", json={"username": "james.wilson", "password": "password123"})

    assert response.status_code == 200
    assert response.json()["membershipLevel"] == "Platinum"
    assert response.json()["lastLogin"] is not None
    assert client.get("/api/auth/me").status_code == 200

    assert client.post("/api/auth/logout").json() == {"message": "Logged out successfully"}
    assert client.get("/api/auth/me").status_code == 401


def test_login_failures_are_indistinguishable(client: TestClient):
    wrong_password = client.post("/api/auth/login", json={"username": "james.wilson", "password": "nope"})
    unknown_user = client.post("/api/auth/login", json={"username": "ghost", "password": "nope"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json() == {"message": "Invalid username or password"}


def test_me_requires_principal(client: TestClient):
    assert client.get("/api/auth/me").status_code == 401


def test_user_header_is_promoted_into_session(client: TestClient):
    response = client.get("/api/auth/me", headers={"X-Auth-User-ID": "1"})
    assert response.status_code == 200
    assert response.json()["username"] == "james.wilson"

    # Session cookie now carries the identity
    assert client.get("/api/auth/me").status_code == 200


def test_unknown_user_header_is_ignored(client: TestClient):
    assert client.get("/api/auth/me", headers={"X-Auth-User-ID": "404"}).status_code == 401


def test_user_header_ignored_when_untrusted(test_settings, storage, fake_llm, fake_vector_store):
    settings = test_settings.model_copy(update={"trust_user_header": False})
    client = TestClient(create_app(settings=settings, storage=storage, llm=fake_llm, vector_store=fake_vector_store))

    assert client.get("/api/auth/me", headers={"X-Auth-User-ID": "1"}).status_code == 401


def test_sync_creates_then_updates_external_user(client: TestClient):
    created = client.post(
        "/api/auth/sync",
        json={"sub": "auth0|abc", "email": "james.wilson@gmail.com", "name": "James W", "picture": "https://p/1.png"},
    )

    assert created.status_code == 200
    user = created.json()
    assert user["auth0Id"] == "auth0|abc"
    # Local part collides with the seeded username
    assert user["username"] == "james.wilson2"
    assert client.get("/api/auth/me").json()["id"] == user["id"]

    updated = client.post(
        "/api/auth/sync", json={"auth0Id": "auth0|abc", "email": "james.wilson@gmail.com", "name": "James Wilson"}
    )
    assert updated.json()["id"] == user["id"]
    assert updated.json()["name"] == "James Wilson"
    assert updated.json()["pictureUrl"] == "https://p/1.png"


def test_sync_links_existing_user_by_email(client: TestClient):
    response = client.post("/api/auth/sync", json={"sub": "auth0|james", "email": "james.wilson@example.com"})

    assert response.json()["id"] == "1"
    assert response.json()["auth0Id"] == "auth0|james"

    client.post("/api/auth/logout")
    assert client.get("/api/auth/me", headers={"X-Auth-User-ID": "auth0|james"}).json()["id"] == "1"


def test_sync_requires_subject(client: TestClient):
    response = client.post("/api/auth/sync", json={"email": "x@example.com"})

    assert response.status_code == 422
    assert "auth0Id" in response.json()["errors"]


def test_current_user_falls_back_to_demo_user(client: TestClient):
    response = client.get("/api/user")

    assert response.status_code == 200
    assert response.json()["id"] == "1"
