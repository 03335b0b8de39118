"""Tests for health, auth and profile endpoints."""

from datetime import timedelta

from ielts_writing.db.profiles_repository import get_profile_by_email
from ielts_writing.web.auth import create_access_token

PASSWORD = "correct-horse"


class TestHealth:
    """Tests for GET /health."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"


class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register(self, client, register):
        data = register()
        assert data["email"] == "ana@example.com"
        assert data["role"] == "student"
        assert data["onboarded"] is True

    def test_register_invalid_fields(self, client):
        response = client.post(
            "/api/auth/register",
            json={
                "email": "bad",
                "password": "short",
                "full_name": "Ana",
                "current_band": 6.0,
                "target_band": 5.5,
            },
        )
        assert response.status_code == 400
        error = response.json()["error"]
        assert "email" in error
        assert "target_band" in error

    def test_register_duplicate(self, client, register):
        register()
        response = client.post(
            "/api/auth/register",
            json={
                "email": "ANA@example.com",
                "password": PASSWORD,
                "full_name": "Ana",
                "current_band": 5.0,
                "target_band": 6.0,
            },
        )
        assert response.status_code == 409

    def test_register_missing_body_field(self, client):
        response = client.post("/api/auth/register", json={"email": "a@b.co"})
        assert response.status_code == 400
        assert "error" in response.json()


class TestLogin:
    """Tests for POST /api/auth/token and GET /api/auth/me."""

    def test_login_and_me(self, client, register, login):
        register()
        headers = login()

        response = client.get("/api/auth/me", headers=headers)

        assert response.status_code == 200
        assert response.json()["full_name"] == "Ana Lopez"

    def test_wrong_password(self, client, register):
        register()
        response = client.post(
            "/api/auth/token", data={"username": "ana@example.com", "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Incorrect email or password"}

    def test_me_without_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthenticated"}

    def test_garbage_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    def test_expired_token(self, client, register):
        register()
        user_id = get_profile_by_email("ana@example.com").user_id
        token = create_access_token(user_id, expires_delta=timedelta(seconds=-1))

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestProfile:
    """Tests for /api/profile."""

    def test_get_profile(self, client, student):
        response = client.get("/api/profile", headers=student)
        assert response.status_code == 200
        assert response.json()["current_band"] == 5.0

    def test_patch_profile(self, client, student):
        response = client.patch(
            "/api/profile",
            json={"current_band": 5.5, "phone": "555-0100"},
            headers=student,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["current_band"] == 5.5
        assert data["phone"] == "555-0100"
        assert data["target_band"] == 6.5

    def test_patch_rejects_off_step_band(self, client, student):
        response = client.patch("/api/profile", json={"current_band": 5.3}, headers=student)
        assert response.status_code == 400

    def test_patch_cannot_change_role(self, client, student):
        response = client.patch("/api/profile", json={"role": "admin"}, headers=student)
        assert response.status_code == 200
        assert response.json()["role"] == "student"
