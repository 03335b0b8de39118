"""Fixtures for F4 tests - Web API."""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from ielts_writing.db.database import init_db
from ielts_writing.db.profiles_repository import set_role
from ielts_writing.web.api import create_app
from ielts_writing.web.dependencies import set_oracle_client

PASSWORD = "correct-horse"


@pytest.fixture
def oracle(feedback_data):
    """Mock oracle installed as the app's client."""
    client = MagicMock()
    client.simple_chat.return_value = json.dumps(feedback_data)
    set_oracle_client(client)
    return client


@pytest.fixture
def client(tmp_path, oracle):
    """Create test client with an isolated database."""
    init_db(tmp_path / "test.db")
    return TestClient(create_app())


@pytest.fixture
def register(client):
    """Register an account through the API, returning its profile."""

    def _register(email="ana@example.com", current_band=5.0, target_band=6.5):
        response = client.post(
            "/api/auth/register",
            json={
                "email": email,
                "password": PASSWORD,
                "full_name": "Ana Lopez",
                "age": 24,
                "current_band": current_band,
                "target_band": target_band,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def login(client):
    """Log in through the API, returning auth headers."""

    def _login(email="ana@example.com", password=PASSWORD):
        response = client.post("/api/auth/token", data={"username": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture
def student(register, login):
    """Auth headers for a freshly registered student."""
    register()
    return login()


@pytest.fixture
def teacher(register, login):
    """Auth headers for a teacher account."""
    register(email="tom@example.com")
    set_role("tom@example.com", "teacher")
    return login(email="tom@example.com")
