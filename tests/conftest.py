import os

# main builds a default app at import time; keep it off the disk
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app


@pytest.fixture
def settings():
    return Settings(
        secret_key="test-secret",
        database_url="sqlite://",
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(client):
    def _make(email="a@x.com", password="secret1", name="Alice", currency="USD"):
        res = client.post("/api/auth/signup", json={
            "name": name, "email": email, "password": password, "currency": currency,
        })
        assert res.status_code == 201, res.text
        body = res.json()
        body["headers"] = {"Authorization": f"Bearer {body['token']}"}
        return body
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def auth_headers(user):
    return user["headers"]


@pytest.fixture
def add_expense(client, auth_headers):
    def _add(description="Coffee", amount=4.5, category="food", date="2024-01-05", headers=None):
        payload = {"description": description, "amount": amount, "category": category}
        if date is not None:
            payload["date"] = date
        res = client.post("/api/expense", json=payload, headers=headers or auth_headers)
        assert res.status_code == 201, res.text
        return res.json()
    return _add
