"""
Shared fixtures: a throw-away SQLite database per test, fast bcrypt, and a
``TestClient`` bound to a freshly built app.
"""

from typing import Dict

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from config.settings import Settings
from database.session import Database
from main import create_app

TEST_SECRET = "test-secret"

VALID_USER: Dict[str, str] = {
    "email": "a@x.com",
    "givenNames": "Ana",
    "surname": "Diaz",
    "password": "Abcdef12",
}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite3'}",
        debug=False,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings.database_url)
    await db.create_all()
    yield db
    await db.dispose()


def register(client: TestClient, **overrides):
    body = {**VALID_USER, **overrides}
    return client.post("/api/auth/register", json=body)


def login(client: TestClient, email: str = VALID_USER["email"], password: str = VALID_USER["password"]):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
