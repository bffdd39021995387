import os

# Set testing environment before the application reads its settings
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")

import fakeredis
import pytest
from fastapi.testclient import TestClient

from medpractice.main import app
from medpractice.core.database import Database, get_redis

TEST_DATABASE_URL = os.environ["TEST_DATABASE_URL"]
DEFAULT_PASSWORD = "Password123"


@pytest.fixture
def database():
    db = Database(TEST_DATABASE_URL)
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def redis_client():
    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    yield client
    client.flushall()


@pytest.fixture
def client(database, redis_client):
    app.dependency_overrides[get_redis] = lambda: redis_client
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Sign up and log in a user; returns (auth headers, user record)."""
    def _register(email, role="doctor", password=DEFAULT_PASSWORD, name=None):
        signup = client.post("/api/auth/signup", json={
            "email": email,
            "password": password,
            "name": name,
            "role": role,
        })
        assert signup.status_code == 201, signup.json()

        login = client.post("/api/auth/login", json={
            "email": email,
            "password": password,
        })
        assert login.status_code == 200, login.json()

        data = login.json()
        return {"Authorization": f"Bearer {data['access_token']}"}, data["user"]

    return _register


@pytest.fixture
def count_rows(database):
    def _count_rows(table):
        return database.execute(f"SELECT COUNT(*) AS n FROM {table}")[0]["n"]

    return _count_rows
