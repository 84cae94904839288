"""Shared fixtures: in-memory database, faked NASA endpoints and a captured outbox."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SMTP_HOST"] = ""
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ["NASA_API_BASE_URL"] = "https://api.nasa.test/"
os.environ["APOD_SITE_URL"] = "https://apod.nasa.test/apod/"

from datetime import date  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from astrotracker.api.deps import apod_cache, get_email_service, get_nasa_client  # noqa: E402
from astrotracker.core.config import settings  # noqa: E402
from astrotracker.core.database import engine, init_db  # noqa: E402
from astrotracker.services.nasa_client import NasaClient  # noqa: E402
from main import app  # noqa: E402

from fakes import FakeEmailService, FakeNasa  # noqa: E402

PASSWORD = "Str0ng!Pass"


@pytest.fixture(autouse=True)
def reset_state():
    SQLModel.metadata.drop_all(engine)
    init_db()
    apod_cache.clear()
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def outbox():
    fake = FakeEmailService()
    app.dependency_overrides[get_email_service] = lambda: fake
    return fake


@pytest.fixture
def nasa():
    fake = FakeNasa()
    client = NasaClient(settings, transport=httpx.MockTransport(fake.handle))
    app.dependency_overrides[get_nasa_client] = lambda: client
    yield fake
    client.close()


@pytest.fixture
def client(outbox):
    return TestClient(app)


def register(client: TestClient, email: str = "ada@example.com", password: str = PASSWORD):
    return client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": password,
            "confirm_password": password,
            "first_name": "Ada",
            "last_name": "Lovelace",
        },
    )


def login(client: TestClient, email: str = "ada@example.com", password: str = PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture
def auth_headers(client):
    assert register(client).status_code == 201
    r = login(client)
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def past_day():
    return date(2024, 3, 14)
