"""Shared fixtures: isolated data dir, fresh schema per test, app client and store."""

import os
import tempfile
from datetime import date
from types import SimpleNamespace

# Settings are read at import time, so point them at a scratch dir first
_DATA_DIR = tempfile.mkdtemp()
os.environ["POOLIFT_DATA_DIR"] = _DATA_DIR
os.environ["POOLIFT_DB_PATH"] = os.path.join(_DATA_DIR, "test.db")
os.environ["POOLIFT_JWT_SECRET"] = "test-secret-0123456789abcdef0123456789"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from poolift.database import engine  # noqa: E402
from poolift.main import app  # noqa: E402
from poolift.models.enums import GroupType  # noqa: E402
from poolift.realtime import ChangeBus  # noqa: E402
from poolift.services.accounts import register_user  # noqa: E402
from poolift.services.birthdays import create_birthday  # noqa: E402
from poolift.services.groups import create_group  # noqa: E402
from poolift.services.parties import create_party  # noqa: E402
from poolift.store import EntityStore  # noqa: E402

API = "/api/v1"


@pytest.fixture(autouse=True)
def fresh_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def bus():
    return ChangeBus()


@pytest.fixture
def store(bus):
    with Session(engine) as session:
        yield EntityStore(session, bus)


@pytest.fixture
def seeded(store):
    """Group "4ºB" with creator family Garcia, birthday Leo and one party."""
    group, family = create_group("4ºB", "Garcia", store, type=GroupType.CLASS)
    leo = create_birthday(group.id, "Leo", date(2016, 5, 2), store)
    party = create_party(group.id, date(2024, 5, 10), [leo.id], store)
    # Plain ids: rows may be deleted by the test and expired instances would refresh
    return SimpleNamespace(
        group_id=group.id,
        family_id=family.id,
        birthday_id=leo.id,
        party_id=party.id,
    )


@pytest.fixture
def make_user(store):
    def _make(email="ana@example.com", display_name="Ana"):
        return register_user(email, "secret-pass", display_name, store).id
    return _make


@pytest.fixture
def auth_headers(client):
    def _headers(email="ana@example.com", display_name="Ana"):
        r = client.post(f"{API}/auth/register", json={
            "email": email,
            "password": "secret-pass",
            "display_name": display_name,
        })
        assert r.status_code == 201, f"register failed: {r.status_code} {r.text}"
        data = r.json()
        return {"Authorization": f"Bearer {data['access_token']}"}, data["user_id"]
    return _headers
