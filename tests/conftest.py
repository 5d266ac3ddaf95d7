"""
Shared fixtures: an in-memory Mongo (mongomock) wired into the FastAPI app.
"""
import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from auth import Identity, token_for_user
from database import USER, RecordStore, get_store
from ledger import CampaignLedger
from main import app
from notifications import NotificationEmitter


@pytest.fixture
def store():
    client = mongomock.MongoClient()
    record_store = RecordStore(client["alumni_portal_test"])
    record_store.ensure_indexes()
    return record_store


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(store):
    def _make(role="user", email=None, name="Test User"):
        email = email or f"{role}-{ObjectId()}@alumni.edu"
        return store.create_document(USER, {"name": name, "email": email, "password": "", "role": role})
    return _make


def headers_for(user: dict) -> dict:
    return {"Authorization": f"Bearer {token_for_user(user)}"}


def identity_for(user: dict) -> Identity:
    return Identity(id=str(user["_id"]), email=user["email"], role=user["role"], name=user["name"])


@pytest.fixture
def admin_user(make_user):
    return make_user("admin", name="Admin")


@pytest.fixture
def regular_user(make_user):
    return make_user("user", name="Regular")


@pytest.fixture
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture
def user_headers(regular_user):
    return headers_for(regular_user)


@pytest.fixture
def admin_identity(admin_user):
    return identity_for(admin_user)


@pytest.fixture
def user_identity(regular_user):
    return identity_for(regular_user)


@pytest.fixture
def emitter(store):
    return NotificationEmitter(store)


@pytest.fixture
def ledger(store, emitter):
    return CampaignLedger(store, emitter, notify_goal_once=False)


def campaign_payload(**overrides) -> dict:
    payload = {
        "title": "Library Renovation",
        "description": "New reading rooms for the central library",
        "goal": 1000,
        "startDate": "2024-01-01T00:00:00",
        "endDate": "2099-12-31T00:00:00",
    }
    payload.update(overrides)
    return payload


def donor(**overrides) -> dict:
    info = {"name": "Jane Doe", "email": "jane.doe@gmail.com"}
    info.update(overrides)
    return info


@pytest.fixture
def make_campaign(ledger, admin_identity):
    def _make(**overrides):
        return ledger.create_campaign(campaign_payload(**overrides), admin_identity)
    return _make


def notifications_titled(store, title: str, audience: str = None) -> list:
    query = {"title": title}
    if audience:
        query["audience"] = audience
    return list(store.collection("notification").find(query))
