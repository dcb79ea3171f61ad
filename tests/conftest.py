"""
Shared fixtures.

The application runs against an in-memory Motor-compatible database
(mongomock-motor); the startup hook is not run, so no real MongoDB server
is needed.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from panorama.core.security import create_access_token
from panorama.db.client import ensure_indexes, use_database
from panorama.main import app
from panorama.models.user import Permissions
from panorama.schemas.user_schema import UserCreate
from panorama.services import user_service

ADMIN_PASSWORD = "admin-secret"
READER_PASSWORD = "reader-secret"
EDITOR_PASSWORD = "editor-secret"


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def db():
    database = AsyncMongoMockClient()["panorama_test"]
    run(ensure_indexes(database))
    use_database(database)
    yield database
    use_database(None)


@pytest.fixture
def client(db):
    return TestClient(app)


def _provision(first_name, email, password, permissions):
    return run(user_service.provision_user(UserCreate(
        first_name=first_name,
        last_name="Test",
        email=email,
        password=password,
        permissions=permissions,
    )))


def _headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user['id']})}"}


@pytest.fixture
def admin(db):
    return _provision("Alice", "alice@edc.cm", ADMIN_PASSWORD, Permissions(is_admin=True))


@pytest.fixture
def editor(db):
    return _provision("Bruno", "bruno@edc.cm", EDITOR_PASSWORD, Permissions(
        can_create=True,
        can_update=True,
        can_delete=True,
        can_export=True,
    ))


@pytest.fixture
def reader(db):
    return _provision("Chantal", "chantal@edc.cm", READER_PASSWORD, Permissions(
        can_view_dashboard=False,
        can_read_list=True,
    ))


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def editor_headers(editor):
    return _headers(editor)


@pytest.fixture
def reader_headers(reader):
    return _headers(reader)


@pytest.fixture
def create_asset(client, editor_headers):
    """Creates an asset through the API and returns its JSON."""

    def _create(**overrides):
        payload = {
            "name": "Agrafeuse",
            "category": "AA",
            "location": "EDC",
            "acquisition_year": "2024",
            "holder": "Jean Dupont",
            "description": "Grande agrafeuse",
        }
        payload.update(overrides)
        resp = client.post("/assets", json=payload, headers=editor_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
