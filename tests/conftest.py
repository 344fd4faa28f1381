"""Pytest fixtures for API and service testing."""
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from civicsense.core.config import Settings
from civicsense.core.enums import Category, Department
from civicsense.main import create_app
from civicsense.models.report import Report
from civicsense.models.team import Team
from civicsense.services.container import build_container

ADMIN_HEADERS = {"X-Role": "admin", "X-Admin-User": "tester"}
VIEWER_HEADERS = {"X-Role": "viewer", "X-Admin-User": "watcher"}


@pytest.fixture
def settings():
    """In-memory storage, no outbound calls."""
    return Settings(
        storage_backend="memory",
        enable_geocoding=False,
        log_level="WARNING",
        _env_file=None,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def container(settings):
    return build_container(settings)


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)


@pytest.fixture
def viewer_headers():
    return dict(VIEWER_HEADERS)


@pytest.fixture
def team_factory():
    """Build Team models directly, bypassing the API."""
    def _make(**overrides) -> Team:
        data = {
            "id": str(ObjectId()),
            "name": f"Team {ObjectId()}",
            "department": Department.public_works,
            "specialties": [Category.infrastructure],
            "capacity": 5,
        }
        data.update(overrides)
        return Team(**data)

    return _make


@pytest.fixture
def report_factory():
    counter = iter(range(1, 10000))

    def _make(**overrides) -> Report:
        data = {
            "id": str(ObjectId()),
            "tracking_id": f"RPT-20240101-{next(counter):04d}",
            "description": "Broken streetlight on the corner",
            "category": Category.infrastructure,
        }
        data.update(overrides)
        return Report(**data)

    return _make


@pytest.fixture
def create_team(client, admin_headers):
    """POST a team and return the response body."""
    def _create(**overrides) -> dict:
        body = {
            "name": f"Crew {ObjectId()}",
            "description": "Test crew",
            "department": "public-works",
            "specialties": ["infrastructure"],
            "capacity": 5,
        }
        body.update(overrides)
        r = client.post("/teams", json=body, headers=admin_headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _create


@pytest.fixture
def create_report(client):
    """POST a citizen report and return the response body."""
    def _create(**overrides) -> dict:
        body = {
            "description": "Large pothole on Main Street",
            "category": "infrastructure",
        }
        body.update(overrides)
        r = client.post("/reports", json=body)
        assert r.status_code == 201, r.text
        return r.json()

    return _create
