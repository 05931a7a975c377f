"""
Test fixtures for Mark Book.

Provides app, client and auth_headers fixtures for the sync server, with the
user store in a per-test temporary JSON file, plus a sample course.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def app(tmp_path):
    """Create the sync server with a file-backed store in tmp_path."""
    from markbook.server import create_app

    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret-key",
        "DATA_FILE": str(tmp_path / "data.json"),
        "LOG_LEVEL": "WARNING",
    })
    yield app


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return app.test_client()


@pytest.fixture
def auth_headers(client):
    """Register a user and return headers carrying its bearer token."""
    resp = client.post("/api/register", json={"username": "student", "password": "pass1234"})
    assert resp.status_code == 201
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def sample_course():
    """Two equally weighted coursework entries, no FPT parts, ungraded exam."""
    from markbook.models import Assessment, Course, WeightedItem

    return Course(
        id="c-1",
        name="Chemistry",
        target=85,
        assessments=[
            Assessment(id="a1", category="QUIZ", score="80", total="100", weight="1", active=True),
            Assessment(id="a2", category="TEST", score="60", total="100", weight="1", active=True),
        ],
        fpt_parts=[],
        exam=WeightedItem(id="exam", score="0", total="0", weight="15"),
    )
