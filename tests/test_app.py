"""Tests for the Streamlit page, driven through streamlit's AppTest harness."""

import json
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

APP_PATH = str(Path(__file__).parent.parent / "app.py")


@pytest.fixture
def saved_course(tmp_path, monkeypatch):
    """A saved course whose numbers are stored as JSON numbers, not text."""
    path = tmp_path / "courses.json"
    path.write_text(json.dumps([{
        "id": "c-1",
        "name": "Chemistry",
        "target": 50,
        "assessments": [
            {"id": "a1", "category": "QUIZ", "score": 80, "total": 100, "weight": 1, "active": True},
        ],
        "fptParts": [{"id": "p1", "name": "FPT Part 1", "score": 40, "total": 50, "weight": 15}],
        "exam": {"id": "exam", "score": "", "total": 100, "weight": 15},
    }]))
    monkeypatch.setenv("MARKBOOK_STORAGE", str(path))
    return path


def run_app():
    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.run()
    assert not at.exception
    return at


def test_opening_a_course_leaves_stored_values_alone(saved_course):
    at = run_app()
    course = at.session_state["markbook_state"].courses[0]
    assert course.target == 50
    assert course.fpt_parts[0].score == 40
    assert course.exam.total == 100


def test_moving_the_slider_sets_the_target(saved_course):
    at = run_app()
    at.slider(key="target_c-1").set_value(87.5).run()
    assert at.session_state["markbook_state"].courses[0].target == 87.5


def test_empty_state_offers_first_course(tmp_path, monkeypatch):
    monkeypatch.setenv("MARKBOOK_STORAGE", str(tmp_path / "none.json"))
    at = run_app()
    assert any(b.label == "Add Your First Course" for b in at.button)
