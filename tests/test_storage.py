"""Tests for markbook.storage — local save file."""

import json
import logging

import pytest

from markbook.models import new_course
from markbook.storage import default_storage_path, load_courses, save_courses


def test_missing_file_is_empty(tmp_path):
    assert load_courses(tmp_path / "nope.json") == []


def test_save_then_load(tmp_path):
    path = tmp_path / "sub" / "courses.json"
    courses = [new_course("Biology"), new_course("Physics")]
    save_courses(courses, path)
    loaded = load_courses(path)
    assert [c.to_dict() for c in loaded] == [c.to_dict() for c in courses]


def test_saved_file_is_indented_json_list(tmp_path):
    path = tmp_path / "courses.json"
    save_courses([new_course("Biology")], path)
    text = path.read_text(encoding="utf-8")
    assert text.startswith("[\n  {")
    assert json.loads(text)[0]["name"] == "Biology"


def test_corrupt_file_is_logged_and_empty(tmp_path, caplog):
    path = tmp_path / "courses.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.ERROR, logger="markbook.storage"):
        assert load_courses(path) == []
    assert "Failed to parse saved courses" in caplog.text


def test_non_list_file_is_empty(tmp_path):
    path = tmp_path / "courses.json"
    path.write_text('{"courses": []}', encoding="utf-8")
    assert load_courses(path) == []


def test_failed_save_keeps_previous_file(tmp_path, monkeypatch):
    path = tmp_path / "courses.json"
    save_courses([new_course("Biology")], path)

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("markbook.storage.os.replace", boom)
    with pytest.raises(OSError):
        save_courses([], path)
    assert load_courses(path)[0].name == "Biology"
    assert [p.name for p in tmp_path.iterdir()] == ["courses.json"]


def test_default_path_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("MARKBOOK_STORAGE", str(tmp_path / "mine.json"))
    assert default_storage_path() == tmp_path / "mine.json"


def test_default_path_in_home(monkeypatch):
    monkeypatch.delenv("MARKBOOK_STORAGE", raising=False)
    assert default_storage_path().parts[-2:] == (".markbook", "courses.json")
