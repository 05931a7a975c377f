"""Tests for markbook.server.logging_config — request ids, user stamping, JSON output."""

import json
import logging
import sys

from flask import g

from markbook.server.logging_config import JSONFormatter, RequestContextFilter


def make_record(msg="hello", **extra):
    record = logging.LogRecord("markbook.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestId:
    def test_generated_and_echoed(self, client):
        resp = client.get("/api/health")
        assert len(resp.headers["X-Request-ID"]) == 12

    def test_client_supplied_id_is_kept(self, client):
        resp = client.get("/api/health", headers={"X-Request-ID": "trace-abc"})
        assert resp.headers["X-Request-ID"] == "trace-abc"


class TestRequestContextFilter:
    def test_outside_a_request(self):
        record = make_record()
        assert RequestContextFilter().filter(record) is True
        assert (record.request_id, record.user) == ("-", "-")

    def test_stamps_request_id_and_user(self, app):
        with app.test_request_context("/api/data"):
            g.request_id = "r-1"
            g.user = {"id": "1", "username": "student"}
            record = make_record()
            RequestContextFilter().filter(record)
        assert (record.request_id, record.user) == ("r-1", "student")

    def test_anonymous_request(self, app):
        with app.test_request_context("/api/login"):
            g.request_id = "r-2"
            record = make_record()
            RequestContextFilter().filter(record)
        assert record.user == "-"


class TestJSONFormatter:
    def test_single_line_with_access_fields(self):
        record = make_record("GET /api/data 200 3ms", request_id="r-1", user="student",
                             method="GET", path="/api/data", status=200, duration_ms=3)
        line = JSONFormatter().format(record)
        assert "\n" not in line
        entry = json.loads(line)
        assert entry["message"] == "GET /api/data 200 3ms"
        assert entry["user"] == "student"
        assert entry["status"] == 200
        assert entry["path"] == "/api/data"

    def test_exception_is_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord("markbook.test", logging.ERROR, __file__, 1, "boom", None, sys.exc_info())
        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in entry["exception"]
