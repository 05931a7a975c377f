"""
Logging setup for the sync server.

Every record logged while a request is being handled carries that request's
id and the signed-in user (``-`` before authentication), in both the text
and the JSON format. Clients may supply their own ``X-Request-ID``; it is
echoed back on the response.
"""

from __future__ import annotations

import json
import logging
import time
import uuid

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s %(user)s]: %(message)s"


class RequestContextFilter(logging.Filter):
    """Stamp request_id / user onto records; ``-`` outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = getattr(g, "request_id", "-")
            user = getattr(g, "user", None) or {}
            record.user = user.get("username", "-")
        else:
            record.request_id = getattr(record, "request_id", "-")
            record.user = getattr(record, "user", "-")
        return True


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            "user": getattr(record, "user", "-"),
        }
        for key in ("method", "path", "status", "duration_ms"):
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _build_handler(log_format: str) -> logging.Handler:
    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(RequestContextFilter())
    return handler


def init_logging(app: Flask) -> None:
    log_level = app.config.get("LOG_LEVEL", "INFO")

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(_build_handler(app.config.get("LOG_FORMAT", "text")))

    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    @app.before_request
    def _start_request():
        incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
        g.request_id = incoming[:64] or uuid.uuid4().hex[:12]
        g.request_start = time.perf_counter()

    @app.after_request
    def _log_request(response):
        response.headers[REQUEST_ID_HEADER] = getattr(g, "request_id", "-")
        duration_ms = (time.perf_counter() - getattr(g, "request_start", time.perf_counter())) * 1000
        # CORS preflights are noise at INFO
        level = logging.DEBUG if request.method == "OPTIONS" else logging.INFO
        app.logger.log(
            level,
            "%s %s %s %.0fms",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms),
            },
        )
        return response
