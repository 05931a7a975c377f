"""
Mark Book sync server — Flask application factory.

Optional backend for the Mark Book app: user accounts and a JSON copy of each
user's course list.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from markbook.server.logging_config import init_logging
from markbook.server.routes import bp as api_bp
from markbook.server.store import UserStore

logger = logging.getLogger(__name__)

ENDPOINTS = [
    ("POST", "/api/register", "Create new account"),
    ("POST", "/api/login", "Login to account"),
    ("GET", "/api/data", "Fetch saved courses"),
    ("POST", "/api/data", "Save courses"),
]


def _init_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return jsonify({"error": exc.description}), exc.code

    @app.errorhandler(Exception)
    def _server_error(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Server error"}), 500


def create_app(test_config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    from markbook.server.config import config_by_name

    if test_config is not None:
        app.config.from_object(config_by_name["development"])
        app.config.update(test_config)
    else:
        env = os.environ.get("MARKBOOK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    init_logging(app)
    CORS(
        app,
        origins=app.config["CORS_ORIGIN"],
        allow_headers=["Authorization", "Content-Type"],
        methods=["GET", "POST", "OPTIONS"],
    )
    _init_error_handlers(app)

    store = UserStore(app.config["DATA_FILE"])
    app.extensions["markbook_store"] = store

    app.register_blueprint(api_bp)
    return app


def log_endpoints(app: Flask) -> None:
    logger.info("Mark Book server running on http://localhost:%s", app.config["PORT"])
    logger.info("Endpoints:")
    for method, path, summary in ENDPOINTS:
        logger.info("  %-4s %-13s - %s", method, path, summary)
