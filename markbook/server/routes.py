"""
JSON API for cloud sync: register, login, fetch and replace a user's courses.

Every error response is ``{"error": message}``.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, g, jsonify, request

from markbook.server.auth import hash_password, issue_token, token_required, verify_password
from markbook.server.store import UserStore, utc_now_iso

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__, url_prefix="/api")


def _store() -> UserStore:
    return current_app.extensions["markbook_store"]


def _credentials() -> tuple[str, str]:
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        return "", ""
    username = body.get("username") or ""
    password = body.get("password") or ""
    return str(username).strip(), str(password)


def _public(user: dict) -> dict:
    return {"id": user["id"], "username": user["username"]}


@bp.route("/register", methods=["POST"])
def register():
    username, password = _credentials()
    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    min_user = current_app.config.get("MIN_USERNAME_LENGTH", 3)
    min_pass = current_app.config.get("MIN_PASSWORD_LENGTH", 4)
    if len(username) < min_user:
        return jsonify({"error": f"Username must be at least {min_user} characters"}), 400
    if len(password) < min_pass:
        return jsonify({"error": f"Password must be at least {min_pass} characters"}), 400

    user = _store().add_user(username, hash_password(password))
    if user is None:
        return jsonify({"error": "Username already exists"}), 400

    return jsonify({
        "message": "Account created successfully",
        "token": issue_token(user),
        "user": _public(user),
    }), 201


@bp.route("/login", methods=["POST"])
def login():
    username, password = _credentials()
    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    user = _store().find_by_username(username)
    if user is None or not verify_password(user.get("password", ""), password):
        logger.info("Failed login for %s", username)
        return jsonify({"error": "Invalid username or password"}), 401

    return jsonify({
        "message": "Login successful",
        "token": issue_token(user),
        "user": _public(user),
        "courses": user.get("courses") or [],
    })


@bp.route("/data", methods=["GET"])
@token_required
def get_data():
    user = _store().find_by_id(g.user["id"])
    if user is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify({"courses": user.get("courses") or []})


@bp.route("/data", methods=["POST"])
@token_required
def save_data():
    body = request.get_json(silent=True) or {}
    courses = body.get("courses") if isinstance(body, dict) else None
    if courses is None:
        courses = []
    if not isinstance(courses, list):
        return jsonify({"error": "courses must be a list"}), 400

    if not _store().set_courses(g.user["id"], courses):
        return jsonify({"error": "User not found"}), 404
    return jsonify({"message": "Data saved successfully"})


@bp.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "timestamp": utc_now_iso()})
