"""
Bearer-token authentication.

Tokens are signed, timestamped ``{id, username}`` payloads; nothing is kept
server-side. Passwords are hashed with werkzeug.security.
"""

from __future__ import annotations

from functools import wraps

from flask import current_app, g, jsonify, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(
        current_app.config["SECRET_KEY"],
        salt=current_app.config.get("TOKEN_SALT", "markbook-auth"),
    )


def issue_token(user: dict) -> str:
    return _serializer().dumps({"id": user["id"], "username": user["username"]})


def read_token(token: str) -> dict | None:
    """Payload of a valid token, or None if it is forged or expired."""
    try:
        return _serializer().loads(token, max_age=current_app.config.get("TOKEN_MAX_AGE"))
    except (SignatureExpired, BadSignature):
        return None


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def _bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    parts = header.split(" ", 1)
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1].strip():
        return parts[1].strip()
    return None


def token_required(view):
    """Reject the request unless it carries a valid bearer token; sets g.user."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Access token required"}), 401
        payload = read_token(token)
        if payload is None:
            return jsonify({"error": "Invalid or expired token"}), 403
        g.user = payload
        return view(*args, **kwargs)

    return wrapper
