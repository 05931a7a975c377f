"""
Cloud sync client for the Mark Book server.

Thin wrapper over the four JSON endpoints. Courses travel as plain dicts in
their stored shape; converting them to ``Course`` objects is the caller's job.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = os.environ.get("MARKBOOK_SERVER_URL", "http://localhost:3001")


class SyncError(Exception):
    """A sync request failed. `status_code` is None when the server was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SyncClient:
    def __init__(self, base_url: str = DEFAULT_SERVER_URL, timeout: float = 10,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, token: Optional[str] = None,
                 payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.base_url}/api{path}"

        try:
            response = self.session.request(method, url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning("Sync request %s %s failed: %s", method, url, e)
            raise SyncError(f"Could not reach the sync server at {self.base_url}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.ok:
            message = body.get("error") or f"Server returned {response.status_code}"
            logger.warning("Sync request %s %s -> %s: %s", method, path, response.status_code, message)
            raise SyncError(message, status_code=response.status_code)
        return body

    # ------------------------
    # Endpoints
    # ------------------------

    def health(self) -> bool:
        try:
            return self._request("GET", "/health").get("status") == "ok"
        except SyncError:
            return False

    def register(self, username: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/register", payload={"username": username, "password": password})

    def login(self, username: str, password: str) -> Dict[str, Any]:
        body = self._request("POST", "/login", payload={"username": username, "password": password})
        body.setdefault("courses", [])
        return body

    def fetch_courses(self, token: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/data", token=token).get("courses") or []

    def save_courses(self, token: str, courses: List[Dict[str, Any]]) -> None:
        self._request("POST", "/data", token=token, payload={"courses": courses})
