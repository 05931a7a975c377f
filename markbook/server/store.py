"""
JSON-file user store.

The whole file (``{"users": [...]}``) is read, changed and written back on
every call. A process-wide lock serialises writers; the file is swapped in
with os.replace so readers never see a half-written document.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class UserStore:
    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    # -- file access ---------------------------------------------------------

    def _init_file(self) -> None:
        if not os.path.exists(self.path):
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self._write({"users": []})

    def _read(self) -> dict[str, Any]:
        self._init_file()
        with open(self.path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        data.setdefault("users", [])
        return data

    def _write(self, data: dict[str, Any]) -> None:
        directory = os.path.dirname(self.path) or "."
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".data-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise

    # -- queries -------------------------------------------------------------

    def find_by_username(self, username: str) -> dict[str, Any] | None:
        wanted = username.lower()
        with self._lock:
            for user in self._read()["users"]:
                if str(user.get("username", "")).lower() == wanted:
                    return user
        return None

    def find_by_id(self, user_id: str) -> dict[str, Any] | None:
        with self._lock:
            for user in self._read()["users"]:
                if user.get("id") == user_id:
                    return user
        return None

    # -- writes --------------------------------------------------------------

    def add_user(self, username: str, password_hash: str) -> dict[str, Any] | None:
        """Create a user; returns None when the username (any case) is taken."""
        with self._lock:
            data = self._read()
            wanted = username.lower()
            if any(str(u.get("username", "")).lower() == wanted for u in data["users"]):
                return None
            user = {
                "id": str(int(time.time() * 1000)),
                "username": username,
                "password": password_hash,
                "courses": [],
                "createdAt": utc_now_iso(),
            }
            # ids are millisecond timestamps; bump on a same-millisecond clash
            existing = {u.get("id") for u in data["users"]}
            while user["id"] in existing:
                user["id"] = str(int(user["id"]) + 1)
            data["users"].append(user)
            self._write(data)
        logger.info("Registered user %s (%s)", username, user["id"])
        return user

    def set_courses(self, user_id: str, courses: list[Any]) -> bool:
        """Replace a user's course list wholesale. False when the user is gone."""
        with self._lock:
            data = self._read()
            for user in data["users"]:
                if user.get("id") == user_id:
                    user["courses"] = courses
                    user["updatedAt"] = utc_now_iso()
                    self._write(data)
                    return True
        return False
