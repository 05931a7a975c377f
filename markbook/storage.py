import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Union

from markbook.models import Course

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def default_storage_path() -> Path:
    env = os.environ.get("MARKBOOK_STORAGE")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".markbook" / "courses.json"


def load_courses(path: Optional[PathLike] = None) -> List[Course]:
    """
    Read the saved course list. A missing file is an empty list; a corrupt
    one is logged and also treated as empty so the app still opens.
    """
    path = Path(path) if path is not None else default_storage_path()
    if not path.exists():
        return []

    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        logger.exception("Failed to parse saved courses from %s", path)
        return []

    if not isinstance(data, list):
        logger.error("Saved courses in %s are not a list; ignoring", path)
        return []
    return [Course.from_dict(c) for c in data if isinstance(c, dict)]


def save_courses(courses: Iterable[Course], path: Optional[PathLike] = None) -> Path:
    path = Path(path) if path is not None else default_storage_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    courses = list(courses)
    payload = json.dumps([c.to_dict() for c in courses], indent=2)

    # temp file + os.replace: a failed write leaves the last save intact
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=".courses-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
    logger.info("Saved %d course(s) to %s", len(courses), path)
    return path
