import json
import logging
import re
from typing import Iterable, List

import pandas as pd

from markbook.models import Assessment, Course, new_assessment

logger = logging.getLogger(__name__)

_FIELD_SPLIT = re.compile(r"[,\t]+")

DEFAULT_TOTAL = "100"
DEFAULT_WEIGHT = "1"


# ------------------------
# Pasted text import
# ------------------------

def parse_import_text(text: str) -> List[Assessment]:
    """
    Turn pasted lines of ``category, score[, total[, weight]]`` into ledger entries.

    Fields may be separated by commas or tabs (so rows copied out of a
    spreadsheet work). Fields keep their position, so a blank total or weight
    takes its default. Lines without both a category and a score are skipped
    without complaint; this is a best-effort import, not a validator.
    """
    rows = []
    for line_no, line in enumerate((text or "").splitlines(), start=1):
        if not line.strip():
            continue
        fields = [f.strip() for f in _FIELD_SPLIT.split(line)] + ["", "", ""]
        category, score, total, weight = fields[:4]
        if not category or not score:
            logger.debug("Skipping import line %d: %r", line_no, line)
            continue

        total = total or DEFAULT_TOTAL
        weight = weight or DEFAULT_WEIGHT
        rows.append(new_assessment(category=category.upper(), score=score,
                                   total=total, weight=weight, active=True))
    return rows


# ------------------------
# JSON export / import
# ------------------------

def export_courses_json(courses: Iterable[Course]) -> str:
    return json.dumps([c.to_dict() for c in courses], indent=2)


def import_courses_json(text: str) -> List[Course]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Not a valid Mark Book export: {e}") from e

    if not isinstance(data, list) or not all(isinstance(c, dict) for c in data):
        raise ValueError("Not a valid Mark Book export: expected a list of courses.")
    return [Course.from_dict(c) for c in data]


# ------------------------
# CSV helpers (UI-side)
# ------------------------

_COLUMN_ALIASES = {
    "cat": "category",
    "label": "category",
    "out of": "total",
    "max": "total",
}


def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    renames = {k: v for k, v in _COLUMN_ALIASES.items() if k in df.columns and v not in df.columns}
    if renames:
        df = df.rename(columns=renames)
    return df


def read_csv_upload(uploaded_file) -> pd.DataFrame:
    # everything stays text, like values typed into the ledger
    df = pd.read_csv(uploaded_file, dtype=str, keep_default_na=False)
    return _normalise_cols(df)


def validate_ledger_csv(df: pd.DataFrame) -> pd.DataFrame:
    required = {"category", "score"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}. Expected: Category, Score, Total, Weight.")
    out = df.copy()
    if "total" not in out.columns:
        out["total"] = DEFAULT_TOTAL
    if "weight" not in out.columns:
        out["weight"] = DEFAULT_WEIGHT
    return out[["category", "score", "total", "weight"]]


def _cell(value) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()


def parse_ledger_rows(df: pd.DataFrame) -> List[Assessment]:
    rows = []
    for _, row in df.iterrows():
        category = _cell(row.get("category"))
        score = _cell(row.get("score"))
        if not category and not score:
            continue
        rows.append(new_assessment(
            category=category.upper(),
            score=score,
            total=_cell(row.get("total")) or DEFAULT_TOTAL,
            weight=_cell(row.get("weight")) or DEFAULT_WEIGHT,
        ))
    return rows
