import math
import re
from dataclasses import asdict, dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import numpy as np

from markbook.models import DEFAULT_CATEGORY_WEIGHT, Course

# Leading number of a string, the way a browser's parseFloat reads "85%" as 85.
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class Stats:
    coursework_avg: float = 0.0
    fpt_avg: float = 0.0
    exam_avg: float = 0.0
    final_grade: float = 0.0
    required_eval_avg: float = 0.0
    coursework_weight: float = 0.0
    fpt_weight: float = 0.0
    exam_weight: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


# ------------------------
# Core logic
# ------------------------
def round_1dp_half_up(x: float) -> float:
    return float(Decimal(str(x)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def numeric(value: Any) -> float:
    """
    Total number parser shared by every calculation.

    Blank, missing or non-numeric input is 0; it never raises, so stats stay
    usable while a field is half typed.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        raw = value
    else:
        match = _LEADING_NUMBER.match(str(value))
        if not match:
            return 0.0
        raw = match.group(0)
    try:
        number = float(raw)
    except (OverflowError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def percent_of(item: Any) -> float:
    """score / total as a percentage; a missing or zero total counts as 0%."""
    score = numeric(_field(item, "score"))
    total = numeric(_field(item, "total"))
    if total > 0:
        return (score / total) * 100
    return 0.0


def part_percent(item: Any) -> Optional[float]:
    """Percentage badge for a single part, or None when it is not a finite number yet."""
    score = numeric(_field(item, "score"))
    total = numeric(_field(item, "total"))
    if total == 0:
        return None
    pct = (score / total) * 100
    return pct if math.isfinite(pct) else None


def weighted_mean(pairs: Iterable[Tuple[float, float]]) -> float:
    """
    pairs: (percent, weight) tuples
    returns: weight-normalised mean, or 0 when the weights sum to 0
    """
    pw = np.array(list(pairs), dtype=float).reshape(-1, 2)
    if pw.size == 0:
        return 0.0

    weights = pw[:, 1]
    # weights near the float limit overflow; such a mean counts as 0
    with np.errstate(over="ignore", invalid="ignore"):
        weight_total = float(weights.sum())
        if weight_total <= 0 or not math.isfinite(weight_total):
            return 0.0
        mean = float(np.dot(pw[:, 0], weights) / weight_total)
    return mean if math.isfinite(mean) else 0.0


def required_average_for_target(target: float, current_points: float, eval_weight: float) -> float:
    """
    Average needed across the remaining evaluations (FPT + exam together).

    Not clamped: above 100 means the target is out of reach, below 0 means it
    is already secured.
    """
    if eval_weight <= 0:
        return 0.0
    return (target - current_points) / (eval_weight / 100)


def category_weights(course: Course) -> Tuple[float, float, float]:
    """
    (coursework, fpt, exam) shares of the final grade in percentage points.

    An FPT or exam weight that sums to 0 falls back to 15, whether it was left
    blank or deliberately set to 0. Coursework takes the remainder and may go
    negative when FPT and exam are over-allocated.
    """
    fpt_weight = sum(numeric(p.weight) for p in course.fpt_parts) or float(DEFAULT_CATEGORY_WEIGHT)
    exam_weight = numeric(course.exam.weight) or float(DEFAULT_CATEGORY_WEIGHT)
    coursework_weight = 100 - fpt_weight - exam_weight
    return coursework_weight, fpt_weight, exam_weight


def compute_stats(course: Union[Course, Mapping[str, Any], None]) -> Stats:
    """
    Derived statistics for one course.

    Pure and total: the course is not modified, and malformed numbers count
    as 0 instead of raising. No course at all gives all-zero Stats.
    """
    if course is None:
        return Stats()
    if isinstance(course, Mapping):
        course = Course.from_dict(course)

    coursework_avg = weighted_mean(
        (percent_of(a), numeric(a.weight)) for a in course.assessments if a.active
    )
    fpt_avg = weighted_mean((percent_of(p), numeric(p.weight)) for p in course.fpt_parts)
    exam_avg = percent_of(course.exam)

    coursework_weight, fpt_weight, exam_weight = category_weights(course)

    final_grade = (
        coursework_avg * (coursework_weight / 100)
        + fpt_avg * (fpt_weight / 100)
        + exam_avg * (exam_weight / 100)
    )

    current_points = coursework_avg * (coursework_weight / 100)
    required_eval_avg = required_average_for_target(
        numeric(course.target), current_points, fpt_weight + exam_weight
    )

    return Stats(
        coursework_avg=coursework_avg,
        fpt_avg=fpt_avg,
        exam_avg=exam_avg,
        final_grade=final_grade,
        required_eval_avg=required_eval_avg,
        coursework_weight=coursework_weight,
        fpt_weight=fpt_weight,
        exam_weight=exam_weight,
    )
