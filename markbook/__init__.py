from markbook.grade_engine import Stats, compute_stats, numeric, percent_of
from markbook.io_text import parse_import_text
from markbook.models import Assessment, Course, WeightedItem, new_course
from markbook.state import AppState

__version__ = "1.0.0"

__all__ = [
    "AppState",
    "Assessment",
    "Course",
    "Stats",
    "WeightedItem",
    "compute_stats",
    "new_course",
    "numeric",
    "parse_import_text",
    "percent_of",
]
