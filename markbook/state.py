import logging
from dataclasses import dataclass, field, fields
from typing import Any, Iterable, List, Optional

from markbook.grade_engine import Stats, compute_stats
from markbook.io_text import parse_import_text
from markbook.models import Assessment, Course, WeightedItem, new_assessment, new_course, new_fpt_part

logger = logging.getLogger(__name__)


def _set_field(record: Any, field_name: str, value: Any) -> None:
    allowed = {f.name for f in fields(record)} - {"id"}
    if field_name not in allowed:
        raise KeyError(f"{type(record).__name__} has no editable field {field_name!r}")
    setattr(record, field_name, value)


def _find(records: Iterable[Any], record_id: Any) -> Optional[Any]:
    for record in records:
        if str(record.id) == str(record_id):
            return record
    return None


@dataclass
class AppState:
    """
    Everything the interface edits: the course list, which course is open and
    the cloud-sync session. Created once per session and passed around, never
    stored at module level.

    Edits that name an unknown course or record are ignored.
    """

    courses: List[Course] = field(default_factory=list)
    active_course_id: Optional[str] = None
    token: Optional[str] = None
    username: Optional[str] = None

    # ------------------------
    # Courses
    # ------------------------

    @property
    def active_course(self) -> Optional[Course]:
        course = _find(self.courses, self.active_course_id)
        if course is not None:
            return course
        return self.courses[0] if self.courses else None

    def stats(self) -> Stats:
        return compute_stats(self.active_course)

    def select_course(self, course_id: str) -> None:
        if _find(self.courses, course_id) is not None:
            self.active_course_id = course_id

    def add_course(self, name: str = "New Course") -> Course:
        course = new_course(name)
        self.courses.append(course)
        self.active_course_id = course.id
        return course

    def rename_course(self, course_id: str, name: str) -> None:
        course = _find(self.courses, course_id)
        if course is not None:
            course.name = name

    def set_target(self, course_id: str, target: Any) -> None:
        course = _find(self.courses, course_id)
        if course is not None:
            course.target = target

    def remove_course(self, course_id: str) -> None:
        self.courses = [c for c in self.courses if c.id != course_id]
        if self.active_course_id == course_id or _find(self.courses, self.active_course_id) is None:
            self.active_course_id = self.courses[0].id if self.courses else None

    def replace_courses(self, courses: List[Course]) -> None:
        self.courses = list(courses)
        if _find(self.courses, self.active_course_id) is None:
            self.active_course_id = self.courses[0].id if self.courses else None

    # ------------------------
    # Final evaluation (FPT parts + exam)
    # ------------------------

    def add_fpt_part(self) -> Optional[WeightedItem]:
        course = self.active_course
        if course is None:
            return None
        part = new_fpt_part(len(course.fpt_parts) + 1)
        course.fpt_parts.append(part)
        return part

    def remove_fpt_part(self, part_id: str) -> None:
        course = self.active_course
        if course is not None:
            course.fpt_parts = [p for p in course.fpt_parts if str(p.id) != str(part_id)]

    def update_fpt_part(self, part_id: str, field_name: str, value: Any) -> None:
        course = self.active_course
        part = _find(course.fpt_parts, part_id) if course is not None else None
        if part is not None:
            _set_field(part, field_name, value)

    def update_exam(self, field_name: str, value: Any) -> None:
        course = self.active_course
        if course is not None:
            _set_field(course.exam, field_name, value)

    # ------------------------
    # Coursework ledger
    # ------------------------

    def add_assessment(self) -> Optional[Assessment]:
        course = self.active_course
        if course is None:
            return None
        assessment = new_assessment()
        course.assessments.append(assessment)
        return assessment

    def update_assessment(self, assessment_id: str, field_name: str, value: Any) -> None:
        course = self.active_course
        assessment = _find(course.assessments, assessment_id) if course is not None else None
        if assessment is not None:
            _set_field(assessment, field_name, value)

    def toggle_assessment(self, assessment_id: str) -> None:
        course = self.active_course
        assessment = _find(course.assessments, assessment_id) if course is not None else None
        if assessment is not None:
            assessment.active = not assessment.active

    def remove_assessment(self, assessment_id: str) -> None:
        course = self.active_course
        if course is not None:
            course.assessments = [a for a in course.assessments if str(a.id) != str(assessment_id)]

    def append_assessments(self, rows: Iterable[Assessment]) -> int:
        course = self.active_course
        if course is None:
            return 0
        rows = list(rows)
        course.assessments.extend(rows)
        logger.info("Imported %d ledger entries into %s", len(rows), course.name)
        return len(rows)

    def import_assessments(self, text: str) -> int:
        if self.active_course is None:
            return 0
        return self.append_assessments(parse_import_text(text))

    # ------------------------
    # Cloud sync session
    # ------------------------

    @property
    def is_signed_in(self) -> bool:
        return bool(self.token)

    def sign_in(self, username: str, token: str) -> None:
        self.username = username
        self.token = token

    def sign_out(self) -> None:
        self.username = None
        self.token = None
