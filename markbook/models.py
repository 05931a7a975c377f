import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

# Score / total / weight are kept exactly as typed (string or number).
Value = Union[str, int, float, None]

DEFAULT_TARGET = 85
DEFAULT_CATEGORY_WEIGHT = 15


def new_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def _list_of(data: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


# ------------------------
# Records
# ------------------------

@dataclass
class Assessment:
    """One coursework ledger entry. Inactive entries are left out of the average."""

    id: str
    category: str = "NEW"
    score: Value = ""
    total: Value = 100
    weight: Value = 1
    active: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Assessment":
        # older exports store the label under "cat"
        category = data.get("category", data.get("cat", "NEW"))
        return cls(
            id=str(data.get("id") or new_id("a")),
            category="" if category is None else str(category),
            score=data.get("score", ""),
            total=data.get("total", 100),
            weight=data.get("weight", 1),
            active=bool(data.get("active", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "score": self.score,
            "total": self.total,
            "weight": self.weight,
            "active": self.active,
        }


@dataclass
class WeightedItem:
    """An FPT part or the exam. `weight` is in percentage points of the course."""

    id: str
    name: Optional[str] = None
    score: Value = ""
    total: Value = 100
    weight: Value = DEFAULT_CATEGORY_WEIGHT

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WeightedItem":
        return cls(
            id=str(data.get("id") or new_id("fpt")),
            name=data.get("name"),
            score=data.get("score", ""),
            total=data.get("total", 100),
            weight=data.get("weight", DEFAULT_CATEGORY_WEIGHT),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id}
        if self.name is not None:
            out["name"] = self.name
        out.update({"score": self.score, "total": self.total, "weight": self.weight})
        return out


@dataclass
class Course:
    id: str
    name: str = "New Course"
    target: Value = DEFAULT_TARGET
    assessments: List[Assessment] = field(default_factory=list)
    fpt_parts: List[WeightedItem] = field(default_factory=list)
    exam: WeightedItem = field(default_factory=lambda: new_exam())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Course":
        """
        Build a Course from its stored JSON shape.

        Missing keys fall back to the seed values. Unknown keys (for example
        the legacy ``evaluationWeight``) are ignored.
        """
        exam_data = data.get("exam")
        exam = WeightedItem.from_dict({"id": "exam", **exam_data}) if isinstance(exam_data, Mapping) else new_exam()
        return cls(
            id=str(data.get("id") or new_id("c")),
            name=str(data.get("name", "New Course")),
            target=data.get("target", DEFAULT_TARGET),
            assessments=[Assessment.from_dict(a) for a in _list_of(data, "assessments")],
            fpt_parts=[WeightedItem.from_dict(p) for p in _list_of(data, "fptParts")],
            exam=exam,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "target": self.target,
            "assessments": [a.to_dict() for a in self.assessments],
            "fptParts": [p.to_dict() for p in self.fpt_parts],
            "exam": self.exam.to_dict(),
        }


# ------------------------
# Seeds
# ------------------------

def new_exam() -> WeightedItem:
    return WeightedItem(id="exam", score="", total=100, weight=DEFAULT_CATEGORY_WEIGHT)


def new_fpt_part(index: int) -> WeightedItem:
    return WeightedItem(id=new_id("fpt"), name=f"Part {index}", score="", total=100, weight=10)


def new_assessment(category: str = "NEW", score: Value = "", total: Value = 100,
                   weight: Value = 1, active: bool = True) -> Assessment:
    return Assessment(id=new_id("a"), category=category, score=score,
                      total=total, weight=weight, active=active)


def new_course(name: str = "New Course") -> Course:
    """A fresh course: empty ledger, one FPT part, 15% exam, target 85."""
    return Course(
        id=new_id("c"),
        name=name,
        target=DEFAULT_TARGET,
        assessments=[],
        fpt_parts=[WeightedItem(id=new_id("fpt"), name="FPT Part 1", score="", total=100,
                                weight=DEFAULT_CATEGORY_WEIGHT)],
        exam=new_exam(),
    )
