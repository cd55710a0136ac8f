"""
records.py — Validated input records for the analytics core.

Payloads arrive as loosely-shaped JSON from the data layer. They are mapped
onto two immutable record types here:

- ScoreRecord: one student's percentage for one exam
- YearMetrics: aggregate totals for one academic year

Field names are matched case-insensitively against an alias table, so both
snake_case (``student_id``) and the upstream camelCase (``studentId``) work.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from core.errors import InvalidInput

logger = logging.getLogger(__name__)


FIELD_ALIASES = {
    "student_id": ["student_id", "studentid", "student", "id", "admission_no", "adm_no"],
    "student_name": ["student_name", "studentname", "name", "full_name", "fullname"],
    "class_id": ["class_id", "classid", "class"],
    "exam_type": ["exam_type", "examtype", "exam", "exam_name", "assessment"],
    "percentage": ["percentage", "percent", "pct", "avg_percentage", "avgpercentage"],
    "obtained_marks": ["obtained_marks", "obtainedmarks", "marks", "score"],
    "max_marks": ["max_marks", "maxmarks", "max_score", "out_of"],
    "year_id": ["year_id", "yearid", "_id", "id"],
    "year_label": ["year_label", "yearlabel", "year", "name", "label"],
    "total_students": ["total_students", "totalstudents", "students"],
    "total_classes": ["total_classes", "totalclasses", "classes"],
    "total_exams": ["total_exams", "totalexams", "exams"],
    "total_subjects": ["total_subjects", "totalsubjects", "subjects"],
    "total_teachers": ["total_teachers", "totalteachers", "teachers"],
    "average_attendance": ["average_attendance", "averageattendance", "attendance", "avg_attendance"],
}

YEAR_METRIC_FIELDS = [
    "total_students", "total_classes", "total_exams",
    "total_subjects", "total_teachers", "average_attendance",
]


@dataclass(frozen=True)
class ScoreRecord:
    student_id: str
    student_name: str
    percentage: float
    exam_type: Optional[str] = None
    class_id: Optional[str] = None


@dataclass(frozen=True)
class YearMetrics:
    year_id: str
    year_label: str
    total_students: Optional[float] = None
    total_classes: Optional[float] = None
    total_exams: Optional[float] = None
    total_subjects: Optional[float] = None
    total_teachers: Optional[float] = None
    average_attendance: Optional[float] = None

    def get(self, metric: str) -> Optional[float]:
        return getattr(self, metric)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ── Helpers ─────────────────────────────────────────────────────────

def _find_key(payload: Mapping[str, Any], field: str) -> Optional[str]:
    """Find the first payload key matching any alias of ``field`` (case-insensitive)."""
    keys_lower = {str(k).lower().strip(): k for k in payload.keys()}
    for alias in FIELD_ALIASES[field]:
        if alias in keys_lower:
            return keys_lower[alias]
    return None


def _lookup(payload: Mapping[str, Any], field: str) -> Any:
    key = _find_key(payload, field)
    return payload.get(key) if key is not None else None


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _text(value: Any, field: str, position: int) -> Optional[str]:
    """Strip a scalar field to text; nested objects and lists are rejected."""
    if isinstance(value, (Mapping, list, tuple, set)):
        raise InvalidInput(f"Row {position}: '{field}' must be a plain value, got {type(value).__name__}.")
    return None if _blank(value) else str(value).strip()


def _require_list(rows: Any, what: str) -> None:
    if not isinstance(rows, (list, tuple)):
        raise InvalidInput(f"{what} must be a list of objects, got {type(rows).__name__}.")


def _to_number(value: Any, field: str) -> float:
    """Coerce to float; booleans, NaN and infinities are rejected."""
    if isinstance(value, bool):
        raise InvalidInput(f"'{field}' must be numeric, got a boolean.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"'{field}' must be numeric, got {value!r}.")
    if math.isnan(number) or math.isinf(number):
        raise InvalidInput(f"'{field}' must be a finite number, got {value!r}.")
    return number


def _optional_number(value: Any, field: str) -> Optional[float]:
    if _blank(value):
        return None
    return _to_number(value, field)


def validate_percentage(value: Any, field: str = "percentage") -> float:
    """Return ``value`` as a float in [0, 100] or raise InvalidInput. Never clamps."""
    number = _to_number(value, field)
    if number < 0 or number > 100:
        raise InvalidInput(f"'{field}' must be between 0 and 100, got {number:g}.")
    return number


# ── Score records ───────────────────────────────────────────────────

def _percentage_from_payload(row: Mapping[str, Any], position: int) -> float:
    raw = _lookup(row, "percentage")
    if not _blank(raw):
        return validate_percentage(raw)

    # Fall back to obtained / max marks.
    obtained = _lookup(row, "obtained_marks")
    maximum = _lookup(row, "max_marks")
    if _blank(obtained):
        raise InvalidInput(f"Record {position} has no percentage.")
    obtained_num = _to_number(obtained, "obtained_marks")
    if _blank(maximum):
        return validate_percentage(obtained_num)
    max_num = _to_number(maximum, "max_marks")
    if max_num <= 0:
        raise InvalidInput(f"Record {position} has a non-positive max_marks ({max_num:g}).")
    return validate_percentage(obtained_num / max_num * 100)


def parse_score_record(row: Any, position: int = 0) -> ScoreRecord:
    if isinstance(row, ScoreRecord):
        validate_percentage(row.percentage)
        return row
    if not isinstance(row, Mapping):
        raise InvalidInput(f"Record {position} must be an object, got {type(row).__name__}.")

    student_id = _text(_lookup(row, "student_id"), "student_id", position)
    if student_id is None:
        raise InvalidInput(f"Record {position} has no student id.")
    student_name = _text(_lookup(row, "student_name"), "student_name", position) or student_id
    exam_type = _text(_lookup(row, "exam_type"), "exam_type", position)
    class_id = _text(_lookup(row, "class_id"), "class_id", position)

    return ScoreRecord(
        student_id=student_id,
        student_name=student_name,
        percentage=_percentage_from_payload(row, position),
        exam_type=exam_type,
        class_id=class_id,
    )


def parse_score_records(rows: Iterable[Any]) -> List[ScoreRecord]:
    """Validate a payload list into ScoreRecords. Raises InvalidInput on the first bad row."""
    if rows is None:
        return []
    _require_list(rows, "Score records")
    records = [parse_score_record(row, i) for i, row in enumerate(rows)]
    logger.debug("Parsed %d score records", len(records))
    return records


def records_to_frame(records: Iterable[ScoreRecord]) -> pd.DataFrame:
    """Materialize records as a DataFrame with one row per record."""
    columns = ["student_id", "student_name", "percentage", "exam_type", "class_id"]
    df = pd.DataFrame([asdict(r) for r in records], columns=columns)
    df["percentage"] = pd.to_numeric(df["percentage"])
    return df


# ── Year metrics ────────────────────────────────────────────────────

def parse_year_metrics(row: Any, position: int = 0) -> YearMetrics:
    if isinstance(row, YearMetrics):
        return row
    if not isinstance(row, Mapping):
        raise InvalidInput(f"Year {position} must be an object, got {type(row).__name__}.")

    raw_id = _text(_lookup(row, "year_id"), "year_id", position)
    raw_label = _text(_lookup(row, "year_label"), "year_label", position)
    if raw_id is None and raw_label is None:
        raise InvalidInput(f"Year {position} has neither an id nor a label.")
    year_id = raw_id or raw_label
    year_label = raw_label or raw_id

    values = {field: _optional_number(_lookup(row, field), field) for field in YEAR_METRIC_FIELDS}
    for field, value in values.items():
        if value is None:
            continue
        if value < 0:
            raise InvalidInput(f"'{field}' of year {year_label} must not be negative.")
        if field.startswith("total_") and value.is_integer():
            values[field] = int(value)
    attendance = values["average_attendance"]
    if attendance is not None:
        validate_percentage(attendance, "average_attendance")

    return YearMetrics(year_id=year_id, year_label=year_label, **values)


def require_year_list(rows: Any) -> None:
    _require_list(rows, "Years")


def parse_year_list(rows: Iterable[Any]) -> List[YearMetrics]:
    if rows is None:
        return []
    require_year_list(rows)
    return [parse_year_metrics(row, i) for i, row in enumerate(rows)]
