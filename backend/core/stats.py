"""
stats.py — Class analytics aggregation.

Reduces one class's score records (optionally narrowed to one exam type) to a
snapshot:
- Totals and summary statistics (average, highest, lowest, median, std)
- Grade distribution (one entry per student, by mean percentage)
- Full student ranking
- Exam-wise breakdown for the class (average/highest/lowest per exam type)

Values are stored at full precision; rounding happens in core.charts.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from core.errors import EmptyInput
from core.grading import order_distribution
from core.ranking import rank_students
from core.records import ScoreRecord, parse_score_records, records_to_frame

logger = logging.getLogger(__name__)

# Assessment calendar: four formative, two summative.
STANDARD_EXAM_TYPES = ["FA1", "FA2", "SA1", "FA3", "FA4", "SA2"]


# ── Helpers ─────────────────────────────────────────────────────────

def _clean_float(val) -> Optional[float]:
    """Convert to float or return None. No rounding."""
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else v
    except (TypeError, ValueError):
        return None


def _sanitize(obj):
    """Recursively coerce numpy/pandas scalars to JSON-safe Python types."""
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        v = float(obj)
        return None if (np.isnan(v) or np.isinf(v)) else v
    return obj


def _exam_key(label: str):
    """Standard calendar order first, anything else alphabetically after."""
    upper = str(label).strip().upper()
    if upper in STANDARD_EXAM_TYPES:
        return (0, STANDARD_EXAM_TYPES.index(upper), upper)
    return (1, 0, upper)


def _normalize_exam(value) -> Optional[str]:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return None
    return str(value).strip().upper()


def _as_frame(records) -> pd.DataFrame:
    if isinstance(records, pd.DataFrame):
        records = records.to_dict(orient="records")
    parsed: List[ScoreRecord] = parse_score_records(records)
    return records_to_frame(parsed)


# ── Summary Statistics ──────────────────────────────────────────────

def compute_statistics(percentages: Iterable[float]) -> Dict[str, Optional[float]]:
    """
    Summary statistics over a set of percentages.

    Every value is None for an empty set so "no data" never reads as 0.
    """
    pct = pd.Series(list(percentages), dtype=float).dropna()
    if pct.empty:
        return {"average": None, "highest": None, "lowest": None, "median": None, "std_dev": None}
    return _sanitize({
        "average": _clean_float(pct.mean()),
        "highest": _clean_float(pct.max()),
        "lowest": _clean_float(pct.min()),
        "median": _clean_float(pct.median()),
        # Sample std is undefined for a single value; pandas yields NaN -> None.
        "std_dev": _clean_float(pct.std()),
    })


# ── Exam Breakdown ──────────────────────────────────────────────────

def compute_exam_breakdown(df: pd.DataFrame, class_size: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Per-exam-type averages for a class, in assessment calendar order.

    An exam is complete when every student in the class has a mark for it.
    """
    if df.empty:
        return []
    if class_size is None:
        class_size = df["student_id"].nunique()

    exams = df.dropna(subset=["exam_type"])
    breakdown = []
    for exam in sorted(exams["exam_type"].unique().tolist(), key=_exam_key):
        edf = exams[exams["exam_type"] == exam]
        pct = edf["percentage"]
        with_marks = int(edf["student_id"].nunique())
        breakdown.append({
            "exam_type": str(exam),
            "avg_percentage": _clean_float(pct.mean()),
            "highest": _clean_float(pct.max()),
            "lowest": _clean_float(pct.min()),
            "students_with_marks": with_marks,
            "is_complete": class_size > 0 and with_marks >= class_size,
        })
    return _sanitize(breakdown)


# ── Class Snapshot ──────────────────────────────────────────────────

def compute_class_snapshot(
    records,
    exam_type: Optional[str] = None,
    class_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the analytics snapshot for one class.

    ``records`` is a list of score payloads (dicts or ScoreRecords) or a
    DataFrame. ``exam_type`` narrows the statistics, distribution and ranking
    to one assessment; ``class_id`` drops records of other classes when the
    payload mixes them.

    Raises EmptyInput when nothing is left after filtering and InvalidInput
    for malformed records.
    """
    df = _as_frame(records)

    if class_id is not None:
        df = df[df["class_id"].astype(str) == str(class_id)]
    if df.empty:
        raise EmptyInput("No score records to aggregate.")

    df = df.assign(exam_type=df["exam_type"].map(_normalize_exam))
    class_size = int(df["student_id"].nunique())

    # A blank or whitespace-only filter means "all exams".
    wanted = (_normalize_exam(exam_type) or None) if exam_type is not None else None
    filtered = df[df["exam_type"] == wanted] if wanted else df
    if filtered.empty:
        raise EmptyInput(f"No score records for exam type '{exam_type}'.")

    # Per-student means over the exams that match the filter
    grouped = filtered.groupby("student_id")
    student_means = grouped["percentage"].mean()
    names = grouped["student_name"].first()

    # Typed exams count once per exam type; an untyped record counts as its own
    # exam, for the student and for the class alike.
    typed = filtered["exam_type"].notna()
    typed_attempts = (
        filtered[typed].groupby("student_id")["exam_type"].nunique()
        .reindex(student_means.index, fill_value=0)
    )
    untyped_counts = (
        filtered[~typed].groupby("student_id").size()
        .reindex(student_means.index, fill_value=0)
    )
    attempts = typed_attempts + untyped_counts
    total_exams = int(filtered.loc[typed, "exam_type"].nunique()) + int(untyped_counts.max())

    rankings = rank_students(
        {sid: float(v) for sid, v in student_means.items()},
        names={sid: str(n) for sid, n in names.items()},
        attempts={sid: int(c) for sid, c in attempts.items()},
        total_exams=total_exams,
    )

    grades = pd.Series([r["grade"] for r in rankings], dtype=object)
    distribution = order_distribution(grades.value_counts().to_dict())

    breakdown = compute_exam_breakdown(df, class_size=class_size)
    completed = sum(
        1 for e in breakdown if e["is_complete"] and e["exam_type"] in STANDARD_EXAM_TYPES
    )

    logger.debug(
        "Snapshot for exam=%s: %d records, %d students",
        wanted or "ALL", len(filtered), len(rankings),
    )

    return _sanitize({
        "exam_type": wanted,
        "total_students": len(rankings),
        "total_records": len(filtered),
        "statistics": compute_statistics(filtered["percentage"]),
        "grade_distribution": distribution,
        "student_rankings": rankings,
        "exam_breakdown": breakdown,
        "completed_exams": completed,
        "pending_exams": len(STANDARD_EXAM_TYPES) - completed,
    })
