"""
comparison.py — Academic year comparison.

Takes the aggregate totals of 2-5 selected years (in the order the user picked
them) and produces:
- an aligned metric table
- trends: latest selected year minus the one selected before it
- the year holding the maximum of each metric
- least-squares growth slope per metric across the whole selection
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from core.errors import InvalidSelection
from core.records import YearMetrics, parse_year_list, require_year_list

logger = logging.getLogger(__name__)

MIN_YEARS = 2
MAX_YEARS = 5

# (metric, trend key, label)
TRACKED_METRICS = [
    ("total_students", "students_change", "Students"),
    ("total_classes", "classes_change", "Classes"),
    ("total_exams", "exams_change", "Exams"),
    ("total_subjects", "subjects_change", "Subjects"),
    ("total_teachers", "teachers_change", "Teachers"),
    ("average_attendance", "attendance_change", "Avg Attendance"),
]


def _delta(latest: Optional[float], previous: Optional[float]) -> Optional[float]:
    if latest is None or previous is None:
        return None
    return latest - previous


def _direction(delta: Optional[float]) -> str:
    if delta is None:
        return "unknown"
    if delta > 0:
        return "improving"
    if delta < 0:
        return "declining"
    return "stable"


def _max_year_id(years: List[YearMetrics], metric: str) -> Optional[str]:
    """
    Year id holding the strict maximum. Ties at the top, and maxima that are
    missing or not positive, give None.
    """
    values = [(y.year_id, y.get(metric)) for y in years if y.get(metric) is not None]
    if not values:
        return None
    best = max(v for _, v in values)
    if best <= 0:
        return None
    holders = [year_id for year_id, v in values if v == best]
    return holders[0] if len(holders) == 1 else None


def _slope(values: List[Optional[float]]) -> Optional[float]:
    if any(v is None for v in values) or len(values) < 2:
        return None
    x = np.arange(len(values))
    return round(float(np.polyfit(x, np.array(values, dtype=float), 1)[0]), 3)


def validate_selection(years: Sequence[Any]) -> None:
    count = len(years)
    if count < MIN_YEARS:
        raise InvalidSelection(f"Select at least {MIN_YEARS} years to compare (got {count}).")
    if count > MAX_YEARS:
        raise InvalidSelection(f"At most {MAX_YEARS} years can be compared (got {count}).")


def compare_years(selected_years: Sequence[Any]) -> Dict[str, Any]:
    """
    Compare the selected academic years.

    ``selected_years`` holds YearMetrics or year payload dicts. Order is kept
    as given; the last entry is treated as the latest year for trends.
    Raises InvalidSelection for fewer than 2, more than 5 or duplicate years.
    """
    if selected_years is None:
        raise InvalidSelection("No years selected.")
    require_year_list(selected_years)
    validate_selection(selected_years)
    years = parse_year_list(selected_years)

    ids = [y.year_id for y in years]
    if len(set(ids)) != len(ids):
        raise InvalidSelection("The same year was selected more than once.")

    latest, previous = years[-1], years[-2]

    trends: Dict[str, Optional[float]] = {}
    directions: Dict[str, str] = {}
    max_year: Dict[str, Optional[str]] = {}
    slopes: Dict[str, Optional[float]] = {}
    metrics_table: List[Dict[str, Any]] = []

    for metric, trend_key, label in TRACKED_METRICS:
        delta = _delta(latest.get(metric), previous.get(metric))
        trends[trend_key] = delta
        directions[trend_key] = _direction(delta)
        max_year[metric] = _max_year_id(years, metric)
        values = [y.get(metric) for y in years]
        slopes[metric] = _slope(values)
        metrics_table.append({"key": metric, "label": label, "values": values})

    logger.debug("Compared years %s", ", ".join(ids))

    return {
        "years": [y.to_dict() for y in years],
        "metrics": metrics_table,
        "trends": trends,
        "trend_directions": directions,
        "per_metric_max_year_id": max_year,
        "growth_slopes": slopes,
        "latest_year_id": latest.year_id,
        "previous_year_id": previous.year_id,
    }
