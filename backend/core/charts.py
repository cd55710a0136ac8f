"""
charts.py — Chart series shaping.

Turns a class snapshot or a year comparison into a renderer-neutral
``{labels, series, empty}`` structure. Nothing is computed here beyond picking
already-computed fields in display order and rounding percentages for display.

Kinds:
  trend         snapshot: class average per exam type
                comparison: average attendance per year
  distribution  snapshot: students per grade
  ranking       snapshot: student percentages in rank order
  growth        comparison: students and exams per year

A source without the fields a kind needs yields ``empty_series()``.
"""

from typing import Any, Dict, List, Optional

from core.errors import InvalidInput
from core.grading import GRADE_ORDER, grade_color

CHART_KINDS = ("trend", "distribution", "ranking", "growth")

PRIMARY_COLOR = "#2196F3"
SECONDARY_COLOR = "#9C27B0"
SUCCESS_COLOR = "#4CAF50"

EXAM_COLORS = {
    "FA1": "#4CAF50",
    "FA2": "#2196F3",
    "SA1": "#FF9800",
    "FA3": "#9C27B0",
    "FA4": "#E91E63",
    "SA2": "#F44336",
}


def empty_series() -> Dict[str, Any]:
    return {"labels": [], "series": [], "empty": True}


def _series(name: str, values: List[Any], color: str, **extra) -> Dict[str, Any]:
    entry = {"name": name, "values": values, "color": color}
    entry.update(extra)
    return entry


def _chart(labels: List[str], series: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not labels or not series:
        return empty_series()
    return {"labels": labels, "series": series, "empty": False}


def _display(value: Optional[float], decimals: int = 1) -> Optional[float]:
    return None if value is None else round(float(value), decimals)


# ── Display formatting ──────────────────────────────────────────────

def format_percentage(value: Optional[float], decimals: int = 1) -> str:
    """85.0 -> '85.0%'; None -> 'N/A'."""
    if value is None:
        return "N/A"
    return f"{float(value):.{decimals}f}%"


def format_trend(delta: Optional[float], suffix: str = "", decimals: int = 1) -> str:
    """20 -> '+20', -3.5 with suffix '%' -> '-3.5%', None -> 'N/A'."""
    if delta is None:
        return "N/A"
    value = float(delta)
    text = f"{value:+.0f}" if value.is_integer() else f"{value:+.{decimals}f}"
    return text + suffix


# ── Snapshot shapes ─────────────────────────────────────────────────

def _snapshot_trend(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    exams = [e for e in snapshot.get("exam_breakdown") or [] if e.get("avg_percentage") is not None]
    labels = [e["exam_type"] for e in exams]
    values = [_display(e["avg_percentage"]) for e in exams]
    point_colors = [EXAM_COLORS.get(label, PRIMARY_COLOR) for label in labels]
    return _chart(labels, [_series("Class Average", values, PRIMARY_COLOR, point_colors=point_colors)])


def _snapshot_distribution(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    distribution = snapshot.get("grade_distribution") or {}
    labels = [g for g in GRADE_ORDER if distribution.get(g)]
    values = [int(distribution[g]) for g in labels]
    point_colors = [grade_color(g) for g in labels]
    return _chart(labels, [_series("Students", values, PRIMARY_COLOR, point_colors=point_colors)])


def _snapshot_ranking(snapshot: Dict[str, Any], limit: Optional[int]) -> Dict[str, Any]:
    rankings = snapshot.get("student_rankings") or []
    if limit is not None:
        rankings = rankings[:limit]
    labels = [str(r.get("student_name") or r["student_id"]) for r in rankings]
    values = [_display(r["percentage"]) for r in rankings]
    point_colors = [grade_color(r["grade"]) for r in rankings]
    return _chart(labels, [_series("Percentage", values, PRIMARY_COLOR, point_colors=point_colors)])


# ── Comparison shapes ───────────────────────────────────────────────

def _year_labels(comparison: Dict[str, Any]) -> List[str]:
    return [str(y.get("year_label") or y.get("year_id")) for y in comparison.get("years") or []]


def _comparison_trend(comparison: Dict[str, Any]) -> Dict[str, Any]:
    years = comparison.get("years") or []
    values = [_display(y.get("average_attendance")) for y in years]
    if all(v is None for v in values):
        return empty_series()
    return _chart(_year_labels(comparison), [_series("Avg Attendance", values, SUCCESS_COLOR)])


def _comparison_growth(comparison: Dict[str, Any]) -> Dict[str, Any]:
    years = comparison.get("years") or []
    series = []
    for metric, name, color in (
        ("total_students", "Students", PRIMARY_COLOR),
        ("total_exams", "Exams", SECONDARY_COLOR),
    ):
        values = [y.get(metric) for y in years]
        if any(v is not None for v in values):
            series.append(_series(name, values, color))
    return _chart(_year_labels(comparison), series)


def to_series(source: Optional[Dict[str, Any]], kind: str, limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Shape ``source`` (snapshot or comparison dict) for the chart ``kind``.

    ``limit`` only applies to the ranking kind. Unknown kinds raise
    InvalidInput; kinds that do not apply to the source give an empty series.
    """
    if kind not in CHART_KINDS:
        raise InvalidInput(f"Unknown chart kind '{kind}'. Expected one of: {', '.join(CHART_KINDS)}.")
    if not source:
        return empty_series()

    if "years" in source:
        if kind == "trend":
            return _comparison_trend(source)
        if kind == "growth":
            return _comparison_growth(source)
        return empty_series()

    if kind == "trend":
        return _snapshot_trend(source)
    if kind == "distribution":
        return _snapshot_distribution(source)
    if kind == "ranking":
        return _snapshot_ranking(source, limit)
    return empty_series()
