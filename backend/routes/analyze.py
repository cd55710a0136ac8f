"""
Analyze routes — analytics API endpoints.

The data layer posts already-fetched records; every endpoint is a thin wrapper
around a pure function in core/.
"""

import logging
import os

from fastapi import APIRouter, HTTPException

from core.charts import CHART_KINDS, to_series
from core.comparison import MAX_YEARS, MIN_YEARS, compare_years
from core.grading import get_all_grade_thresholds
from core.stats import compute_class_snapshot

logger = logging.getLogger(__name__)

router = APIRouter()

RANKING_LIMIT = int(os.getenv("RANKING_LIMIT", "10"))


def _records_from_payload(payload: dict) -> list:
    """Extract score records from request payload."""
    data = payload.get("data")
    if not data:
        raise HTTPException(400, "No data provided.")
    return data


def _limit_from_payload(payload: dict):
    limit = payload.get("limit", RANKING_LIMIT)
    if limit is None:
        return None
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        raise HTTPException(400, f"Invalid limit: {limit!r}.")
    if limit < 0:
        raise HTTPException(400, "Limit must not be negative.")
    return limit


@router.post("/class-snapshot")
async def class_snapshot(payload: dict):
    """
    Class snapshot: totals, statistics, grade distribution, rankings.
    Expects: { "data": [...score records...], "exam_type": "FA1", "limit": 10 }
    A null limit returns the full ranking; a missing or blank exam_type means all exams.
    """
    records = _records_from_payload(payload)
    limit = _limit_from_payload(payload)
    snapshot = compute_class_snapshot(
        records,
        exam_type=payload.get("exam_type"),
        class_id=payload.get("class_id"),
    )
    if limit is not None:
        snapshot["student_rankings"] = snapshot["student_rankings"][:limit]
    return snapshot


@router.post("/year-comparison")
async def year_comparison(payload: dict):
    """
    Compare 2-5 academic years. Order of "years" is the selection order.
    Expects: { "years": [...year metrics...] }
    """
    years = payload.get("years")
    if years is None:
        raise HTTPException(400, "No years provided.")
    return compare_years(years)


@router.post("/chart/{kind}")
async def chart(kind: str, payload: dict):
    """
    Chart series for a snapshot ("data") or a comparison ("years").
    Kinds: trend, distribution, ranking, growth.
    """
    if kind not in CHART_KINDS:
        raise HTTPException(404, f"Unknown chart kind '{kind}'.")
    if payload.get("years") is not None:
        source = compare_years(payload["years"])
    else:
        source = compute_class_snapshot(
            _records_from_payload(payload),
            exam_type=payload.get("exam_type"),
            class_id=payload.get("class_id"),
        )
    return to_series(source, kind, limit=_limit_from_payload(payload))


@router.get("/grade-scale")
async def grade_scale():
    """Return the grade legend and comparison bounds."""
    return {
        "grade_scale": get_all_grade_thresholds(),
        "compare_years": {"min": MIN_YEARS, "max": MAX_YEARS},
    }
