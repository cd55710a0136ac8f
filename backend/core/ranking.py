"""
ranking.py — Student ranking.

Students are ordered by percentage, highest first. Equal percentages are
broken by student id ascending, and ranks run 1..N with no shared values
("sequential" ranking). Ids compare as plain strings, so "10" sorts before
"9" and "S10" before "S9"; zero-pad numeric ids when numeric order matters.
``competition_ranks`` is the tie-sharing variant (1, 1, 3) for callers that
want it.

The full ordering is always returned; top-N lists are a slice of it.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import numpy as np
from scipy import stats as sp_stats

from core.grading import classify
from core.records import validate_percentage

logger = logging.getLogger(__name__)


def _sort_key(item):
    student_id, percentage = item
    return (-percentage, student_id)


def rank_students(
    averages: Mapping[str, float],
    names: Optional[Mapping[str, str]] = None,
    attempts: Optional[Mapping[str, int]] = None,
    total_exams: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Rank students by their mean percentage.

    Args:
      averages: student_id -> mean percentage
      names: student_id -> display name (defaults to the id)
      attempts: student_id -> number of exams the student sat
      total_exams: number of exams in scope, reported on every row
    """
    names = names or {}
    attempts = attempts or {}

    validated = {str(sid): validate_percentage(pct) for sid, pct in averages.items()}
    ordered = sorted(validated.items(), key=_sort_key)

    rankings = []
    for position, (student_id, percentage) in enumerate(ordered, start=1):
        rankings.append({
            "student_id": student_id,
            "student_name": names.get(student_id, student_id),
            "percentage": percentage,
            "grade": classify(percentage),
            "rank": position,
            "exams_attempted": int(attempts.get(student_id, 0)),
            "total_exams": int(total_exams) if total_exams is not None else None,
        })

    logger.debug("Ranked %d students", len(rankings))
    return rankings


def competition_ranks(rankings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Re-rank an ordered ranking so that equal percentages share a rank and the
    next rank skips (90, 90, 75 -> 1, 1, 3). Order is left untouched.
    """
    if not rankings:
        return []
    pct = np.array([r["percentage"] for r in rankings], dtype=float)
    shared = sp_stats.rankdata(-pct, method="min")
    return [{**row, "rank": int(rank)} for row, rank in zip(rankings, shared)]
