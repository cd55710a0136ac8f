"""
grading.py - Letter grade classification.

Seven bands on a 0-100 percentage scale:
  A+, A, B+, B, C, D, F

Lower bounds are inclusive. Percentages outside [0, 100] are rejected,
never clamped.
"""

from typing import Any, Dict, List

from core.records import validate_percentage


# Grade bands (min_score, label, description, color)
# Ordered high to low.
GRADE_BANDS = [
    (90.0, "A+", "Outstanding", "#4CAF50"),
    (80.0, "A", "Excellent", "#66BB6A"),
    (70.0, "B+", "Very Good", "#2196F3"),
    (60.0, "B", "Good", "#42A5F5"),
    (50.0, "C", "Average", "#FF9800"),
    (40.0, "D", "Below Average", "#FF5722"),
    (0.0, "F", "Fail", "#F44336"),
]

GRADE_ORDER = [label for _, label, _, _ in GRADE_BANDS]


def get_grade_info(percentage: Any) -> Dict[str, Any]:
    """Return the full band for a 0-100 percentage."""
    value = validate_percentage(percentage)
    for min_score, label, desc, color in GRADE_BANDS:
        if value >= min_score:
            return {
                "label": label,
                "description": desc,
                "color": color,
                "min": min_score,
            }
    # Unreachable: the last band starts at 0 and negatives are rejected above.
    raise AssertionError(f"No grade band for {value}")


def classify(percentage: Any) -> str:
    """Return the grade label, e.g. 'B+'. Raises InvalidInput outside [0, 100]."""
    return get_grade_info(percentage)["label"]


def grade_color(label: str) -> str:
    for _, band_label, _, color in GRADE_BANDS:
        if band_label == label:
            return color
    raise KeyError(label)


def get_all_grade_thresholds() -> List[Dict[str, Any]]:
    """Return full grade scale for legend/reference."""
    thresholds = []
    for idx, (min_score, label, desc, color) in enumerate(GRADE_BANDS):
        max_score = 100.0 if idx == 0 else GRADE_BANDS[idx - 1][0] - 0.01
        thresholds.append(
            {
                "min": min_score,
                "max": round(max_score, 2),
                "label": label,
                "description": desc,
                "color": color,
            }
        )
    return thresholds


def order_distribution(counts: Dict[str, int]) -> Dict[str, int]:
    """Reorder a label -> count mapping to GRADE_ORDER, dropping empty buckets."""
    return {label: int(counts[label]) for label in GRADE_ORDER if counts.get(label)}
