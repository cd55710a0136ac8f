"""
Tests for core/stats.py — compute_class_snapshot, compute_statistics, compute_exam_breakdown.
"""

import os
import sys
import pytest
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.errors import EmptyInput, InvalidInput
from core.records import parse_score_records, records_to_frame
from core.stats import (
    STANDARD_EXAM_TYPES,
    compute_class_snapshot,
    compute_exam_breakdown,
    compute_statistics,
)


@pytest.fixture
def class_records():
    """Three students across FA1 and FA2, camelCase as the API sends them."""
    return [
        {"studentId": "S001", "studentName": "Alice", "classId": "7A", "examType": "FA1", "percentage": 92},
        {"studentId": "S002", "studentName": "Brian", "classId": "7A", "examType": "FA1", "percentage": 68},
        {"studentId": "S003", "studentName": "Cheru", "classId": "7A", "examType": "FA1", "percentage": 45},
        {"studentId": "S001", "studentName": "Alice", "classId": "7A", "examType": "FA2", "percentage": 88},
        {"studentId": "S002", "studentName": "Brian", "classId": "7A", "examType": "FA2", "percentage": 72},
    ]


class TestScenario:
    """The three-student tie scenario."""

    @pytest.fixture
    def records(self):
        return [
            {"student_id": "S1", "student_name": "S1", "percentage": 90},
            {"student_id": "S2", "student_name": "S2", "percentage": 90},
            {"student_id": "S3", "student_name": "S3", "percentage": 75},
        ]

    def test_statistics(self, records):
        result = compute_class_snapshot(records)
        assert result["total_students"] == 3
        assert result["statistics"]["average"] == pytest.approx(85.0)
        assert result["statistics"]["highest"] == 90
        assert result["statistics"]["lowest"] == 75

    def test_distribution(self, records):
        result = compute_class_snapshot(records)
        assert result["grade_distribution"] == {"A+": 2, "B+": 1}

    def test_rankings(self, records):
        result = compute_class_snapshot(records)
        rankings = result["student_rankings"]
        assert [(r["student_id"], r["rank"]) for r in rankings] == [("S1", 1), ("S2", 2), ("S3", 3)]


class TestComputeClassSnapshot:
    """Tests for compute_class_snapshot."""

    def test_unfiltered_uses_all_records(self, class_records):
        result = compute_class_snapshot(class_records)
        assert result["exam_type"] is None
        assert result["total_records"] == 5
        assert result["total_students"] == 3
        assert result["statistics"]["average"] == pytest.approx((92 + 68 + 45 + 88 + 72) / 5)

    def test_average_keeps_full_precision(self):
        records = [
            {"student_id": "A", "percentage": 70},
            {"student_id": "B", "percentage": 70},
            {"student_id": "C", "percentage": 71},
        ]
        result = compute_class_snapshot(records)
        assert result["statistics"]["average"] == pytest.approx(211 / 3)
        assert result["statistics"]["average"] != round(211 / 3, 1)

    def test_exam_filter(self, class_records):
        result = compute_class_snapshot(class_records, exam_type="FA2")
        assert result["exam_type"] == "FA2"
        assert result["total_students"] == 2
        assert result["statistics"]["highest"] == 88
        assert result["statistics"]["lowest"] == 72

    def test_exam_filter_is_case_insensitive(self, class_records):
        result = compute_class_snapshot(class_records, exam_type=" fa2 ")
        assert result["total_students"] == 2

    def test_student_means_over_matching_exams(self, class_records):
        result = compute_class_snapshot(class_records)
        alice = next(r for r in result["student_rankings"] if r["student_id"] == "S001")
        assert alice["percentage"] == pytest.approx(90.0)
        assert alice["exams_attempted"] == 2
        assert alice["total_exams"] == 2
        cheru = next(r for r in result["student_rankings"] if r["student_id"] == "S003")
        assert cheru["exams_attempted"] == 1

    def test_distribution_sums_to_total_students(self, class_records):
        for exam in (None, "FA1", "FA2"):
            result = compute_class_snapshot(class_records, exam_type=exam)
            assert sum(result["grade_distribution"].values()) == result["total_students"]

    def test_rankings_sorted_and_dense(self, class_records):
        rankings = compute_class_snapshot(class_records)["student_rankings"]
        assert [r["rank"] for r in rankings] == list(range(1, len(rankings) + 1))
        for a, b in zip(rankings, rankings[1:]):
            assert a["percentage"] > b["percentage"] or (
                a["percentage"] == b["percentage"] and a["student_id"] < b["student_id"]
            )

    def test_class_filter(self, class_records):
        other = {"studentId": "X1", "classId": "8B", "examType": "FA1", "percentage": 10}
        result = compute_class_snapshot(class_records + [other], class_id="7A")
        assert result["total_students"] == 3

    def test_accepts_dataframe(self, class_records):
        df = pd.DataFrame(class_records)
        assert compute_class_snapshot(df)["total_students"] == 3

    def test_exam_breakdown_and_completion(self, class_records):
        result = compute_class_snapshot(class_records)
        breakdown = result["exam_breakdown"]
        assert [e["exam_type"] for e in breakdown] == ["FA1", "FA2"]
        assert breakdown[0]["is_complete"] is True
        assert breakdown[1]["is_complete"] is False
        assert breakdown[1]["students_with_marks"] == 2
        assert result["completed_exams"] == 1
        assert result["pending_exams"] == len(STANDARD_EXAM_TYPES) - 1

    def test_snapshot_for_new_filter_is_independent(self, class_records):
        first = compute_class_snapshot(class_records, exam_type="FA1")
        second = compute_class_snapshot(class_records, exam_type="FA2")
        assert first["total_students"] == 3
        assert second["total_students"] == 2

    def test_blank_exam_filter_means_all_exams(self, class_records):
        for blank in ("", "   "):
            result = compute_class_snapshot(class_records, exam_type=blank)
            assert result["exam_type"] is None
            assert result["total_records"] == 5

    def test_mixed_typed_and_untyped_attempts_within_total(self):
        records = [
            {"student_id": "A", "exam_type": "FA1", "percentage": 80},
            {"student_id": "B", "percentage": 70},
            {"student_id": "B", "percentage": 60},
            {"student_id": "B", "percentage": 50},
        ]
        rankings = compute_class_snapshot(records)["student_rankings"]
        by_id = {r["student_id"]: r for r in rankings}
        assert by_id["A"]["exams_attempted"] == 1
        assert by_id["B"]["exams_attempted"] == 3
        for row in rankings:
            assert row["total_exams"] == 4
            assert row["exams_attempted"] <= row["total_exams"]


class TestSnapshotErrors:
    """Empty and invalid input."""

    def test_empty_records(self):
        with pytest.raises(EmptyInput):
            compute_class_snapshot([])

    def test_filter_matching_nothing(self, class_records):
        with pytest.raises(EmptyInput):
            compute_class_snapshot(class_records, exam_type="SA2")

    def test_out_of_range_percentage(self):
        with pytest.raises(InvalidInput):
            compute_class_snapshot([{"student_id": "S1", "percentage": 120}])

    def test_missing_student_id(self):
        with pytest.raises(InvalidInput):
            compute_class_snapshot([{"percentage": 50}])


class TestComputeStatistics:
    """Tests for compute_statistics."""

    def test_empty_is_all_none(self):
        result = compute_statistics([])
        assert all(v is None for v in result.values())

    def test_single_value(self):
        result = compute_statistics([64.0])
        assert result["average"] == 64.0
        assert result["median"] == 64.0
        assert result["std_dev"] is None

    def test_values_are_python_floats(self):
        result = compute_statistics([50, 60, 70])
        assert type(result["average"]) is float
        assert result["std_dev"] == pytest.approx(10.0)


class TestComputeExamBreakdown:
    """Tests for compute_exam_breakdown."""

    def test_calendar_order(self):
        records = parse_score_records([
            {"student_id": "S1", "exam_type": "SA1", "percentage": 50},
            {"student_id": "S1", "exam_type": "Mock", "percentage": 40},
            {"student_id": "S1", "exam_type": "FA2", "percentage": 60},
            {"student_id": "S1", "exam_type": "FA1", "percentage": 70},
        ])
        breakdown = compute_exam_breakdown(records_to_frame(records))
        assert [e["exam_type"] for e in breakdown] == ["FA1", "FA2", "SA1", "Mock"]

    def test_empty_frame(self):
        assert compute_exam_breakdown(records_to_frame([])) == []
