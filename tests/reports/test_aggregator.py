from __future__ import annotations

from datetime import date

import pytest

from src.attendance_tracker.attendance_tracker.attendance.model import AttendanceReportRow
from src.attendance_tracker.attendance_tracker.core.enums import AttendanceTier
from src.attendance_tracker.attendance_tracker.reports.aggregator import (
    attendance_percentage,
    attendance_tier,
    build_student_matrix,
    daily_overview,
    summarize_by_student,
)

D1 = date(2024, 2, 1)
D2 = date(2024, 2, 2)


def _row(student_id: int, on_date: date, period: int, present: bool, *, name: str = "") -> AttendanceReportRow:
    return AttendanceReportRow(
        student_id=student_id,
        student_name=name or f"Student {student_id}",
        roll_number=f"R{student_id:02d}",
        semester_name="1st Semester",
        on_date=on_date,
        period=period,
        is_present=present,
    )


def test_percentage_is_zero_when_nothing_marked():
    assert attendance_percentage(0, 0) == 0


@pytest.mark.parametrize(
    "present,marked,expected",
    [
        (8, 10, 80),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 rounds up
        (5, 8, 63),  # 62.5 rounds up
        (10, 10, 100),
    ],
)
def test_percentage_rounds_half_up(present, marked, expected):
    assert attendance_percentage(present, marked) == expected


@pytest.mark.parametrize(
    "pct,tier",
    [
        (100, AttendanceTier.GOOD),
        (91, AttendanceTier.GOOD),
        (90, AttendanceTier.WARNING),
        (76, AttendanceTier.WARNING),
        (75, AttendanceTier.CRITICAL),
        (0, AttendanceTier.CRITICAL),
    ],
)
def test_tier_thresholds_are_strictly_above(pct, tier):
    assert attendance_tier(pct) == tier


def test_summary_counts_periods_and_days():
    rows = [
        _row(1, D1, 1, True),
        _row(1, D1, 2, False),
        _row(1, D2, 1, False),
        _row(1, D2, 2, False),
        _row(2, D1, 1, True),
    ]

    by_id = {s.student_id: s for s in summarize_by_student(rows)}

    first = by_id[1]
    assert (first.periods_marked, first.periods_present) == (4, 1)
    assert (first.days_marked, first.days_present) == (2, 1)
    assert first.percentage == 25
    assert first.tier == AttendanceTier.CRITICAL
    assert by_id[2].percentage == 100


def test_summary_of_eight_out_of_ten_is_eighty():
    rows = [_row(1, D1 if p < 6 else D2, (p % 6) + 1, p < 8) for p in range(10)]

    (summary,) = summarize_by_student(rows)

    assert summary.percentage == 80


def test_summary_sorted_by_student_name():
    rows = [_row(1, D1, 1, True, name="zed"), _row(2, D1, 1, True, name="Amy")]

    assert [s.student_name for s in summarize_by_student(rows)] == ["Amy", "zed"]


def test_summary_of_no_rows_is_empty():
    assert summarize_by_student([]) == []


def test_matrix_marks_missing_periods_as_not_applicable():
    rows = [_row(1, D2, 3, True), _row(1, D1, 1, False), _row(1, D1, 2, True)]

    matrix = build_student_matrix(rows)

    assert [d.on_date for d in matrix.days] == [D1, D2]
    first = matrix.days[0]
    assert first.cells == {1: False, 2: True, 3: None, 4: None, 5: None, 6: None}
    assert (first.marked, first.present, first.percentage) == (2, 1, 50)
    assert matrix.days[1].percentage == 100
    assert (matrix.periods_marked, matrix.periods_present, matrix.percentage) == (3, 2, 67)
    assert (matrix.days_marked, matrix.days_present) == (2, 2)


def test_matrix_of_no_rows_is_zero_not_an_error():
    matrix = build_student_matrix([])

    assert matrix.days == []
    assert matrix.percentage == 0
    assert matrix.tier == AttendanceTier.CRITICAL


def test_daily_overview_counts_present_and_absent():
    rows = [_row(1, D2, 1, True), _row(2, D2, 1, False), _row(1, D1, 1, True)]

    overview = daily_overview(rows)

    assert [(d.on_date, d.present, d.absent) for d in overview] == [(D1, 1, 0), (D2, 1, 1)]
    assert overview[1].total == 2
