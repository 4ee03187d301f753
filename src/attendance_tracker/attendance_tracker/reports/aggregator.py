"""Fold flat attendance rows into summaries, matrices and daily counts.

Only marked periods count toward a denominator; a period with no row is
"not applicable", never absent.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Set

from ..core.constants import GOOD_ATTENDANCE_ABOVE, PERIODS, WARNING_ATTENDANCE_ABOVE
from ..core.enums import AttendanceTier
from ..attendance.model import AttendanceReportRow
from .model import DailyOverview, MatrixDay, StudentMatrix, StudentSummary


def attendance_percentage(present: int, marked: int) -> int:
    """Whole percent, rounded half up; 0 when nothing was marked."""
    if marked <= 0:
        return 0
    return (present * 200 + marked) // (2 * marked)


def attendance_tier(percentage: float) -> AttendanceTier:
    if percentage > GOOD_ATTENDANCE_ABOVE:
        return AttendanceTier.GOOD
    if percentage > WARNING_ATTENDANCE_ABOVE:
        return AttendanceTier.WARNING
    return AttendanceTier.CRITICAL


def _day_counts(rows: Iterable[AttendanceReportRow]):
    marked: Set[date] = set()
    present: Set[date] = set()
    for r in rows:
        marked.add(r.on_date)
        if r.is_present:
            present.add(r.on_date)
    return len(marked), len(present)


def summarize_by_student(rows: Iterable[AttendanceReportRow]) -> List[StudentSummary]:
    groups: Dict[int, List[AttendanceReportRow]] = defaultdict(list)
    for r in rows:
        groups[r.student_id].append(r)

    out = []
    for student_id, items in groups.items():
        first = items[0]
        marked = len(items)
        present = sum(1 for r in items if r.is_present)
        days_marked, days_present = _day_counts(items)
        pct = attendance_percentage(present, marked)
        out.append(
            StudentSummary(
                student_id=student_id,
                student_name=first.student_name,
                roll_number=first.roll_number,
                semester_name=first.semester_name,
                periods_marked=marked,
                periods_present=present,
                days_marked=days_marked,
                days_present=days_present,
                percentage=pct,
                tier=attendance_tier(pct),
            )
        )

    out.sort(key=lambda s: (s.student_name.lower(), s.roll_number))
    return out


def build_student_matrix(rows: Iterable[AttendanceReportRow]) -> StudentMatrix:
    """Rows are expected to belong to a single student."""
    by_date: Dict[date, Dict[int, bool]] = defaultdict(dict)
    for r in rows:
        by_date[r.on_date][int(r.period)] = bool(r.is_present)

    days = []
    total_marked = total_present = days_present = 0
    for on_date in sorted(by_date):
        marks = by_date[on_date]
        marked = len(marks)
        present = sum(1 for v in marks.values() if v)
        total_marked += marked
        total_present += present
        if present:
            days_present += 1
        days.append(
            MatrixDay(
                on_date=on_date,
                cells={p: marks.get(p) for p in PERIODS},
                marked=marked,
                present=present,
                percentage=attendance_percentage(present, marked),
            )
        )

    pct = attendance_percentage(total_present, total_marked)
    return StudentMatrix(
        days=days,
        periods_marked=total_marked,
        periods_present=total_present,
        days_marked=len(days),
        days_present=days_present,
        percentage=pct,
        tier=attendance_tier(pct),
    )


def daily_overview(rows: Iterable[AttendanceReportRow]) -> List[DailyOverview]:
    counts: Dict[date, List[int]] = defaultdict(lambda: [0, 0])
    for r in rows:
        counts[r.on_date][0 if r.is_present else 1] += 1
    return [DailyOverview(on_date=d, present=c[0], absent=c[1]) for d, c in sorted(counts.items())]
