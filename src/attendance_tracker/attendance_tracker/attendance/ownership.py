"""Who owns which period of a day.

A period is OPEN when it has no rows, TAKEN_BY_ME when any of its rows was
written by the current user, TAKEN_BY_OTHER otherwise.
"""

from __future__ import annotations

from typing import Dict, Iterable

from ..core.constants import PERIODS
from ..core.enums import SlotOwnership
from .model import AttendanceEntry, PeriodStatus


def classify_periods(records: Iterable[AttendanceEntry], current_user_id: str) -> Dict[int, PeriodStatus]:
    by_period: Dict[int, list] = {}
    for r in records:
        by_period.setdefault(int(r.period), []).append(r)

    out: Dict[int, PeriodStatus] = {}
    for period in PERIODS:
        rows = by_period.get(period)
        if not rows:
            out[period] = PeriodStatus(period=period, ownership=SlotOwnership.OPEN)
            continue

        mine = next((r for r in rows if r.faculty_id == current_user_id), None)
        if mine is not None:
            out[period] = PeriodStatus(period=period, ownership=SlotOwnership.TAKEN_BY_ME, author_tag=mine.author_tag)
        else:
            out[period] = PeriodStatus(period=period, ownership=SlotOwnership.TAKEN_BY_OTHER, author_tag=rows[0].author_tag)
    return out


def blocking_message(status: PeriodStatus) -> str:
    return (
        f"Period {status.period} has already been taken by {status.author_tag}. "
        "Only an administrator can modify it."
    )
