from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Semester:
    semester_id: int
    name: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SemesterCard:
    """Dashboard read-model: semester with its roster size."""

    semester_id: int
    name: str
    student_count: int
