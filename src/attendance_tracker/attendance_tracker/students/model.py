from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class Student:
    student_id: int
    name: str
    roll_number: str
    email: Optional[str]
    semester_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewStudent:
    """Validated input for an insert or an update."""

    name: str
    roll_number: str
    semester_id: int
    email: Optional[str] = None


@dataclass(frozen=True)
class ImportResult:
    imported: int
    skipped: int
    warnings: List[str] = field(default_factory=list)
