from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: Optional[str], field_name: str, *, field: Optional[str] = None) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required.", field=field)
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int, *, field: Optional[str] = None) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters.", field=field)
    return value


def require_max_length(value: str, field_name: str, max_len: int, *, field: Optional[str] = None) -> str:
    if len(value) > max_len:
        raise ValidationError(f"{field_name} must not be longer than {max_len} characters.", field=field)
    return value


def require_name(value: Optional[str], field_name: str, *, min_len: int, max_len: int, field: Optional[str] = None) -> str:
    name = (value or "").strip()
    require_min_length(name, field_name, min_len, field=field)
    return require_max_length(name, field_name, max_len, field=field)


def require_email(value: Optional[str], *, field: str = "email") -> str:
    email = (value or "").strip()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Please enter a valid email address.", field=field)
    return email.lower()


def optional_email(value: Optional[str], *, field: str = "email") -> Optional[str]:
    """Blank means "no email"; anything else must look like one."""
    if not value or not value.strip():
        return None
    return require_email(value, field=field)
