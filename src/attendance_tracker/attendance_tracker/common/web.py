"""Request-side helpers shared by every controller.

The acting user is resolved once per request and kept on ``flask.g``; views
and templates read it through ``current_user()``. The session cookie holds a
snapshot of the account; role and status are re-read on every request.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Callable, Optional

from flask import Flask, flash, g, redirect, render_template, request, session, url_for

from ..core.exceptions import ValidationError
from ..users.model import SessionUser
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)


def current_user() -> Optional[SessionUser]:
    return g.get("user")


def _session_loader(refresh: Callable[[str], Optional[SessionUser]]):
    def _load_session_user() -> None:
        g.user = None
        user_id = session.get("user_id")
        if not user_id:
            return

        try:
            user = refresh(str(user_id))
        except Exception:
            logger.exception("could not refresh session user %s", user_id)
            return

        if user is None:
            # Account deleted, deactivated or still pending.
            session.clear()
            return

        if SessionUser.from_session(session) != user:
            session.update(user.to_session())
        g.user = user

    return _load_session_user


def install(app: Flask, refresh: Callable[[str], Optional[SessionUser]]) -> None:
    """Resolve ``g.user`` through ``refresh`` (e.g. ``AuthService.refresh``)."""
    app.before_request(_session_loader(refresh))

    @app.context_processor
    def _inject_user():
        return {"current_user": current_user()}


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_user() is None:
            flash("Please log in to continue.", "warning")
            return redirect(url_for("login", next=request.path))
        return view(*args, **kwargs)

    return wrapper


def render_forbidden():
    return render_template("403.html"), 403


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = current_user()
        if user is None:
            flash("Please log in to continue.", "warning")
            return redirect(url_for("login", next=request.path))
        if not (user.is_admin and user.is_active):
            return render_forbidden()
        return view(*args, **kwargs)

    return wrapper


def date_arg(value: Optional[str], default: date, *, field: str = "date") -> date:
    """Parse a YYYY-MM-DD query/form value, falling back to ``default`` when blank."""
    if not value:
        return default
    try:
        return parse_iso_date(value.strip())
    except ValueError:
        raise ValidationError("Please enter a valid date (YYYY-MM-DD).", field=field)
