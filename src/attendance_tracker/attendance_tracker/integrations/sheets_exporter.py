"""Forward submitted attendance to a spreadsheet web-app webhook."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

import requests

from ..core.constants import DEFAULT_EXPORT_TIMEOUT_SECONDS
from ..core.exceptions import ExportError

logger = logging.getLogger(__name__)

PAYLOAD_KEYS = ("date", "period", "semesterName", "facultyName", "studentsAttendance")


class AttendanceExporter(Protocol):
    def export_attendance(self, payload: Mapping[str, Any]) -> Any:
        raise NotImplementedError


class SheetsWebhookExporter:
    def __init__(
        self,
        url: Optional[str],
        *,
        timeout: float = DEFAULT_EXPORT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._url = (url or "").strip()
        self._timeout = float(timeout)
        self._http = session or requests

    @property
    def configured(self) -> bool:
        return bool(self._url)

    def export_attendance(self, payload: Mapping[str, Any]) -> Any:
        """POST the payload as JSON; return the webhook's decoded reply.

        Only the five known keys are forwarded. Any failure is raised as
        ``ExportError``.
        """
        if not self._url:
            raise ExportError("Google Sheets Web App URL is not configured.")

        body = {k: payload.get(k) for k in PAYLOAD_KEYS}
        try:
            resp = self._http.post(self._url, json=body, timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("sheet export request failed: %s", e)
            raise ExportError(f"Failed to export to Google Sheet: {e}") from e

        if not resp.ok:
            raise ExportError(f"Failed to export to Google Sheet: {resp.status_code} - {resp.text}")

        try:
            return resp.json()
        except ValueError:
            return {"raw": resp.text}
