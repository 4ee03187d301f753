"""JSON callbacks authenticated with a bearer token from ``/auth/token``.

Every failure is answered as ``{"error": ...}`` with a matching status code.
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ExportError,
    NotFoundError,
    ValidationError,
)
from ..container import Container

logger = logging.getLogger(__name__)


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def register(app: Flask, container: Container) -> None:
    def _json_body():
        body = request.get_json(silent=True)
        return body if isinstance(body, dict) else None

    @app.route("/functions/admin-update-user-password", methods=["POST"], endpoint="fn_admin_update_user_password")
    def fn_admin_update_user_password():
        body = _json_body()
        if body is None:
            return _error("Failed to parse request body as JSON.", 400)

        try:
            actor = container.auth_service.authenticate_bearer(request.headers.get("Authorization"))
        except AuthenticationError as e:
            return _error(str(e), 401)
        except Exception as e:
            logger.exception("bearer authentication failed")
            return _error(f"An unexpected error occurred: {e}", 500)

        user_id = body.get("userId")
        new_password = body.get("newPassword")
        if not user_id or not new_password:
            return _error("User ID and new password are required.", 400)

        try:
            user = container.user_service.admin_set_password(actor, str(user_id), str(new_password))
        except AuthorizationError as e:
            return _error(str(e), 403)
        except NotFoundError as e:
            return _error(str(e), 404)
        except ValidationError as e:
            return _error(str(e), 400)
        except Exception as e:
            logger.exception("admin password update failed")
            return _error(f"An unexpected error occurred: {e}", 500)

        return jsonify({"message": "User password updated successfully.", "user": user.public_dict()}), 200

    @app.route("/functions/export-attendance-to-sheets", methods=["POST"], endpoint="fn_export_attendance_to_sheets")
    def fn_export_attendance_to_sheets():
        body = _json_body()
        if body is None:
            return _error(
                "Failed to parse request body as JSON. Ensure Content-Type is application/json and body is valid JSON.",
                400,
            )

        try:
            container.auth_service.authenticate_bearer(request.headers.get("Authorization"))
        except AuthenticationError as e:
            return _error(str(e), 401)
        except Exception as e:
            logger.exception("bearer authentication failed")
            return _error(f"An unexpected error occurred: {e}", 500)

        try:
            result = container.sheets_exporter.export_attendance(body)
        except ExportError as e:
            logger.warning("sheet export callback failed: %s", e)
            return _error(str(e), 500)
        except Exception as e:
            logger.exception("sheet export callback failed")
            return _error(f"An unexpected error occurred: {e}", 500)

        return jsonify({"message": "Attendance exported to Google Sheet successfully.", "result": result}), 200
