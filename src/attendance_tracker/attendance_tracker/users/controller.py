from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for

from ..common.read_model import load_resource
from ..common.web import admin_required, current_user, login_required
from ..core.constants import MAX_ABBREVIATION_LENGTH
from ..core.enums import Role, UserStatus
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..container import Container

logger = logging.getLogger(__name__)


def _safe_next(target: str) -> str:
    # Only local paths; never an absolute URL from the query string.
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return url_for("dashboard")


def register(app: Flask, container: Container) -> None:
    @app.route("/", endpoint="index")
    def index():
        if current_user() is not None:
            return redirect(url_for("dashboard"))
        return redirect(url_for("login"))

    @app.route("/login", methods=["GET", "POST"], endpoint="login")
    def login():
        if current_user() is not None:
            return redirect(url_for("dashboard"))

        if request.method == "POST":
            email = request.form.get("email", "")
            password = request.form.get("password", "")
            try:
                s_user = container.auth_service.authenticate(email, password)
                session.clear()
                session.update(s_user.to_session())
                flash(f"Welcome back, {s_user.name}!", "success")
                return redirect(_safe_next(request.args.get("next", "")))
            except AuthenticationError as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("login failed")
                flash("An unexpected error occurred while logging in.", "danger")

        return render_template("auth/login.html", email=request.form.get("email", ""))

    @app.route("/signup", methods=["GET", "POST"], endpoint="signup")
    def signup():
        form = request.form
        if request.method == "POST":
            try:
                if form.get("password", "") != form.get("confirm_password", ""):
                    raise ValidationError("Passwords do not match.", field="confirm_password")
                container.auth_service.signup(
                    name=form.get("name", ""),
                    email=form.get("email", ""),
                    password=form.get("password", ""),
                    role=form.get("role", Role.FACULTY.value),
                )
                flash("Account created. An administrator must approve it before you can log in.", "success")
                return redirect(url_for("login"))
            except ValidationError as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("signup failed")
                flash("An unexpected error occurred while creating the account.", "danger")

        return render_template("auth/signup.html", form=form, roles=list(Role))

    @app.route("/logout", endpoint="logout")
    def logout():
        session.clear()
        flash("You have been logged out.", "info")
        return redirect(url_for("login"))

    @app.route("/forgot-password", methods=["GET", "POST"], endpoint="forgot_password")
    def forgot_password():
        if request.method == "POST":
            try:
                container.auth_service.request_password_reset(
                    request.form.get("email", ""),
                    link_for=lambda token: url_for("update_password", token=token, _external=True),
                )
                flash("If an account exists for that email, a password reset link has been sent.", "info")
                return redirect(url_for("login"))
            except ValidationError as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("password reset request failed")
                flash("An unexpected error occurred. Please try again.", "danger")

        return render_template("auth/forgot_password.html")

    @app.route("/update-password", methods=["GET", "POST"], endpoint="update_password")
    def update_password():
        token = request.values.get("token", "")
        if request.method == "POST":
            try:
                container.auth_service.confirm_password_reset(
                    token=token,
                    password=request.form.get("password", ""),
                    confirm_password=request.form.get("confirm_password", ""),
                )
                session.clear()
                flash("Your password has been updated. Please log in.", "success")
                return redirect(url_for("login"))
            except (ValidationError, AuthenticationError) as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("password update failed")
                flash("An unexpected error occurred while updating the password.", "danger")

        return render_template("auth/update_password.html", token=token)

    @app.route("/auth/token", methods=["POST"], endpoint="auth_token")
    @login_required
    def auth_token():
        actor = container.auth_service.refresh(current_user().user_id)
        if actor is None:
            return jsonify({"error": "User not authenticated to perform this action."}), 401
        return jsonify(
            {
                "access_token": container.auth_service.issue_access_token(actor),
                "token_type": "Bearer",
                "expires_in": container.tokens.access_ttl_seconds,
            }
        )

    # ---- faculty management (admin) ----

    @app.route("/faculty", endpoint="faculty_list")
    @admin_required
    def faculty_list():
        search = request.args.get("q", "")
        role = request.args.get("role", "all")
        users = load_resource(
            "faculty",
            lambda: container.user_service.list_faculty(current_user(), search=search, role=role),
        )
        return render_template(
            "faculty/list.html",
            users=users,
            search=search,
            role=role,
            roles=list(Role),
            active_page="faculty",
        )

    @app.route("/faculty/add", methods=["GET", "POST"], endpoint="faculty_add")
    @admin_required
    def faculty_add():
        form = request.form
        if request.method == "POST":
            try:
                container.user_service.add_faculty(
                    current_user(),
                    name=form.get("name", ""),
                    email=form.get("email", ""),
                    password=form.get("password", ""),
                    role=form.get("role", Role.FACULTY.value),
                )
                flash("Faculty member added. Activate the account to allow login.", "success")
                return redirect(url_for("faculty_list"))
            except (ValidationError, AuthorizationError) as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("add faculty failed")
                flash("An unexpected error occurred while adding the faculty member.", "danger")

        return render_template("faculty/form.html", form=form, user=None, roles=list(Role), statuses=list(UserStatus),
                               max_abbreviation=MAX_ABBREVIATION_LENGTH, active_page="faculty")

    @app.route("/faculty/<user_id>", endpoint="faculty_view")
    @admin_required
    def faculty_view(user_id: str):
        try:
            user = container.user_service.get(current_user(), user_id)
        except NotFoundError:
            return render_template("404.html"), 404
        return render_template("faculty/view.html", user=user, active_page="faculty")

    @app.route("/faculty/<user_id>/edit", methods=["GET", "POST"], endpoint="faculty_edit")
    @admin_required
    def faculty_edit(user_id: str):
        try:
            user = container.user_service.get(current_user(), user_id)
        except NotFoundError:
            return render_template("404.html"), 404
        except DomainError as e:
            flash(str(e), "danger")
            return redirect(url_for("faculty_list"))

        form = request.form
        if request.method == "POST":
            try:
                container.user_service.update_faculty(
                    current_user(),
                    user.user_id,
                    name=form.get("name", ""),
                    email=form.get("email", ""),
                    role=form.get("role", ""),
                    status=form.get("status", ""),
                    abbreviation=form.get("abbreviation", ""),
                    new_password=form.get("new_password", ""),
                )
                flash("Faculty member updated.", "success")
                return redirect(url_for("faculty_view", user_id=user.user_id))
            except (ValidationError, AuthorizationError, NotFoundError) as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("edit faculty failed")
                flash("An unexpected error occurred while updating the faculty member.", "danger")

        return render_template("faculty/form.html", form=form, user=user, roles=list(Role), statuses=list(UserStatus),
                               max_abbreviation=MAX_ABBREVIATION_LENGTH, active_page="faculty")

    @app.route("/faculty/<user_id>/activate", methods=["POST"], endpoint="faculty_activate")
    @admin_required
    def faculty_activate(user_id: str):
        try:
            container.user_service.activate(current_user(), user_id)
            flash("Account activated.", "success")
        except (ValidationError, AuthorizationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception:
            logger.exception("activate faculty failed")
            flash("An unexpected error occurred while activating the account.", "danger")
        return redirect(url_for("faculty_list"))
