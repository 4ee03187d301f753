from __future__ import annotations

import hmac
import logging
from typing import Callable, Optional, Protocol, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import (
    require_email,
    require_min_length,
    require_name,
    require_non_empty,
    require_max_length,
)
from ..core.constants import (
    MAX_ABBREVIATION_LENGTH,
    MAX_NAME_LENGTH,
    MIN_NAME_LENGTH,
    MIN_PASSWORD_LENGTH,
)
from ..core.enums import Role, UserStatus
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import SessionUser, User
from .repository import UserRepository
from .tokens import ACCESS, PASSWORD_RESET, TokenService, password_fingerprint

logger = logging.getLogger(__name__)


class ResetLinkMailer(Protocol):
    def send_reset_link(self, *, email: str, link: str) -> None:
        raise NotImplementedError


class LoggingResetMailer:
    """Mail delivery is an external collaborator; log the link instead."""

    def send_reset_link(self, *, email: str, link: str) -> None:
        logger.info("password reset link for %s: %s", email, link)


def _parse_role(value: str) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError("Please select a valid role.", field="role")


def _parse_status(value: str) -> UserStatus:
    try:
        return UserStatus(value)
    except ValueError:
        raise ValidationError("Please select a valid status.", field="status")


def _require_password(password: Optional[str], *, field: str = "password") -> str:
    return require_min_length(password, "Password", MIN_PASSWORD_LENGTH, field=field)


def _create_pending_account(users: UserRepository, *, name: str, email: str, password: str, role: str) -> str:
    name = require_name(name, "Name", min_len=MIN_NAME_LENGTH, max_len=MAX_NAME_LENGTH, field="name")
    email = require_email(email)
    password = _require_password(password)
    role_e = _parse_role(role)

    if users.get_by_email(email):
        raise ValidationError("An account with this email already exists.", field="email")

    return users.create_user(
        name=name,
        email=email,
        password_hash=generate_password_hash(password),
        role=role_e,
        status=UserStatus.PENDING,
    )


class AuthService:
    """Use cases: signup, login, password reset, bearer tokens."""

    def __init__(self, users: UserRepository, tokens: TokenService, mailer: Optional[ResetLinkMailer] = None):
        self._users = users
        self._tokens = tokens
        self._mailer = mailer or LoggingResetMailer()

    def signup(self, *, name: str, email: str, password: str, role: str = Role.FACULTY.value) -> str:
        """New accounts wait in 'pending' until an admin activates them."""
        user_id = _create_pending_account(self._users, name=name, email=email, password=password, role=role)
        logger.info("signup created pending account %s", user_id)
        return user_id

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip())
        if not user:
            raise AuthenticationError("Invalid login credentials.")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid login credentials.")

        if user.status == UserStatus.PENDING:
            raise AuthenticationError("Your account is awaiting administrator approval. Please try again later.")
        if user.status == UserStatus.INACTIVE:
            raise AuthenticationError("Your account has been deactivated. Please contact an administrator.")

        return SessionUser.from_user(user)

    def refresh(self, user_id: str) -> Optional[SessionUser]:
        """Re-read the account; None when it vanished or is no longer active."""
        user = self._users.get_by_id(user_id)
        if not user or user.status != UserStatus.ACTIVE:
            return None
        return SessionUser.from_user(user)

    def issue_access_token(self, actor: SessionUser) -> str:
        return self._tokens.issue_access_token(actor.user_id)

    def authenticate_bearer(self, authorization: Optional[str]) -> SessionUser:
        scheme, _, token = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Missing bearer token.")

        payload = self._tokens.verify(token.strip(), purpose=ACCESS)
        actor = self.refresh(str(payload["sub"]))
        if not actor:
            raise AuthenticationError("User not authenticated to perform this action.")
        return actor

    def request_password_reset(self, email: str, *, link_for: Callable[[str], str]) -> None:
        """Send a reset link when the email is known; silent otherwise."""
        email = require_email(email)
        user = self._users.get_by_email(email)
        if not user:
            logger.info("password reset requested for unknown email")
            return

        token = self._tokens.issue_reset_token(user.user_id, user.password_hash)
        self._mailer.send_reset_link(email=user.email, link=link_for(token))

    def confirm_password_reset(self, *, token: str, password: str, confirm_password: str) -> None:
        password = _require_password(password)
        if password != (confirm_password or ""):
            raise ValidationError("Passwords do not match.", field="confirm_password")

        payload = self._tokens.verify(require_non_empty(token, "Reset token"), purpose=PASSWORD_RESET)
        user = self._users.get_by_id(str(payload["sub"]))
        if not user or not hmac.compare_digest(str(payload.get("fp", "")), password_fingerprint(user.password_hash)):
            raise AuthenticationError("This password reset link is no longer valid.")

        self._users.update_password_hash(user.user_id, generate_password_hash(password))
        logger.info("password reset completed for %s", user.user_id)


class UserService:
    """Use cases: manage faculty accounts (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    @staticmethod
    def _require_editor(actor: SessionUser) -> None:
        if not actor.can_edit_faculty():
            raise AuthorizationError("Only administrators can manage faculty.")

    def _get(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")
        return user

    def list_faculty(self, actor: SessionUser, *, search: str = "", role: str = "all") -> Sequence[User]:
        self._require_editor(actor)
        needle = (search or "").strip().lower()
        out = []
        for u in self._users.list_all():
            if needle and needle not in u.name.lower() and needle not in u.email.lower():
                continue
            if role and role != "all" and u.role.value != role:
                continue
            out.append(u)
        return out

    def get(self, actor: SessionUser, user_id: str) -> User:
        self._require_editor(actor)
        return self._get(user_id)

    def pending_count(self) -> int:
        return self._users.count_by_status(UserStatus.PENDING)

    def add_faculty(self, actor: SessionUser, *, name: str, email: str, password: str, role: str) -> str:
        self._require_editor(actor)
        return _create_pending_account(self._users, name=name, email=email, password=password, role=role)

    def update_faculty(
        self,
        actor: SessionUser,
        user_id: str,
        *,
        name: str,
        email: str,
        role: str,
        status: str,
        abbreviation: str,
        new_password: str = "",
    ) -> User:
        self._require_editor(actor)
        user = self._get(user_id)

        name = require_name(name, "Name", min_len=MIN_NAME_LENGTH, max_len=MAX_NAME_LENGTH, field="name")
        email = require_email(email)
        role_e = _parse_role(role)
        status_e = _parse_status(status)
        abbreviation = require_non_empty(abbreviation, "Abbreviation", field="abbreviation")
        abbreviation = require_max_length(abbreviation, "Abbreviation", MAX_ABBREVIATION_LENGTH, field="abbreviation")
        if new_password:
            _require_password(new_password, field="new_password")

        other = self._users.get_by_email(email)
        if other and other.user_id != user.user_id:
            raise ValidationError("An account with this email already exists.", field="email")

        if user.user_id == actor.user_id and (role_e != Role.ADMIN or status_e != UserStatus.ACTIVE):
            raise ValidationError("You cannot demote or deactivate your own account.", field="role")

        self._users.update_profile(
            user.user_id,
            name=name,
            email=email,
            role=role_e,
            status=status_e,
            abbreviation=abbreviation,
        )
        if new_password:
            self.admin_set_password(actor, user.user_id, new_password)
        return self._get(user.user_id)

    def admin_set_password(self, actor: SessionUser, user_id: str, new_password: str) -> User:
        """Admin override of another account's password."""
        self._require_editor(actor)
        user = self._get(user_id)
        password = _require_password(new_password, field="new_password")
        if not self._users.update_password_hash(user.user_id, generate_password_hash(password)):
            raise ValidationError("Failed to update password.")
        logger.info("admin %s reset password of %s", actor.user_id, user.user_id)
        return self._get(user.user_id)

    def activate(self, actor: SessionUser, user_id: str) -> None:
        self._require_editor(actor)
        user = self._get(user_id)
        if user.status == UserStatus.ACTIVE:
            raise ValidationError("Account is already active.")
        self._users.set_status(user.user_id, UserStatus.ACTIVE)
