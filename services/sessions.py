"""Session lifecycle: register, login, refresh, logout and password recovery.

Login and refresh return ``None`` instead of raising when they refuse to
open a session, and never say which check failed. Forgot-password behaves
identically whether or not the email is known.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db, utcnow
from models.password_reset_token import PasswordResetToken
from models.user import User
from services import refresh_tokens
from services.activity import record_activity
from services.errors import InvalidRequest, ResourceNotFound, ValidationConflict
from services.tokens import issue_access_token

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72  # bcrypt ignores or rejects anything longer


@dataclass
class AuthSession:
    """A freshly issued token pair and the user it belongs to."""

    user: User
    access_token: str
    refresh_token: str

    def to_dict(self) -> dict:
        return {
            "user": self.user.to_dict(),
            "token": self.access_token,
            "refreshToken": self.refresh_token,
        }


def normalize_email(raw_email: str | None) -> str:
    """Strip surrounding whitespace; case is preserved as stored."""

    return raw_email.strip() if isinstance(raw_email, str) else ""


def validate_email(email: str) -> None:
    if not email or "@" not in email:
        raise InvalidRequest("A valid email address is required.")


def validate_password(password: str | None) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise InvalidRequest(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")


def hash_rounds() -> int:
    return int(current_app.config.get("BCRYPT_ROUNDS", 12))


def _open_session(user: User) -> AuthSession:
    access_token = issue_access_token(user)
    record = refresh_tokens.store_new_token(user)
    return AuthSession(user=user, access_token=access_token, refresh_token=record.token)


def register(email: str, password: str, first_name: str = "", last_name: str = "") -> AuthSession:
    """Create a regular user and sign them in."""

    email = normalize_email(email)
    validate_email(email)
    validate_password(password)

    if User.find_by_email(email) is not None:
        raise ValidationConflict("User with this email already exists")

    user = User(
        email=email,
        first_name=(first_name or "").strip(),
        last_name=(last_name or "").strip(),
        role="user",
        is_active=True,
        email_verified=False,
    )
    user.set_password(password, rounds=hash_rounds())
    db.session.add(user)
    try:
        db.session.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email.
        db.session.rollback()
        raise ValidationConflict("User with this email already exists") from exc

    session = _open_session(user)
    record_activity(user.id, "register", "user", user.id, f"User registered: {user.email}")
    db.session.commit()

    current_app.logger.info("Registered user %s", user.id)
    return session


def login(email: str, password: str) -> AuthSession | None:
    """Return a new session, or ``None`` for unknown, inactive or wrong-password users."""

    user = User.find_by_email(normalize_email(email))
    if user is None or not user.is_active or not user.check_password(password):
        current_app.logger.info("Rejected login attempt")
        return None

    session = _open_session(user)
    record_activity(user.id, "login", "user", user.id, f"User logged in: {user.email}")
    db.session.commit()

    current_app.logger.info("User %s logged in", user.id)
    return session


def refresh(token: str) -> AuthSession | None:
    """Exchange a refresh token for a new pair; the presented token is spent."""

    record = refresh_tokens.lookup(token)
    if record is None:
        return None

    user = User.find_by_id(record.user_id)
    if user is None or not user.is_active:
        return None

    if not refresh_tokens.revoke(token):
        db.session.rollback()
        return None

    session = _open_session(user)
    db.session.commit()

    current_app.logger.info("Rotated refresh token for user %s", user.id)
    return session


def logout(token: str | None) -> None:
    """Forget a refresh token. Unknown tokens are ignored."""

    if token:
        refresh_tokens.revoke(token)
        db.session.commit()


def forgot_password(email: str) -> PasswordResetToken | None:
    """Issue a reset token for a known active user.

    The return value exists for callers inside the process; the HTTP layer
    reports the same success message regardless.
    """

    user = User.find_by_email(normalize_email(email))
    if user is None or not user.is_active:
        current_app.logger.info("Password reset requested for an unknown or inactive account")
        return None

    PasswordResetToken.retire_outstanding(user.id)
    minutes = current_app.config.get("PASSWORD_RESET_EXPIRES_MINUTES", 60)
    reset = PasswordResetToken(
        user_id=user.id,
        token=secrets.token_urlsafe(32),
        expires_at=utcnow() + timedelta(minutes=minutes),
    )
    db.session.add(reset)
    record_activity(user.id, "password_reset_requested", "user", user.id)
    db.session.commit()

    # No mail transport is configured; the link goes to the log instead.
    frontend_url = current_app.config.get("FRONTEND_URL", "").rstrip("/")
    current_app.logger.info(
        "Password reset link for user %s: %s/reset-password?token=%s",
        user.id,
        frontend_url,
        reset.token,
    )
    return reset


def reset_password(token: str, new_password: str) -> bool:
    """Redeem a reset token. Returns ``False`` for unknown, expired or used tokens."""

    validate_password(new_password)

    reset = PasswordResetToken.find_redeemable(token)
    if reset is None:
        return False

    user = User.find_by_id(reset.user_id)
    if user is None:
        reset.used = True
        db.session.commit()
        return False

    user.set_password(new_password, rounds=hash_rounds())
    user.updated_at = utcnow()
    reset.used = True
    # Anyone holding an old session must sign in again.
    refresh_tokens.revoke_all_for_user(user.id)
    record_activity(user.id, "password_reset", "user", user.id)
    db.session.commit()

    current_app.logger.info("Password reset completed for user %s", user.id)
    return True


def get_profile(user_id: str) -> User:
    user = User.find_by_id(user_id)
    if user is None:
        raise ResourceNotFound("User not found")
    return user


def update_profile(
    user_id: str,
    first_name: str | None = None,
    last_name: str | None = None,
    email: str | None = None,
) -> User:
    user = get_profile(user_id)

    if first_name:
        user.first_name = first_name.strip()
    if last_name:
        user.last_name = last_name.strip()
    if email:
        email = normalize_email(email)
        validate_email(email)
        holder = User.find_by_email(email)
        if holder is not None and holder.id != user.id:
            raise ValidationConflict("Email is already taken by another user")
        user.email = email

    user.updated_at = utcnow()
    record_activity(user.id, "update", "user", user.id, "Updated profile")
    db.session.commit()
    return user


def change_password(user_id: str, current_password: str, new_password: str) -> bool:
    """Replace the password after re-checking the current one."""

    user = get_profile(user_id)
    if not user.check_password(current_password or ""):
        return False

    validate_password(new_password)
    user.set_password(new_password, rounds=hash_rounds())
    user.updated_at = utcnow()
    record_activity(user.id, "change_password", "user", user.id)
    db.session.commit()
    return True
