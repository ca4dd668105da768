"""Persistence-backed refresh token rotation."""

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from models import db, utcnow
from models.refresh_token import RefreshToken
from models.user import User
from services.tokens import issue_refresh_token


def _lifetime() -> timedelta:
    return timedelta(days=current_app.config.get("REFRESH_TOKEN_EXPIRES_DAYS", 7))


def store_new_token(user: User) -> RefreshToken:
    """Mint a refresh token for ``user`` and add it to the session.

    The caller owns the commit so the token lands with the rest of the unit
    of work. Outstanding tokens for the same user are left alone: several
    concurrent sessions are allowed.
    """

    now = utcnow()
    record = RefreshToken(
        user_id=user.id,
        token=issue_refresh_token(),
        expires_at=now + _lifetime(),
        created_at=now,
    )
    db.session.add(record)
    return record


def lookup(token: str) -> RefreshToken | None:
    """Return the live token row; unknown and expired tokens both come back ``None``."""

    return RefreshToken.find_by_token(token)


def revoke(token: str) -> bool:
    """Delete one token. Returns ``False`` when no row was removed.

    When two requests race to rotate the same token only one DELETE removes
    the row, so rotation uses this return value to stay single-use.
    """

    return RefreshToken.delete_by_token(token)


def revoke_all_for_user(user_id: str) -> int:
    return RefreshToken.delete_all_for_user(user_id)
