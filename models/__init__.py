"""Database initialization and model exports."""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime, matching stored columns."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def isoformat(value):
    return value.isoformat() if value else None


# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .refresh_token import RefreshToken  # noqa: E402,F401
from .password_reset_token import PasswordResetToken  # noqa: E402,F401
from .investment import Investment  # noqa: E402,F401
from .transaction import Transaction  # noqa: E402,F401
from .activity_log import ActivityLog  # noqa: E402,F401

__all__ = [
    "db",
    "utcnow",
    "new_id",
    "User",
    "RefreshToken",
    "PasswordResetToken",
    "Investment",
    "Transaction",
    "ActivityLog",
]
