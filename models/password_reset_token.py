"""Password reset token model definition."""

from __future__ import annotations

from typing import Optional

from . import db, new_id, utcnow


class PasswordResetToken(db.Model):
    """Single-use, time-limited token proving control of an email address."""

    __tablename__ = "password_reset_tokens"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    token = db.Column(db.String(255), unique=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    used = db.Column(db.Boolean, nullable=False, default=False, server_default=db.text("false"))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User")

    @classmethod
    def find_redeemable(cls, token: str) -> Optional["PasswordResetToken"]:
        """Return the token only if it matches exactly, is unused and has not expired."""

        if not isinstance(token, str) or not token:
            return None
        return cls.query.filter(
            cls.token == token,
            cls.used.is_(False),
            cls.expires_at > utcnow(),
        ).first()

    @classmethod
    def retire_outstanding(cls, user_id: str) -> int:
        return (
            cls.query.filter(cls.user_id == str(user_id), cls.used.is_(False))
            .update({cls.used: True}, synchronize_session=False)
        )
