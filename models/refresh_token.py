"""Refresh token model definition."""

from __future__ import annotations

from typing import Optional

from . import db, new_id, utcnow


class RefreshToken(db.Model):
    """An opaque long-lived credential that can be exchanged exactly once."""

    __tablename__ = "refresh_tokens"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    token = db.Column(db.String(255), unique=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship(
        "User",
        backref=db.backref("refresh_tokens", lazy="dynamic"),
    )

    @classmethod
    def find_by_token(cls, token: str) -> Optional["RefreshToken"]:
        """Return the matching token; expired rows are treated as absent."""

        if not isinstance(token, str) or not token:
            return None
        return cls.query.filter(cls.token == token, cls.expires_at > utcnow()).first()

    @classmethod
    def delete_by_token(cls, token: str) -> bool:
        if not isinstance(token, str) or not token:
            return False
        deleted = cls.query.filter(cls.token == token).delete(synchronize_session=False)
        return deleted > 0

    @classmethod
    def delete_all_for_user(cls, user_id: str) -> int:
        return cls.query.filter(cls.user_id == str(user_id)).delete(synchronize_session=False)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<RefreshToken user_id={self.user_id} expires_at={self.expires_at}>"
