"""User model definition."""

from __future__ import annotations

from typing import Optional

import bcrypt

from . import db, isoformat, new_id, utcnow


USER_ROLES = ("user", "admin")
DEFAULT_BCRYPT_ROUNDS = 12


class User(db.Model):
    """Represents a portfolio owner or administrator."""

    __tablename__ = "users"
    __table_args__ = (
        # Emails only need to be unique among users that are not soft-deleted.
        db.Index(
            "uq_users_email_not_deleted",
            "email",
            unique=True,
            postgresql_where=db.text("deleted_at IS NULL"),
            sqlite_where=db.text("deleted_at IS NULL"),
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False, default="")
    last_name = db.Column(db.String(100), nullable=False, default="")
    role = db.Column(db.String(16), nullable=False, default="user")
    is_active = db.Column(
        db.Boolean,
        nullable=False,
        default=True,
        server_default=db.text("true"),
    )
    email_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.text("false"),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = db.Column(db.DateTime, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def set_password(self, password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        """Hash and store the password."""

        salt = bcrypt.gensalt(rounds=rounds)
        self.password_hash = bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        if not isinstance(password, str) or not password or not self.password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), self.password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash or an over-long candidate.
            return False

    def soft_delete(self) -> None:
        """Hide the user from every regular lookup while keeping the row."""

        now = utcnow()
        self.deleted_at = now
        self.updated_at = now

    @classmethod
    def not_deleted(cls):
        return cls.query.filter(cls.deleted_at.is_(None))

    @classmethod
    def find_by_email(cls, email: str) -> Optional["User"]:
        """Return the live user holding this exact email, if any."""

        if not email:
            return None
        return cls.not_deleted().filter(cls.email == email).first()

    @classmethod
    def find_by_id(cls, user_id: str) -> Optional["User"]:
        if not user_id:
            return None
        return cls.not_deleted().filter(cls.id == str(user_id)).first()

    def to_dict(self) -> dict:
        """Serialize the user without credential material."""

        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role,
            "isActive": self.is_active,
            "emailVerified": self.email_verified,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
