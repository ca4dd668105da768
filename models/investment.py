"""Investment model definition."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from . import db, isoformat, new_id, utcnow


INVESTMENT_TYPES = ("stocks", "bonds", "crypto", "real-estate", "mutual-funds", "etf", "other")
INVESTMENT_STATUSES = ("active", "sold", "closed")

_SORT_COLUMNS = {
    "amount": "amount",
    "currentvalue": "current_value",
    "purchasedate": "purchase_date",
    "name": "name",
    "createdat": "created_at",
}


class Investment(db.Model):
    """A holding owned by one user."""

    __tablename__ = "investments"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(32), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    current_value = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    purchase_date = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="active", server_default=db.text("'active'"))
    description = db.Column(db.Text, nullable=True)
    symbol = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = db.Column(db.DateTime, nullable=True)

    owner = db.relationship(
        "User",
        backref=db.backref("investments", lazy="dynamic"),
    )

    @property
    def gain_loss(self) -> Decimal:
        return (self.current_value or Decimal("0")) - (self.amount or Decimal("0"))

    @classmethod
    def not_deleted(cls):
        return cls.query.filter(cls.deleted_at.is_(None))

    @classmethod
    def find_owned(cls, investment_id: str, user_id: str) -> Optional["Investment"]:
        """Return the investment only when it exists and belongs to the user."""

        return (
            cls.not_deleted()
            .filter(cls.id == str(investment_id), cls.user_id == str(user_id))
            .first()
        )

    @classmethod
    def list_active_for_user(cls, user_id: str) -> list["Investment"]:
        return (
            cls.not_deleted()
            .filter(cls.user_id == str(user_id), cls.status == "active")
            .order_by(cls.created_at.asc())
            .all()
        )

    @staticmethod
    def apply_filters(query, search=None, type_=None, status=None):
        if search:
            query = query.filter(db.func.lower(Investment.name).like(f"%{search.lower()}%"))
        if type_:
            query = query.filter(Investment.type == type_)
        if status:
            query = query.filter(Investment.status == status)
        return query

    @staticmethod
    def order_clause(sort_by: str | None, sort_order: str | None):
        column_name = _SORT_COLUMNS.get((sort_by or "").lower(), "created_at")
        column = getattr(Investment, column_name)
        return column.desc() if (sort_order or "").lower() == "desc" else column.asc()

    def soft_delete(self) -> None:
        now = utcnow()
        self.deleted_at = now
        self.updated_at = now

    def to_dict(self) -> dict:
        """Serialize the investment into a dictionary."""

        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "type": self.type,
            "amount": float(self.amount or 0),
            "currentValue": float(self.current_value or 0),
            "gainLoss": float(self.gain_loss),
            "purchaseDate": isoformat(self.purchase_date),
            "status": self.status,
            "description": self.description,
            "symbol": self.symbol,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Investment id={self.id} user_id={self.user_id} status={self.status}>"
