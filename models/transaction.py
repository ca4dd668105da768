"""Transaction model definition."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from . import db, isoformat, new_id, utcnow
from .investment import Investment


TRANSACTION_TYPES = ("buy", "sell", "dividend", "interest", "fee")
TRANSACTION_STATUSES = ("completed", "pending", "cancelled")


class Transaction(db.Model):
    """A cash movement recorded against an investment."""

    __tablename__ = "transactions"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    investment_id = db.Column(
        db.String(36),
        db.ForeignKey("investments.id"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Numeric(18, 6), nullable=False, default=Decimal("0"))
    price = db.Column(db.Numeric(18, 6), nullable=False, default=Decimal("0"))
    amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    fees = db.Column(db.Numeric(18, 2), nullable=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    status = db.Column(
        db.String(16),
        nullable=False,
        default="completed",
        server_default=db.text("'completed'"),
    )
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    investment = db.relationship(
        "Investment",
        backref=db.backref("transactions", lazy="dynamic"),
    )

    @staticmethod
    def compute_amount(quantity, price, fees) -> Decimal:
        return Decimal(quantity or 0) * Decimal(price or 0) + Decimal(fees or 0)

    def recalculate_amount(self) -> None:
        self.amount = self.compute_amount(self.quantity, self.price, self.fees)

    @classmethod
    def owned_query(cls, user_id: str):
        """Transactions whose parent investment is live and owned by the user."""

        return cls.query.join(Investment, cls.investment_id == Investment.id).filter(
            Investment.user_id == str(user_id),
            Investment.deleted_at.is_(None),
        )

    @classmethod
    def find_owned(cls, transaction_id: str, user_id: str):
        return cls.owned_query(user_id).filter(cls.id == str(transaction_id)).first()

    @classmethod
    def list_for_user_in_date_range(
        cls, user_id: str, start: datetime, end: datetime
    ) -> list["Transaction"]:
        return (
            cls.owned_query(user_id)
            .filter(cls.date >= start, cls.date <= end)
            .order_by(cls.date.asc())
            .all()
        )

    def to_dict(self) -> dict:
        """Serialize the transaction into a dictionary."""

        return {
            "id": self.id,
            "investmentId": self.investment_id,
            "investmentName": self.investment.name if self.investment else None,
            "type": self.type,
            "quantity": float(self.quantity or 0),
            "price": float(self.price or 0),
            "amount": float(self.amount or 0),
            "fees": float(self.fees) if self.fees is not None else None,
            "date": isoformat(self.date),
            "status": self.status,
            "notes": self.notes,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
