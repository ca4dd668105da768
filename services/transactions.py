"""Transactions recorded against a user's investments."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app

from models import db, utcnow
from models.investment import Investment
from models.transaction import TRANSACTION_STATUSES, TRANSACTION_TYPES, Transaction
from services.activity import record_activity
from services.errors import InvalidRequest, ResourceNotFound
from services.investments import get_investment
from utils.pagination import paginate


def _check_type(value: str) -> str:
    if value not in TRANSACTION_TYPES:
        raise InvalidRequest(f"type must be one of: {', '.join(TRANSACTION_TYPES)}.")
    return value


def _check_status(value: str) -> str:
    if value not in TRANSACTION_STATUSES:
        raise InvalidRequest(f"status must be one of: {', '.join(TRANSACTION_STATUSES)}.")
    return value


def _check_non_negative(value: Decimal | None, field: str) -> Decimal | None:
    if value is not None and value < 0:
        raise InvalidRequest(f"{field} must not be negative.")
    return value


def list_transactions(
    user_id: str,
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    type_: str | None = None,
    status: str | None = None,
    investment_id: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> dict:
    query = Transaction.owned_query(user_id)
    if search:
        query = query.filter(db.func.lower(Investment.name).like(f"%{search.lower()}%"))
    if type_:
        query = query.filter(Transaction.type == type_)
    if status:
        query = query.filter(Transaction.status == status)
    if investment_id:
        query = query.filter(Transaction.investment_id == str(investment_id))
    if date_from:
        query = query.filter(Transaction.date >= date_from)
    if date_to:
        query = query.filter(Transaction.date <= date_to)

    query = query.order_by(Transaction.date.desc(), Transaction.created_at.desc())
    return paginate(query, page, limit, lambda transaction: transaction.to_dict())


def list_for_investment(investment_id: str, user_id: str) -> list[Transaction]:
    investment = get_investment(investment_id, user_id)
    return (
        Transaction.query.filter(Transaction.investment_id == investment.id)
        .order_by(Transaction.date.desc())
        .all()
    )


def get_transaction(transaction_id: str, user_id: str) -> Transaction:
    transaction = Transaction.find_owned(transaction_id, user_id)
    if transaction is None:
        raise ResourceNotFound("Transaction not found")
    return transaction


def create_transaction(
    user_id: str,
    *,
    investment_id: str,
    type_: str,
    quantity: Decimal,
    price: Decimal,
    date: datetime,
    fees: Decimal | None = None,
    status: str | None = None,
    notes: str | None = None,
) -> Transaction:
    """Record a transaction and adjust the investment's current value.

    Buys add the amount, sells subtract it. The row and the adjustment are
    committed together.
    """

    investment = get_investment(investment_id, user_id)

    now = utcnow()
    transaction = Transaction(
        investment_id=investment.id,
        type=_check_type(type_),
        quantity=_check_non_negative(quantity, "quantity"),
        price=_check_non_negative(price, "price"),
        fees=_check_non_negative(fees, "fees"),
        date=date,
        status=_check_status(status or "completed"),
        notes=notes,
        created_at=now,
        updated_at=now,
    )
    transaction.recalculate_amount()

    if transaction.type == "buy":
        investment.current_value = (investment.current_value or Decimal("0")) + transaction.amount
        investment.updated_at = now
    elif transaction.type == "sell":
        investment.current_value = (investment.current_value or Decimal("0")) - transaction.amount
        investment.updated_at = now

    db.session.add(transaction)
    db.session.flush()
    record_activity(
        user_id,
        "create",
        "transaction",
        transaction.id,
        f"Created transaction: {transaction.type} for investment {investment.name}",
    )
    db.session.commit()

    current_app.logger.info(
        "User %s recorded %s transaction %s on investment %s",
        user_id,
        transaction.type,
        transaction.id,
        investment.id,
    )
    return transaction


def update_transaction(transaction_id: str, user_id: str, changes: dict) -> Transaction:
    """Apply a partial update and recompute the amount.

    The parent investment's current value is not touched.
    """

    transaction = get_transaction(transaction_id, user_id)

    if changes.get("type_"):
        transaction.type = _check_type(changes["type_"])
    if changes.get("quantity") is not None:
        transaction.quantity = _check_non_negative(changes["quantity"], "quantity")
    if changes.get("price") is not None:
        transaction.price = _check_non_negative(changes["price"], "price")
    if changes.get("fees") is not None:
        transaction.fees = _check_non_negative(changes["fees"], "fees")
    if changes.get("date") is not None:
        transaction.date = changes["date"]
    if changes.get("status"):
        transaction.status = _check_status(changes["status"])
    if changes.get("notes") is not None:
        transaction.notes = changes["notes"]

    transaction.recalculate_amount()
    transaction.updated_at = utcnow()
    record_activity(user_id, "update", "transaction", transaction.id, "Updated transaction")
    db.session.commit()
    return transaction


def delete_transaction(transaction_id: str, user_id: str) -> None:
    transaction = get_transaction(transaction_id, user_id)
    db.session.delete(transaction)
    record_activity(user_id, "delete", "transaction", transaction_id, "Deleted transaction")
    db.session.commit()
