"""Investment CRUD scoped to the owning user."""

from __future__ import annotations

import csv
import io
import json
import re
from datetime import datetime
from decimal import Decimal

from flask import current_app

from models import db, utcnow
from models.investment import INVESTMENT_STATUSES, INVESTMENT_TYPES, Investment
from services.activity import record_activity
from services.errors import InvalidRequest, ResourceNotFound
from utils.pagination import paginate

INVESTMENT_EXPORT_FORMATS = ("csv", "json")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _check_type(value: str) -> str:
    if value not in INVESTMENT_TYPES:
        raise InvalidRequest(f"type must be one of: {', '.join(INVESTMENT_TYPES)}.")
    return value


def _check_status(value: str) -> str:
    if value not in INVESTMENT_STATUSES:
        raise InvalidRequest(f"status must be one of: {', '.join(INVESTMENT_STATUSES)}.")
    return value


def _check_non_negative(value: Decimal, field: str) -> Decimal:
    if value < 0:
        raise InvalidRequest(f"{field} must not be negative.")
    return value


def list_investments(
    user_id: str,
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    type_: str | None = None,
    status: str | None = None,
    sort_by: str | None = "createdAt",
    sort_order: str | None = "desc",
) -> dict:
    query = Investment.not_deleted().filter(Investment.user_id == str(user_id))
    query = Investment.apply_filters(query, search=search, type_=type_, status=status)
    query = query.order_by(Investment.order_clause(sort_by, sort_order))
    return paginate(query, page, limit, lambda investment: investment.to_dict())


def get_investment(investment_id: str, user_id: str) -> Investment:
    investment = Investment.find_owned(investment_id, user_id)
    if investment is None:
        raise ResourceNotFound("Investment not found")
    return investment


def create_investment(
    user_id: str,
    *,
    name: str,
    type_: str,
    amount: Decimal,
    current_value: Decimal,
    purchase_date: datetime,
    status: str | None = None,
    description: str | None = None,
    symbol: str | None = None,
) -> Investment:
    name = (name or "").strip()
    if not name:
        raise InvalidRequest("name is required.")

    now = utcnow()
    investment = Investment(
        user_id=str(user_id),
        name=name,
        type=_check_type(type_),
        amount=_check_non_negative(amount, "amount"),
        current_value=_check_non_negative(current_value, "currentValue"),
        purchase_date=purchase_date,
        status=_check_status(status or "active"),
        description=description,
        symbol=symbol,
        created_at=now,
        updated_at=now,
    )
    db.session.add(investment)
    db.session.flush()
    record_activity(user_id, "create", "investment", investment.id, f"Created investment: {investment.name}")
    db.session.commit()

    current_app.logger.info("User %s created investment %s", user_id, investment.id)
    return investment


def update_investment(investment_id: str, user_id: str, changes: dict) -> Investment:
    """Apply a partial update. Keys mirror :func:`create_investment` arguments."""

    investment = get_investment(investment_id, user_id)

    if changes.get("name"):
        investment.name = changes["name"].strip()
    if changes.get("type_"):
        investment.type = _check_type(changes["type_"])
    if changes.get("amount") is not None:
        investment.amount = _check_non_negative(changes["amount"], "amount")
    if changes.get("current_value") is not None:
        investment.current_value = _check_non_negative(changes["current_value"], "currentValue")
    if changes.get("purchase_date") is not None:
        investment.purchase_date = changes["purchase_date"]
    if changes.get("status"):
        investment.status = _check_status(changes["status"])
    if changes.get("description") is not None:
        investment.description = changes["description"]
    if changes.get("symbol") is not None:
        investment.symbol = changes["symbol"]

    investment.updated_at = utcnow()
    record_activity(user_id, "update", "investment", investment.id, f"Updated investment: {investment.name}")
    db.session.commit()
    return investment


def delete_investment(investment_id: str, user_id: str) -> None:
    investment = get_investment(investment_id, user_id)
    investment.soft_delete()
    record_activity(user_id, "delete", "investment", investment.id, f"Deleted investment: {investment.name}")
    db.session.commit()

    current_app.logger.info("User %s deleted investment %s", user_id, investment.id)


def export_investment(investment_id: str, user_id: str, export_format: str) -> tuple[bytes, str, str]:
    """Render one investment as ``(body, mimetype, filename)``."""

    export_format = (export_format or "").lower()
    if export_format not in INVESTMENT_EXPORT_FORMATS:
        raise InvalidRequest("Invalid format. Use 'csv' or 'json'")

    investment = get_investment(investment_id, user_id)
    stem = _UNSAFE_FILENAME_CHARS.sub("_", investment.name).strip("_") or "investment"

    if export_format == "json":
        body = json.dumps(investment.to_dict(), indent=2)
        return body.encode("utf-8"), "application/json", f"{stem}.json"

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["Id", "Name", "Type", "Amount", "CurrentValue", "PurchaseDate", "Status"])
    writer.writerow(
        [
            investment.id,
            investment.name,
            investment.type,
            investment.amount,
            investment.current_value,
            investment.purchase_date.strftime("%Y-%m-%d"),
            investment.status,
        ]
    )
    return buffer.getvalue().encode("utf-8"), "text/csv", f"{stem}.csv"
