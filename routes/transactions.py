"""Transactions blueprint."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from services import transactions
from utils.auth import current_user_id
from utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from utils.request_validation import (
    datetime_arg,
    int_arg,
    optional_datetime,
    optional_decimal,
    optional_string,
    parse_json_request,
    require_decimal,
)
from utils.responses import success_response

transactions_bp = Blueprint("transactions", __name__)


@transactions_bp.route("", methods=["GET"])
@jwt_required()
def list_transactions():
    args = request.args
    result = transactions.list_transactions(
        current_user_id(),
        page=int_arg(args, "page", 1),
        limit=int_arg(args, "limit", DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE),
        search=args.get("search") or None,
        type_=args.get("type") or None,
        status=args.get("status") or None,
        investment_id=args.get("investmentId") or None,
        date_from=datetime_arg(args, "dateFrom"),
        date_to=datetime_arg(args, "dateTo"),
    )
    return success_response(result)


@transactions_bp.route("/investment/<investment_id>", methods=["GET"])
@jwt_required()
def list_for_investment(investment_id: str):
    items = transactions.list_for_investment(investment_id, current_user_id())
    return success_response([item.to_dict() for item in items])


@transactions_bp.route("/<transaction_id>", methods=["GET"])
@jwt_required()
def get_transaction(transaction_id: str):
    transaction = transactions.get_transaction(transaction_id, current_user_id())
    return success_response(transaction.to_dict())


@transactions_bp.route("", methods=["POST"])
@jwt_required()
def create_transaction():
    """Record a transaction; buys and sells move the investment's current value."""
    payload = parse_json_request(
        request, required_keys=("investmentId", "type", "quantity", "price", "date")
    )
    transaction = transactions.create_transaction(
        current_user_id(),
        investment_id=str(payload["investmentId"]),
        type_=optional_string(payload, "type"),
        quantity=require_decimal(payload, "quantity"),
        price=require_decimal(payload, "price"),
        fees=optional_decimal(payload, "fees"),
        date=optional_datetime(payload, "date"),
        status=optional_string(payload, "status"),
        notes=optional_string(payload, "notes"),
    )
    return success_response(transaction.to_dict(), "Transaction created successfully", HTTPStatus.CREATED)


@transactions_bp.route("/<transaction_id>", methods=["PUT"])
@jwt_required()
def update_transaction(transaction_id: str):
    payload = parse_json_request(request)
    changes = {
        "type_": optional_string(payload, "type"),
        "quantity": optional_decimal(payload, "quantity"),
        "price": optional_decimal(payload, "price"),
        "fees": optional_decimal(payload, "fees"),
        "date": optional_datetime(payload, "date"),
        "status": optional_string(payload, "status"),
        "notes": optional_string(payload, "notes"),
    }
    transaction = transactions.update_transaction(transaction_id, current_user_id(), changes)
    return success_response(transaction.to_dict(), "Transaction updated successfully")


@transactions_bp.route("/<transaction_id>", methods=["DELETE"])
@jwt_required()
def delete_transaction(transaction_id: str):
    transactions.delete_transaction(transaction_id, current_user_id())
    return success_response(None, "Transaction deleted successfully")
