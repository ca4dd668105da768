"""Investments blueprint."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, Response, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest

from services import investments
from utils.auth import current_user_id
from utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from utils.request_validation import (
    int_arg,
    optional_datetime,
    optional_decimal,
    optional_string,
    parse_json_request,
    require_decimal,
)
from utils.responses import success_response

investments_bp = Blueprint("investments", __name__)


def _changes_from(payload: dict) -> dict:
    return {
        "name": optional_string(payload, "name"),
        "type_": optional_string(payload, "type"),
        "amount": optional_decimal(payload, "amount"),
        "current_value": optional_decimal(payload, "currentValue"),
        "purchase_date": optional_datetime(payload, "purchaseDate"),
        "status": optional_string(payload, "status"),
        "description": optional_string(payload, "description"),
        "symbol": optional_string(payload, "symbol"),
    }


@investments_bp.route("", methods=["GET"])
@jwt_required()
def list_investments():
    """Paginated holdings with optional search, type/status filters and sorting."""
    args = request.args
    result = investments.list_investments(
        current_user_id(),
        page=int_arg(args, "page", 1),
        limit=int_arg(args, "limit", DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE),
        search=args.get("search") or None,
        type_=args.get("type") or None,
        status=args.get("status") or None,
        sort_by=args.get("sortBy") or "createdAt",
        sort_order=args.get("sortOrder") or "desc",
    )
    return success_response(result)


@investments_bp.route("/<investment_id>", methods=["GET"])
@jwt_required()
def get_investment(investment_id: str):
    investment = investments.get_investment(investment_id, current_user_id())
    return success_response(investment.to_dict())


@investments_bp.route("", methods=["POST"])
@jwt_required()
def create_investment():
    payload = parse_json_request(
        request, required_keys=("name", "type", "amount", "currentValue", "purchaseDate")
    )
    investment = investments.create_investment(
        current_user_id(),
        name=optional_string(payload, "name"),
        type_=optional_string(payload, "type"),
        amount=require_decimal(payload, "amount"),
        current_value=require_decimal(payload, "currentValue"),
        purchase_date=optional_datetime(payload, "purchaseDate"),
        status=optional_string(payload, "status"),
        description=optional_string(payload, "description"),
        symbol=optional_string(payload, "symbol"),
    )
    return success_response(investment.to_dict(), "Investment created successfully", HTTPStatus.CREATED)


@investments_bp.route("/<investment_id>", methods=["PUT"])
@jwt_required()
def update_investment(investment_id: str):
    payload = parse_json_request(request)
    investment = investments.update_investment(investment_id, current_user_id(), _changes_from(payload))
    return success_response(investment.to_dict(), "Investment updated successfully")


@investments_bp.route("/<investment_id>", methods=["DELETE"])
@jwt_required()
def delete_investment(investment_id: str):
    investments.delete_investment(investment_id, current_user_id())
    return success_response(None, "Investment deleted successfully")


@investments_bp.route("/<investment_id>/export", methods=["GET"])
@jwt_required()
def export_investment(investment_id: str):
    export_format = request.args.get("format")
    if not export_format:
        raise BadRequest("format is required.")
    body, mimetype, filename = investments.export_investment(
        investment_id, current_user_id(), export_format
    )
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
