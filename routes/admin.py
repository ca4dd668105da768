"""Admin blueprint. Every route requires the ``admin`` role claim."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, request

from services import admin
from utils.auth import admin_required, current_user_id
from utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from utils.request_validation import (
    bool_arg,
    datetime_arg,
    int_arg,
    optional_bool,
    optional_string,
    parse_json_request,
)
from utils.responses import success_response

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/users", methods=["GET"])
@admin_required
def list_users():
    args = request.args
    result = admin.list_users(
        page=int_arg(args, "page", 1),
        limit=int_arg(args, "limit", DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE),
        search=args.get("search") or None,
        role=args.get("role") or None,
        is_active=bool_arg(args, "isActive"),
    )
    return success_response(result)


@admin_bp.route("/users/<user_id>", methods=["GET"])
@admin_required
def get_user(user_id: str):
    return success_response(admin.get_user(user_id).to_dict())


@admin_bp.route("/users", methods=["POST"])
@admin_required
def create_user():
    payload = parse_json_request(request, required_keys=("email", "password"))
    is_active = optional_bool(payload, "isActive")
    email_verified = optional_bool(payload, "emailVerified")
    user = admin.create_user(
        current_user_id(),
        email=optional_string(payload, "email"),
        password=payload["password"],
        first_name=optional_string(payload, "firstName") or "",
        last_name=optional_string(payload, "lastName") or "",
        role=optional_string(payload, "role") or "user",
        is_active=True if is_active is None else is_active,
        email_verified=bool(email_verified),
    )
    return success_response(user.to_dict(), "User created successfully", HTTPStatus.CREATED)


@admin_bp.route("/users/<user_id>", methods=["PUT"])
@admin_required
def update_user(user_id: str):
    payload = parse_json_request(request)
    changes = {
        "email": optional_string(payload, "email"),
        "first_name": optional_string(payload, "firstName"),
        "last_name": optional_string(payload, "lastName"),
        "role": optional_string(payload, "role"),
        "is_active": optional_bool(payload, "isActive"),
        "email_verified": optional_bool(payload, "emailVerified"),
        "password": payload.get("password") or None,
    }
    user = admin.update_user(current_user_id(), user_id, changes)
    return success_response(user.to_dict(), "User updated successfully")


@admin_bp.route("/users/<user_id>/activate", methods=["PUT"])
@admin_required
def activate_user(user_id: str):
    payload = parse_json_request(request, required_keys=("isActive",))
    is_active = optional_bool(payload, "isActive")
    user = admin.set_user_active(current_user_id(), user_id, is_active)
    state = "activated" if is_active else "deactivated"
    return success_response(user.to_dict(), f"User {state} successfully")


@admin_bp.route("/users/<user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id: str):
    admin.delete_user(current_user_id(), user_id)
    return success_response(None, "User deleted successfully")


@admin_bp.route("/stats", methods=["GET"])
@admin_required
def stats():
    return success_response(admin.system_stats().to_dict())


@admin_bp.route("/activity-log", methods=["GET"])
@admin_bp.route("/activity-logs", methods=["GET"])
@admin_required
def activity_logs():
    args = request.args
    result = admin.list_activity_logs(
        page=int_arg(args, "page", 1),
        limit=int_arg(args, "limit", DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE),
        user_id=args.get("userId") or None,
        action=args.get("action") or None,
        entity_type=args.get("entityType") or None,
        date_from=datetime_arg(args, "dateFrom"),
        date_to=datetime_arg(args, "dateTo"),
    )
    return success_response(result)
