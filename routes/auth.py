"""Authentication blueprint: session lifecycle, password recovery and profile."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest

from services import sessions
from services.errors import AuthenticationFailure
from utils.auth import current_user_id
from utils.request_validation import optional_string, parse_json_request
from utils.responses import success_response

auth_bp = Blueprint("auth", __name__)

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists with this email, a password reset link has been sent."
)


@auth_bp.route("/register", methods=["POST"])
def register():
    """Register a regular user and return a fresh session."""
    payload = parse_json_request(request, required_keys=("email", "password"))
    session = sessions.register(
        email=optional_string(payload, "email"),
        password=payload.get("password"),
        first_name=optional_string(payload, "firstName") or "",
        last_name=optional_string(payload, "lastName") or "",
    )
    return success_response(session.to_dict(), "Registration successful", HTTPStatus.CREATED)


@auth_bp.route("/login", methods=["POST"])
def login():
    payload = parse_json_request(request, required_keys=("email", "password"))
    session = sessions.login(payload.get("email"), payload.get("password"))
    if session is None:
        raise AuthenticationFailure("invalid credentials")
    return success_response(session.to_dict(), "Login successful")


@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    payload = parse_json_request(request, required_keys=("refreshToken",))
    session = sessions.refresh(payload.get("refreshToken"))
    if session is None:
        raise AuthenticationFailure("refresh token rejected")
    return success_response(session.to_dict())


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """Forget the presented refresh token. Unknown or missing tokens still succeed."""
    payload = parse_json_request(request, allow_empty=True)
    sessions.logout(payload.get("refreshToken"))
    return success_response(None, "Logged out successfully")


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """Always answer the same way so callers cannot probe for accounts."""
    payload = parse_json_request(request, required_keys=("email",))
    sessions.forgot_password(payload.get("email"))
    return success_response(None, FORGOT_PASSWORD_MESSAGE)


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    payload = parse_json_request(request, required_keys=("token", "password"))
    if not sessions.reset_password(payload.get("token"), payload.get("password")):
        raise BadRequest("Invalid or expired reset token")
    return success_response(None, "Password reset successful")


@auth_bp.route("/profile", methods=["GET"])
@jwt_required()
def get_profile():
    user = sessions.get_profile(current_user_id())
    return success_response(user.to_dict())


@auth_bp.route("/profile", methods=["PUT"])
@jwt_required()
def update_profile():
    payload = parse_json_request(request)
    user = sessions.update_profile(
        current_user_id(),
        first_name=optional_string(payload, "firstName"),
        last_name=optional_string(payload, "lastName"),
        email=optional_string(payload, "email"),
    )
    return success_response(user.to_dict(), "Profile updated successfully")


@auth_bp.route("/change-password", methods=["POST"])
@jwt_required()
def change_password():
    payload = parse_json_request(request, required_keys=("currentPassword", "newPassword"))
    changed = sessions.change_password(
        current_user_id(),
        payload.get("currentPassword"),
        payload.get("newPassword"),
    )
    if not changed:
        raise BadRequest("Current password is incorrect")
    return success_response(None, "Password changed successfully")
