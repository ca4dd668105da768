"""Authorization helpers built on flask-jwt-extended."""

from __future__ import annotations

from functools import wraps

from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required

from services.errors import AuthenticationFailure


def current_user_id() -> str:
    identity = get_jwt_identity()
    if not identity:
        raise AuthenticationFailure("token carries no subject")
    return str(identity)


def admin_required(view):
    """Require a valid access token whose role claim is ``admin``.

    Non-admin callers get 401 rather than 403, matching what existing
    clients of this API already handle.
    """

    @wraps(view)
    @jwt_required()
    def wrapper(*args, **kwargs):
        if get_jwt().get("role") != "admin":
            raise AuthenticationFailure("admin role required")
        return view(*args, **kwargs)

    return wrapper
