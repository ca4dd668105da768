"""Access and refresh token minting.

Nothing in this module touches the database: access tokens are signed
claims checked by signature and lifetime alone, and refresh tokens are
random strings whose persistence lives in ``services.refresh_tokens``.
"""

from __future__ import annotations

import base64
import secrets

from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from models.user import User

REFRESH_TOKEN_BYTES = 64


def issue_access_token(user: User) -> str:
    """Sign a short-lived token carrying the user's identity and role.

    Issuer, audience and lifetime come from the application's JWT settings,
    which ``create_app`` derives from ``JWT_ISSUER``, ``JWT_AUDIENCE`` and
    ``ACCESS_TOKEN_EXPIRES_MINUTES``.
    """

    return create_access_token(
        identity=str(user.id),
        additional_claims={
            "email": user.email,
            "name": user.full_name,
            "role": user.role,
        },
    )


def issue_refresh_token() -> str:
    """Return an opaque, base64-encoded 64 byte random value."""

    return base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")


def validate_access_token(token: str | None) -> str | None:
    """Return the user id for a valid access token, ``None`` otherwise.

    Malformed, badly signed, expired, wrong-issuer and wrong-audience tokens
    are all reported the same way.

    This is the programmatic check for callers holding a raw token. Routes
    authenticate through ``jwt_required``, which decodes with the same
    secret, issuer, audience and zero leeway and answers failures with the
    401 envelope registered in ``create_app``.
    """

    if not token:
        return None
    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException, ValueError):
        return None
    if claims.get("type") != "access":
        return None
    subject = claims.get("sub")
    return str(subject) if subject else None
