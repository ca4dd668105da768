"""Exception taxonomy raised by the service layer.

The application translates these into HTTP responses; services never build
responses themselves.
"""

from __future__ import annotations

from http import HTTPStatus


class ServiceError(Exception):
    """Base class for expected, client-attributable failures."""

    status_code = HTTPStatus.BAD_REQUEST
    default_message = "The request could not be processed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidRequest(ServiceError):
    """Input failed validation before touching storage."""


class ValidationConflict(ServiceError):
    """The request conflicts with existing state, e.g. a duplicate email."""


class AuthenticationFailure(ServiceError):
    """Credentials or tokens were rejected. The reason is never disclosed."""

    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Unauthorized"

    def __init__(self, message: str | None = None):
        # Callers may pass a reason for logs; clients always see the default.
        super().__init__(None)
        self.reason = message


class ResourceNotFound(ServiceError):
    """The entity is missing or is not owned by the caller."""

    status_code = HTTPStatus.NOT_FOUND
    default_message = "Not found"


class ConfigurationError(RuntimeError):
    """Required settings are absent; raised once at startup."""
