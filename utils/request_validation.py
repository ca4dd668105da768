"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, Mapping

from flask import Request
from werkzeug.exceptions import BadRequest

_TRUE_VALUES = {"1", "true", "yes", "y"}
_FALSE_VALUES = {"0", "false", "no", "n"}


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        if allow_empty and not req.get_data():
            return {}
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        if allow_empty and not req.get_data():
            return {}
        raise BadRequest("Request JSON body is malformed.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if data.get(key) in (None, "")]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(", ".join(sorted(missing)))
            )

    return data


def parse_bool(value: object) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def optional_bool(data: Mapping, key: str) -> bool | None:
    if key not in data or data[key] is None:
        return None
    parsed = parse_bool(data[key])
    if parsed is None:
        raise BadRequest(f"{key} must be a boolean.")
    return parsed


def optional_decimal(data: Mapping, key: str) -> Decimal | None:
    value = data.get(key)
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise BadRequest(f"{key} must be numeric.")
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise BadRequest(f"{key} must be numeric.")
    if not parsed.is_finite():
        raise BadRequest(f"{key} must be numeric.")
    return parsed


def require_decimal(data: Mapping, key: str) -> Decimal:
    parsed = optional_decimal(data, key)
    if parsed is None:
        raise BadRequest(f"{key} is required.")
    return parsed


def parse_datetime(value: str, field: str) -> datetime:
    """Parse an ISO 8601 value into a naive UTC datetime."""

    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        raise BadRequest(f"{field} must be ISO 8601 format.")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def optional_datetime(data: Mapping, key: str) -> datetime | None:
    value = data.get(key)
    if value in (None, ""):
        return None
    return parse_datetime(value, key)


def optional_string(data: Mapping, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise BadRequest(f"{key} must be a string.")
    return value.strip()


def int_arg(args: Mapping, name: str, default: int, *, minimum: int = 1, maximum: int | None = None) -> int:
    """Read an integer query argument, rejecting values below ``minimum``."""

    raw = args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise BadRequest(f"{name} must be an integer.")
    if value < minimum:
        raise BadRequest(f"{name} must be at least {minimum}.")
    if maximum is not None:
        value = min(value, maximum)
    return value


def bool_arg(args: Mapping, name: str) -> bool | None:
    raw = args.get(name)
    if raw in (None, ""):
        return None
    parsed = parse_bool(raw)
    if parsed is None:
        raise BadRequest(f"{name} must be a boolean.")
    return parsed


def datetime_arg(args: Mapping, name: str) -> datetime | None:
    raw = args.get(name)
    if raw in (None, ""):
        return None
    return parse_datetime(raw, name)
