"""Uniform ``{success, data, message}`` response envelope."""

from __future__ import annotations

from http import HTTPStatus

from flask import jsonify


def success_response(data=None, message: str | None = None, status: int = HTTPStatus.OK):
    return jsonify({"success": True, "data": data, "message": message}), status


def error_payload(message: str, request_id: str | None = None) -> dict:
    payload = {"success": False, "data": None, "message": message}
    if request_id:
        payload["requestId"] = request_id
    return payload
