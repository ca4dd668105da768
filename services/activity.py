"""Audit trail recording."""

from __future__ import annotations

from flask import has_request_context, request

from models import db
from models.activity_log import ActivityLog


def record_activity(
    user_id: str | None,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    details: str | None = None,
) -> ActivityLog:
    """Add an activity entry to the current session; the caller commits."""

    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = (request.user_agent.string or None) if request.user_agent else None

    entry = ActivityLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent[:512] if user_agent else None,
    )
    db.session.add(entry)
    return entry
