"""Administrative user management, system statistics and the audit trail."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, or_

from models import db, utcnow
from models.activity_log import ActivityLog
from models.investment import Investment
from models.transaction import Transaction
from models.user import USER_ROLES, User
from services import refresh_tokens
from services.activity import record_activity
from services.errors import InvalidRequest, ResourceNotFound, ValidationConflict
from services.sessions import hash_rounds, normalize_email, validate_email, validate_password
from utils.pagination import paginate


@dataclass(frozen=True)
class SystemStats:
    total_users: int
    active_users: int
    total_investments: int
    total_investment_value: Decimal
    completed_transactions: int

    def to_dict(self) -> dict:
        return {
            "totalUsers": self.total_users,
            "activeUsers": self.active_users,
            "totalInvestments": self.total_investments,
            "totalInvestmentValue": float(self.total_investment_value),
            "activeTransactions": self.completed_transactions,
        }


def _check_role(role: str) -> str:
    if role not in USER_ROLES:
        raise InvalidRequest(f"role must be one of: {', '.join(USER_ROLES)}.")
    return role


def list_users(
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    role: str | None = None,
    is_active: bool | None = None,
) -> dict:
    query = User.not_deleted()
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(User.email).like(pattern),
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern),
            )
        )
    if role:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))

    query = query.order_by(User.created_at.desc())
    return paginate(query, page, limit, lambda user: user.to_dict())


def get_user(user_id: str) -> User:
    user = User.find_by_id(user_id)
    if user is None:
        raise ResourceNotFound("User not found")
    return user


def create_user(
    actor_id: str,
    *,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    role: str = "user",
    is_active: bool = True,
    email_verified: bool = False,
) -> User:
    email = normalize_email(email)
    validate_email(email)
    validate_password(password)
    if User.find_by_email(email) is not None:
        raise ValidationConflict("User with this email already exists")

    user = User(
        email=email,
        first_name=(first_name or "").strip(),
        last_name=(last_name or "").strip(),
        role=_check_role(role or "user"),
        is_active=is_active,
        email_verified=email_verified,
    )
    user.set_password(password, rounds=hash_rounds())
    db.session.add(user)
    db.session.flush()
    record_activity(actor_id, "create", "user", user.id, f"Admin created user: {user.email}")
    db.session.commit()

    current_app.logger.info("Admin %s created user %s", actor_id, user.id)
    return user


def update_user(actor_id: str, user_id: str, changes: dict) -> User:
    user = get_user(user_id)

    if changes.get("email"):
        email = normalize_email(changes["email"])
        validate_email(email)
        holder = User.find_by_email(email)
        if holder is not None and holder.id != user.id:
            raise ValidationConflict("Email is already taken by another user")
        user.email = email
    if changes.get("first_name"):
        user.first_name = changes["first_name"].strip()
    if changes.get("last_name"):
        user.last_name = changes["last_name"].strip()
    if changes.get("role"):
        user.role = _check_role(changes["role"])
    if changes.get("email_verified") is not None:
        user.email_verified = changes["email_verified"]
    if changes.get("password"):
        validate_password(changes["password"])
        user.set_password(changes["password"], rounds=hash_rounds())
    if changes.get("is_active") is not None:
        user.is_active = changes["is_active"]
        if not user.is_active:
            refresh_tokens.revoke_all_for_user(user.id)

    user.updated_at = utcnow()
    record_activity(actor_id, "update", "user", user.id, f"Admin updated user: {user.email}")
    db.session.commit()
    return user


def set_user_active(actor_id: str, user_id: str, is_active: bool) -> User:
    """Activate or deactivate a user. Deactivation ends every open session."""

    user = get_user(user_id)
    user.is_active = is_active
    user.updated_at = utcnow()
    if not is_active:
        refresh_tokens.revoke_all_for_user(user.id)

    action = "activate" if is_active else "deactivate"
    record_activity(actor_id, action, "user", user.id, f"Admin {action}d user: {user.email}")
    db.session.commit()

    current_app.logger.info("Admin %s %sd user %s", actor_id, action, user.id)
    return user


def delete_user(actor_id: str, user_id: str) -> None:
    user = get_user(user_id)
    user.soft_delete()
    refresh_tokens.revoke_all_for_user(user.id)
    record_activity(actor_id, "delete", "user", user.id, f"Admin deleted user: {user.email}")
    db.session.commit()

    current_app.logger.info("Admin %s deleted user %s", actor_id, user.id)


def system_stats() -> SystemStats:
    total_users = User.not_deleted().count()
    active_users = User.not_deleted().filter(User.is_active.is_(True)).count()
    total_investments = Investment.not_deleted().count()
    total_value = (
        db.session.query(func.coalesce(func.sum(Investment.current_value), 0))
        .filter(Investment.deleted_at.is_(None))
        .scalar()
    )
    completed = Transaction.query.filter(Transaction.status == "completed").count()

    return SystemStats(
        total_users=total_users,
        active_users=active_users,
        total_investments=total_investments,
        total_investment_value=Decimal(str(total_value or 0)),
        completed_transactions=completed,
    )


def list_activity_logs(
    *,
    page: int = 1,
    limit: int = 10,
    user_id: str | None = None,
    action: str | None = None,
    entity_type: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> dict:
    query = ActivityLog.apply_filters(
        ActivityLog.query,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        date_from=date_from,
        date_to=date_to,
    ).order_by(ActivityLog.created_at.desc())
    return paginate(query, page, limit, lambda entry: entry.to_dict())
