"""Session workflow tests exercised directly against the service layer."""

from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import DEFAULT_PASSWORD
from models import db, utcnow
from models.activity_log import ActivityLog
from models.password_reset_token import PasswordResetToken
from models.refresh_token import RefreshToken
from models.user import User
from services import refresh_tokens, sessions
from services.errors import InvalidRequest, ResourceNotFound, ValidationConflict
from services.tokens import validate_access_token


def _register(email: str = "owner@example.com", password: str = DEFAULT_PASSWORD):
    return sessions.register(email, password, "Olive", "Owner")


def test_register_issues_consistent_token_pair(db_session):
    session = _register()

    user_id = session.user.id
    assert validate_access_token(session.access_token) == user_id
    assert refresh_tokens.lookup(session.refresh_token).user_id == user_id

    user = User.find_by_id(user_id)
    assert user.role == "user"
    assert user.is_active is True
    assert user.email_verified is False
    assert user.password_hash != DEFAULT_PASSWORD


def test_register_refresh_token_expires_in_seven_days(db_session):
    session = _register()

    record = refresh_tokens.lookup(session.refresh_token)
    lifetime = record.expires_at - record.created_at
    assert lifetime == timedelta(days=7)


def test_register_rejects_duplicate_email(db_session):
    _register()

    with pytest.raises(ValidationConflict) as excinfo:
        _register()

    assert excinfo.value.message == "User with this email already exists"


def test_email_comparison_is_case_sensitive(db_session):
    _register("Case@Example.com")
    other = _register("case@example.com")

    assert other.user.email == "case@example.com"


def test_email_of_deleted_user_can_be_registered_again(db_session):
    first = _register()
    first.user.soft_delete()
    db.session.commit()

    again = _register()

    assert again.user.id != first.user.id


@pytest.mark.parametrize(
    "email, password",
    [
        ("no-at-sign", DEFAULT_PASSWORD),
        ("short@example.com", "short"),
        ("long@example.com", "x" * 73),
    ],
)
def test_register_validates_input(db_session, email, password):
    with pytest.raises(InvalidRequest):
        sessions.register(email, password)


def test_login_succeeds_and_records_activity(db_session):
    _register()

    session = sessions.login("owner@example.com", DEFAULT_PASSWORD)

    assert session is not None
    assert validate_access_token(session.access_token) == session.user.id
    actions = [entry.action for entry in ActivityLog.query.filter_by(user_id=session.user.id)]
    assert "login" in actions


def test_login_with_wrong_password_issues_nothing(db_session):
    registered = _register()
    before = RefreshToken.query.filter_by(user_id=registered.user.id).count()

    assert sessions.login("owner@example.com", "wrong-password") is None
    assert RefreshToken.query.filter_by(user_id=registered.user.id).count() == before


def test_login_for_unknown_or_inactive_user_returns_none(db_session):
    registered = _register()
    registered.user.is_active = False
    db.session.commit()

    assert sessions.login("owner@example.com", DEFAULT_PASSWORD) is None
    assert sessions.login("nobody@example.com", DEFAULT_PASSWORD) is None


def test_login_keeps_other_sessions_alive(db_session):
    _register()

    first = sessions.login("owner@example.com", DEFAULT_PASSWORD)
    second = sessions.login("owner@example.com", DEFAULT_PASSWORD)

    assert refresh_tokens.lookup(first.refresh_token) is not None
    assert refresh_tokens.lookup(second.refresh_token) is not None


def test_refresh_tokens_are_single_use(db_session):
    original = _register().refresh_token

    rotated = sessions.refresh(original)
    assert rotated is not None
    assert rotated.refresh_token != original

    assert sessions.refresh(original) is None

    assert sessions.refresh(rotated.refresh_token) is not None
    assert sessions.refresh(rotated.refresh_token) is None


def test_refresh_rejects_expired_token(db_session):
    session = _register()
    record = refresh_tokens.lookup(session.refresh_token)
    record.expires_at = utcnow() - timedelta(seconds=1)
    db.session.commit()

    assert refresh_tokens.lookup(session.refresh_token) is None
    assert sessions.refresh(session.refresh_token) is None


def test_refresh_rejects_inactive_user(db_session):
    session = _register()
    session.user.is_active = False
    db.session.commit()

    assert sessions.refresh(session.refresh_token) is None


def test_logout_is_idempotent(db_session):
    session = _register()

    sessions.logout("never-issued")
    sessions.logout(None)
    sessions.logout(session.refresh_token)
    sessions.logout(session.refresh_token)

    assert refresh_tokens.lookup(session.refresh_token) is None


def test_forgot_password_for_unknown_email_creates_nothing(db_session):
    assert sessions.forgot_password("ghost@example.com") is None
    assert PasswordResetToken.query.count() == 0


def test_forgot_password_retires_previous_tokens(db_session):
    _register()

    first = sessions.forgot_password("owner@example.com")
    second = sessions.forgot_password("owner@example.com")

    assert first.token != second.token
    assert PasswordResetToken.find_redeemable(first.token) is None
    assert PasswordResetToken.find_redeemable(second.token) is not None


def test_reset_password_is_single_use_and_ends_sessions(db_session):
    session = _register()
    reset = sessions.forgot_password("owner@example.com")

    assert sessions.reset_password(reset.token, "BrandNewPass1") is True
    assert sessions.reset_password(reset.token, "AnotherPass1") is False

    assert refresh_tokens.lookup(session.refresh_token) is None
    assert sessions.login("owner@example.com", DEFAULT_PASSWORD) is None
    assert sessions.login("owner@example.com", "BrandNewPass1") is not None


def test_reset_password_rejects_expired_or_unknown_tokens(db_session):
    _register()
    reset = sessions.forgot_password("owner@example.com")
    reset.expires_at = utcnow() - timedelta(minutes=1)
    db.session.commit()

    assert sessions.reset_password(reset.token, "BrandNewPass1") is False
    assert sessions.reset_password("made-up", "BrandNewPass1") is False


def test_change_password_requires_current_password(db_session):
    user_id = _register().user.id

    assert sessions.change_password(user_id, "wrong-password", "BrandNewPass1") is False
    assert sessions.change_password(user_id, DEFAULT_PASSWORD, "BrandNewPass1") is True
    assert sessions.login("owner@example.com", "BrandNewPass1") is not None


def test_update_profile_rejects_taken_email(db_session):
    _register("taken@example.com")
    user_id = _register("mine@example.com").user.id

    with pytest.raises(ValidationConflict):
        sessions.update_profile(user_id, email="taken@example.com")

    updated = sessions.update_profile(user_id, first_name="Renamed")
    assert updated.first_name == "Renamed"
    assert updated.email == "mine@example.com"


def test_get_profile_for_missing_user(db_session):
    with pytest.raises(ResourceNotFound):
        sessions.get_profile("00000000-0000-0000-0000-000000000000")
