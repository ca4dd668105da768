"""Tests for the User model helpers."""

import pytest
from sqlalchemy.exc import IntegrityError

from models import db
from models.user import User


def _user(email: str) -> User:
    user = User(email=email, first_name="Model", last_name="Tester")
    user.set_password("password123", rounds=4)
    return user


def test_password_hashing(db_session):
    user = _user("helper@example.com")
    db.session.add(user)
    db.session.commit()

    assert user.password_hash.startswith("$2b$04$")
    assert user.check_password("password123") is True
    assert user.check_password("password124") is False
    assert user.check_password("") is False


def test_corrupt_hash_fails_closed(db_session):
    user = _user("corrupt@example.com")
    user.password_hash = "not-a-bcrypt-hash"

    assert user.check_password("password123") is False


def test_defaults_and_serialization(db_session):
    user = _user("defaults@example.com")
    db.session.add(user)
    db.session.commit()

    assert user.role == "user"
    assert user.is_active is True
    assert user.email_verified is False
    assert user.full_name == "Model Tester"
    data = user.to_dict()
    assert data["email"] == "defaults@example.com"
    assert "password_hash" not in data
    assert data["createdAt"]


def test_soft_delete_hides_user_and_frees_email(db_session):
    user = _user("gone@example.com")
    db.session.add(user)
    db.session.commit()

    user.soft_delete()
    db.session.commit()

    assert User.find_by_email("gone@example.com") is None
    assert User.find_by_id(user.id) is None

    db.session.add(_user("gone@example.com"))
    db.session.commit()
    assert User.find_by_email("gone@example.com") is not None


def test_live_emails_are_unique(db_session):
    db.session.add(_user("twice@example.com"))
    db.session.commit()

    db.session.add(_user("twice@example.com"))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()
