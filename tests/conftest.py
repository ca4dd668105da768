"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.user import User  # noqa: E402

DEFAULT_PASSWORD = "Passw0rd!"


class TestConfig(Config):
    __test__ = False

    TESTING = True
    APP_ENV = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-signing-secret-with-enough-length-for-hs256"
    JWT_ISSUER = "portfolio-tests"
    JWT_AUDIENCE = "portfolio-tests-client"
    BCRYPT_ROUNDS = 4
    RATE_LIMIT = "10000 per minute"
    EXPOSE_ERROR_DETAILS = False
    SEED_DEMO_DATA = False
    FRONTEND_URL = "http://frontend.test"


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(TestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def db_session(app: Flask):
    """Push an application context and hand out its session."""

    with app.app_context():
        yield db.session


@pytest.fixture()
def make_user(app: Flask):
    """Persist a user directly and return its id."""

    def _make_user(
        email: str,
        password: str = DEFAULT_PASSWORD,
        *,
        role: str = "user",
        is_active: bool = True,
        first_name: str = "Test",
        last_name: str = "User",
    ) -> str:
        with app.app_context():
            user = User(
                email=email,
                role=role,
                is_active=is_active,
                first_name=first_name,
                last_name=last_name,
            )
            user.set_password(password, rounds=app.config["BCRYPT_ROUNDS"])
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make_user


@pytest.fixture()
def login(client: FlaskClient):
    """Log in over HTTP and return the response ``data`` block."""

    def _login(email: str, password: str = DEFAULT_PASSWORD) -> dict:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.get_json()
        return response.get_json()["data"]

    return _login


@pytest.fixture()
def auth_headers(login):
    """Build an ``Authorization`` header for the given credentials."""

    def _auth_headers(email: str, password: str = DEFAULT_PASSWORD) -> dict:
        token = login(email, password)["token"]
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
