"""Tests for demo data seeding."""

from __future__ import annotations

import random

from models import db
from models.investment import Investment
from models.transaction import Transaction
from models.user import User
from services.seeding import ADMIN_EMAIL, ADMIN_PASSWORD, DEMO_PASSWORD, seed_demo_data
from services.sessions import login


def _snapshot():
    return sorted(
        (investment.name, investment.amount, investment.current_value)
        for investment in Investment.query.all()
    )


def test_seed_creates_demo_accounts(db_session):
    assert seed_demo_data(random.Random(3)) is True

    admin = User.find_by_email(ADMIN_EMAIL)
    assert admin.role == "admin"
    assert login(ADMIN_EMAIL, ADMIN_PASSWORD) is not None
    assert login("user1@portfolio.com", DEMO_PASSWORD) is not None

    assert Investment.query.count() == 8
    assert Transaction.query.count() >= 16
    for transaction in Transaction.query.all():
        assert transaction.amount == Transaction.compute_amount(
            transaction.quantity, transaction.price, transaction.fees
        )


def test_seed_is_idempotent(db_session):
    seed_demo_data(random.Random(3))

    assert seed_demo_data(random.Random(3)) is False
    assert User.query.count() == 3


def test_seed_is_reproducible(db_session):
    seed_demo_data(random.Random(11))
    first = _snapshot()

    db.session.remove()
    db.drop_all()
    db.create_all()

    seed_demo_data(random.Random(11))
    assert _snapshot() == first


def test_seed_script_schema_is_compatible_with_startup_migrations(tmp_path):
    from sqlalchemy import text

    from app import create_app, run_startup_tasks
    from conftest import TestConfig
    from scripts.seed_demo_data import main as seed_script

    class FileDatabaseConfig(TestConfig):
        SEED_DEMO_DATA = True

    FileDatabaseConfig.SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'portfolio.db'}"

    seed_script(FileDatabaseConfig)

    application = create_app(FileDatabaseConfig)
    run_startup_tasks(application)

    with application.app_context():
        version = db.session.execute(text("SELECT version_num FROM alembic_version")).scalar()
        assert version == "0001_initial_portfolio_schema"
        assert User.query.filter_by(email=ADMIN_EMAIL).count() == 1
        db.session.remove()
        db.engine.dispose()
