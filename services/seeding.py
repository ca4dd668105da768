"""Demo data for local development."""

from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from flask import current_app

from models import db, utcnow
from models.investment import Investment
from models.transaction import Transaction
from models.user import User
from services.reports import months_before
from services.sessions import hash_rounds

ADMIN_EMAIL = "admin@portfolio.com"
ADMIN_PASSWORD = "Admin@123"
DEMO_USERS = (
    ("user1@portfolio.com", "John", "Doe"),
    ("user2@portfolio.com", "Jane", "Smith"),
)
DEMO_PASSWORD = "User@123"

DEMO_HOLDINGS = (
    ("Apple Inc.", "stocks", "AAPL"),
    ("US Treasury Bond 2030", "bonds", None),
    ("Bitcoin", "crypto", "BTC"),
    ("Downtown Rental Unit", "real-estate", None),
    ("Global Growth Fund", "mutual-funds", None),
    ("S&P 500 Index ETF", "etf", "SPY"),
)


def get_or_create_user(
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: str = "user",
) -> User:
    user = User.find_by_email(email)
    if user is None:
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=True,
            email_verified=True,
        )
        user.set_password(password, rounds=hash_rounds())
        db.session.add(user)
    return user


def _money(rng: random.Random, low: int, high: int) -> Decimal:
    return Decimal(rng.randint(low * 100, high * 100)) / 100


def _seed_portfolio(user: User, rng: random.Random) -> int:
    now = utcnow()
    created = 0
    for name, type_, symbol in rng.sample(DEMO_HOLDINGS, k=4):
        amount = _money(rng, 1_000, 20_000)
        drift = Decimal(rng.randint(-25, 40)) / 100
        investment = Investment(
            user_id=user.id,
            name=name,
            type=type_,
            symbol=symbol,
            amount=amount,
            current_value=(amount * (1 + drift)).quantize(Decimal("0.01")),
            purchase_date=months_before(now, rng.randint(1, 20)),
            status="active",
            description=f"Demo holding in {type_}",
        )
        db.session.add(investment)
        db.session.flush()

        for _ in range(rng.randint(2, 5)):
            transaction = Transaction(
                investment_id=investment.id,
                type=rng.choice(("buy", "buy", "sell", "dividend")),
                quantity=Decimal(rng.randint(1, 50)),
                price=_money(rng, 10, 500),
                fees=_money(rng, 0, 15),
                date=now - timedelta(days=rng.randint(0, 330)),
                status="completed",
            )
            transaction.recalculate_amount()
            db.session.add(transaction)
        created += 1
    return created


def seed_demo_data(rng: random.Random | None = None) -> bool:
    """Create the demo admin, two users and their portfolios.

    Returns ``False`` without touching anything when the admin already
    exists.
    """

    if User.find_by_email(ADMIN_EMAIL) is not None:
        current_app.logger.info("Demo data already present; skipping seed")
        return False

    if rng is None:
        rng = random.Random(current_app.config.get("SEED_RANDOM_SEED", 42))

    get_or_create_user(ADMIN_EMAIL, ADMIN_PASSWORD, "Admin", "User", role="admin")
    investments = 0
    for email, first_name, last_name in DEMO_USERS:
        user = get_or_create_user(email, DEMO_PASSWORD, first_name, last_name)
        db.session.flush()
        investments += _seed_portfolio(user, rng)

    db.session.commit()
    current_app.logger.info(
        "Seeded demo data: %d users, %d investments", len(DEMO_USERS) + 1, investments
    )
    return True
