"""Seed an administrator user."""

import os

from app import create_app
from models import db
from services.seeding import ADMIN_EMAIL, ADMIN_PASSWORD, get_or_create_user
from services.sessions import hash_rounds


def main() -> None:
    email = os.getenv("ADMIN_EMAIL", ADMIN_EMAIL)
    password = os.getenv("ADMIN_PASSWORD", ADMIN_PASSWORD)

    app = create_app()
    with app.app_context():
        admin = get_or_create_user(email, password, "Admin", "User", role="admin")
        action = "updated" if admin.id else "created"
        if action == "updated":
            admin.set_password(password, rounds=hash_rounds())
        admin.role = "admin"
        admin.is_active = True
        db.session.commit()
        print(f"Admin user {action}: {email}")


if __name__ == "__main__":
    main()
