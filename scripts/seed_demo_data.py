"""Seed demo users, investments and transactions."""

from flask_migrate import upgrade

from app import create_app
from config import Config
from services.seeding import seed_demo_data


def main(config_class: type[Config] = Config) -> None:
    app = create_app(config_class)
    with app.app_context():
        # Same schema path as application startup, so a later ``python app.py`` finds it current.
        upgrade()
        if seed_demo_data():
            print("Seed data inserted: admin, two demo users, portfolios.")
        else:
            print("Demo data already present; nothing to do.")


if __name__ == "__main__":
    main()
