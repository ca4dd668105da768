"""Application factory."""

import logging
import os
import uuid
from datetime import timedelta

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate, upgrade
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import Config
from models import db, utcnow
from routes.admin import admin_bp
from routes.auth import auth_bp
from routes.investments import investments_bp
from routes.reports import reports_bp
from routes.transactions import transactions_bp
from services.errors import AuthenticationFailure, ConfigurationError, ServiceError
from utils.responses import error_payload

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request."
REQUIRED_SETTINGS = ("JWT_SECRET_KEY", "JWT_ISSUER", "JWT_AUDIENCE")
MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "migrations")

migrate = Migrate(directory=MIGRATIONS_DIR)
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    _validate_settings(app)
    _configure_jwt(app)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _register_jwt_loaders()

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
        expose_headers=["X-Request-ID"],
    )

    # Rate limiting
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    headers_enabled = app.config.get("RATELIMIT_HEADERS_ENABLED", True)
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "120 per minute")],
        storage_uri=storage_uri,
        headers_enabled=headers_enabled,
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(investments_bp, url_prefix="/api/investments")
    app.register_blueprint(transactions_bp, url_prefix="/api/transactions")
    app.register_blueprint(reports_bp, url_prefix="/api/reports")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        try:
            db.session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            db.session.rollback()
            app.logger.exception("Health check could not reach the database")
            payload = {
                "success": False,
                "data": {"status": "degraded", "database": "unreachable", "timestamp": utcnow().isoformat()},
                "message": "Database unavailable",
            }
            return jsonify(payload), 503
        payload = {
            "success": True,
            "data": {"status": "healthy", "database": "connected", "timestamp": utcnow().isoformat()},
            "message": None,
        }
        return jsonify(payload), 200

    # Errors
    _register_error_handlers(app)

    return app


def _validate_settings(app: Flask) -> None:
    missing = [name for name in REQUIRED_SETTINGS if not app.config.get(name)]
    if missing:
        raise ConfigurationError(
            "Missing required configuration: {}".format(", ".join(missing))
        )


def _configure_jwt(app: Flask) -> None:
    """Translate the token settings into flask-jwt-extended keys."""
    config = app.config
    config["JWT_ALGORITHM"] = "HS256"
    config["JWT_TOKEN_LOCATION"] = ["headers"]
    config["JWT_ENCODE_ISSUER"] = config["JWT_ISSUER"]
    config["JWT_DECODE_ISSUER"] = config["JWT_ISSUER"]
    config["JWT_ENCODE_AUDIENCE"] = config["JWT_AUDIENCE"]
    config["JWT_DECODE_AUDIENCE"] = config["JWT_AUDIENCE"]
    config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        minutes=config.get("ACCESS_TOKEN_EXPIRES_MINUTES", 15)
    )
    config["JWT_DECODE_LEEWAY"] = 0


def _unauthorized_response():
    request_id = g.get("request_id")
    response = jsonify(error_payload(AuthenticationFailure.default_message, request_id))
    response.status_code = 401
    return response


def _register_jwt_loaders() -> None:
    @jwt.unauthorized_loader
    def _missing_token(reason):
        return _unauthorized_response()

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return _unauthorized_response()

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _unauthorized_response()


def _describe(error: Exception) -> str:
    message = str(error) or error.__class__.__name__
    inner = error.__cause__ or error.__context__
    if inner is not None:
        message = f"{message} Inner: {inner}"
    return message


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(ServiceError)
    def _handle_service_error(error: ServiceError):
        db.session.rollback()
        request_id = g.get("request_id") or str(uuid.uuid4())
        if isinstance(error, AuthenticationFailure) and error.reason:
            app.logger.info("Request %s rejected: %s", request_id, error.reason)
        response = jsonify(error_payload(error.message, request_id))
        response.status_code = int(error.status_code)
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = jsonify(error_payload(error.description or error.name, request_id))
        response.status_code = error.code or 500
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        db.session.rollback()
        request_id = g.get("request_id") or str(uuid.uuid4())
        app.logger.exception("Unhandled application error (request %s)", request_id, exc_info=error)
        if app.config.get("EXPOSE_ERROR_DETAILS"):
            message = _describe(error)
        else:
            message = GENERIC_ERROR_MESSAGE
        response = jsonify(error_payload(message, request_id))
        response.status_code = 500
        response.headers.setdefault("X-Request-ID", request_id)
        return response


def run_startup_tasks(app: Flask) -> None:
    """Apply migrations, then seed demo data when enabled."""
    from services.seeding import seed_demo_data

    with app.app_context():
        app.logger.info("Applying database migrations")
        upgrade()
        if app.config.get("SEED_DEMO_DATA"):
            seed_demo_data()


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    application = create_app()
    run_startup_tasks(application)
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
