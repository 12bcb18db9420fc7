# backend/erp/__init__.py
from flask import Flask, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate
from .responses import api_error
from .validation import ValidationError, ConflictError, NotFoundError


def _register_error_handlers(app: Flask) -> None:
    from .services.auth_service import PasswordValidationError
    from .services.stock_service import InsufficientStockError

    @app.errorhandler(InsufficientStockError)
    def handle_insufficient_stock(e):
        return api_error(str(e), 400, available=e.available, requested=e.requested)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return api_error(str(e), 400)

    @app.errorhandler(PasswordValidationError)
    def handle_password_error(e):
        return api_error(str(e), 400)

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        return api_error(str(e), 409)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return api_error(str(e), 404)

    @app.errorhandler(404)
    def handle_404(e):
        return api_error("Not found", 404)

    @app.errorhandler(405)
    def handle_405(e):
        return api_error("Method not allowed", 405)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return api_error(e.description or e.name, e.code or 500)
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return api_error("Internal server error", 500)


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.auth import auth_bp
    from .routes.admin import admin_bp
    from .routes.master import master_bp
    from .routes.inventory import inventory_bp
    from .routes.purchase import purchase_bp
    from .routes.sales import sales_bp
    from .routes.accounts import accounts_bp
    from .routes.system import system_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(master_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(purchase_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(accounts_bp)
    app.register_blueprint(system_bp)

    _register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = app.config.get("CORS_ALLOWED_ORIGINS", ())
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
