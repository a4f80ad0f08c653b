# backend/frontdesk/__init__.py
from __future__ import annotations

from flask import Flask, request

from .config import Config
from .extensions import db, migrate



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    from .services.cache import init_cache
    init_cache(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.rooms import rooms_bp
    from .routes.stays import stays_bp
    from .routes.payments import payments_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(rooms_bp)
    app.register_blueprint(stays_bp)
    app.register_blueprint(payments_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS", []))
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
