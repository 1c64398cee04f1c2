"""
Application factory for the client ledger service.

This module provides a function to create and configure the Flask
application. All extensions (SQLAlchemy, Migrate, JWT) are initialised
here and the lifecycle blueprint is registered inside the factory so
tests can build isolated apps.

Environment variables control the database connection, the JWT secret
and the log level. Set ``DATABASE_URL``, ``JWT_SECRET_KEY`` and
``LEDGER_LOG_LEVEL`` in production; SQLite is used when no database URL
is available.
"""

from __future__ import annotations

import logging
import os
from datetime import timedelta

from flask import Flask
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager

# Extensions are created unbound and attached in create_app()
from .db import db  # use shared db object from db.py
migrate = Migrate()
jwt = JWTManager()


def create_app(test_config: dict | None = None) -> Flask:
    """Create and configure a Flask application.

    Parameters
    ----------
    test_config: dict | None, optional
        Optional configuration overrides used when running tests.

    Returns
    -------
    Flask
        A configured Flask application instance.
    """
    app = Flask(__name__)

    # Default configuration. Override using environment variables or
    # by passing a ``test_config`` mapping.
    app.config.update(
        SQLALCHEMY_DATABASE_URI=os.environ.get("DATABASE_URL", "sqlite:///ledger.db"),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        JWT_SECRET_KEY=os.environ.get("JWT_SECRET_KEY", "please-change-this-secret-key"),
        JWT_ACCESS_TOKEN_EXPIRES=timedelta(days=1),
        LEDGER_LOG_LEVEL=os.environ.get("LEDGER_LOG_LEVEL", "INFO"),
        LEDGER_ADMIN_ROLE="Admin",
    )

    if test_config:
        app.config.update(test_config)

    logging.getLogger(__name__).setLevel(app.config["LEDGER_LOG_LEVEL"])

    # Initialise extensions with the app
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # Register custom error handlers
    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints. Importing here avoids circular imports.
    from .routes.lifecycle import lifecycle_bp

    app.register_blueprint(lifecycle_bp, url_prefix="/api")

    @app.route("/api/health")
    def health_check() -> dict[str, str]:
        """Return a simple health check response."""
        return {"status": "ok"}

    return app
