import logging

import click
from flask import Flask, request
from flask_migrate import Migrate

from config import Config
from models import db
from models.user import ROLE_ADMIN
from routes import health_bp, auth_bp, users_bp, bookings_bp, payments_bp
from utils.auth_context import load_current_user
from utils.errors import register_error_handlers

logger = logging.getLogger(__name__)


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    _configure_logging(app)

    # Register routes under the API prefix
    prefix = app.config.get("API_PREFIX", "/api/v1").rstrip("/")
    app.register_blueprint(health_bp, url_prefix=prefix)
    for bp in (auth_bp, users_bp, bookings_bp, payments_bp):
        app.register_blueprint(bp, url_prefix=prefix + bp.url_prefix)

    register_error_handlers(app)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"

        origin = app.config.get("CORS_ORIGIN")
        if origin and request.headers.get("Origin") == origin:
            resp.headers["Access-Control-Allow-Origin"] = origin
            resp.headers["Access-Control-Allow-Credentials"] = "true"
            resp.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, PATCH, OPTIONS"
            resp.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
            resp.headers["Vary"] = "Origin"
        return resp

    register_cli(app)

    logger.info("Royal Health API ready under %s", prefix)
    return app

#-------------------------

def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to admin by email (bootstrap)."""
        from services.user_service import find_by_email

        user = find_by_email(email)
        if not user:
            click.echo("User not found")
            return

        if user.role != ROLE_ADMIN:
            user.role = ROLE_ADMIN
            db.session.commit()

        click.echo(f"{user.email} promoted to admin")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=app.config.get("PORT", 3001))
