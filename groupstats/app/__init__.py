"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - `flask db`-style tooling without starting a server

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging (LOG_LEVEL)
  3. Initialise extensions (SQLAlchemy, Marshmallow) via init_app()
  4. Register models so SQLAlchemy's metadata is complete
  5. Register CLI commands (flask refresh-scores)

HTTP routing is not part of this package; callers embed the services in
their own controllers.
"""

from __future__ import annotations

import logging

import click
from flask import Flask

from groupstats.config import config_by_name, validate_production_config


logger = logging.getLogger(__name__)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to "development".
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    # ── Logging ────────────────────────────────────────────────────────────
    from groupstats.app.logging_config import setup_logging
    setup_logging(app.config["LOG_LEVEL"])

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from groupstats.app.extensions import db, ma
    db.init_app(app)
    ma.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    # Import all models so that SQLAlchemy's MetaData is populated.
    # Alembic needs to see these to auto-generate migrations.
    with app.app_context():
        from groupstats.app.models import (  # noqa: F401
            achievement,
            competition,
            group,
            membership,
            player,
            record,
            snapshot,
        )

    _register_commands(app)

    logger.debug("Created app with %s config", config_class.__name__)
    return app


def _register_commands(app: Flask) -> None:
    """Registers maintenance commands on the `flask` CLI."""

    @app.cli.command("refresh-scores")
    def refresh_scores_command():
        """Recompute every group's score."""
        from groupstats.app.extensions import db
        from groupstats.app.services import group_service

        updated = group_service.refresh_scores(db.session)
        db.session.commit()
        click.echo(f"Updated {updated} group score(s).")
