# LaunchFlags/launchflags/app.py

"""LaunchFlags application entrypoint.

This module creates and configures the Flask application: logging, the
flag repository, CORS for local frontends, blueprints and JSON error
handlers. Run it directly to start the development HTTP server.
"""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from launchflags.blueprints.admin.flags_admin import flags_admin_bp
from launchflags.blueprints.flags.evaluate import evaluate_bp
from launchflags.blueprints.system.health import health_bp
from launchflags.config import Settings, load_settings
from launchflags.errors.handlers import register_error_handlers
from launchflags.extensions import init_repository
from launchflags.repositories.base import FlagRepository
from launchflags.repositories.memory_repo import InMemoryFlagRepository
from launchflags.repositories.postgres_flags_repo import (
    PostgresFlagRepository,
)


logger = logging.getLogger(__name__)


def build_repository(settings: Settings) -> FlagRepository:
    """Instantiate the flag repository selected by ``settings.flag_store``.

    The PostgreSQL store creates its table on first use.

    Raises:
        RuntimeError: If the postgres store is selected without
            ``DATABASE_URL``.
    """
    if settings.flag_store == "postgres":
        repository = PostgresFlagRepository(settings.database_url)
        repository.ensure_schema()
        return repository

    return InMemoryFlagRepository()


def create_app(
    repository: Optional[FlagRepository] = None,
    settings: Optional[Settings] = None,
) -> Flask:
    """Create and configure the LaunchFlags Flask application instance.

    Args:
        repository: Flag storage to use. When omitted, one is built from
            ``settings``.
        settings: Runtime settings (defaults to ``load_settings()``).

    Returns:
        Flask: A configured Flask application instance.
    """
    settings = settings or load_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = Flask(__name__)
    app.config["FLAG_STORE"] = settings.flag_store

    if repository is None:
        repository = build_repository(settings)
    init_repository(app, repository)

    # Allow local frontends to call this API directly.
    # In production, CORS should be enforced at the reverse proxy layer.
    CORS(
        app,
        resources={r"/*": {"origins": list(settings.cors_origins)}},
        supports_credentials=False,
        allow_headers=["Content-Type"],
        methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    )

    # Register JSON error handlers (400/404/409/500, etc.).
    register_error_handlers(app)

    # System & health
    app.register_blueprint(health_bp)         # /health/

    # Flag management
    app.register_blueprint(flags_admin_bp)    # /admin/flags/

    # Public evaluation endpoint (SDK / runtime)
    app.register_blueprint(evaluate_bp)       # /evaluate/

    logger.info("LaunchFlags ready (flag store: %s)", settings.flag_store)
    return app


if __name__ == "__main__":
    settings = load_settings()
    app = create_app(settings=settings)

    app.run(
        host="0.0.0.0",
        port=settings.port,
        debug=settings.debug,
    )
