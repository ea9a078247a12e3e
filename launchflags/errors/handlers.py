# LaunchFlags/launchflags/errors/handlers.py
"""Centralized JSON error handling for the LaunchFlags HTTP layer.

Registers Flask error handlers so that domain exceptions and HTTP errors
are returned as consistent JSON payloads instead of HTML pages.
"""


from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from launchflags.errors.exceptions import (
    FlagConflict,
    FlagNotFound,
    FlagValidationError,
    InfrastructureError,
    InvalidRequest,
    LaunchFlagsError,
)


logger = logging.getLogger(__name__)


def _error_body(name: str, err: LaunchFlagsError) -> dict:
    return {"error": name, "code": err.code, "detail": err.detail}


def register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers for domain and HTTP errors.

    Mapping:
        - FlagValidationError / InvalidRequest -> 400
        - FlagNotFound -> 404
        - FlagConflict -> 409
        - InfrastructureError and anything unexpected -> 500

    Args:
        app: The Flask application instance to configure.
    """

    @app.errorhandler(FlagValidationError)
    def _on_validation_error(err: FlagValidationError) -> tuple[Any, int]:
        """Return HTTP 400 naming the offending field."""
        body = _error_body("ValidationError", err)
        body["field"] = err.field
        return jsonify(body), 400

    @app.errorhandler(InvalidRequest)
    def _on_bad_request(err: InvalidRequest) -> tuple[Any, int]:
        """Return HTTP 400 for request contract issues."""
        return jsonify(_error_body("BadRequest", err)), 400

    @app.errorhandler(FlagNotFound)
    def _on_not_found(err: FlagNotFound) -> tuple[Any, int]:
        """Return HTTP 404 for missing flags."""
        return jsonify(_error_body("NotFound", err)), 404

    @app.errorhandler(FlagConflict)
    def _on_conflict(err: FlagConflict) -> tuple[Any, int]:
        """Return HTTP 409 when a key is already taken."""
        return jsonify(_error_body("Conflict", err)), 409

    @app.errorhandler(InfrastructureError)
    def _on_infrastructure_error(err: InfrastructureError) -> tuple[Any, int]:
        """Return HTTP 500 for storage failures."""
        logger.exception("Storage failure: %s", err.detail)
        return jsonify(_error_body("InternalServerError", err)), 500

    @app.errorhandler(HTTPException)
    def _on_http_exception(err: HTTPException) -> tuple[Any, int]:
        """Fallback for other HTTP errors (for example 405)."""
        code = err.code or 500
        name = err.name or "HTTPException"
        return jsonify({"error": name, "detail": err.description}), code

    @app.errorhandler(Exception)
    def _on_unexpected(err: Exception) -> tuple[Any, int]:
        """Last-resort handler to avoid HTML stack traces."""
        logger.exception("Unhandled error: %s", err)
        return (
            jsonify(
                {
                    "error": "InternalServerError",
                    "detail": "An unexpected error occurred.",
                }
            ),
            500,
        )
