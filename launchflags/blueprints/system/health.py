"""Liveness probe for the LaunchFlags service."""

from flask import Blueprint, current_app, jsonify

health_bp = Blueprint("health_bp", __name__, url_prefix="/health")


@health_bp.get("/")
def health() -> jsonify:
    """
    Health probe.

    Returns:
        {"status": "ok", "flag_store": "<memory|postgres>"}
    """
    return jsonify(
        {
            "status": "ok",
            "flag_store": current_app.config.get("FLAG_STORE", "memory"),
        }
    )
