# LaunchFlags/launchflags/blueprints/admin/flags_admin.py
"""Admin-facing feature flag management endpoints for LaunchFlags.

Provides CRUD and listing operations on feature flags.
"""


from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from launchflags.extensions import current_repository
from launchflags.models.flag import flag_to_dict
from launchflags.services import flag_management
from launchflags.validators.flag_config_validator import (
    validate_flag_create,
    validate_flag_update,
)


flags_admin_bp = Blueprint("flags_admin", __name__, url_prefix="/admin/flags")


@flags_admin_bp.post("/")
def post_create_flag() -> tuple[Any, int]:
    """Create a flag.

    - Validates the payload shape against flag_create.schema.json.
    - Builds and stores the flag via flag_management.create_flag.

    Returns:
        tuple: (JSON flag representation, 201). Validation errors yield
        400, a key already in use 409.
    """
    payload = request.get_json(silent=True) or {}
    validate_flag_create(payload)

    flag = flag_management.create_flag(current_repository(), payload)
    return jsonify(flag_to_dict(flag)), 201


@flags_admin_bp.get("/")
def list_flags() -> tuple[Any, int]:
    """List all flags, ordered by key.

    Returns:
        tuple: (JSON list of flag representations, HTTP status code).
    """
    flags = flag_management.list_flags(current_repository())
    return jsonify([flag_to_dict(f) for f in flags]), 200


@flags_admin_bp.get("/<string:key>")
def get_flag_by_key(key: str) -> tuple[Any, int]:
    """Retrieve a flag by its key.

    Args:
        key: The key of the flag to retrieve.

    Returns:
        tuple: (JSON flag representation, HTTP status code).
               Returns 404 if the flag is not found.
    """
    flag = flag_management.get_flag_by_key(current_repository(), key)
    return jsonify(flag_to_dict(flag)), 200


@flags_admin_bp.patch("/<string:flag_id>")
def patch_flag(flag_id: str) -> tuple[Any, int]:
    """Replace some fields of a flag.

    Every field present in the body is replaced; the rest are kept.
    If any field is invalid, nothing is changed.

    Returns:
        tuple: (JSON flag representation, HTTP status code).
    """
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    validate_flag_update(payload)

    flag = flag_management.update_flag(current_repository(), flag_id, payload)
    return jsonify(flag_to_dict(flag)), 200


@flags_admin_bp.delete("/<string:flag_id>")
def delete_flag(flag_id: str) -> tuple[str, int]:
    """Delete a flag by id.

    Returns:
        tuple: ("", 204) on success, 404 if the flag does not exist.
    """
    flag_management.delete_flag(current_repository(), flag_id)
    return "", 204
