"""Runtime evaluation endpoint for LaunchFlags feature flags.

This blueprint exposes the public `/evaluate/` API used by client
applications to decide a flag for a given user context.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from launchflags.extensions import current_repository
from launchflags.models.flag import result_to_dict, utc_now
from launchflags.services.flag_service import evaluate_by_key
from launchflags.validators.evaluate_validator import parse_eval_payload


evaluate_bp = Blueprint("evaluate_bp", __name__, url_prefix="/evaluate")


@evaluate_bp.post("/")
def post_evaluate() -> tuple[Any, int]:
    """Evaluate a flag for a user (public API).

    Request JSON body (EvaluateRequest):
        {
            "flag_key": "string",
            "user_id": "string",
            "user_email": "string",      (optional)
            "user_role": "string",       (optional)
            "attributes": { ... }        (optional)
        }

    Behaviour:
        - Returns 400 if the payload does not match the schema.
        - Returns 404 with {"error": "NotFound"} if the flag does not exist.
        - Otherwise returns 200 with
          {"flag_key", "value", "reason", "timestamp"}.

    Returns:
        A tuple ``(response, status_code)``.
    """
    payload = request.get_json(silent=True) or {}
    flag_key, context = parse_eval_payload(payload)

    result = evaluate_by_key(
        repository=current_repository(),
        flag_key=flag_key,
        context=context,
    )

    body = result_to_dict(result)
    body["timestamp"] = utc_now().isoformat()
    return jsonify(body), 200
