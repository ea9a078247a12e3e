"""
Request parsing for the /evaluate/ endpoint.

The EvaluateRequest JSON Schema is read once at import time. A request body
is checked against it, then split into the flag key and the
``EvaluationContext`` handed to the evaluation engine.
"""


from pathlib import Path
import json
from typing import Tuple

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from launchflags.errors.exceptions import InvalidRequest
from launchflags.models.flag import EvaluationContext, context_from_dict


SCHEMA_PATH = (
    Path(__file__).parent.parent / "schemas" / "EvaluateRequest.schema.json"
)

with SCHEMA_PATH.open("r", encoding="utf-8") as f:
    EVALUATE_REQUEST_VALIDATOR = Draft202012Validator(json.load(f))


def validate_eval_payload(payload: dict) -> None:
    """
    Check an evaluation request body against the EvaluateRequest schema.

    ``flag_key`` and ``user_id`` are required; ``attributes`` may only
    hold scalar values.

    Raises:
        InvalidRequest: If payload is not an object or doesn't match the
            schema. The message names the most relevant offending location.
    """
    if not isinstance(payload, dict):
        raise InvalidRequest("Payload must be a JSON object.")

    error = best_match(EVALUATE_REQUEST_VALIDATOR.iter_errors(payload))
    if error is not None:
        where = "/".join(str(p) for p in error.absolute_path) or "body"
        raise InvalidRequest(
            f"Invalid EvaluateRequest at {where}: {error.message}"
        )


def parse_eval_payload(payload: dict) -> Tuple[str, EvaluationContext]:
    """Validate an evaluation request and split it.

    Returns:
        tuple: ``(flag_key, context)``.

    Raises:
        InvalidRequest: If the payload is invalid.
    """
    validate_eval_payload(payload)
    return payload["flag_key"], context_from_dict(payload)
