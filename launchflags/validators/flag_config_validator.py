from pathlib import Path
import json
from jsonschema import validate as js_validate, ValidationError

from launchflags.errors.exceptions import InvalidRequest

# Resolve schema paths
SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"


def _load_schema(name: str) -> dict:
    with (SCHEMAS_DIR / name).open("r", encoding="utf-8") as f:
        return json.load(f)


# Load schemas
FLAG_CREATE_SCHEMA = _load_schema("flag_create.schema.json")
FLAG_UPDATE_SCHEMA = _load_schema("flag_update.schema.json")


def _validate(payload: dict, schema: dict, title: str) -> None:
    if not isinstance(payload, dict):
        raise InvalidRequest("Body must be a JSON object.")

    try:
        js_validate(instance=payload, schema=schema)
    except ValidationError as e:
        msg = getattr(e, "message", None) or str(e)
        raise InvalidRequest(f"Invalid {title}: {msg}")


def validate_flag_create(payload: dict) -> None:
    """
    Validate a flag creation payload against its schema.

    Only the shape is checked here (types, required fields, no unknown
    fields); key format, name length and rule structure are enforced when
    the FlagDefinition is built.

    Args:
        payload: Parsed JSON body.

    Raises:
        InvalidRequest: If payload is not an object or violates the schema.
    """
    _validate(payload, FLAG_CREATE_SCHEMA, "FlagCreateRequest")


def validate_flag_update(payload: dict) -> None:
    """
    Validate a partial flag update payload against its schema.

    Args:
        payload: Parsed JSON body.

    Raises:
        InvalidRequest: If payload is not an object or violates the schema.
    """
    _validate(payload, FLAG_UPDATE_SCHEMA, "FlagUpdateRequest")
