# LaunchFlags/launchflags/validators/flag_validator.py
"""Structural validation of flag definitions.

These helpers gatekeep flag keys, names and rules before a
``FlagDefinition`` is constructed or updated. They are pure functions:
each returns the (normalized) input or raises a ``FlagValidationError``
subclass naming the offending field.

Rules and conditions may be given either as plain mappings (e.g. decoded
JSON) or as ``Rule`` / ``Condition`` instances.
"""


from __future__ import annotations

import math
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

from launchflags.errors.exceptions import InvalidKey, InvalidName, InvalidRule
from launchflags.models.enums import ConditionOperator, RuleType


KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
NAME_MAX_LENGTH = 100

_MISSING = object()

_RULE_TYPES = {member.value for member in RuleType}
_OPERATORS = {member.value for member in ConditionOperator}


def _get(obj: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an object, ``_MISSING`` if absent."""
    if isinstance(obj, Mapping):
        return obj.get(name, _MISSING)
    return getattr(obj, name, _MISSING)


def _tag(value: Any) -> Any:
    """Return the string behind an enum tag, ``None`` for non-strings."""
    if isinstance(value, Enum):
        return value.value
    return value if isinstance(value, str) else None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_number(value: Any) -> bool:
    # bool is an int subclass but is not a priority.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_key(key: Any) -> str:
    """Validate a flag key.

    Args:
        key: The candidate key.

    Returns:
        str: The trimmed key.

    Raises:
        InvalidKey: If the key is empty after trimming (``flags.key_required``)
            or contains characters outside ``[A-Za-z0-9_-]``
            (``flags.key_invalid``).
    """
    if not isinstance(key, str) or not key.strip():
        raise InvalidKey("Flag key is required.", code="flags.key_required")

    if not KEY_PATTERN.match(key):
        raise InvalidKey(
            "Flag key can only contain letters, numbers, underscores, "
            "and hyphens.",
            code="flags.key_invalid",
        )

    return key.strip()


def validate_name(name: Any) -> str:
    """Validate a flag display name.

    Args:
        name: The candidate name.

    Returns:
        str: The trimmed name.

    Raises:
        InvalidName: If the name is empty after trimming or longer than
            100 characters.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidName("Flag name is required.", code="flags.name_required")

    trimmed = name.strip()
    if len(trimmed) > NAME_MAX_LENGTH:
        raise InvalidName(
            f"Flag name cannot exceed {NAME_MAX_LENGTH} characters.",
            code="flags.name_too_long",
        )

    return trimmed


def validate_condition(condition: Any, where: str = "Condition") -> None:
    """Check one condition: object shape, field, known operator, value.

    Raises:
        InvalidRule: Naming the condition as ``where``.
    """
    is_object = isinstance(condition, Mapping) or hasattr(condition, "field")
    if not is_object:
        raise InvalidRule(f"{where} must be an object.")

    field = _get(condition, "field")
    if not isinstance(field, str) or not field:
        raise InvalidRule(f"{where} must have a non-empty field.")

    operator = _get(condition, "operator")
    if _tag(operator) not in _OPERATORS:
        raise InvalidRule(
            f"{where} has an unknown operator: {operator!r}.",
            code="flags.operator_invalid",
        )

    if _get(condition, "value") is _MISSING:
        raise InvalidRule(f"{where} must have a value.")


def _validate_rule(rule: Any, pos: int) -> str:
    if not (isinstance(rule, Mapping) or hasattr(rule, "conditions")):
        raise InvalidRule(f"Rule #{pos} must be an object.")

    rule_id = _get(rule, "id")
    if not isinstance(rule_id, str) or not rule_id:
        raise InvalidRule(f"Rule #{pos} must have a non-empty id.")

    if _tag(_get(rule, "type")) not in _RULE_TYPES:
        raise InvalidRule(
            f"Rule '{rule_id}' must have a type among "
            f"{sorted(_RULE_TYPES)}.",
        )

    if not isinstance(_get(rule, "value"), bool):
        raise InvalidRule(f"Rule '{rule_id}' must have a boolean value.")

    priority = _get(rule, "priority")
    # NaN and infinities cannot be ordered.
    if not _is_number(priority) or (
        isinstance(priority, float) and not math.isfinite(priority)
    ):
        raise InvalidRule(
            f"Rule '{rule_id}' must have a finite numeric priority."
        )

    conditions = _get(rule, "conditions")
    if not _is_sequence(conditions) or not conditions:
        raise InvalidRule(
            f"Rule '{rule_id}' must have a non-empty conditions list."
        )

    for cond_pos, condition in enumerate(conditions):
        validate_condition(
            condition, f"Condition #{cond_pos} of rule #{pos}"
        )

    return rule_id


def validate_rules(rules: Any) -> list:
    """Validate a collection of rules and their conditions.

    Each rule needs an ``id`` (unique within the flag), a known ``type``,
    a boolean ``value``, a finite numeric ``priority`` and a non-empty
    list of conditions. Each condition needs a ``field``, a known
    ``operator`` and a ``value`` (``None`` is a valid operand, a missing
    key is not).

    Args:
        rules: A list or tuple of rule mappings or ``Rule`` instances.

    Returns:
        list: The rules, in their original order.

    Raises:
        InvalidRule: On the first malformed rule or condition.
    """
    if not _is_sequence(rules):
        raise InvalidRule("Rules must be a list.")

    seen: set[str] = set()
    for pos, rule in enumerate(rules):
        rule_id = _validate_rule(rule, pos)
        if rule_id in seen:
            raise InvalidRule(
                f"Rule id '{rule_id}' is used more than once.",
                code="flags.rule_duplicate",
            )
        seen.add(rule_id)

    return list(rules)
