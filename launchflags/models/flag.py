# LaunchFlags/launchflags/models/flag.py
"""Flag domain model for LaunchFlags.

This module centralizes:
- The ``FlagDefinition``, ``Rule`` and ``Condition`` dataclasses.
- The ``EvaluationContext`` and ``EvaluationResult`` value types.
- Conversion helpers between the dataclasses and their plain (JSON-safe)
  dict representation.

All dataclasses are frozen. A ``FlagDefinition`` validates itself on
construction, so an invalid definition never exists as a value; updates go
through :meth:`FlagDefinition.with_updates`, which returns a new validated
instance or raises without touching the original.
"""


from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Optional, Union

from launchflags.errors.exceptions import (
    FlagValidationError,
    InvalidRequest,
)
from launchflags.models.enums import (
    ConditionOperator,
    EvaluationReason,
    RuleType,
)
from launchflags.validators.flag_validator import (
    validate_condition,
    validate_key,
    validate_name,
    validate_rules,
)


Number = Union[int, float]

# Fields a caller may replace through ``with_updates``.
UPDATABLE_FIELDS = (
    "key",
    "name",
    "description",
    "enabled",
    "default_value",
    "rules",
    "expires_at",
)


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(name: str, value: Any) -> datetime:
    """Coerce a datetime or ISO-8601 string; naive values are UTC."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            pass
    if not isinstance(value, datetime):
        raise FlagValidationError(
            name,
            f"Field '{name}' must be an ISO-8601 timestamp.",
            code="flags.timestamp_invalid",
        )
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Condition:
    """A single ``field operator value`` predicate."""

    field: str
    operator: ConditionOperator
    value: Any

    def __post_init__(self) -> None:
        validate_condition(self)
        object.__setattr__(
            self, "operator", ConditionOperator(self.operator)
        )
        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))


@dataclass(frozen=True)
class Rule:
    """A prioritized group of AND-combined conditions.

    ``type`` documents intent only; matching is driven by ``conditions``.
    """

    id: str
    type: RuleType
    conditions: tuple[Condition, ...]
    value: bool
    priority: Number

    def __post_init__(self) -> None:
        validate_rules([self])
        object.__setattr__(self, "type", RuleType(self.type))
        object.__setattr__(
            self,
            "conditions",
            tuple(_coerce_condition(c) for c in self.conditions),
        )


@dataclass(frozen=True)
class FlagDefinition:
    """The unit of evaluation.

    Construction runs the validators in a fixed order (key, name,
    description, enabled, default_value, rules, created_by, id,
    timestamps) and stops at the first failure.
    """

    id: str
    key: str
    name: str
    description: str
    enabled: bool
    default_value: bool
    rules: tuple[Rule, ...]
    created_by: str
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", validate_key(self.key))
        object.__setattr__(self, "name", validate_name(self.name))

        if not isinstance(self.description, str):
            raise FlagValidationError(
                "description", "Flag description must be a string."
            )

        for name in ("enabled", "default_value"):
            if not isinstance(getattr(self, name), bool):
                raise FlagValidationError(
                    name, f"Field '{name}' must be a boolean."
                )

        rules = validate_rules(self.rules)
        object.__setattr__(
            self, "rules", tuple(_coerce_rule(r) for r in rules)
        )

        if not isinstance(self.created_by, str) or not self.created_by:
            raise FlagValidationError(
                "created_by", "Flag creator reference is required."
            )

        if not isinstance(self.id, str) or not self.id:
            raise FlagValidationError("id", "Flag id is required.")

        object.__setattr__(
            self, "created_at", _as_utc("created_at", self.created_at)
        )
        object.__setattr__(
            self, "updated_at", _as_utc("updated_at", self.updated_at)
        )
        if self.expires_at is not None:
            object.__setattr__(
                self, "expires_at", _as_utc("expires_at", self.expires_at)
            )

    def with_updates(
        self, changes: Mapping[str, Any], now: Optional[datetime] = None
    ) -> "FlagDefinition":
        """Return a copy with ``changes`` applied and ``updated_at`` bumped.

        Every replaced field is re-validated together with the untouched
        ones; on any failure nothing is applied and the original instance
        is left as is. ``updated_at`` is refreshed even when ``changes`` is
        empty.

        Args:
            changes: Mapping of field name to new value. Only the fields in
                ``UPDATABLE_FIELDS`` may be replaced; ``expires_at`` may be
                set to ``None`` to clear it.
            now: Timestamp to store as ``updated_at`` (defaults to now).

        Raises:
            FlagValidationError: If a field is not updatable or a new value
                is invalid.
        """
        for name in changes:
            if name not in UPDATABLE_FIELDS:
                raise FlagValidationError(
                    name,
                    f"Field '{name}' cannot be updated.",
                    code="flags.field_immutable",
                )

        return dataclasses.replace(
            self, **dict(changes), updated_at=now or utc_now()
        )


@dataclass(frozen=True)
class EvaluationContext:
    """Caller-supplied identity and attributes for one evaluation."""

    user_id: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only copy; later changes to the caller's dict are not seen.
        object.__setattr__(
            self, "attributes", MappingProxyType(dict(self.attributes or {}))
        )


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating a flag for a context."""

    flag_key: str
    value: bool
    reason: EvaluationReason


def _coerce_condition(condition: Any) -> Condition:
    if isinstance(condition, Condition):
        return condition
    return condition_from_dict(condition)


def _coerce_rule(rule: Any) -> Rule:
    if isinstance(rule, Rule):
        return rule
    return rule_from_dict(rule)


# ---------- Plain representation ----------


def _dump_value(value: Any) -> Any:
    return list(value) if isinstance(value, tuple) else value


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def condition_to_dict(condition: Condition) -> dict:
    return {
        "field": condition.field,
        "operator": condition.operator.value,
        "value": _dump_value(condition.value),
    }


def condition_from_dict(data: Mapping[str, Any]) -> Condition:
    validate_condition(data)
    return Condition(
        field=data.get("field"),
        operator=data.get("operator"),
        value=data["value"],
    )


def rule_to_dict(rule: Rule) -> dict:
    return {
        "id": rule.id,
        "type": rule.type.value,
        "conditions": [condition_to_dict(c) for c in rule.conditions],
        "value": rule.value,
        "priority": rule.priority,
    }


def rule_from_dict(data: Mapping[str, Any]) -> Rule:
    """Build a ``Rule`` from its plain representation.

    Raises:
        InvalidRule: If the mapping is not a well-formed rule.
    """
    validate_rules([data])
    return Rule(
        id=data["id"],
        type=data["type"],
        conditions=tuple(data["conditions"]),
        value=data["value"],
        priority=data["priority"],
    )


def flag_to_dict(flag: FlagDefinition) -> dict:
    """Serialize a ``FlagDefinition`` into a JSON-safe dict.

    Timestamps are rendered as ISO-8601 strings.
    """
    return {
        "id": flag.id,
        "key": flag.key,
        "name": flag.name,
        "description": flag.description,
        "enabled": flag.enabled,
        "default_value": flag.default_value,
        "rules": [rule_to_dict(r) for r in flag.rules],
        "created_by": flag.created_by,
        "created_at": _format_timestamp(flag.created_at),
        "updated_at": _format_timestamp(flag.updated_at),
        "expires_at": _format_timestamp(flag.expires_at),
    }


def flag_from_dict(data: Mapping[str, Any]) -> FlagDefinition:
    """Rebuild a ``FlagDefinition`` from its plain representation.

    Accepts the output of :func:`flag_to_dict` as well as rows coming back
    from storage (where timestamps may already be datetimes).

    Raises:
        FlagValidationError: If any field is missing or invalid.
    """
    return FlagDefinition(
        id=data.get("id"),
        key=data.get("key"),
        name=data.get("name"),
        description=data.get("description", ""),
        enabled=data.get("enabled"),
        default_value=data.get("default_value"),
        rules=data.get("rules", []),
        created_by=data.get("created_by"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        expires_at=data.get("expires_at"),
    )


def context_from_dict(data: Mapping[str, Any]) -> EvaluationContext:
    """Build an ``EvaluationContext`` from a plain mapping.

    Recognized keys: ``user_id``, ``user_email``, ``user_role`` and
    ``attributes``. Unknown keys are ignored.

    Raises:
        InvalidRequest: If the identity fields are not strings or
            ``attributes`` is not a mapping.
    """
    if not isinstance(data, Mapping):
        raise InvalidRequest("Evaluation context must be an object.")

    for name in ("user_id", "user_email", "user_role"):
        value = data.get(name)
        if value is not None and not isinstance(value, str):
            raise InvalidRequest(f"Context field '{name}' must be a string.")

    attributes = data.get("attributes") or {}
    if not isinstance(attributes, Mapping):
        raise InvalidRequest("Context 'attributes' must be an object.")

    return EvaluationContext(
        user_id=data.get("user_id"),
        user_email=data.get("user_email"),
        user_role=data.get("user_role"),
        attributes=dict(attributes),
    )


def result_to_dict(result: EvaluationResult) -> dict:
    return {
        "flag_key": result.flag_key,
        "value": result.value,
        "reason": result.reason.value,
    }
