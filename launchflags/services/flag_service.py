# LaunchFlags/launchflags/services/flag_service.py
"""Flag evaluation service for LaunchFlags.

Provides a pure, stateless function to evaluate a single feature flag for
a given evaluation context, plus a thin helper that resolves the flag from
a repository first.
"""


from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from launchflags.errors.exceptions import FlagNotFound, InvalidRequest
from launchflags.models.enums import ConditionOperator, EvaluationReason
from launchflags.models.flag import (
    Condition,
    EvaluationContext,
    EvaluationResult,
    FlagDefinition,
    Rule,
    utc_now,
)
from launchflags.repositories.base import FlagRepository


logger = logging.getLogger(__name__)


class _Absent:
    """Marker for a context field that was never supplied."""

    def __repr__(self) -> str:
        return "<absent>"


ABSENT = _Absent()


def is_expired(flag: FlagDefinition, now: Optional[datetime] = None) -> bool:
    """Return True when the flag has an expiry date in the past."""
    if flag.expires_at is None:
        return False
    now = now or utc_now()
    if now.tzinfo is None:
        # Naive reference times are read as UTC, like stored timestamps.
        now = now.replace(tzinfo=timezone.utc)
    return now > flag.expires_at


def can_evaluate(flag: FlagDefinition, now: Optional[datetime] = None) -> bool:
    """Return True when rules should be consulted (enabled, not expired)."""
    return flag.enabled and not is_expired(flag, now)


def resolve_context_value(field: str, context: EvaluationContext) -> Any:
    """Look up ``field`` in the context.

    ``userId``, ``userEmail`` and ``role`` map to the identity fields; any
    other name is read from ``context.attributes``. Returns ``ABSENT`` when
    nothing was supplied.
    """
    if field == "userId":
        value = context.user_id
    elif field == "userEmail":
        value = context.user_email
    elif field == "role":
        value = context.user_role
    else:
        return (context.attributes or {}).get(field, ABSENT)

    return ABSENT if value is None else value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strict_equals(left: Any, right: Any) -> bool:
    # True == 1 in Python; a boolean only ever equals another boolean.
    if left is ABSENT or right is ABSENT:
        return False
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return type(left) is type(right) and left == right


def _is_member(value: Any, candidates: Any) -> bool:
    return any(_strict_equals(value, item) for item in candidates)


def matches_condition(
    condition: Condition, context: EvaluationContext
) -> bool:
    """Evaluate a single condition; type mismatches yield False."""
    actual = resolve_context_value(condition.field, context)
    expected = condition.value
    operator = condition.operator
    numeric = _is_number(actual) and _is_number(expected)

    if operator is ConditionOperator.EQUALS:
        return _strict_equals(actual, expected)

    if operator is ConditionOperator.NOT_EQUALS:
        return not _strict_equals(actual, expected)

    if operator in (
        ConditionOperator.CONTAINS,
        ConditionOperator.NOT_CONTAINS,
    ):
        if not isinstance(actual, str) or not isinstance(expected, str):
            return False
        found = expected in actual
        return found if operator is ConditionOperator.CONTAINS else not found

    if operator is ConditionOperator.GREATER_THAN:
        return numeric and actual > expected

    if operator is ConditionOperator.LESS_THAN:
        return numeric and actual < expected

    if operator in (ConditionOperator.IN, ConditionOperator.NOT_IN):
        if not isinstance(expected, (list, tuple)):
            return False
        member = _is_member(actual, expected)
        return member if operator is ConditionOperator.IN else not member

    # Unknown operator -> fail closed
    return False


def matches_rule(rule: Rule, context: EvaluationContext) -> bool:
    """A rule matches when all of its conditions hold (AND)."""
    return all(matches_condition(c, context) for c in rule.conditions)


def sort_rules(rules: tuple[Rule, ...]) -> list[Rule]:
    """Order rules by descending priority.

    ``sorted`` is stable, so rules sharing a priority keep their original
    relative order.
    """
    return sorted(rules, key=lambda rule: -rule.priority)


def evaluate_flag(
    flag: Optional[FlagDefinition],
    context: EvaluationContext,
    now: Optional[datetime] = None,
) -> EvaluationResult:
    """Pure evaluation of a single feature flag for a given context.

    Steps:
        - Disabled or expired flag -> ``default_value`` / ``default``
          (no rule is consulted).
        - Rules are scanned by descending priority; the first rule whose
          conditions all hold wins -> ``rule.value`` / ``rule_match``.
        - No matching rule -> ``default_value`` / ``default``.

    Args:
        flag: The flag definition to evaluate.
        context: Identity and attributes of the caller.
        now: Reference time for the expiry check (defaults to now, UTC).

    Returns:
        EvaluationResult: The decision and the reason behind it.

    Raises:
        FlagNotFound: If ``flag`` is ``None``.
    """
    if flag is None:
        raise FlagNotFound("Feature flag not found.")

    if not can_evaluate(flag, now):
        return EvaluationResult(
            flag_key=flag.key,
            value=flag.default_value,
            reason=EvaluationReason.DEFAULT,
        )

    for rule in sort_rules(flag.rules):
        if matches_rule(rule, context):
            return EvaluationResult(
                flag_key=flag.key,
                value=rule.value,
                reason=EvaluationReason.RULE_MATCH,
            )

    return EvaluationResult(
        flag_key=flag.key,
        value=flag.default_value,
        reason=EvaluationReason.DEFAULT,
    )


def evaluate_by_key(
    repository: FlagRepository,
    flag_key: str,
    context: EvaluationContext,
    now: Optional[datetime] = None,
) -> EvaluationResult:
    """Resolve a flag by key and evaluate it.

    Args:
        repository: Where flag definitions are looked up.
        flag_key: Key of the flag to evaluate.
        context: Identity and attributes of the caller.
        now: Reference time for the expiry check.

    Raises:
        InvalidRequest: If the key is blank or the context has the wrong type.
        FlagNotFound: If no flag has this key.
        InfrastructureError: May bubble up from the repository.
    """
    if not isinstance(flag_key, str) or not flag_key.strip():
        raise InvalidRequest("Feature flag key is required.")

    if not isinstance(context, EvaluationContext):
        raise InvalidRequest("Evaluation context is required.")

    flag = repository.find_by_key(flag_key.strip())
    if flag is None:
        raise FlagNotFound(f"Feature flag '{flag_key}' not found.")

    result = evaluate_flag(flag, context, now)
    logger.debug(
        "Evaluated flag %s -> %s (%s)",
        result.flag_key,
        result.value,
        result.reason.value,
    )
    return result
