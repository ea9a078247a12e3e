# LaunchFlags/launchflags/models/enums.py
"""Enumerations shared by the flag model, validators and evaluation engine."""


from __future__ import annotations

from enum import Enum


class RuleType(str, Enum):
    """Classification tag of a rule.

    The tag documents intent only; matching is driven by the conditions.
    """

    USER_ID = "user_id"
    EMAIL = "email"
    ROLE = "role"
    PERCENTAGE = "percentage"
    CUSTOM_ATTRIBUTE = "custom_attribute"


class ConditionOperator(str, Enum):
    """Comparison applied between a context value and a condition operand."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IN = "in"
    NOT_IN = "not_in"


class EvaluationReason(str, Enum):
    """Why an evaluation produced its value."""

    DEFAULT = "default"
    RULE_MATCH = "rule_match"
