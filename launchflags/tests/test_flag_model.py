# launchflags/tests/test_flag_model.py
"""
Unit tests for the flag domain model.

These tests verify that FlagDefinition validates itself on construction,
that updates are atomic and always refresh ``updated_at``, and that the
plain dict representation round-trips.
"""


from datetime import datetime, timedelta, timezone

import pytest

from launchflags.errors.exceptions import (
    FlagValidationError,
    InvalidKey,
    InvalidName,
    InvalidRequest,
    InvalidRule,
)
from launchflags.models.enums import ConditionOperator, RuleType
from launchflags.models.flag import (
    Condition,
    EvaluationContext,
    Rule,
    context_from_dict,
    flag_from_dict,
    flag_to_dict,
)


CREATED = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def _data(**overrides):
    data = {
        "id": "9b2f7c1e-0000-4000-8000-000000000001",
        "key": "beta-dashboard",
        "name": "Beta dashboard",
        "description": "Opens the new dashboard to testers.",
        "enabled": True,
        "default_value": False,
        "rules": [
            {
                "id": "admins",
                "type": "role",
                "conditions": [
                    {"field": "role", "operator": "in", "value": ["admin"]},
                ],
                "value": True,
                "priority": 10,
            },
            {
                "id": "testers",
                "type": "custom_attribute",
                "conditions": [
                    {"field": "cohort", "operator": "equals", "value": "beta"},
                    {"field": "age", "operator": "greater_than", "value": 17},
                ],
                "value": True,
                "priority": 5,
            },
        ],
        "created_by": "user-42",
        "created_at": CREATED,
        "updated_at": CREATED,
        "expires_at": None,
    }
    data.update(overrides)
    return data


def _flag(**overrides):
    return flag_from_dict(_data(**overrides))


# ---------- Construction ----------


def test_construction_coerces_rules_and_conditions():
    flag = _flag()

    assert isinstance(flag.rules, tuple)
    admins = flag.rules[0]
    assert isinstance(admins, Rule)
    assert admins.type is RuleType.ROLE
    assert admins.conditions == (
        Condition("role", ConditionOperator.IN, ("admin",)),
    )


def test_construction_trims_key_and_name():
    flag = _flag(name="  Beta dashboard  ")
    assert flag.name == "Beta dashboard"


def test_construction_fails_on_invalid_key():
    with pytest.raises(InvalidKey):
        _flag(key="beta dashboard")


def test_construction_fails_on_invalid_name():
    with pytest.raises(InvalidName):
        _flag(name="x" * 101)


def test_construction_fails_on_invalid_rule():
    rules = _data()["rules"]
    rules[1]["conditions"] = []
    with pytest.raises(InvalidRule):
        _flag(rules=rules)


def test_key_is_checked_before_name():
    # Short-circuits on the first failure, in a fixed order.
    with pytest.raises(InvalidKey):
        _flag(key="", name="")


@pytest.mark.parametrize(
    "field, value",
    [
        ("enabled", "yes"),
        ("default_value", None),
        ("description", None),
        ("created_by", ""),
        ("id", ""),
        ("created_at", "yesterday"),
    ],
)
def test_construction_fails_on_invalid_fields(field, value):
    with pytest.raises(FlagValidationError) as exc_info:
        _flag(**{field: value})

    assert exc_info.value.field == field


def test_naive_timestamps_are_taken_as_utc():
    flag = _flag(created_at=datetime(2026, 3, 1, 9, 30))
    assert flag.created_at == CREATED


def test_iso_timestamps_are_parsed():
    flag = _flag(expires_at="2026-06-01T00:00:00+00:00")
    assert flag.expires_at == datetime(2026, 6, 1, tzinfo=timezone.utc)


def test_condition_rejects_unknown_operator():
    with pytest.raises(InvalidRule):
        Condition("userId", "matches", "u1")


# ---------- Updates ----------


def test_update_replaces_fields_and_bumps_updated_at():
    flag = _flag()
    later = CREATED + timedelta(hours=2)

    updated = flag.with_updates({"enabled": False, "key": "beta-v2"}, later)

    assert updated.enabled is False
    assert updated.key == "beta-v2"
    assert updated.updated_at == later
    assert updated.created_at == CREATED
    assert updated.id == flag.id
    # The original value is untouched.
    assert flag.enabled is True
    assert flag.updated_at == CREATED


def test_metadata_only_update_bumps_updated_at():
    flag = _flag()
    later = CREATED + timedelta(minutes=1)

    updated = flag.with_updates({"description": "Now for everyone."}, later)

    assert updated.description == "Now for everyone."
    assert updated.updated_at == later


def test_empty_update_still_bumps_updated_at():
    later = CREATED + timedelta(seconds=1)
    assert _flag().with_updates({}, later).updated_at == later


def test_update_is_all_or_nothing():
    flag = _flag()

    with pytest.raises(InvalidName):
        flag.with_updates({"key": "beta-v2", "name": ""})

    assert flag.key == "beta-dashboard"


@pytest.mark.parametrize("field", ["id", "created_by", "created_at", "owner"])
def test_update_rejects_immutable_or_unknown_fields(field):
    with pytest.raises(FlagValidationError) as exc_info:
        _flag().with_updates({field: "x"})

    assert exc_info.value.code == "flags.field_immutable"


def test_update_can_clear_expiry():
    flag = _flag(expires_at="2026-06-01T00:00:00Z")
    assert flag.with_updates({"expires_at": None}).expires_at is None


def test_update_validates_new_rules():
    with pytest.raises(InvalidRule):
        _flag().with_updates({"rules": [{"id": "r", "type": "email"}]})


# ---------- Plain representation ----------


def test_round_trip_is_field_for_field_equal():
    flag = _flag(expires_at=CREATED + timedelta(days=30))

    plain = flag_to_dict(flag)
    rebuilt = flag_from_dict(plain)

    assert rebuilt == flag
    assert flag_to_dict(rebuilt) == plain


def test_plain_representation_is_json_safe():
    plain = flag_to_dict(_flag())

    assert plain["created_at"] == CREATED.isoformat()
    assert plain["expires_at"] is None
    assert plain["rules"][0]["type"] == "role"
    assert plain["rules"][0]["conditions"][0] == {
        "field": "role",
        "operator": "in",
        "value": ["admin"],
    }


# ---------- EvaluationContext ----------


def test_context_from_dict():
    context = context_from_dict(
        {
            "user_id": "u1",
            "user_role": "admin",
            "attributes": {"plan": "premium"},
            "flag_key": "ignored",
        }
    )
    assert context == EvaluationContext(
        user_id="u1", user_role="admin", attributes={"plan": "premium"}
    )


def test_context_from_empty_dict():
    assert context_from_dict({}) == EvaluationContext()


@pytest.mark.parametrize(
    "data",
    [
        {"user_id": 12},
        {"attributes": ["plan"]},
        "u1",
    ],
)
def test_context_from_dict_rejects_bad_shapes(data):
    with pytest.raises(InvalidRequest):
        context_from_dict(data)


def test_context_attributes_are_copied():
    attributes = {"plan": "premium"}
    context = EvaluationContext(user_id="u1", attributes=attributes)

    attributes["plan"] = "basic"

    assert context.attributes["plan"] == "premium"


def test_context_attributes_are_read_only():
    context = EvaluationContext(attributes={"plan": "premium"})

    with pytest.raises(TypeError):
        context.attributes["plan"] = "basic"


def test_nan_priority_is_rejected_on_construction():
    rules = _data()["rules"]
    rules[0]["priority"] = float("nan")

    with pytest.raises(InvalidRule):
        _flag(rules=rules)
