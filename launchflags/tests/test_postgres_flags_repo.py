# launchflags/tests/test_postgres_flags_repo.py
"""
Unit tests for the PostgreSQL flag repository.

The database is never contacted: ``get_connection`` is replaced with a fake
connection whose cursor records the executed statements and replays canned
``dict_row`` rows.
"""


from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from uuid import UUID

import psycopg
import pytest
from psycopg import DatabaseError
from psycopg.errors import UniqueViolation
from psycopg.types.json import Json

from launchflags.errors.exceptions import (
    FlagConflict,
    InfrastructureError,
    InvalidName,
)
from launchflags.models.flag import flag_from_dict
from launchflags.repositories import db
from launchflags.repositories import postgres_flags_repo
from launchflags.repositories.postgres_flags_repo import (
    CREATE_FLAGS_TABLE_SQL,
    PostgresFlagRepository,
)


NOW = datetime(2026, 4, 2, 15, 0, tzinfo=timezone.utc)
FLAG_ID = "3f1c2d4e-5b6a-4c7d-8e9f-0a1b2c3d4e5f"


def _row(**overrides):
    row = {
        "id": UUID(FLAG_ID),
        "key": "dark-mode",
        "name": "Dark mode",
        "description": "",
        "enabled": True,
        "default_value": False,
        "rules": [
            {
                "id": "staff",
                "type": "role",
                "conditions": [
                    {"field": "role", "operator": "equals", "value": "staff"}
                ],
                "value": True,
                "priority": 1,
            }
        ],
        "created_by": "user-7",
        "created_at": NOW,
        "updated_at": NOW,
        "expires_at": None,
    }
    row.update(overrides)
    return row


class FakeCursor:
    def __init__(self, rows, error=None, rowcount=0):
        self._rows = list(rows)
        self._error = error
        self.rowcount = rowcount
        self.executed = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        if self._error is not None:
            raise self._error

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor

    def cursor(self):
        return self._cursor


@pytest.fixture
def fake_db(monkeypatch):
    """Install a fake connection; returns a function that sets its cursor."""
    state = {}

    def install(rows=(), error=None, rowcount=0):
        state["cursor"] = FakeCursor(rows, error=error, rowcount=rowcount)
        return state["cursor"]

    @contextmanager
    def fake_get_connection(database_url):
        assert database_url == "postgresql://test"
        yield FakeConnection(state["cursor"])

    monkeypatch.setattr(
        postgres_flags_repo, "get_connection", fake_get_connection
    )
    return install


@pytest.fixture
def repo():
    return PostgresFlagRepository("postgresql://test")


def test_missing_database_url_raises():
    with pytest.raises(RuntimeError):
        PostgresFlagRepository(None)


def test_ensure_schema_creates_table(fake_db, repo):
    cursor = fake_db()

    repo.ensure_schema()

    assert cursor.executed == [(CREATE_FLAGS_TABLE_SQL, None)]


def test_find_by_key_rebuilds_flag(fake_db, repo):
    cursor = fake_db(rows=[_row()])

    flag = repo.find_by_key("dark-mode")

    assert flag.id == FLAG_ID
    assert flag.key == "dark-mode"
    assert flag.rules[0].conditions[0].value == "staff"
    assert cursor.executed[0][1] == {"key": "dark-mode"}


def test_find_by_id_returns_none_when_absent(fake_db, repo):
    fake_db(rows=[])
    assert repo.find_by_id(FLAG_ID) is None


def test_find_all(fake_db, repo):
    fake_db(rows=[_row(), _row(id=UUID(int=1), key="zen-mode")])

    flags = repo.find_all()

    assert [f.key for f in flags] == ["dark-mode", "zen-mode"]


def test_create_sends_rules_as_json(fake_db, repo):
    flag = flag_from_dict(_row(id=FLAG_ID))
    cursor = fake_db(rows=[_row()])

    created = repo.create(flag)

    params = cursor.executed[0][1]
    assert isinstance(params["rules"], Json)
    assert params["created_at"] == NOW
    assert created == flag


def test_create_duplicate_key_raises_conflict(fake_db, repo):
    fake_db(error=UniqueViolation("duplicate key"))

    with pytest.raises(FlagConflict):
        repo.create(flag_from_dict(_row(id=FLAG_ID)))


@pytest.mark.parametrize(
    "call",
    [
        lambda r: r.find_by_key("dark-mode"),
        lambda r: r.find_all(),
        lambda r: r.create(flag_from_dict(_row(id=FLAG_ID))),
        lambda r: r.update(FLAG_ID, {"enabled": False}),
        lambda r: r.delete(FLAG_ID),
        lambda r: r.ensure_schema(),
    ],
)
def test_database_errors_become_infrastructure_errors(fake_db, repo, call):
    fake_db(error=DatabaseError("server closed the connection"))

    with pytest.raises(InfrastructureError):
        call(repo)


def test_update_locks_validates_and_writes(fake_db, repo):
    later = NOW + timedelta(hours=1)
    cursor = fake_db(
        rows=[_row(), _row(enabled=False, updated_at=later)]
    )

    updated = repo.update(FLAG_ID, {"enabled": False}, now=later)

    select_sql, _ = cursor.executed[0]
    assert "FOR UPDATE" in select_sql
    _, params = cursor.executed[1]
    assert params["enabled"] is False
    assert params["updated_at"] == later
    assert updated.enabled is False
    assert updated.updated_at == later


def test_update_unknown_id_returns_none(fake_db, repo):
    cursor = fake_db(rows=[])

    assert repo.update(FLAG_ID, {"enabled": False}) is None
    assert len(cursor.executed) == 1


def test_update_invalid_change_writes_nothing(fake_db, repo):
    cursor = fake_db(rows=[_row()])

    with pytest.raises(InvalidName):
        repo.update(FLAG_ID, {"name": ""})

    assert len(cursor.executed) == 1


@pytest.mark.parametrize("rowcount, expected", [(1, True), (0, False)])
def test_delete_reports_whether_a_row_was_removed(
    fake_db, repo, rowcount, expected
):
    fake_db(rowcount=rowcount)
    assert repo.delete(FLAG_ID) is expected


def test_get_connection_wraps_operational_errors(monkeypatch):
    def refuse(*args, **kwargs):
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr(db.psycopg, "connect", refuse)

    with pytest.raises(InfrastructureError):
        with db.get_connection("postgresql://nowhere"):
            pass
