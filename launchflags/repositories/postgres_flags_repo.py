# LaunchFlags/launchflags/repositories/postgres_flags_repo.py
"""PostgreSQL-backed feature flag repository for LaunchFlags.

Stores flag definitions in the ``flags`` table, with rules kept as a JSONB
document. Rows are rebuilt through ``flag_from_dict`` so that every
definition read back from the database is validated again.
"""


from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional

from psycopg import DatabaseError
from psycopg.errors import UniqueViolation
from psycopg.types.json import Json

from launchflags.errors.exceptions import FlagConflict, InfrastructureError
from launchflags.models.flag import (
    FlagDefinition,
    flag_from_dict,
    rule_to_dict,
)

from .db import get_connection


CREATE_FLAGS_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS flags (
        id TEXT PRIMARY KEY,
        key TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        enabled BOOLEAN NOT NULL,
        default_value BOOLEAN NOT NULL,
        rules JSONB NOT NULL DEFAULT '[]',
        created_by TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL,
        expires_at TIMESTAMPTZ NULL
    );
"""


def _flag_params(flag: FlagDefinition) -> dict:
    return {
        "id": flag.id,
        "key": flag.key,
        "name": flag.name,
        "description": flag.description,
        "enabled": flag.enabled,
        "default_value": flag.default_value,
        # IMPORTANT: explicit conversion to JSON for PostgreSQL JSONB columns.
        "rules": Json([rule_to_dict(r) for r in flag.rules]),
        "created_by": flag.created_by,
        "created_at": flag.created_at,
        "updated_at": flag.updated_at,
        "expires_at": flag.expires_at,
    }


def _row_to_flag(row: Optional[dict]) -> Optional[FlagDefinition]:
    """Convert a raw dict (psycopg ``dict_row``) into a FlagDefinition."""
    if row is None:
        return None
    return flag_from_dict({**row, "id": str(row["id"])})


class PostgresFlagRepository:
    """``FlagRepository`` backed by a PostgreSQL ``flags`` table."""

    def __init__(self, database_url: Optional[str]) -> None:
        if not database_url:
            raise RuntimeError(
                "DATABASE_URL is not set. Make sure .env is configured."
            )
        self._database_url = database_url

    def _fetch_one(self, sql: str, params: dict) -> Optional[FlagDefinition]:
        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    return _row_to_flag(cur.fetchone())
        except DatabaseError as exc:
            raise InfrastructureError("Failed to fetch flag.") from exc

    def ensure_schema(self) -> None:
        """Create the ``flags`` table when it does not exist yet.

        Raises:
            InfrastructureError: If the underlying database operation fails.
        """
        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(CREATE_FLAGS_TABLE_SQL)
        except DatabaseError as exc:
            raise InfrastructureError("Failed to create flags table.") from exc

    def find_by_key(self, key: str) -> Optional[FlagDefinition]:
        """Fetch a single flag by key, ``None`` if absent."""
        sql = """
            SELECT *
            FROM flags
            WHERE key = %(key)s;
        """
        return self._fetch_one(sql, {"key": key})

    def find_by_id(self, flag_id: str) -> Optional[FlagDefinition]:
        """Fetch a single flag by id, ``None`` if absent."""
        sql = """
            SELECT *
            FROM flags
            WHERE id = %(id)s;
        """
        return self._fetch_one(sql, {"id": flag_id})

    def find_all(self) -> List[FlagDefinition]:
        """List every flag, ordered by key."""
        sql = """
            SELECT *
            FROM flags
            ORDER BY key;
        """
        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql)
                    rows = cur.fetchall()
        except DatabaseError as exc:
            raise InfrastructureError("Failed to list flags.") from exc

        return [_row_to_flag(row) for row in rows]

    def create(self, flag: FlagDefinition) -> FlagDefinition:
        """Insert a new flag.

        Raises:
            FlagConflict: If the key is already used.
            InfrastructureError: If the underlying database operation fails.
        """
        sql = """
            INSERT INTO flags (
                id,
                key,
                name,
                description,
                enabled,
                default_value,
                rules,
                created_by,
                created_at,
                updated_at,
                expires_at
            )
            VALUES (
                %(id)s,
                %(key)s,
                %(name)s,
                %(description)s,
                %(enabled)s,
                %(default_value)s,
                %(rules)s,
                %(created_by)s,
                %(created_at)s,
                %(updated_at)s,
                %(expires_at)s
            )
            RETURNING *;
        """

        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, _flag_params(flag))
                    return _row_to_flag(cur.fetchone())
        except UniqueViolation as exc:
            raise FlagConflict(
                f"Feature flag with key '{flag.key}' already exists."
            ) from exc
        except DatabaseError as exc:
            raise InfrastructureError("Failed to create flag.") from exc

    def update(
        self,
        flag_id: str,
        changes: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> Optional[FlagDefinition]:
        """Apply ``changes`` to a flag inside a single transaction.

        The row is locked, the new definition validated, then written.
        A validation failure rolls the transaction back untouched.

        Returns:
            The updated flag, or ``None`` if no flag has this id.

        Raises:
            FlagValidationError: If a change is invalid.
            FlagConflict: If the new key is used by another flag.
            InfrastructureError: If the underlying database operation fails.
        """
        select_sql = """
            SELECT *
            FROM flags
            WHERE id = %(id)s
            FOR UPDATE;
        """
        update_sql = """
            UPDATE flags
            SET key = %(key)s,
                name = %(name)s,
                description = %(description)s,
                enabled = %(enabled)s,
                default_value = %(default_value)s,
                rules = %(rules)s,
                updated_at = %(updated_at)s,
                expires_at = %(expires_at)s
            WHERE id = %(id)s
            RETURNING *;
        """

        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(select_sql, {"id": flag_id})
                    existing = _row_to_flag(cur.fetchone())
                    if existing is None:
                        return None

                    updated = existing.with_updates(changes, now)
                    cur.execute(update_sql, _flag_params(updated))
                    return _row_to_flag(cur.fetchone())
        except UniqueViolation as exc:
            raise FlagConflict(
                f"Feature flag with key '{changes.get('key')}' already exists."
            ) from exc
        except DatabaseError as exc:
            raise InfrastructureError("Failed to update flag.") from exc

    def delete(self, flag_id: str) -> bool:
        """Delete a flag by id.

        Returns:
            bool: True if a row was deleted, False if none matched.

        Raises:
            InfrastructureError: If the underlying database operation fails.
        """
        sql = """
            DELETE FROM flags
            WHERE id = %(id)s;
        """

        try:
            with get_connection(self._database_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, {"id": flag_id})
                    return cur.rowcount == 1
        except DatabaseError as exc:
            raise InfrastructureError("Failed to delete flag.") from exc
