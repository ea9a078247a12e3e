# LaunchFlags/launchflags/repositories/memory_repo.py
"""In-memory feature flag repository for LaunchFlags.

This repository keeps flag definitions in process memory. It is mainly
useful for local experiments or tests and is not persisted. Each instance
owns its own store.
"""


from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from launchflags.errors.exceptions import FlagConflict
from launchflags.models.flag import FlagDefinition


class InMemoryFlagRepository:
    """Dict-backed ``FlagRepository``, safe to share between threads."""

    def __init__(self) -> None:
        self._flags: Dict[str, FlagDefinition] = {}
        self._lock = threading.Lock()

    def _key_taken(self, key: str, flag_id: Optional[str] = None) -> bool:
        return any(
            flag.key == key and flag.id != flag_id
            for flag in self._flags.values()
        )

    def find_by_key(self, key: str) -> Optional[FlagDefinition]:
        """Retrieve a single flag by its key, ``None`` if absent."""
        with self._lock:
            for flag in self._flags.values():
                if flag.key == key:
                    return flag
        return None

    def find_by_id(self, flag_id: str) -> Optional[FlagDefinition]:
        """Retrieve a single flag by its id, ``None`` if absent."""
        with self._lock:
            return self._flags.get(flag_id)

    def find_all(self) -> List[FlagDefinition]:
        """Return all stored flags, ordered by key."""
        with self._lock:
            return sorted(self._flags.values(), key=lambda f: f.key)

    def create(self, flag: FlagDefinition) -> FlagDefinition:
        """Store a new flag.

        Raises:
            FlagConflict: If another flag already uses ``flag.key``.
        """
        with self._lock:
            if self._key_taken(flag.key):
                raise FlagConflict(
                    f"Feature flag with key '{flag.key}' already exists."
                )
            self._flags[flag.id] = flag
            return flag

    def update(
        self,
        flag_id: str,
        changes: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> Optional[FlagDefinition]:
        """Apply ``changes`` to the flag with ``flag_id``.

        The stored value is replaced only once the updated definition has
        been validated.

        Returns:
            The updated flag, or ``None`` if no flag has this id.

        Raises:
            FlagValidationError: If a change is invalid.
            FlagConflict: If the new key is used by another flag.
        """
        with self._lock:
            existing = self._flags.get(flag_id)
            if existing is None:
                return None

            updated = existing.with_updates(changes, now)
            if self._key_taken(updated.key, flag_id):
                raise FlagConflict(
                    f"Feature flag with key '{updated.key}' already exists."
                )
            self._flags[flag_id] = updated
            return updated

    def delete(self, flag_id: str) -> bool:
        """Delete a flag by id; returns False when it did not exist."""
        with self._lock:
            return self._flags.pop(flag_id, None) is not None
