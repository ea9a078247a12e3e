# LaunchFlags/launchflags/services/flag_management.py
"""Flag lifecycle operations for LaunchFlags.

Create, update, delete and lookup helpers over an explicitly passed
``FlagRepository``. Validation always runs before the repository is asked
to persist anything, so a rejected request never changes stored state.
"""


from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, List, Optional
from uuid import uuid4

from launchflags.errors.exceptions import (
    FlagConflict,
    FlagNotFound,
    InvalidRequest,
)
from launchflags.models.flag import FlagDefinition, utc_now
from launchflags.repositories.base import FlagRepository
from launchflags.validators.flag_validator import validate_key


logger = logging.getLogger(__name__)


def create_flag(
    repository: FlagRepository,
    data: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> FlagDefinition:
    """Create a new flag.

    Steps:
        - Build a validated ``FlagDefinition`` with a fresh UUID and
          ``created_at == updated_at == now``.
        - Refuse the key if another flag already uses it.
        - Persist via ``repository.create(...)``.

    Args:
        repository: Flag storage.
        data: Flag fields. ``key``, ``name`` and ``created_by`` are
            required; ``description`` defaults to ``""``, ``enabled`` and
            ``default_value`` to ``False``, ``rules`` to ``[]``.
        now: Creation timestamp (defaults to now, UTC).

    Returns:
        FlagDefinition: The stored flag.

    Raises:
        InvalidRequest: If ``data`` is not a mapping.
        FlagValidationError: If a field is invalid.
        FlagConflict: If the key is already taken.
        InfrastructureError: May bubble up from the repository.
    """
    if not isinstance(data, Mapping):
        raise InvalidRequest("Flag payload must be an object.")

    timestamp = now or utc_now()
    flag = FlagDefinition(
        id=str(uuid4()),
        key=data.get("key"),
        name=data.get("name"),
        description=data.get("description", ""),
        enabled=data.get("enabled", False),
        default_value=data.get("default_value", False),
        rules=data.get("rules", []),
        created_by=data.get("created_by"),
        created_at=timestamp,
        updated_at=timestamp,
        expires_at=data.get("expires_at"),
    )

    if repository.find_by_key(flag.key) is not None:
        raise FlagConflict(
            f"Feature flag with key '{flag.key}' already exists."
        )

    created = repository.create(flag)
    logger.info("Created flag %s (%s)", created.key, created.id)
    return created


def update_flag(
    repository: FlagRepository,
    flag_id: str,
    changes: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> FlagDefinition:
    """Replace some fields of an existing flag.

    All replaced fields are validated before anything is written; if any
    of them is invalid no field changes. ``updated_at`` is refreshed even
    for metadata-only changes.

    Raises:
        InvalidRequest: If ``changes`` is not a mapping.
        FlagNotFound: If no flag has ``flag_id``.
        FlagValidationError: If a change is invalid or targets an
            immutable field.
        FlagConflict: If the new key is used by another flag.
        InfrastructureError: May bubble up from the repository.
    """
    if not isinstance(changes, Mapping):
        raise InvalidRequest("Flag changes must be an object.")

    if repository.find_by_id(flag_id) is None:
        raise FlagNotFound(f"Feature flag '{flag_id}' not found.")

    if "key" in changes:
        new_key = validate_key(changes["key"])
        owner = repository.find_by_key(new_key)
        if owner is not None and owner.id != flag_id:
            raise FlagConflict(
                f"Feature flag with key '{new_key}' already exists."
            )

    updated = repository.update(flag_id, changes, now)
    if updated is None:
        # Deleted between the lookup and the write.
        raise FlagNotFound(f"Feature flag '{flag_id}' not found.")

    logger.info(
        "Updated flag %s (%s): %s",
        updated.key,
        updated.id,
        ", ".join(sorted(changes)) or "no field changes",
    )
    return updated


def delete_flag(repository: FlagRepository, flag_id: str) -> None:
    """Delete a flag by id.

    Raises:
        FlagNotFound: If no flag has ``flag_id``.
        InfrastructureError: May bubble up from the repository.
    """
    if not repository.delete(flag_id):
        raise FlagNotFound(f"Feature flag '{flag_id}' not found.")
    logger.info("Deleted flag %s", flag_id)


def get_flag(repository: FlagRepository, flag_id: str) -> FlagDefinition:
    """Return the flag with ``flag_id`` or raise ``FlagNotFound``."""
    flag = repository.find_by_id(flag_id)
    if flag is None:
        raise FlagNotFound(f"Feature flag '{flag_id}' not found.")
    return flag


def get_flag_by_key(repository: FlagRepository, key: str) -> FlagDefinition:
    """Return the flag with ``key`` or raise ``FlagNotFound``."""
    flag = repository.find_by_key(key)
    if flag is None:
        raise FlagNotFound(f"Feature flag '{key}' not found.")
    return flag


def list_flags(repository: FlagRepository) -> List[FlagDefinition]:
    """Return every stored flag."""
    return repository.find_all()
