# LaunchFlags/launchflags/repositories/base.py
"""Repository contract for feature flag storage.

Services receive an object satisfying ``FlagRepository`` as a plain
argument; they never reach for a global store.
"""


from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional, Protocol

from launchflags.models.flag import FlagDefinition


class FlagRepository(Protocol):
    """Storage operations the LaunchFlags services rely on.

    "Not found" is signalled with ``None`` (lookups, ``update``) or
    ``False`` (``delete``). Storage failures raise ``InfrastructureError``;
    a key clash raises ``FlagConflict``.
    """

    def find_by_key(self, key: str) -> Optional[FlagDefinition]:
        ...

    def find_by_id(self, flag_id: str) -> Optional[FlagDefinition]:
        ...

    def find_all(self) -> List[FlagDefinition]:
        ...

    def create(self, flag: FlagDefinition) -> FlagDefinition:
        ...

    def update(
        self,
        flag_id: str,
        changes: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> Optional[FlagDefinition]:
        ...

    def delete(self, flag_id: str) -> bool:
        ...
