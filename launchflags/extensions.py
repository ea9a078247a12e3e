# LaunchFlags/launchflags/extensions.py
"""Per-application wiring of the flag repository.

``create_app`` stores the configured repository on ``app.extensions``;
blueprints read it back for the current request and hand it to the
services as a plain argument.
"""


from __future__ import annotations

from flask import Flask, current_app

from launchflags.repositories.base import FlagRepository


REPOSITORY_EXTENSION = "launchflags.repository"


def init_repository(app: Flask, repository: FlagRepository) -> None:
    """Attach ``repository`` to ``app``."""
    app.extensions[REPOSITORY_EXTENSION] = repository


def current_repository() -> FlagRepository:
    """Return the repository of the application handling the request."""
    return current_app.extensions[REPOSITORY_EXTENSION]
