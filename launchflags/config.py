# LaunchFlags/launchflags/config.py
"""Environment-based configuration for LaunchFlags.

Values are read from the process environment, after ``.env`` has been
loaded with python-dotenv.
"""


from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


FLAG_STORES = ("memory", "postgres")

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
)


@dataclass(frozen=True)
class Settings:
    """Runtime settings of the LaunchFlags service."""

    flag_store: str = "memory"
    database_url: Optional[str] = None
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS


def load_settings() -> Settings:
    """Build ``Settings`` from environment variables.

    Variables:
        FLAG_STORE: ``memory`` (default) or ``postgres``.
        DATABASE_URL: PostgreSQL URL, required by the ``postgres`` store.
        BACKEND_PORT: HTTP port (default 8000).
        DEBUG: ``true`` to enable Flask debug mode.
        LOG_LEVEL: Root logging level (default ``INFO``).
        CORS_ORIGINS: Comma-separated list of allowed origins.

    Raises:
        ValueError: If ``FLAG_STORE`` is not a known store.
    """
    load_dotenv()

    flag_store = os.getenv("FLAG_STORE", "memory").strip().lower()
    if flag_store not in FLAG_STORES:
        raise ValueError(
            f"FLAG_STORE must be one of {FLAG_STORES}, got '{flag_store}'."
        )

    raw_origins = os.getenv("CORS_ORIGINS", "")
    origins = tuple(o.strip() for o in raw_origins.split(",") if o.strip())

    return Settings(
        flag_store=flag_store,
        database_url=os.getenv("DATABASE_URL") or None,
        port=int(os.getenv("BACKEND_PORT", "8000")),
        debug=os.getenv("DEBUG", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=origins or DEFAULT_CORS_ORIGINS,
    )
