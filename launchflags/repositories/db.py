# LaunchFlags/launchflags/repositories/db.py
"""Database connection utilities for LaunchFlags.

One helper, ``get_connection``, opens a psycopg connection for a given
URL. Repositories receive the URL from settings; nothing is read from
the environment here.
"""


from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import psycopg
from psycopg.rows import dict_row

from launchflags.errors.exceptions import InfrastructureError


@contextmanager
def get_connection(database_url: str) -> Iterator[psycopg.Connection]:
    """Yield a psycopg connection configured with dict-style rows.

    Rows come back as dicts (``dict_row``). The transaction is committed
    when the block exits normally and rolled back otherwise; the
    connection is always closed.

    Args:
        database_url: libpq connection string or URL.

    Yields:
        psycopg.Connection: An open database connection.

    Raises:
        InfrastructureError: If the server cannot be reached.
    """
    try:
        with psycopg.connect(database_url, row_factory=dict_row) as conn:
            yield conn
    except psycopg.OperationalError as exc:
        raise InfrastructureError("Database connection failed.") from exc
