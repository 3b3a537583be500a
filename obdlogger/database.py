"""Opening the SQLite log database."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Union

__all__ = ["open_database"]

# A short busy timeout gives another reader of the database a chance to finish.
_BUSY_TIMEOUT = 0.001


def open_database(filename: Union[str, Path]) -> sqlite3.Connection:
    """Open (creating if needed) the log database.

    The connection is in autocommit mode; transactions are begun and
    committed explicitly. Raises sqlite3.Error if the file cannot be opened.
    """
    db = sqlite3.connect(str(filename), timeout=_BUSY_TIMEOUT, isolation_level=None)
    try:
        db.execute("PRAGMA schema_version").fetchone()
    except sqlite3.Error:
        db.close()
        raise
    return db