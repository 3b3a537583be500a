"""The ecu table: the engine control units seen on each vehicle."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

__all__ = ["create_ecu_table", "get_ecu_id", "create_ecu", "update_ecu_description"]

_log = logging.getLogger(__name__)

_INDEX_SQL = "CREATE UNIQUE INDEX IF NOT EXISTS IDX_VINECU ON ecu (vin,ecu)"


def create_ecu_table(db: sqlite3.Connection) -> None:
    """Create the ecu table and its unique (vin, ecu) index if missing.

    A failure to create the table raises sqlite3.Error; a failure to
    create the index is only logged.
    """
    db.execute(
        "CREATE TABLE IF NOT EXISTS ecu "
        "(ecuid INTEGER PRIMARY KEY, vin TEXT, ecu INTEGER, ecudesc TEXT)"
    )
    try:
        db.execute(_INDEX_SQL)
    except sqlite3.Error as error:
        _log.warning("Not Fatal: sqlite error creating index %s: %s", _INDEX_SQL, error)


def get_ecu_id(db: sqlite3.Connection, vin: Optional[str], ecu: int) -> Optional[int]:
    """Return the id of this vin/ecu pair, or None if it is not recorded."""
    rows = db.execute(
        "SELECT ecuid FROM ecu WHERE vin=? AND ecu=?", (vin or "", ecu)
    ).fetchall()
    return rows[-1][0] if rows else None


def create_ecu(
    db: sqlite3.Connection, vin: Optional[str], ecu: int, description: Optional[str]
) -> int:
    """Record this ecu and return its id.

    If the vin/ecu pair already exists its id is returned and the stored
    description is left unchanged.
    """
    found = get_ecu_id(db, vin, ecu)
    if found is not None:
        return found
    cursor = db.execute(
        "INSERT INTO ecu (vin,ecu,ecudesc) VALUES (?,?,?)",
        (vin or "", ecu, description or ""),
    )
    ecu_id = cursor.lastrowid
    if ecu_id is None:
        raise sqlite3.DatabaseError("ecu insert produced no row id")
    return ecu_id


def update_ecu_description(
    db: sqlite3.Connection, ecu_id: int, description: Optional[str]
) -> None:
    """Replace the description of an ecu; a None description changes nothing."""
    if description is None:
        return
    db.execute("UPDATE ecu SET ecudesc=? WHERE ecuid=?", (description, ecu_id))