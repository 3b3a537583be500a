"""The obd table: one row per sample of the vehicle's readings."""

from __future__ import annotations

import logging
import sqlite3
from typing import Container, Optional, Sequence

from obdlogger.servicecommands import ServiceCommand, logged_commands

__all__ = [
    "supported_columns",
    "create_obd_table",
    "insert_obd",
    "begin_transaction",
    "commit_transaction",
]

_log = logging.getLogger(__name__)

_INDICES = (
    "CREATE INDEX IF NOT EXISTS IDX_OBDTIME ON obd (time)",
    "CREATE INDEX IF NOT EXISTS IDX_OBDTRIP ON obd (trip)",
)


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def supported_columns(capabilities: Container[int]) -> list[ServiceCommand]:
    """Return, in PID order, the logged commands the vehicle supports."""
    return [command for command in logged_commands() if command.pid in capabilities]


def create_obd_table(db: sqlite3.Connection, capabilities: Container[int]) -> None:
    """Create the obd table, or add any supported columns it lacks.

    Failing to create the table raises sqlite3.Error; failing to add a
    column or create an index is only logged.
    """
    existing = [row[1] for row in db.execute("PRAGMA table_info(obd)")]
    commands = supported_columns(capabilities)

    if not existing:
        columns = "".join(f"{_quote(c.db_column)} REAL," for c in commands)
        db.execute(
            f"CREATE TABLE obd ({columns}time REAL, trip INTEGER, ecu INTEGER DEFAULT 0)"
        )
    else:
        for command in commands:
            if command.db_column in existing:
                continue
            try:
                db.execute(f"ALTER TABLE obd ADD {_quote(command.db_column)} REAL")
            except sqlite3.Error as error:
                _log.warning(
                    "Unable to add column %s to database: %s", command.db_column, error
                )
            else:
                _log.info("Added column %s to database", command.db_column)

    for sql in _INDICES:
        try:
            db.execute(sql)
        except sqlite3.Error as error:
            _log.warning("Not Fatal: sqlite error creating index %s: %s", sql, error)


def insert_obd(
    db: sqlite3.Connection,
    columns: Sequence[str],
    values: Sequence[float],
    time: float,
    trip: Optional[int],
) -> None:
    """Insert one sample: a value per column, plus the time and trip.

    Raises ValueError if columns and values differ in length.
    """
    if len(columns) != len(values):
        raise ValueError(
            f"{len(columns)} columns but {len(values)} values for the obd insert"
        )
    names = "".join(f"{_quote(name)}," for name in columns)
    marks = "?," * len(columns)
    db.execute(
        f"INSERT INTO obd ({names}time,trip) VALUES ({marks}?,?)",
        (*values, time, trip),
    )


def begin_transaction(db: sqlite3.Connection) -> bool:
    """Begin a transaction; returns False (and logs) if that failed."""
    try:
        db.execute("BEGIN")
    except sqlite3.Error as error:
        _log.warning("Not Fatal: couldn't begin transaction: %s", error)
        return False
    return True


def commit_transaction(db: sqlite3.Connection) -> bool:
    """Commit the current transaction; returns False (and logs) if that failed."""
    try:
        db.execute("COMMIT")
    except sqlite3.Error as error:
        _log.warning("Not Fatal: couldn't commit transaction: %s", error)
        return False
    return True