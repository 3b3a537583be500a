"""The trip table: one row per driving session."""

from __future__ import annotations

import sqlite3
from typing import Optional

__all__ = ["create_trip_table", "start_trip", "update_trip"]


def create_trip_table(db: sqlite3.Connection) -> None:
    """Create the trip table if it does not exist."""
    db.execute(
        "CREATE TABLE IF NOT EXISTS trip "
        "(tripid INTEGER PRIMARY KEY, start REAL, end REAL DEFAULT -1)"
    )


def start_trip(db: sqlite3.Connection, start_time: float) -> int:
    """Insert a new trip starting at start_time and return its id."""
    cursor = db.execute("INSERT INTO trip (start) VALUES (?)", (start_time,))
    trip_id = cursor.lastrowid
    if trip_id is None:
        raise sqlite3.DatabaseError("trip insert produced no row id")
    return trip_id


def update_trip(db: sqlite3.Connection, trip_id: Optional[int], end_time: float) -> None:
    """Set the end time of a trip; does nothing when there is no trip."""
    if trip_id is None:
        return
    db.execute("UPDATE trip SET end=? WHERE tripid=?", (end_time, trip_id))