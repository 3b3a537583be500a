"""The gps table: one row per position fix."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

__all__ = ["create_gps_table", "insert_gps"]

_log = logging.getLogger(__name__)

_INDICES = (
    "CREATE INDEX IF NOT EXISTS IDX_GPSTIME ON gps (time)",
    "CREATE INDEX IF NOT EXISTS IDX_GPSTRIP ON gps (trip)",
)


def create_gps_table(db: sqlite3.Connection) -> None:
    """Create the gps table and its indices if they do not exist.

    A failure to create the table raises sqlite3.Error; a failure to
    create an index is only logged.
    """
    db.execute(
        "CREATE TABLE IF NOT EXISTS gps (lat REAL, lon REAL, alt REAL, speed REAL, "
        "course REAL, gpstime REAL, time REAL, trip INTEGER)"
    )
    for sql in _INDICES:
        try:
            db.execute(sql)
        except sqlite3.Error as error:
            _log.warning("Not Fatal: sqlite error creating index %s: %s", sql, error)


def insert_gps(
    db: sqlite3.Connection,
    lat: Optional[float],
    lon: Optional[float],
    alt: Optional[float],
    speed: Optional[float],
    course: Optional[float],
    gpstime: Optional[float],
    time: float,
    trip: Optional[int],
) -> None:
    """Insert one position; a missing altitude is stored as NULL."""
    db.execute(
        "INSERT INTO gps (lat,lon,alt,speed,course,gpstime,time,trip) "
        "VALUES (?,?,?,?,?,?,?,?)",
        (lat, lon, alt, speed, course, gpstime, time, trip),
    )