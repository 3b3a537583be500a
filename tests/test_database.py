import sqlite3

import pytest

from obdlogger.database import open_database


def test_open_creates_usable_database(tmp_path):
    path = tmp_path / "log.db"
    db = open_database(path)
    try:
        db.execute("CREATE TABLE t (x INTEGER)")
        db.execute("INSERT INTO t VALUES (7)")
        assert db.execute("SELECT x FROM t").fetchall() == [(7,)]
    finally:
        db.close()
    assert path.exists()


def test_open_is_autocommit(tmp_path):
    path = tmp_path / "log.db"
    db = open_database(path)
    db.execute("CREATE TABLE t (x INTEGER)")
    db.execute("INSERT INTO t VALUES (1)")
    other = sqlite3.connect(str(path))
    try:
        assert other.execute("SELECT COUNT(*) FROM t").fetchone() == (1,)
    finally:
        other.close()
        db.close()


def test_open_missing_directory_raises(tmp_path):
    with pytest.raises(sqlite3.OperationalError):
        open_database(tmp_path / "missing" / "log.db")