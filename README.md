# obdlogger

obdlogger is a library for recording what a car reports over its OBD-II port and where the car is. It talks to an ELM327-compatible adapter on a serial port and to a gpsd daemon. It provides the tables and helpers to store both in an SQLite database.

## Installing

```
pip install .
```

The only runtime dependency is `pyserial`. To run the test suite:

```
pip install ".[test]"
pytest
```

## Decoding without an adapter

The decoding tables work on their own:

```python
from obdlogger.convert import conversion_for
from obdlogger.servicecommands import command_for_pid, command_for_column, logged_commands
from obdlogger import dtc

rpm = conversion_for(0x0C)
rpm.to_value(0x1A, 0xF8, 0, 0)   # 1726.0 rev/min
rpm.to_bytes(1726.0)             # the bytes the car would send

cmd = command_for_column("vss")  # Vehicle Speed Sensor, PID 0x0D
command_for_pid(0x05)            # Engine Coolant Temperature
command_for_pid(0x05).convert(0x7B)   # 83.0 (Celsius)

dtc.from_bytes(0x01, 0x33)       # "P0133"
dtc.is_valid("P0133")            # True
dtc.to_bytes("P0133")            # (0x01, 0x33)
```

- `obdlogger.convert`: `conversion_for(pid)` returns a `Conversion` with `to_value(a, b, c, d)` and `to_bytes(value)`. It returns `None` for bit-encoded PIDs. `to_bytes` raises `ValueError` for a value the response bytes cannot hold.
- `obdlogger.servicecommands`: the mode 01 PID table (0x00 to 0x52). Each entry is a `ServiceCommand` with its PID, expected byte count, database column, description, limits and units. `logged_commands()` returns, in PID order, the commands that have a database column.
- `obdlogger.dtc`: `is_valid`, `to_bytes` and `from_bytes` for trouble codes such as `P0133`. `to_bytes` raises `ValueError` for an invalid code.

## Talking to an adapter

```python
from obdlogger.elm import open_connection
from obdlogger.capabilities import query_capabilities, describe_capabilities
from obdlogger.servicecommands import command_for_column
from obdlogger.protocol import ObdError, SerialLog

with SerialLog("serial.log") as log, open_connection("/dev/ttyUSB0", log=log) as elm:
    caps = query_capabilities(elm)
    print("\n".join(describe_capabilities(caps)))

    rpm = command_for_column("rpm")
    try:
        print(elm.get_value(rpm.pid, 0, rpm.conversion))
    except ObdError as error:
        print("no reading:", error.status)
```

- `open_connection(port, baudrate, baudrate_target, log)` opens the port and resets the adapter. It then turns off echo, linefeeds and spaces. For `baudrate` and `baudrate_target`, -1 leaves the rate alone, 0 guesses, and a positive number asks for that rate.
- `ElmConnection` offers these methods:
  - `get_bytes(mode, cmd, expected_bytes, quiet)` sends one request and returns the data bytes of the answer.
  - `get_value(cmd, expected_bytes, conversion)` does the same and converts the result. Without a conversion it reads the bytes as one big-endian number.
  - `get_error_codes()` returns the raw bytes of the stored trouble codes.
  - `count_errors()` returns how many trouble codes the vehicle claims.
  - `modify_baud`, `guess_baudrate` and `upgrade_baudrate` change the line rate.
  - `close()` resets the adapter and closes the port.

  Any object with `write`, `read`, `close` and a `baudrate` attribute can serve as the transport.
- `obdlogger.protocol` holds the request format and response parsing. `format_request`, `parse_line` and `parse_response` work on text alone. A failed request raises `ObdError`, whose `status` is an `ObdStatus` member: `NO_DATA`, `UNPARSABLE`, `INVALID_RESPONSE`, `INVALID_MODE`, `UNABLE_TO_CONNECT` or `ERROR`. `SerialLog` writes every line sent and received, with a timestamp.
- `obdlogger.capabilities` finds which PIDs the car supports:
  - `query_capabilities(connection, wishlist)` reads the car's support bitmaps. If the car claims to support nothing, it falls back to `guess_capabilities`, which probes each PID in turn.
  - `print_capabilities(connection)` prints the list.
  - A `Capabilities` object answers `supports(pid)` and `pid in caps`.

## Reading gpsd

```python
from obdlogger.gps import open_gps

gps = open_gps()            # 127.0.0.1, port 2947; None if gpsd is not there
if gps is not None:
    fix = gps.position()    # None until there is at least a 2D fix
```

`GpsdClient.position()` reads whatever gpsd has sent without blocking and returns a `GpsFix`. Its `altitude` is `None` unless the fix is 3D.

## The database

`obdlogger.database.open_database(filename)` opens or creates the file in autocommit mode. The table helpers create and fill these tables:

| Table | Module | Contents |
| --- | --- | --- |
| `obd` | `obdlogger.obddb` | One `REAL` column per supported PID, plus `time`, `trip` and `ecu` |
| `gps` | `obdlogger.gpsdb` | `lat`, `lon`, `alt`, `speed`, `course`, `gpstime`, `time`, `trip` |
| `trip` | `obdlogger.tripdb` | `tripid`, `start`, `end` (`-1` until the trip is updated) |
| `ecu` | `obdlogger.ecudb` | `ecuid`, `vin`, `ecu`, `ecudesc` |

```python
from obdlogger.database import open_database
from obdlogger import obddb, gpsdb, tripdb

db = open_database("drive.db")
obddb.create_obd_table(db, caps)
gpsdb.create_gps_table(db)
tripdb.create_trip_table(db)

trip = tripdb.start_trip(db, 1700000000.0)
columns = [c.db_column for c in obddb.supported_columns(caps)]
obddb.begin_transaction(db)
obddb.insert_obd(db, columns, values, 1700000000.0, trip)
obddb.commit_transaction(db)
tripdb.update_trip(db, trip, 1700000060.0)
```

If `create_obd_table` finds an existing `obd` table, it adds any supported columns the table lacks and keeps the data already there. `ecudb.create_ecu` returns the existing id when the vin/ecu pair is already recorded.

## What this package does not do

The package has no command-line program and no sampling loop. Nothing here runs on its own to log a drive. It provides no signal handling to start or stop trips, and it cannot run in the background. You write the loop yourself from the pieces above:

1. read each supported PID;
2. insert the readings and the current GPS fix with a shared timestamp;
3. start and update trips;
4. commit in batches.