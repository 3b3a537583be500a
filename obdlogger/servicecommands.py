"""The table of OBD-II mode 01 service commands and lookups into it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from obdlogger.convert import Conversion, conversion_for

__all__ = [
    "ServiceCommand",
    "command_for_column",
    "command_for_pid",
    "logged_commands",
]


@dataclass(frozen=True)
class ServiceCommand:
    """One mode 01 PID: its wire size, log column, description and limits."""

    pid: int
    bytes_returned: int
    db_column: Optional[str]
    human_name: str
    min_value: float
    max_value: float
    units: str

    @property
    def conversion(self) -> Optional[Conversion]:
        """The byte/value conversion for this command, or None if bit encoded."""
        return conversion_for(self.pid)

    def convert(self, a: int, b: int = 0, c: int = 0, d: int = 0) -> float:
        """Convert response bytes A..D to this command's physical value.

        Raises ValueError for bit-encoded commands, which have no conversion.
        """
        conversion = self.conversion
        if conversion is None:
            raise ValueError(f"PID {self.pid:02X} has no value conversion")
        return conversion.to_value(a, b, c, d)


_BIT = "Bit Encoded"
_O2V = "Oxygen Sensor Output Voltage / Short Term Fuel Trim"
_LAMBDA_V = "(wide range O2S) Oxygen Sensors Equivalence Ratio (lambda) / Voltage"
_LAMBDA_C = "(wide range O2S) Oxygen Sensors Equivalence Ratio (lambda) / Current"

_TABLE: tuple[ServiceCommand, ...] = tuple(
    ServiceCommand(pid, size, column, name, float(low), float(high), units)
    for pid, size, column, name, low, high, units in (
        (0x00, 4, None, "PIDs supported 00-20", 0, 0, _BIT),
        (0x01, 4, "dtc_cnt", "Monitor status since DTCs cleared", 0, 0, _BIT),
        (0x02, 4, "dtcfrzf", "DTC that caused required freeze frame data storage", 0, 0, _BIT),
        (0x03, 8, "fuelsys", "Fuel system 1 and 2 status", 0, 0, _BIT),
        (0x04, 2, "load_pct", "Calculated LOAD Value", 0, 100, "%"),
        (0x05, 1, "temp", "Engine Coolant Temperature", -40, 215, "Celsius"),
        (0x06, 1, "shrtft13", "Short Term Fuel Trim - Bank 1,3", -100, 99.22, "%"),
        (0x07, 1, "longft13", "Long Term Fuel Trim - Bank 1,3", -100, 99.22, "%"),
        (0x08, 1, "shrtft24", "Short Term Fuel Trim - Bank 2,4", -100, 99.22, "%"),
        (0x09, 1, "longft24", "Long Term Fuel Trim - Bank 2,4", -100, 99.22, "%"),
        (0x0A, 1, "frp", "Fuel Rail Pressure (gauge)", -100, 99.22, "%"),
        (0x0B, 1, "map", "Intake Manifold Absolute Pressure", 0, 765, "kPa"),
        (0x0C, 2, "rpm", "Engine RPM", 0, 16383.75, "rev/min"),
        (0x0D, 1, "vss", "Vehicle Speed Sensor", 0, 255, "km/h"),
        (0x0E, 1, "sparkadv", "Ignition Timing Advance for #1 Cylinder", -64, 63.5,
         "degrees relative to #1 cylinder"),
        (0x0F, 1, "iat", "Intake Air Temperature", -40, 215, "Celsius"),
        (0x10, 2, "maf", "Air Flow Rate from Mass Air Flow Sensor", 0, 655.35, "g/s"),
        (0x11, 1, "throttlepos", "Absolute Throttle Position", 1, 100, "%"),
        (0x12, 1, "air_stat", "Commanded Secondary Air Status", 0, 0, _BIT),
        (0x13, 1, "o2sloc", "Location of Oxygen Sensors", 0, 0, _BIT),
        (0x14, 2, "o2s11", f"Bank 1 - Sensor 1/Bank 1 - Sensor 1 {_O2V}", 0, 1.275, "V"),
        (0x15, 2, "o2s12", f"Bank 1 - Sensor 2/Bank 1 - Sensor 2 {_O2V}", 0, 1.275, "V"),
        (0x16, 2, "o2s13", f"Bank 1 - Sensor 3/Bank 2 - Sensor 1 {_O2V}", 0, 1.275, "V"),
        (0x17, 2, "o2s14", f"Bank 1 - Sensor 4/Bank 2 - Sensor 2 {_O2V}", 0, 1.275, "V"),
        (0x18, 2, "o2s21", f"Bank 2 - Sensor 1/Bank 3 - Sensor 1 {_O2V}", 0, 1.275, "V"),
        (0x19, 2, "o2s22", f"Bank 2 - Sensor 2/Bank 3 - Sensor 2 {_O2V}", 0, 1.275, "V"),
        (0x1A, 2, "o2s23", f"Bank 2 - Sensor 3/Bank 4 - Sensor 1 {_O2V}", 0, 1.275, "V"),
        (0x1B, 2, "o2s24", f"Bank 2 - Sensor 4/Bank 4 - Sensor 2 {_O2V}", 0, 1.275, "V"),
        (0x1C, 1, "obdsup", "OBD requirements to which vehicle is designed", 0, 0, _BIT),
        (0x1D, 1, "o2sloc2", "Location of oxygen sensors", 0, 0, _BIT),
        (0x1E, 1, "pto_stat", "Auxiliary Input Status", 0, 0, _BIT),
        (0x1F, 2, "runtm", "Time Since Engine Start", 0, 65535, "seconds"),
        (0x20, 4, None, "PIDs supported 21-40", 0, 0, _BIT),
        (0x21, 4, "mil_dist", "Distance Travelled While MIL is Activated", 0, 65535, "km"),
        (0x22, 2, "frpm", "Fuel Rail Pressure relative to manifold vacuum", 0, 5177.265, "kPa"),
        (0x23, 2, "frpd", "Fuel Rail Pressure (diesel)", 0, 655350, "kPa"),
        (0x24, 4, "lambda11", f"Bank 1 - Sensor 1/Bank 1 - Sensor 1 {_LAMBDA_V}", 0, 2, "(ratio)"),
        (0x25, 4, "lambda12", f"Bank 1 - Sensor 2/Bank 1 - Sensor 2 {_LAMBDA_V}", 0, 2, "(ratio)"),
        (0x26, 4, "lambda13", f"Bank 1 - Sensor 3 /Bank 2 - Sensor 1{_LAMBDA_V}", 0, 2, "(ratio)"),
        (0x27, 4, "lambda14", f"Bank 1 - Sensor 4 /Bank 2 - Sensor 2{_LAMBDA_V}", 0, 2, "(ratio)"),
        (0x28, 4, "lambda21", f"Bank 2 - Sensor 1 /Bank 3 - Sensor 1{_LAMBDA_V}", 0, 2, "(ratio)"),
        (0x29, 4, "lambda22", f"Bank 2 - Sensor 2 /Bank 3 - Sensor 2{_LAMBDA_V}", 0, 2, "(ratio)"),
        (0x2A, 4, "lambda23", f"Bank 2 - Sensor 3 /Bank 4 - Sensor 1{_LAMBDA_V}", 0, 2, "(ratio)"),
        (0x2B, 4, "lambda24", f"Bank 2 - Sensor 4 /Bank 4 - Sensor 2{_LAMBDA_V}", 0, 2, "(ratio)"),
        (0x2C, 1, "egr_pct", "Commanded EGR", 0, 100, "%"),
        (0x2D, 1, "egr_err", "EGR Error", -100, 99.22, "%"),
        (0x2E, 1, "evap_pct", "Commanded Evaporative Purge", 0, 100, "%"),
        (0x2F, 1, "fli", "Fuel Level Input", 0, 100, "%"),
        (0x30, 1, "warm_ups", "Number of warm-ups since diagnostic trouble codes cleared",
         0, 255, ""),
        (0x31, 2, "clr_dist", "Distance since diagnostic trouble codes cleared", 0, 65535, "km"),
        (0x32, 2, "evap_vp", "Evap System Vapour Pressure", -8192, 8192, "Pa"),
        (0x33, 1, "baro", "Barometric Pressure", 0, 255, "kPa"),
        (0x34, 4, "lambdac11", f"Bank 1 - Sensor 1/Bank 1 - Sensor 1 {_LAMBDA_C}", 0, 2, "(ratio)"),
        (0x35, 4, "lambdac12", f"Bank 1 - Sensor 2/Bank 1 - Sensor 2 {_LAMBDA_C}", 0, 2, "(ratio)"),
        (0x36, 4, "lambdac13", f"Bank 1 - Sensor 3/Bank 2 - Sensor 1 {_LAMBDA_C}", 0, 2, "(ratio)"),
        (0x37, 4, "lambdac14", f"Bank 1 - Sensor 4/Bank 2 - Sensor 2 {_LAMBDA_C}", 0, 2, "(ratio)"),
        (0x38, 4, "lambdac21", f"Bank 2 - Sensor 1/Bank 3 - Sensor 1 {_LAMBDA_C}", 0, 2, "(ratio)"),
        (0x39, 4, "lambdac22", f"Bank 2 - Sensor 2/Bank 3 - Sensor 2 {_LAMBDA_C}", 0, 2, "(ratio)"),
        (0x3A, 4, "lambdac23", f"Bank 2 - Sensor 3/Bank 4 - Sensor 1 {_LAMBDA_C}", 0, 2, "(ratio)"),
        (0x3B, 4, "lambdac24", f"Bank 2 - Sensor 4/Bank 4 - Sensor 2 {_LAMBDA_C}", 0, 2, "(ratio)"),
        (0x3C, 2, "catemp11", "Catalyst Temperature Bank 1 /  Sensor 1", -40, 6513.5, "Celsius"),
        (0x3D, 2, "catemp21", "Catalyst Temperature Bank 2 /  Sensor 1", -40, 6513.5, "Celsius"),
        (0x3E, 2, "catemp12", "Catalyst Temperature Bank 1 /  Sensor 2", -40, 6513.5, "Celsius"),
        (0x3F, 2, "catemp22", "Catalyst Temperature Bank 2 /  Sensor 2", -40, 6513.5, "Celsius"),
        (0x40, 4, None, "PIDs supported 41-60", 0, 0, _BIT),
        (0x41, 4, None, "Monitor status this driving cycle", 0, 0, _BIT),
        (0x42, 2, "vpwr", "Control module voltage", 0, 65535, "V"),
        (0x43, 2, "load_abs", "Absolute Load Value", 0, 25700, "%"),
        (0x44, 2, "lambda", "Fuel/air Commanded Equivalence Ratio", 0, 2, "(ratio)"),
        (0x45, 1, "tp_r", "Relative Throttle Position", 0, 100, "%"),
        (0x46, 1, "aat", "Ambient air temperature", -40, 215, "Celsius"),
        (0x47, 1, "tp_b", "Absolute Throttle Position B", 0, 100, "%"),
        (0x48, 1, "tp_c", "Absolute Throttle Position C", 0, 100, "%"),
        (0x49, 1, "app_d", "Accelerator Pedal Position D", 0, 100, "%"),
        (0x4A, 1, "app_e", "Accelerator Pedal Position E", 0, 100, "%"),
        (0x4B, 1, "app_f", "Accelerator Pedal Position F", 0, 100, "%"),
        (0x4C, 1, "tac_pct", "Commanded Throttle Actuator Control", 0, 100, "%"),
        (0x4D, 2, "mil_time", "Time run by the engine while MIL activated", 0, 65525, "minutes"),
        (0x4E, 2, "clr_time", "Time since diagnostic trouble codes cleared", 0, 65535, "minutes"),
        (0x4F, 4, None, "External Test Equipment Configuration #1", 0, 0, _BIT),
        (0x50, 4, None, "External Test Equipment Configuration #2", 0, 0, _BIT),
        (0x51, 2, "fuel_type", "Fuel Type", 0, 0, _BIT),
        (0x52, 2, "alch_pct", "Ethanol fuel %", 0, 100, "%"),
    )
)

_BY_PID: dict[int, ServiceCommand] = {command.pid: command for command in _TABLE}
_BY_COLUMN: dict[str, ServiceCommand] = {
    command.db_column: command for command in _TABLE if command.db_column is not None
}


def command_for_column(column: str) -> Optional[ServiceCommand]:
    """Return the command logged under the given database column, or None."""
    return _BY_COLUMN.get(column)


def command_for_pid(pid: int) -> Optional[ServiceCommand]:
    """Return the command for a mode 01 PID, or None if the PID is unknown."""
    return _BY_PID.get(pid)


def logged_commands() -> tuple[ServiceCommand, ...]:
    """Return, in PID order, every command that has a database column."""
    return tuple(command for command in _TABLE if command.db_column is not None)