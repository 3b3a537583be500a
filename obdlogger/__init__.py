"""Read OBD-II data from an ELM327 adapter and GPS fixes from gpsd, and store them in SQLite."""

__version__ = "0.1.0"