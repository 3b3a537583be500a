[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "obdlogger"
version = "0.1.0"
description = "Read OBD-II engine data from an ELM327 adapter and GPS fixes from gpsd, and store them in SQLite"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = [
    "obd",
    "obd-ii",
    "elm327",
    "gps",
    "gpsd",
    "sqlite",
    "vehicle",
    "diagnostics",
    "dtc",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["obdlogger"]

[tool.pytest.ini_options]
addopts = "-ra"
