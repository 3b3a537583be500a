import re

import pytest

from obdlogger.protocol import (
    ObdError,
    ObdStatus,
    SerialLog,
    format_request,
    parse_line,
    parse_response,
)


def test_format_request_plain():
    assert format_request(0x01, 0x0C, 0) == "010C\r"


def test_format_request_with_expected_bytes():
    assert format_request(0x01, 0x0C, 2) == "010C2\r"


def test_format_request_mode_without_pid():
    assert format_request(0x03, 0x00, 0) == "03\r"
    assert format_request(0x04, 0x55, 4) == "04\r"


def test_parse_line_spaced_and_compact_agree():
    spaced = parse_line("41 0C 1A F8", 0x01, 0x0C)
    compact = parse_line("410C1AF8", 0x01, 0x0C)
    assert spaced == compact == [0x1A, 0xF8]


def test_parse_line_without_cmd_byte():
    assert parse_line("43 01 33 00 00", 0x03, 0x00) == [0x01, 0x33, 0x00, 0x00]


def test_parse_line_stops_at_garbage():
    assert parse_line("41 0D 20 xyz 33", 0x01, 0x0D) == [0x20]


def test_parse_line_caps_data_bytes():
    line = "41 00 " + " ".join(["AA"] * 30)
    result = parse_line(line, 0x01, 0x00)
    assert len(result) == 20
    assert set(result) == {0xAA}


@pytest.mark.parametrize(
    "line, cmd, status",
    [
        ("41 0C", 0x0C, ObdStatus.UNPARSABLE),
        ("hello", 0x0C, ObdStatus.UNPARSABLE),
        ("7F 01 12", 0x0C, ObdStatus.INVALID_RESPONSE),
        ("41 0D 20", 0x0C, ObdStatus.INVALID_MODE),
    ],
)
def test_parse_line_errors(line, cmd, status):
    with pytest.raises(ObdError) as info:
        parse_line(line, 0x01, cmd)
    assert info.value.status is status


def test_parse_response_skips_echo():
    assert parse_response("010C\r410C1AF8\r\r>", 0x01, 0x0C, True) == [0x1A, 0xF8]


def test_parse_response_joins_multiline():
    text = "0902\r014\r0: 49 02 01 00 00 00\r1: 11 22 33 44 55 66 77\r\r>"
    result = parse_response(text, 0x09, 0x02, True)
    assert result == [0x01, 0x00, 0x00, 0x00, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x77]


@pytest.mark.parametrize(
    "text, status",
    [
        ("NO DATA\r\r>", ObdStatus.NO_DATA),
        ("?\r\r>", ObdStatus.NO_DATA),
        ("SEARCHING...\rUNABLE TO CONNECT\r\r>", ObdStatus.UNABLE_TO_CONNECT),
        ("\r\r>", ObdStatus.ERROR),
        ("7F 01 12\r>", ObdStatus.INVALID_RESPONSE),
    ],
)
def test_parse_response_errors(text, status):
    with pytest.raises(ObdError) as info:
        parse_response(text, 0x01, 0x0C, True)
    assert info.value.status is status


def test_serial_log_records_direction(tmp_path):
    path = tmp_path / "serial.log"
    with SerialLog(path) as log:
        log.append("0100\r", True)
        log.append("41 00 BE 3E B8 11>", False)
    content = path.read_text(encoding="utf-8")
    lines = content.split("\n")
    assert re.fullmatch(r"\d\d:\d\d:\d\d\(out\): '0100\r'", lines[0])
    assert re.fullmatch(r"\d\d:\d\d:\d\d\(in\): '41 00 BE 3E B8 11>'", lines[1])
    assert lines[2] == ""


def test_serial_log_ignores_append_after_close(tmp_path):
    path = tmp_path / "serial.log"
    log = SerialLog(path)
    log.append("ATZ\r", True)
    log.close()
    log.append("ignored", False)
    assert "ignored" not in path.read_text(encoding="utf-8")
    assert path.read_text(encoding="utf-8").count("\n") == 1