import pytest

from obdlogger.convert import conversion_for
from obdlogger.elm import ElmConnection
from obdlogger.protocol import ObdError, ObdStatus, SerialLog


class FakeTransport:
    def __init__(self, respond=None):
        self.respond = respond or (lambda text, port: "")
        self.pending = bytearray()
        self.written = []
        self.baudrate = 9600
        self.timeout = None
        self.closed = False

    @property
    def in_waiting(self):
        return len(self.pending)

    def write(self, data):
        text = data.decode("ascii")
        self.written.append(text)
        self.pending += self.respond(text, self).encode("ascii")
        return len(data)

    def read(self, size=1):
        chunk = bytes(self.pending[:size])
        del self.pending[:size]
        return chunk

    def close(self):
        self.closed = True


def table(replies):
    return lambda text, port: replies.get(text, "")


def make(respond=None, log=None):
    transport = FakeTransport(respond)
    conn = ElmConnection(transport, log)
    conn.settle_delay = 0
    conn.timeout = 0.05
    return conn, transport


def test_get_bytes_returns_data_bytes():
    conn, port = make(table({"010C\r": "41 0C 1A F8\r\r>"}))
    assert conn.get_bytes(0x01, 0x0C) == [0x1A, 0xF8]
    assert port.written == ["010C\r"]


def test_get_bytes_sends_expected_count():
    conn, port = make(table({"010C2\r": "41 0C 1A F8\r\r>"}))
    assert conn.get_bytes(0x01, 0x0C, 2) == [0x1A, 0xF8]
    assert port.written == ["010C2\r"]


def test_get_value_with_conversion():
    conn, _ = make(table({"010C\r": "41 0C 1A F8\r\r>"}))
    expected = conversion_for(0x0C).to_value(0x1A, 0xF8, 0, 0)
    assert conn.get_value(0x0C, 0, conversion_for(0x0C)) == pytest.approx(expected)


def test_get_value_without_conversion_folds_bytes():
    conn, _ = make(table({"010D\r": "41 0D 3C\r\r>"}))
    assert conn.get_value(0x0D) == float(0x3C)


def test_no_data_is_reported():
    conn, _ = make(table({"0142\r": "NO DATA\r\r>"}))
    with pytest.raises(ObdError) as info:
        conn.get_bytes(0x01, 0x42, quiet=True)
    assert info.value.status is ObdStatus.NO_DATA


def test_timeout_without_prompt():
    conn, _ = make()
    with pytest.raises(ObdError) as info:
        conn.get_bytes(0x01, 0x0C)
    assert info.value.status is ObdStatus.ERROR


def test_traffic_is_logged(tmp_path):
    path = tmp_path / "serial.log"
    log = SerialLog(path)
    conn, _ = make(table({"010D\r": "41 0D 3C\r\r>"}), log)
    conn.get_bytes(0x01, 0x0D)
    log.close()
    text = path.read_text()
    assert "(out): '010D\r'" in text
    assert "(in): '41 0D 3C\r\r>'" in text


def test_modify_baud():
    conn, port = make()
    conn.modify_baud(-1)
    assert port.baudrate == 9600
    conn.modify_baud(115200)
    assert port.baudrate == 115200
    with pytest.raises(ValueError):
        conn.modify_baud(12345)
    assert port.baudrate == 115200


def test_guess_baudrate_finds_answering_rate():
    def respond(text, port):
        return "41 00 BE 1F A8 13\r>" if port.baudrate == 38400 else ""

    conn, port = make(respond)
    assert conn.guess_baudrate() == 38400
    assert port.baudrate == 38400
    assert port.written[0] == "0100\r\n"


def test_guess_baudrate_failure():
    conn, _ = make()
    with pytest.raises(ObdError):
        conn.guess_baudrate()


def test_modify_baud_zero_guesses():
    conn, port = make(lambda text, p: ">" if p.baudrate == 115200 else "")
    conn.modify_baud(0)
    assert port.baudrate == 115200


def elm_upgrade(text, port):
    if text.startswith("ATBRT"):
        return "OK\r\r>"
    if text.startswith("ATBRD"):
        return "OK\rELM327 v1.5\r\r>"
    return ""


def test_upgrade_disabled():
    conn, port = make(elm_upgrade)
    assert conn.upgrade_baudrate(-1, 9600) is None
    assert port.written == []


def test_upgrade_to_target():
    conn, port = make(elm_upgrade)
    assert conn.upgrade_baudrate(38400, 9600) == 38400
    assert port.baudrate == 38400
    assert port.written[-1] == "\r"
    assert any(w.startswith("ATBRD") for w in port.written)
    assert port.timeout is None


def test_upgrade_rejected_keeps_rate():
    def respond(text, port):
        return "?\r>" if text.startswith("ATBRD") else "OK\r>"

    conn, port = make(respond)
    with pytest.raises(ObdError):
        conn.upgrade_baudrate(38400, 9600)
    assert port.baudrate == 9600


def test_upgrade_without_elm_restores_rate():
    def respond(text, port):
        return "OK\rgarbage\r>" if text.startswith("ATBRD") else "OK\r>"

    conn, port = make(respond)
    with pytest.raises(ObdError):
        conn.upgrade_baudrate(38400, 9600)
    assert port.baudrate == 9600


def test_upgrade_search_keeps_fastest():
    conn, port = make(elm_upgrade)
    assert conn.upgrade_baudrate(0, 9600) == 576000
    assert port.baudrate == 576000


def test_count_errors():
    conn, _ = make(table({"0101\r": "41 01 83 07 65 04\r>"}))
    assert conn.count_errors() == 3


def test_count_errors_without_answer():
    conn, _ = make(table({"0101\r": "NO DATA\r>"}))
    assert conn.count_errors() == 0


def test_error_codes_none_set():
    conn, port = make(table({"0101\r": "41 01 00 07 65 04\r>"}))
    assert conn.get_error_codes() == []
    assert "03\r" not in port.written


def test_error_codes_read_mode_03():
    conn, port = make(
        table({"0101\r": "41 01 81 07 65 04\r>", "03\r": "43 01 33 00 00 00 00\r>"})
    )
    assert conn.get_error_codes() == [0x01, 0x33, 0x00, 0x00, 0x00, 0x00]
    assert port.written[-1] == "03\r"


def test_initialise_sends_setup_commands():
    conn, port = make(lambda text, p: "OK\r>")
    conn.initialise(-1, -1)
    assert [w.rstrip("\r") for w in port.written] == [
        "ATZ", "0100", "ATE0", "ATL0", "ATS0", "0100",
    ]


def test_close_resets_and_closes():
    conn, port = make()
    conn.close()
    assert port.written == ["ATZ\r"]
    assert port.closed is True