import pytest
from escpos.printer import Dummy

import voucher_ticket
from conftest import RecordingPrinter
from voucher_ticket import Ticket, duration_label, format_code, hours_to_minutes, open_printer, print_ticket


def make_ticket(**kwargs):
    values = dict(wifi_name="Guest", wifi_title="Free as beer!", code="ABCDE-12345", duration="1 Day")
    values.update(kwargs)
    return Ticket(**values)


def test_format_code_splits_ten_characters():
    assert format_code("ABCDE12345") == "ABCDE-12345"


@pytest.mark.parametrize("code", ["ABC", "ABCDE123456", ""])
def test_format_code_leaves_other_lengths(code):
    assert format_code(code) == code


@pytest.mark.parametrize("hours,label", [
    (24, "1 Day"),
    (48, "2 Days"),
    (168, "7 Days"),
    (1, "1 Hour"),
    (12, "12 Hours"),
    (36, "36 Hours"),
])
def test_duration_label(hours, label):
    assert duration_label(hours) == label


def test_duration_label_uses_configured_words():
    assert duration_label(24, "Tag", "Tage") == "1 Tag"
    assert duration_label(72, "Tag", "Tage") == "3 Tage"


def test_hours_to_minutes():
    assert hours_to_minutes(24) == 1440
    assert hours_to_minutes(2.0) == 120
    with pytest.raises(ValueError):
        hours_to_minutes(0)


@pytest.mark.parametrize("hours", [1.5, 0.25, "1.5"])
def test_hours_to_minutes_rejects_fractions(hours):
    with pytest.raises(ValueError):
        hours_to_minutes(hours)


def test_print_ticket_command_order():
    printer = RecordingPrinter()
    print_ticket(printer, make_ticket())

    names = [name for name, _, _ in printer.calls]
    assert names[0] == "hw"
    assert printer.calls[0][1] == ("INIT",)
    assert names[1] == "set"
    assert printer.calls[1][2] == {"align": "center"}
    assert "image" not in names
    assert names[-2:] == ["cut", "cashdraw"]
    assert printer.texts() == ["Guest", "Free as beer!", "Voucher", "ABCDE-12345", "Duration: 1 Day"]


def test_print_ticket_includes_logo_when_present(tmp_path):
    logo = tmp_path / "logo.png"
    logo.write_bytes(b"not really a png")
    printer = RecordingPrinter()

    print_ticket(printer, make_ticket(logo_file=str(logo)))

    assert ("image", (str(logo),), {}) in printer.calls


def test_print_ticket_on_dummy_printer():
    printer = Dummy()
    print_ticket(printer, make_ticket())
    assert b"ABCDE-12345" in printer.output
    assert b"Free as beer!" in printer.output


def test_open_printer_closes_once_on_error(monkeypatch):
    opened = []

    def fake_network(host, port=9100, timeout=10):
        p = RecordingPrinter()
        opened.append((host, port, timeout, p))
        return p

    monkeypatch.setattr(voucher_ticket, "Network", fake_network)

    with pytest.raises(RuntimeError):
        with open_printer("printer.local", 9100, 5):
            raise RuntimeError("boom")

    host, port, timeout, printer = opened[0]
    assert (host, port, timeout) == ("printer.local", 9100, 5)
    assert printer.closed == 1


def test_open_printer_dummy_host():
    with open_printer("dummy") as p:
        assert isinstance(p, Dummy)


def test_open_printer_connects_before_yielding(monkeypatch):
    printer = RecordingPrinter()
    monkeypatch.setattr(voucher_ticket, "Network", lambda host, port=9100, timeout=10: printer)

    with open_printer("printer.local") as p:
        assert p.opened == 1

    assert printer.closed == 1


def test_open_printer_closes_when_connect_fails(monkeypatch):
    printer = RecordingPrinter()

    def refuse():
        raise OSError("connection refused")

    printer.open = refuse
    monkeypatch.setattr(voucher_ticket, "Network", lambda host, port=9100, timeout=10: printer)

    with pytest.raises(OSError):
        with open_printer("printer.local"):
            pass

    assert printer.closed == 1
