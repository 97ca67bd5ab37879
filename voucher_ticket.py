# voucher_ticket.py - voucher code / duration formatting and the ESC/POS ticket layout
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from escpos.printer import Dummy, Network

logger = logging.getLogger(__name__)

DUMMY_HOST = "dummy"
HOURS_PER_DAY = 24


@dataclass
class Ticket:
    wifi_name: str
    wifi_title: str
    code: str
    duration: str
    logo_file: Optional[str] = None
    title_voucher: str = "Voucher"
    title_duration: str = "Duration"


def format_code(code: str) -> str:
    """ABCDE12345 -> ABCDE-12345; codes of any other length are left alone."""
    code = str(code)
    if len(code) == 10:
        return code[:5] + "-" + code[5:]
    return code


def hours_to_minutes(hours) -> int:
    if isinstance(hours, float) and not hours.is_integer():
        raise ValueError(f"voucher duration must be a whole number of hours, got {hours}")
    hours = int(hours)
    if hours <= 0:
        raise ValueError(f"voucher duration must be a positive number of hours, got {hours}")
    return hours * 60


def duration_label(hours, day="Day", days="Days", hour="Hour", hours_text="Hours") -> str:
    hours = int(hours)
    if hours % HOURS_PER_DAY == 0:
        n = hours // HOURS_PER_DAY
        return f"{n} {day if n == 1 else days}"
    return f"{hours} {hour if hours == 1 else hours_text}"


def print_ticket(printer, ticket: Ticket):
    printer.hw("INIT")
    printer.set(align="center")
    if ticket.logo_file and os.path.exists(ticket.logo_file):
        printer.image(ticket.logo_file)
    elif ticket.logo_file:
        logger.warning("logo file not found: %s", ticket.logo_file)
    printer.ln()

    printer.set(double_width=True)
    printer.text(ticket.wifi_name)
    printer.set(normal_textsize=True)
    printer.ln()
    printer.text(ticket.wifi_title)
    printer.ln(2)

    printer.set(double_width=True)
    printer.text(ticket.title_voucher)
    printer.ln()
    printer.text(ticket.code)
    printer.set(normal_textsize=True)
    printer.ln()
    printer.text(f"{ticket.title_duration}: {ticket.duration}")
    printer.ln(5)

    printer.cut()
    printer.cashdraw(2)


@contextmanager
def open_printer(host, port=9100, timeout=10):
    """Yield a connected printer and close it exactly once, whatever happens inside."""
    is_dummy = host.lower() == DUMMY_HOST
    printer = Dummy() if is_dummy else Network(host, port=port, timeout=timeout)
    try:
        # python-escpos connects lazily; fail here, before any voucher is issued
        if not is_dummy:
            printer.open()
        logger.debug("printer opened: %s:%s", host, port)
        yield printer
    finally:
        printer.close()
        logger.debug("printer closed")
