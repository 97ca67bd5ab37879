#!/usr/bin/env python3
# voucher_client.py - issue a guest voucher on the UniFi controller and print it
import argparse
import logging
import sys
from contextlib import nullcontext

from escpos.exceptions import Error as PrinterError

from unifi_client import Client, EmptyResult, VoucherError
from voucher_config import Settings, setup_logging
from voucher_ticket import (
    Ticket,
    duration_label,
    format_code,
    hours_to_minutes,
    open_printer,
    print_ticket,
)

logger = logging.getLogger(__name__)


def make_client(settings):
    return Client(
        settings.unifi_username,
        settings.unifi_password,
        settings.unifi_baseurl,
        settings.unifi_site,
        settings.unifi_version,
        ssl_verify=settings.unifi_ssl_verify,
    )


def fetch_voucher(client, minutes, note=None):
    """Create one voucher and read its record back by create_time."""
    create_time = client.create_voucher(minutes, 1, 0, note)
    records = client.stat_voucher(create_time)
    if not records:
        raise EmptyResult(f"no voucher found for create_time {create_time}")
    if not records[0].get("code"):
        raise EmptyResult(f"voucher record for create_time {create_time} has no code")
    return records[0]


def issue_voucher(settings, hours, note=None, printer=None):
    """Issue a voucher valid for `hours` and print its ticket.

    The printer is opened before the controller is contacted and closed on
    every path; nothing is printed unless a voucher code is in hand.
    """
    minutes = hours_to_minutes(hours)
    label = duration_label(hours, settings.text_day, settings.text_days,
                           settings.text_hour, settings.text_hours)
    if note is None:
        note = settings.voucher_note

    if printer is None:
        scope = open_printer(settings.printer_host, settings.printer_port, settings.printer_timeout)
    else:
        scope = nullcontext(printer)

    with scope as p:
        with make_client(settings) as client:
            client.authenticate()
            voucher = fetch_voucher(client, minutes, note)

        code = format_code(voucher["code"])
        logger.info("Voucher: %s (%s)", code, label)
        print_ticket(p, Ticket(
            wifi_name=settings.wifi_name,
            wifi_title=settings.wifi_title,
            code=code,
            duration=label,
            logo_file=settings.logo_file,
            title_voucher=settings.title_voucher,
            title_duration=settings.title_duration,
        ))

    return dict(voucher, formatted_code=code, duration_label=label)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create a UniFi guest voucher and print it.")
    parser.add_argument("--hours", type=int, help="voucher duration in hours (default: VOUCHER_HOURS)")
    parser.add_argument("--note", help="note stored with the voucher")
    parser.add_argument("--env", dest="env_file", help="path to a .env file")
    parser.add_argument("--dry-run", action="store_true", help="render the ticket without a printer")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    try:
        settings = Settings.from_env(args.env_file)
        hours = args.hours if args.hours is not None else settings.voucher_hours
        if args.dry_run:
            with open_printer("dummy") as p:
                voucher = issue_voucher(settings, hours, args.note, printer=p)
                sys.stdout.buffer.write(p.output)
                sys.stdout.write("\n")
        else:
            voucher = issue_voucher(settings, hours, args.note)
    except (VoucherError, ValueError) as e:
        logger.error("Voucher FAILED: %s", e)
        return 1
    except (PrinterError, OSError) as e:
        logger.error("Printer FAILED: %s", e)
        return 1

    print(voucher["formatted_code"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
