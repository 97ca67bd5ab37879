#!/usr/bin/env python3
# provision_client.py - first-run setup: check the controller login and save .env
import getpass
import logging
import sys

from dotenv import set_key

from unifi_client import Client, VoucherError
from voucher_config import setup_logging

ENV_FILE = ".env"

logger = logging.getLogger(__name__)


def ask(prompt, default=""):
    suffix = f" [{default}]" if default else ""
    return input(f"{prompt}{suffix}: ").strip() or default


def collect(ask=ask, ask_secret=getpass.getpass):
    values = {
        "UNIFI_BASEURL": ask("Controller URL (e.g. https://192.168.1.2:8443)", "https://127.0.0.1:8443"),
        "UNIFI_SITE": ask("Site", "default"),
        "UNIFI_USERNAME": ask("Username", "admin"),
    }
    values["UNIFI_PASSWORD"] = ask_secret("Password: ")
    values["PRINTER_HOST"] = ask("Printer host (or 'dummy')", "127.0.0.1")
    values["PRINTER_PORT"] = ask("Printer port", "9100")
    values["PRINT_WIFI_NAME"] = ask("WiFi name on the ticket", "My WIFI SSID")
    values["PRINT_WIFI_TITLE"] = ask("Ticket title", "Internet - Free as beer!")
    return values


def check_login(values):
    client = Client(values["UNIFI_USERNAME"], values["UNIFI_PASSWORD"],
                    values["UNIFI_BASEURL"], values["UNIFI_SITE"])
    with client:
        client.authenticate()


def save(values, path=None):
    path = path or ENV_FILE
    for key, value in values.items():
        set_key(path, key, value)
    logger.info("Saved %s", path)


def main():
    setup_logging()
    values = collect()
    try:
        check_login(values)
    except VoucherError as e:
        logger.error("Login: FAILED! %s", e)
        return 1
    logger.info("Login: OK!")
    save(values)
    return 0


if __name__ == "__main__":
    sys.exit(main())
