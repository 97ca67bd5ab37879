# voucher_config.py - settings from the environment (and .env via python-dotenv)
import logging
import os
from dataclasses import dataclass
from datetime import date

from dotenv import load_dotenv

from unifi_client import ConfigError

LOG_FORMAT = "[%(asctime)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Controller
    unifi_baseurl: str = "https://127.0.0.1:8443"
    unifi_site: str = "default"
    unifi_username: str = "admin"
    unifi_password: str = ""
    unifi_version: str = "5.4.16"
    unifi_ssl_verify: bool = False

    # Voucher
    voucher_hours: int = 24
    voucher_note: str = ""
    voucher_presets: tuple = (24, 48, 168)

    # Printer
    printer_host: str = "127.0.0.1"
    printer_port: int = 9100
    printer_timeout: int = 10

    # Ticket texts
    wifi_name: str = "My WIFI SSID"
    wifi_title: str = "Internet - Free as beer!"
    logo_file: str = "resources/logo.png"
    title_voucher: str = "Voucher"
    title_duration: str = "Duration"
    text_day: str = "Day"
    text_days: str = "Days"
    text_hour: str = "Hour"
    text_hours: str = "Hours"

    @classmethod
    def from_env(cls, env_file=None, environ=None):
        """Build settings from `environ` (default os.environ) after loading `env_file`."""
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        def get(name, default):
            value = environ.get(name)
            return default if value is None or value.strip() == "" else value.strip()

        password = environ.get("UNIFI_PASSWORD", "")
        if not password:
            raise ConfigError("UNIFI_PASSWORD is not set")

        return cls(
            unifi_baseurl=get("UNIFI_BASEURL", cls.unifi_baseurl),
            unifi_site=get("UNIFI_SITE", cls.unifi_site),
            unifi_username=get("UNIFI_USERNAME", cls.unifi_username),
            unifi_password=password,
            unifi_version=get("UNIFI_VERSION", cls.unifi_version),
            unifi_ssl_verify=get("UNIFI_SSL_VERIFY", "false").lower() in TRUE_VALUES,
            voucher_hours=_int(get("VOUCHER_HOURS", "24"), "VOUCHER_HOURS"),
            voucher_note=get("VOUCHER_NOTE", "unifi-voucher: " + date.today().strftime("%Y.%m.%d")),
            voucher_presets=_presets(get("VOUCHER_PRESETS", "24,48,168")),
            printer_host=get("PRINTER_HOST", cls.printer_host),
            printer_port=_int(get("PRINTER_PORT", "9100"), "PRINTER_PORT"),
            printer_timeout=_int(get("PRINTER_TIMEOUT", "10"), "PRINTER_TIMEOUT"),
            wifi_name=get("PRINT_WIFI_NAME", cls.wifi_name),
            wifi_title=get("PRINT_WIFI_TITLE", cls.wifi_title),
            logo_file=get("PRINT_LOGO_FILE", cls.logo_file),
            title_voucher=get("PRINT_TITLE_VOUCHER", cls.title_voucher),
            title_duration=get("PRINT_TITLE_DURATION", cls.title_duration),
            text_day=get("PRINT_TEXT_DAY", cls.text_day),
            text_days=get("PRINT_TEXT_DAYS", cls.text_days),
            text_hour=get("PRINT_TEXT_HOUR", cls.text_hour),
            text_hours=get("PRINT_TEXT_HOURS", cls.text_hours),
        )


def _int(value, name):
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _presets(value):
    return tuple(_int(v.strip(), "VOUCHER_PRESETS") for v in value.split(",") if v.strip())


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
