# unifi_client.py
"""
Session client for the UniFi controller management API
Features:
 - Cookie session login / logout, with caller-owned cookies left alone
 - Generic execute() over the {"meta": {...}, "data": [...]} envelope
 - One transparent re-login and replay when the controller says the session expired
 - Thin wrappers for the voucher and guest endpoints
"""

import enum
import logging
from urllib.parse import urlsplit

import requests

logger = logging.getLogger(__name__)

LOGIN_REQUIRED_MSG = "api.err.LoginRequired"
SESSION_COOKIE = "unifises"
CONNECT_TIMEOUT = 10  # seconds


class VoucherError(Exception):
    """Base class for every failure this project reports."""


class ConfigError(VoucherError):
    pass


class TransportError(VoucherError):
    pass


class AuthError(VoucherError):
    def __init__(self, message, result=None, status_code=None):
        super().__init__(message)
        self.result = result
        self.status_code = status_code


class NotAuthenticated(AuthError):
    pass


class ApiError(VoucherError):
    def __init__(self, message=""):
        super().__init__(message)
        self.message = message


class EmptyResult(VoucherError):
    pass


class LoginResult(enum.Enum):
    OK = "ok"
    FAILED = "failed"
    # controller answered HTTP 400: credentials rejected
    REJECTED = "rejected"


def parse_envelope(body):
    """Return the data payload of a controller reply, or raise ApiError."""
    meta = body.get("meta") if isinstance(body, dict) else None
    if not isinstance(meta, dict):
        raise ApiError("")
    if meta.get("rc") == "ok":
        return body.get("data", [])
    raise ApiError(meta.get("msg") or "")


class Client:
    def __init__(self, user, password, baseurl="https://127.0.0.1:8443", site="default",
                 version="5.4.16", ssl_verify=False, cookie=None, timeout=CONNECT_TIMEOUT):
        self.user = user.strip()
        self.password = password.strip()
        self.baseurl = baseurl.strip().rstrip("/")
        self.version = version
        self.ssl_verify = ssl_verify
        self.timeout = timeout

        self._site = None
        self._cookie = ""
        self._logged_in = False
        self.last_results_raw = None
        self.last_error_message = None

        self._check_base_url()
        self.set_site(site or "default")

        # a cookie handed in by the caller stays the caller's: no login, no logout
        self._owns_session = not cookie
        if cookie:
            self._cookie = cookie
            self._logged_in = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # -------- session ----------
    @property
    def site(self):
        return self._site

    def set_site(self, site):
        self._site = site
        if len(site) != 8 and site != "default":
            logger.warning("site name %r is probably incorrect", site)
        return self._site

    @property
    def cookie(self):
        return self._cookie if self._logged_in else None

    @property
    def is_logged_in(self):
        return self._logged_in

    @property
    def owns_session(self):
        return self._owns_session

    def login(self):
        if self._cookie and not self._owns_session:
            self._logged_in = True
            return LoginResult.OK

        url = self.baseurl + "/api/login"
        headers = {"Referer": self.baseurl + "/login"}
        payload = {"username": self.user, "password": self.password}
        logger.debug("logging in to %s as %s", self.baseurl, self.user)
        r = self._send("POST", url, payload, headers)

        cookies = [f"{name}={value}" for name, value in r.cookies.items()]
        self._cookie = ";".join(cookies)
        if r.content and r.content.strip():
            if 200 <= r.status_code < 400 and SESSION_COOKIE in self._cookie:
                self._logged_in = True
                logger.info("logged in to controller %s", self.baseurl)
                return LoginResult.OK
            if r.status_code == 400:
                logger.error("controller returned HTTP 400, login rejected")
                self._cookie = ""
                self._logged_in = False
                return LoginResult.REJECTED

        logger.error("login to %s failed (HTTP %s)", self.baseurl, r.status_code)
        self._cookie = ""
        self._logged_in = False
        return LoginResult.FAILED

    def authenticate(self):
        result = self.login()
        if result is LoginResult.REJECTED:
            raise AuthError("controller rejected the credentials", result, 400)
        if result is not LoginResult.OK:
            raise AuthError("login to controller failed", result)
        return result

    def logout(self):
        if not self._logged_in or not self._owns_session:
            return False
        try:
            self._send("GET", self.baseurl + "/logout", None, self._cookie_header())
        finally:
            self._logged_in = False
            self._cookie = ""
        logger.info("logged out from controller %s", self.baseurl)
        return True

    def close(self):
        try:
            self.logout()
        except TransportError as e:
            logger.warning("logout failed: %s", e)

    # -------- requests ----------
    def execute(self, path, payload=None, method=None):
        """Run an authenticated request against {baseurl}{path} and return its data payload.

        A 401 carrying api.err.LoginRequired triggers exactly one re-login and one
        replay of the same request; anything after that is reported to the caller.
        """
        if not self._logged_in:
            raise NotAuthenticated("no successful login for this session")
        if method is None:
            method = "POST" if payload is not None else "GET"
        url = self.baseurl + path

        r = self._send(method, url, payload, self._cookie_header())
        if self._login_required(r):
            logger.info("controller session expired, logging in again")
            self._cookie = ""
            self._logged_in = False
            result = self.login()
            if result is not LoginResult.OK:
                raise AuthError("session expired and re-login failed", result, r.status_code)
            r = self._send(method, url, payload, self._cookie_header())
            if self._login_required(r):
                raise AuthError("controller refused the request after re-login",
                                result, r.status_code)

        return self._process(r)

    def _send(self, method, url, payload, headers):
        try:
            return requests.request(method, url, json=payload, headers=headers,
                                    timeout=self.timeout, verify=self.ssl_verify)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    def _cookie_header(self):
        return {"Cookie": self._cookie} if self._cookie else {}

    def _login_required(self, r):
        if r.status_code != 401:
            return False
        try:
            body = r.json()
        except ValueError:
            return False
        meta = body.get("meta") if isinstance(body, dict) else None
        return isinstance(meta, dict) and meta.get("msg") == LOGIN_REQUIRED_MSG

    def _process(self, r):
        try:
            body = r.json()
        except ValueError:
            self.last_results_raw = r.text
            self.last_error_message = f"invalid JSON response (HTTP {r.status_code})"
            raise ApiError(self.last_error_message)
        self.last_results_raw = body
        try:
            data = parse_envelope(body)
        except ApiError as e:
            self.last_error_message = e.message
            logger.debug("controller error: %s", e.message)
            raise
        self.last_error_message = None
        return data

    def _site_path(self, suffix):
        return f"/api/s/{self._site}/{suffix}"

    # -------- vouchers ----------
    def create_voucher(self, minutes, count=1, quota=0, note=None, up=None, down=None, megabytes=None):
        """Create voucher(s) valid for `minutes` after activation; returns their create_time."""
        payload = {"cmd": "create-voucher", "expire": minutes, "n": count, "quota": quota}
        if note is not None:
            payload["note"] = note.strip()
        if up is not None:
            payload["up"] = up
        if down is not None:
            payload["down"] = down
        if megabytes is not None:
            payload["bytes"] = megabytes
        data = self.execute(self._site_path("cmd/hotspot"), payload)
        if not data:
            raise EmptyResult("controller created no voucher")
        create_time = data[0].get("create_time") if isinstance(data[0], dict) else None
        if create_time is None:
            raise ApiError("create-voucher reply has no create_time")
        return create_time

    def stat_voucher(self, create_time=None):
        payload = {} if create_time is None else {"create_time": create_time}
        return self.execute(self._site_path("stat/voucher"), payload)

    def revoke_voucher(self, voucher_id):
        self.execute(self._site_path("cmd/hotspot"), {"_id": voucher_id, "cmd": "delete-voucher"})
        return True

    # -------- guests ----------
    def list_guests(self, within=8760):
        return self.execute(self._site_path("stat/guest"), {"within": within})

    def authorize_guest(self, mac, minutes, up=None, down=None, megabytes=None, ap_mac=None):
        payload = {"cmd": "authorize-guest", "mac": mac.lower(), "minutes": minutes}
        if up is not None:
            payload["up"] = up
        if down is not None:
            payload["down"] = down
        if megabytes is not None:
            payload["bytes"] = megabytes
        if ap_mac is not None:
            payload["ap_mac"] = ap_mac
        self.execute(self._site_path("cmd/stamgr"), payload)
        return True

    def unauthorize_guest(self, mac):
        self.execute(self._site_path("cmd/stamgr"), {"cmd": "unauthorize-guest", "mac": mac.lower()})
        return True

    def extend_guest_validity(self, guest_id):
        self.execute(self._site_path("cmd/hotspot"), {"_id": guest_id, "cmd": "extend"})
        return True

    # -------- hotspot operators & payments ----------
    def list_hotspotop(self):
        return self.execute(self._site_path("rest/hotspotop"))

    def create_hotspotop(self, name, x_password, note=None):
        payload = {"name": name, "x_password": x_password}
        if note is not None:
            payload["note"] = note.strip()
        self.execute(self._site_path("rest/hotspotop"), payload)
        return True

    def stat_payment(self, within=None):
        suffix = "stat/payment" if within is None else f"stat/payment?within={within}"
        return self.execute(self._site_path(suffix))

    # -------- controller ----------
    def stat_sysinfo(self):
        return self.execute(self._site_path("stat/sysinfo"))

    def list_self(self):
        return self.execute(self._site_path("self"))

    def list_sites(self):
        return self.execute("/api/self/sites")

    def _check_base_url(self):
        parts = urlsplit(self.baseurl)
        try:
            port = parts.port
        except ValueError:
            port = None
        if not parts.scheme or not parts.hostname or not port:
            raise ConfigError(f"incomplete controller URL {self.baseurl!r}: scheme, host and port are required")
