import json
from collections import namedtuple

import pytest

import unifi_client
from voucher_config import Settings

Call = namedtuple("Call", "method url json headers")

BASEURL = "https://unifi.local:8443"


class FakeResponse:
    def __init__(self, status_code=200, body=None, cookies=None, text=None):
        self.status_code = status_code
        self.cookies = dict(cookies or {})
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text
        self.content = text.encode("utf-8")

    def json(self):
        return json.loads(self.text)


class FakeController:
    """Stands in for requests.request and replays queued responses in order."""

    def __init__(self):
        self.calls = []
        self.responses = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def __call__(self, method, url, json=None, headers=None, timeout=None, verify=None):
        self.calls.append(Call(method, url, json, dict(headers or {})))
        if not self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r

    def paths(self):
        return [c.url[len(BASEURL):] for c in self.calls]


def ok(data=None):
    return FakeResponse(200, {"meta": {"rc": "ok"}, "data": [] if data is None else data})


def api_error(msg, status_code=400):
    return FakeResponse(status_code, {"meta": {"rc": "error", "msg": msg}, "data": []})


def login_ok(token="abc"):
    return FakeResponse(200, {"meta": {"rc": "ok"}, "data": []},
                        cookies={"unifises": token, "csrf_token": "x"})


def login_required():
    return api_error("api.err.LoginRequired", 401)


@pytest.fixture
def controller(monkeypatch):
    fake = FakeController()
    monkeypatch.setattr(unifi_client.requests, "request", fake)
    return fake


@pytest.fixture
def client():
    return unifi_client.Client("admin", "secret", BASEURL, "default")


@pytest.fixture
def settings():
    return Settings(
        unifi_baseurl=BASEURL,
        unifi_password="secret",
        voucher_note="test note",
        printer_host="printer.local",
        logo_file="",
    )


class RecordingPrinter:
    """Records the ESC/POS calls made on it instead of writing bytes."""

    def __init__(self, *args, **kwargs):
        self.calls = []
        self.opened = 0
        self.closed = 0

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
        return record

    def open(self):
        self.opened += 1

    def close(self):
        self.closed += 1

    def texts(self):
        return [args[0] for name, args, _ in self.calls if name == "text"]
