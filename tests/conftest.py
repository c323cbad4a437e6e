"""Shared fixtures for the check_graphite tests."""
import threading
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from check_graphite.config import CheckConfig
from check_graphite.series import DataPoint


def make_point(path, value, ts="2016-06-17 10:00:00"):
    """Build a DataPoint from the Graphite timestamp format."""
    when = datetime.strptime(ts, "%Y-%m-%d %H:%M:%S").replace(tzinfo=timezone.utc)
    return DataPoint(path, when, float(value))


def make_config(**kwargs):
    """CheckConfig with a metric path and test-friendly defaults."""
    values = {"metric_path": "a.b.c", "warning": 30.0, "critical": 50.0}
    values.update(kwargs)
    return CheckConfig(**values)


class FakeResponse:
    """Minimal stand-in for a streamed requests.Response."""

    def __init__(self, body="", status_code=200, encoding="utf-8", headers=None):
        self.body = body
        self.headers = headers or {}
        self.status_code = status_code
        self.encoding = encoding
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def iter_lines(self, decode_unicode=False):
        for line in self.body.splitlines():
            yield line

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakeSession:
    """Records GET calls and returns a canned response or raises."""

    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response

    def close(self):
        self.closed = True


@pytest.fixture
def config():
    return make_config()


class GraphiteHandler(BaseHTTPRequestHandler):
    """Serves the server's canned body, or hangs without answering when stalled."""

    def do_GET(self):
        self.server.paths.append(self.path)
        if self.server.stall:
            self.server.release.wait(10)
            return
        self.send_response(200)
        self.send_header("Content-Type", self.server.content_type)
        self.send_header("Content-Length", str(len(self.server.body)))
        self.end_headers()
        self.wfile.write(self.server.body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def graphite_server(monkeypatch):
    """A real HTTP server on localhost standing in for Graphite."""
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")
    server = ThreadingHTTPServer(("127.0.0.1", 0), GraphiteHandler)
    server.body = b""
    server.content_type = "text/csv"
    server.stall = False
    server.release = threading.Event()
    server.paths = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.release.set()
    server.shutdown()
    server.server_close()
