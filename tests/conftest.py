"""Shared fixtures: an in-process fake WebDriver server and process helpers."""

import json
import os
import socket
import stat
import subprocess
import sys
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class FakeWebDriver:
    """
    Scriptable WebDriver endpoint.

    Routes map (method, path) to either a (status, payload) tuple or a
    callable taking the decoded JSON body and returning one. A str payload
    is sent as text/plain; anything else is JSON-encoded.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.port = None

    def route(self, method, path, response):
        self.routes[(method, path)] = response

    def calls(self, method, path):
        return [r for r in self.requests if r["method"] == method and r["path"] == path]


class _Handler(BaseHTTPRequestHandler):
    def _dispatch(self):
        fake = self.server.fake
        length = int(self.headers.get("Content-Length") or 0)
        raw = self.rfile.read(length) if length else b""
        body = json.loads(raw) if raw else None
        fake.requests.append(
            {
                "method": self.command,
                "path": self.path,
                "body": body,
                "headers": {k.lower(): v for k, v in self.headers.items()},
            }
        )

        responder = fake.routes.get((self.command, self.path))
        if responder is None:
            status, payload = 404, {
                "value": {"error": "unknown command", "message": f"No route for {self.path}"}
            }
        elif callable(responder):
            status, payload = responder(body)
        else:
            status, payload = responder

        if isinstance(payload, str):
            data = payload.encode("utf-8")
            content_type = "text/plain"
        else:
            data = json.dumps(payload).encode("utf-8")
            content_type = "application/json"

        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    do_GET = _dispatch
    do_POST = _dispatch
    do_DELETE = _dispatch

    def log_message(self, format, *args):
        pass


@pytest.fixture
def fake_driver():
    """Run a FakeWebDriver on an ephemeral 127.0.0.1 port."""
    fake = FakeWebDriver()
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    server.fake = fake
    fake.port = server.server_address[1]

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield fake
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def unused_port():
    """A port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def dead_pid():
    """Pid of a process that has already exited and been reaped."""
    process = subprocess.Popen([sys.executable, "-c", "pass"])
    process.wait()
    return process.pid


@pytest.fixture
def sleeping_driver(tmp_path):
    """Executable that ignores its arguments and never opens a port."""
    if sys.platform == "win32":
        pytest.skip("POSIX shell script driver")
    script = tmp_path / "fake-safaridriver"
    script.write_text("#!/bin/sh\nexec sleep 30\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(script)


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point HOME and the state dir at tmp_path so no real config is read."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in list(os.environ):
        if var.startswith("SAFARI_CLI_"):
            monkeypatch.delenv(var)
    state_dir = tmp_path / "state"
    monkeypatch.setenv("SAFARI_CLI_STATE_DIR", str(state_dir))
    return state_dir
