"""
Shared fixtures: a local HTTP server and a laid-out Session.
"""

import gzip
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from reqterm.config import Config
from reqterm.session import Session

JSON_DOCUMENT = {"name": "reqterm", "items": [1, 2, 3], "nested": {"key": "value"}}
HTML_DOCUMENT = b"<html><body><p class='x'>hi</p><p>no</p></body></html>"
BINARY_DOCUMENT = bytes(range(32))


class _Handler(BaseHTTPRequestHandler):
    def log_message(self, format, *args):
        pass

    def _send(self, code, body, content_type, extra=None):
        self.send_response(code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        for name, value in (extra or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def _echo(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        payload = {
            "method": self.command,
            "path": self.path,
            "headers": dict(self.headers.items()),
            "body": body.decode("utf-8", errors="replace"),
        }
        self._send(200, json.dumps(payload).encode(), "application/json")

    def do_GET(self):
        path = self.path.split("?", 1)[0]
        if path == "/json":
            self._send(200, json.dumps(JSON_DOCUMENT).encode(), "application/json; charset=utf-8")
        elif path == "/gzip":
            self._send(200, gzip.compress(b"compressed hello"), "text/plain", {"Content-Encoding": "gzip"})
        elif path == "/badgzip":
            self._send(200, b"this is not gzip", "text/plain", {"Content-Encoding": "gzip"})
        elif path == "/html":
            self._send(200, HTML_DOCUMENT, "text/html; charset=utf-8")
        elif path == "/bin":
            self._send(200, BINARY_DOCUMENT, "image/png")
        elif path == "/redirect":
            self._send(302, b"", "text/plain", {"Location": "/json"})
        elif path == "/missing":
            self._send(404, b"not found", "text/plain")
        else:
            self._echo()

    do_POST = _echo
    do_PUT = _echo
    do_PATCH = _echo
    do_DELETE = _echo


@pytest.fixture(scope="session")
def http_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def session(config):
    quits = []
    session = Session(config, on_quit=lambda: quits.append(True))
    session.quits = quits
    session.resize(120, 40)
    yield session
    session.close()


@pytest.fixture
def finish(session):
    """Wait for a submitted request and run its posted completion."""

    def _finish(future, timeout=10):
        future.result(timeout=timeout)
        session.drain()

    return _finish
