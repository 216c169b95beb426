"""Pytest fixtures for the service health test suite."""

import json
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from service_health.config import get_settings


class _StubHandler(BaseHTTPRequestHandler):
    """Canned health endpoints."""

    def _send(self, status: int, body: bytes, content_type: str = "application/json"):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):
        try:
            if self.path == "/health":
                payload = {"status": "ok", "services": {"db": "up"}, "version": "1.4.2"}
                self._send(200, json.dumps(payload).encode())
            elif self.path == "/text":
                self._send(200, b"OK", "text/plain")
            elif self.path == "/broken":
                self._send(200, b"{not json", "application/json")
            elif self.path == "/unavailable":
                self._send(503, b'{"status": "degraded"}')
            elif self.path == "/slow":
                time.sleep(2.0)
                self._send(200, b"late", "text/plain")
            elif self.path == "/redirect":
                self.send_response(302)
                self.send_header("Location", "/text")
                self.send_header("Content-Length", "0")
                self.end_headers()
            else:
                self._send(404, b"not found", "text/plain")
        except OSError:
            # Client gave up (timeout tests)
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def http_server():
    """Local HTTP server with stub health endpoints; yields its base URL."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _StubHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def closed_port_url():
    """URL of a local port with nothing listening."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/health"


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload settings for every test so env changes take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _trickle(conn: socket.socket, head: bytes, payload: bytes, stop: threading.Event):
    try:
        conn.recv(65536)
        conn.sendall(head)
        for i in range(len(payload)):
            if stop.is_set():
                break
            conn.sendall(payload[i:i + 1])
            time.sleep(0.1)
    except OSError:
        pass
    finally:
        conn.close()


@pytest.fixture
def trickle_server():
    """Raw socket server that sends a canned response one byte every 0.1 s.

    Yields a function taking the trickled bytes, plus an optional prefix
    sent at once, and returning a URL.
    """
    stop = threading.Event()
    listeners = []

    def start(payload: bytes, head: bytes = b"") -> str:
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.bind(("127.0.0.1", 0))
        listener.listen(1)
        listeners.append(listener)

        def serve():
            try:
                conn, _ = listener.accept()
            except OSError:
                return
            _trickle(conn, head, payload, stop)

        threading.Thread(target=serve, daemon=True).start()
        return f"http://127.0.0.1:{listener.getsockname()[1]}/health"

    yield start
    stop.set()
    for listener in listeners:
        listener.close()
