from __future__ import annotations

import json
import os
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Iterator, List

import pytest

from hrobot import HttpxTransport, Robot

RDNS = {"rdns": {"ip": "1.2.3.4", "ptr": "host.example.com"}}
NOT_FOUND = {"error": {"status": 404, "code": "RDNS_NOT_FOUND", "message": "The IP address has no reverse DNS entry"}}
RATE_LIMITED = {
    "error": {
        "status": 403,
        "code": "RATE_LIMIT_EXCEEDED",
        "max_request": 200,
        "interval": 3600,
        "message": "Rate limit exceeded",
    }
}


@pytest.fixture(scope="session")
def live_robot() -> Robot:
    if not os.environ.get("HROBOT_USERNAME") or not os.environ.get("HROBOT_PASSWORD"):
        pytest.skip("HROBOT_USERNAME and HROBOT_PASSWORD are not set")
    return Robot.from_env()


@pytest.fixture
def received() -> List[Dict[str, Any]]:
    return []


@pytest.fixture
def local_robot_server(received: List[Dict[str, Any]]) -> Iterator[str]:
    class Handler(BaseHTTPRequestHandler):
        def _reply(self, status: int, payload: Any = None) -> None:
            body = b"" if payload is None else json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def _record(self) -> None:
            length = int(self.headers.get("Content-Length") or 0)
            received.append(
                {
                    "method": self.command,
                    "path": self.path,
                    "headers": self.headers,
                    "body": self.rfile.read(length).decode("utf-8"),
                }
            )

        def do_GET(self) -> None:  # noqa: N802
            self._record()
            if self.path == "/rdns/1.2.3.4":
                self._reply(200, RDNS)
                return
            if self.path == "/rdns/5.6.7.8":
                self._reply(404, NOT_FOUND)
                return
            if self.path == "/rdns":
                self._reply(200, [RDNS, {"rdns": {"ip": "2a01:4f8::1", "ptr": "v6.example.com"}}])
                return
            if self.path == "/server":
                self._reply(403, RATE_LIMITED)
                return
            if self.path == "/slow":
                time.sleep(0.2)
                self._reply(200, RDNS)
                return
            self.send_response(502)
            self.end_headers()
            self.wfile.write(b"<html>bad gateway</html>")

        def do_POST(self) -> None:  # noqa: N802
            self._record()
            self._reply(200, {"rdns": {"ip": "1.2.3.4", "ptr": received[-1]["body"].split("=", 1)[1]}})

        def do_DELETE(self) -> None:  # noqa: N802
            self._record()
            self._reply(200)

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A003
            return

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = server.server_address
        yield f"http://{host}:{port}"
    finally:
        server.shutdown()
        thread.join(timeout=1)


@pytest.fixture
def local_robot(local_robot_server: str) -> Robot:
    return Robot.from_login("#ws+user", "secret", transport=HttpxTransport(timeout=5.0), base_url=local_robot_server)
