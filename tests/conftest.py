from __future__ import annotations

import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from socketserver import ThreadingMixIn
from typing import Callable, Iterator, Union

import pytest

CORE = "http://schemas.ogf.org/occi/core#"
INFRA = "http://schemas.ogf.org/occi/infrastructure#"
COMPUTE_ACTIONS = "http://schemas.ogf.org/occi/infrastructure/compute/action#"
OS_TPL = "http://occi.example.org/occi/os_tpl#"

MODEL_DOCUMENT = "\n".join(
    [
        f'Category: entity; scheme="{CORE}"; class="kind"; title="Entity"; location="/entity/"; '
        'attributes="occi.core.id{immutable required} occi.core.title"',
        f'Category: resource; scheme="{CORE}"; class="kind"; title="Resource"; rel="{CORE}entity"; '
        'location="/resource/"; attributes="occi.core.summary"',
        f'Category: link; scheme="{CORE}"; class="kind"; title="Link"; rel="{CORE}entity"; '
        'location="/link/"; attributes="occi.core.source{required} occi.core.target{required}"',
        f'Category: compute; scheme="{INFRA}"; class="kind"; title="Compute Resource"; '
        f'rel="{CORE}resource"; location="/compute/"; '
        'attributes="occi.compute.cores occi.compute.memory occi.compute.state{immutable}"; '
        f'actions="{COMPUTE_ACTIONS}start {COMPUTE_ACTIONS}stop"',
        f'Category: storagelink; scheme="{INFRA}"; class="kind"; title="Storage Link"; '
        f'rel="{CORE}link"; location="/link/storagelink/"; attributes="occi.storagelink.deviceid"',
        f'Category: os_tpl; scheme="{INFRA}"; class="mixin"; title="OS Template"; location="/mixin/os_tpl/"',
        f'Category: debian7; scheme="{OS_TPL}"; class="mixin"; title="Debian 7"; '
        f'rel="{INFRA}os_tpl"; location="/mixin/os_tpl/debian7/"',
        f'Category: start; scheme="{COMPUTE_ACTIONS}"; class="action"; title="Start"',
        f'Category: stop; scheme="{COMPUTE_ACTIONS}"; class="action"; title="Stop"; '
        'attributes="method"',
        "",
    ]
)

TEXT_PLAIN_HEADERS = {"Content-Type": "text/plain; charset=utf-8"}


@dataclass
class Recorded:
    method: str
    path: str
    headers: dict[str, str]
    body: str


Reply = tuple[int, dict[str, str], str]
Route = Union[Reply, Callable[[Recorded], Reply]]


class MockServer(ThreadingMixIn, HTTPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), _Handler)
        self.routes: dict[tuple[str, str], Route] = {}
        self.received: list[Recorded] = []
        self.lock = threading.Lock()

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.server_port}"

    def route(
        self,
        method: str,
        path: str,
        status: int = 200,
        body: str = "",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.routes[(method, path)] = (status, dict(headers or TEXT_PLAIN_HEADERS), body)

    def handle_with(self, method: str, path: str, handler: Callable[[Recorded], Reply]) -> None:
        self.routes[(method, path)] = handler

    def hits(self, method: str, path: str | None = None) -> list[Recorded]:
        with self.lock:
            return [
                item
                for item in self.received
                if item.method == method and (path is None or item.path == path)
            ]

    def reply(self, recorded: Recorded) -> Reply:
        with self.lock:
            self.received.append(recorded)
            route = self.routes.get((recorded.method, recorded.path))
        if route is None:
            return 404, {"Content-Type": "text/plain"}, "not found"
        if callable(route):
            return route(recorded)
        return route


class _Handler(BaseHTTPRequestHandler):
    server_version = "MockOCCI/1.0"
    protocol_version = "HTTP/1.1"
    server: MockServer

    def do_HEAD(self) -> None:
        self._dispatch("HEAD")

    def do_GET(self) -> None:
        self._dispatch("GET")

    def do_POST(self) -> None:
        self._dispatch("POST")

    def do_DELETE(self) -> None:
        self._dispatch("DELETE")

    def _dispatch(self, method: str) -> None:
        length = int(self.headers.get("Content-Length", "0"))
        body = self.rfile.read(length).decode("utf-8") if length else ""
        recorded = Recorded(method, self.path, dict(self.headers.items()), body)
        status, headers, text = self.server.reply(recorded)
        payload = text.encode("utf-8")
        self.send_response(status)
        for name, value in headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if method != "HEAD":
            self.wfile.write(payload)

    def log_message(self, format: str, *args: object) -> None:
        return


def _start() -> MockServer:
    server = MockServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server


def _stop(server: MockServer) -> None:
    server.shutdown()
    server.server_close()


@pytest.fixture
def model_document() -> str:
    return MODEL_DOCUMENT


@pytest.fixture
def occi_server() -> Iterator[MockServer]:
    """OCCI endpoint that accepts the probe and serves the model document."""

    server = _start()
    server.route("HEAD", "/-/")
    server.route("GET", "/-/", body=MODEL_DOCUMENT)
    try:
        yield server
    finally:
        _stop(server)


@pytest.fixture
def keystone_server() -> Iterator[MockServer]:
    server = _start()
    try:
        yield server
    finally:
        _stop(server)
