"""
Pytest Configuration and Shared Fixtures

Provides loopback servers for the three protocols and helpers for draining
the callback dispatcher.
"""

import logging
import queue
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Dict, Generator, List

import pytest

from nethub.client.dispatch import CallbackDispatcher
from nethub.shared.config import ChatServiceConfig, LinkCheckConfig, ProbeServiceConfig


class LineServer:
    """Minimal newline-delimited TCP server that records what clients send."""

    def __init__(self, host: str = "127.0.0.1") -> None:
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind((host, 0))
        self._listener.listen(5)
        self._listener.settimeout(0.1)
        self.host, self.port = self._listener.getsockname()
        self.received: "queue.Queue[str]" = queue.Queue()
        self.clients: List[socket.socket] = []
        self._client_added = threading.Condition()
        self._running = threading.Event()
        self._running.set()
        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()

    def _accept_loop(self) -> None:
        while self._running.is_set():
            try:
                client, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            with self._client_added:
                self.clients.append(client)
                self._client_added.notify_all()
            threading.Thread(target=self._read_loop, args=(client,), daemon=True).start()

    def _read_loop(self, client: socket.socket) -> None:
        reader = client.makefile('r', encoding='utf-8', newline='')
        try:
            for line in reader:
                self.received.put(line.rstrip('\r\n'))
        except (OSError, ValueError):
            pass

    def wait_for_client(self, count: int = 1, timeout: float = 2.0) -> socket.socket:
        """Block until at least ``count`` clients have connected."""
        with self._client_added:
            if not self._client_added.wait_for(lambda: len(self.clients) >= count, timeout):
                raise AssertionError(f"expected {count} client(s), saw {len(self.clients)}")
            return self.clients[count - 1]

    def next_line(self, timeout: float = 2.0) -> str:
        return self.received.get(timeout=timeout)

    def send_raw(self, data: bytes, index: int = -1) -> None:
        self.clients[index].sendall(data)

    def send_line(self, text: str, index: int = -1) -> None:
        self.send_raw((text + "\n").encode('utf-8'), index)

    def close_client(self, index: int = -1) -> None:
        client = self.clients[index]
        try:
            client.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        client.close()

    def stop(self) -> None:
        self._running.clear()
        self._listener.close()
        for client in self.clients:
            try:
                client.close()
            except OSError:
                pass
        self._thread.join(timeout=1.0)


class HealthServer:
    """UDP responder mimicking the health server's PING/STATUS/INFO replies."""

    REPLIES = {
        "PING": "PONG",
        "STATUS": "OK",
        "INFO": "NetHub test health server",
    }

    def __init__(self, host: str = "127.0.0.1") -> None:
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.bind((host, 0))
        self._sock.settimeout(0.1)
        self.host, self.port = self._sock.getsockname()
        self.requests: "queue.Queue[str]" = queue.Queue()
        # Commands that get no reply at all
        self.silent: set = set()
        # Overrides the reply payload for a command
        self.raw_replies: Dict[str, bytes] = {}
        self._running = threading.Event()
        self._running.set()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        while self._running.is_set():
            try:
                data, address = self._sock.recvfrom(4096)
            except socket.timeout:
                continue
            except OSError:
                break

            command = data.decode('utf-8', errors='replace')
            self.requests.put(command)
            if command in self.silent:
                continue

            reply = self.raw_replies.get(command)
            if reply is None:
                reply = self.REPLIES.get(command, f"UNKNOWN COMMAND: {command}").encode('utf-8')
            try:
                self._sock.sendto(reply, address)
            except OSError:
                break

    def stop(self) -> None:
        self._running.clear()
        self._thread.join(timeout=1.0)
        self._sock.close()


class _HeadHandler(BaseHTTPRequestHandler):
    """
    HEAD-only handler.

    ``/status/<code>`` answers with that code; ``/redirect`` sends a 302 to
    ``/status/200``; ``/loop`` redirects to itself.
    """

    def do_HEAD(self) -> None:
        self.server.user_agents.append(self.headers.get('User-Agent'))
        self.server.methods.append(self.command)

        if self.path.startswith('/status/'):
            self.send_response(int(self.path.rsplit('/', 1)[1]))
            self.send_header('Content-Length', '0')
            self.end_headers()
        elif self.path == '/redirect':
            self.send_response(302)
            self.send_header('Location', '/status/200')
            self.send_header('Content-Length', '0')
            self.end_headers()
        elif self.path == '/loop':
            self.send_response(302)
            self.send_header('Location', '/loop')
            self.send_header('Content-Length', '0')
            self.end_headers()
        else:
            self.send_response(404)
            self.send_header('Content-Length', '0')
            self.end_headers()

    def log_message(self, format, *args) -> None:
        pass


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Restore root logger handlers and level after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def dispatcher() -> Generator[CallbackDispatcher, None, None]:
    """Provide a dispatcher owned by the test thread."""
    d = CallbackDispatcher()
    yield d
    d.shutdown()


@pytest.fixture
def line_server() -> Generator[LineServer, None, None]:
    """Provide a loopback chat server."""
    server = LineServer()
    yield server
    server.stop()


@pytest.fixture
def chat_config(line_server: LineServer) -> ChatServiceConfig:
    return ChatServiceConfig(host=line_server.host, port=line_server.port, connect_timeout=1.0)


@pytest.fixture
def health_server() -> Generator[HealthServer, None, None]:
    """Provide a loopback UDP health server."""
    server = HealthServer()
    yield server
    server.stop()


@pytest.fixture
def probe_config(health_server: HealthServer) -> ProbeServiceConfig:
    return ProbeServiceConfig(host=health_server.host, port=health_server.port, timeout=1.0)


@pytest.fixture
def http_server() -> Generator[ThreadingHTTPServer, None, None]:
    """Provide a loopback HTTP server answering HEAD requests."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _HeadHandler)
    server.daemon_threads = True
    server.user_agents = []
    server.methods = []
    thread = threading.Thread(target=server.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(timeout=1.0)


@pytest.fixture
def http_base_url(http_server: ThreadingHTTPServer) -> str:
    host, port = http_server.server_address[:2]
    return f"http://{host}:{port}"


@pytest.fixture
def link_config() -> LinkCheckConfig:
    return LinkCheckConfig(connect_timeout=2.0, read_timeout=2.0)


def drain_until(
    dispatcher: CallbackDispatcher,
    predicate: Callable[[], bool],
    timeout: float = 2.0
) -> bool:
    """Pump ``dispatcher`` until ``predicate`` holds or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        dispatcher.process_pending(timeout=0.05)
        if predicate():
            return True
    dispatcher.process_pending()
    return predicate()


def unused_tcp_port() -> int:
    """Return a loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def closed_port() -> int:
    return unused_tcp_port()


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` without touching any dispatcher."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
