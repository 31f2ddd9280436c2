"""Test configuration and fixtures for portprobe."""

import asyncio
import socket
import tempfile
from collections.abc import AsyncIterator, Awaitable, Callable, Generator
from contextlib import asynccontextmanager, suppress
from pathlib import Path

import pytest

from portprobe.config import SCAN_SETTINGS, FINGERPRINT_TIMEOUT_ENV
from portprobe.modules.models import PortState, ProbeResult
from portprobe.reference import get_port_info

Handler = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]


@asynccontextmanager
async def serve_tcp(handler: Handler) -> AsyncIterator[int]:
    """Run ``handler`` on an ephemeral localhost port for the duration of the block."""
    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield port
    finally:
        server.close()
        with suppress(TimeoutError):
            await asyncio.wait_for(server.wait_closed(), timeout=1.0)


async def _drain_until_eof(reader: asyncio.StreamReader) -> None:
    with suppress(ConnectionError):
        while await reader.read(1024):
            pass


def _silent_handler(closed: asyncio.Event | None = None) -> Handler:
    """Accept and say nothing; sets ``closed`` once the client hangs up."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await _drain_until_eof(reader)
        if closed is not None:
            closed.set()
        writer.close()

    return handle


def _banner_handler(payload: bytes) -> Handler:
    """Send ``payload`` right after accept, then wait for the client to leave."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        with suppress(ConnectionError):
            writer.write(payload)
            await writer.drain()
        await _drain_until_eof(reader)
        writer.close()

    return handle


async def _closing_handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
    writer.close()


def _http_handler(server_header: str | None = "nginx/1.24.0") -> Handler:
    """Answer one HTTP request; connections that never send one are dropped."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            await reader.readuntil(b"\r\n\r\n")
        except (asyncio.IncompleteReadError, ConnectionError):
            writer.close()
            return
        lines = ["HTTP/1.1 200 OK", "Content-Type: text/html", "Content-Length: 0"]
        if server_header:
            lines.append(f"Server: {server_header}")
        response = "\r\n".join(lines) + "\r\n\r\n"
        with suppress(ConnectionError):
            writer.write(response.encode())
            await writer.drain()
        writer.close()

    return handle


def _redis_handler(version: str = "7.2.0", require_auth: bool = False) -> Handler:
    """Minimal inline-command Redis: PING and INFO server."""
    body = f"# Server\r\nredis_version:{version}\r\nredis_mode:standalone\r\n".encode()

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            while line := await reader.readline():
                command = line.strip().upper()
                if require_auth:
                    writer.write(b"-NOAUTH Authentication required.\r\n")
                elif command == b"PING":
                    writer.write(b"+PONG\r\n")
                elif command.startswith(b"INFO"):
                    writer.write(b"$%d\r\n%s\r\n" % (len(body), body))
                else:
                    writer.write(b"-ERR unknown command\r\n")
                await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()

    return handle


@pytest.fixture
def tcp_server() -> Callable[[Handler], AsyncIterator[int]]:
    """Factory: ``async with tcp_server(handler) as port``."""
    return serve_tcp


@pytest.fixture
def closed_port() -> int:
    """A localhost port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def isolated_config(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> Path:
    """Point ~ at a temp dir and clear PORTPROBE_* variables."""
    monkeypatch.setattr(Path, "home", lambda: temp_dir)
    for env_key, _ in SCAN_SETTINGS.values():
        monkeypatch.delenv(env_key, raising=False)
    monkeypatch.delenv(FINGERPRINT_TIMEOUT_ENV, raising=False)
    return temp_dir


@pytest.fixture
def make_result() -> Callable[..., ProbeResult]:
    """Factory for ProbeResult values with port-table labels filled in."""

    def factory(port: int = 8080, state: PortState = PortState.OPEN, **fields) -> ProbeResult:
        return ProbeResult(port=port, state=state, info=get_port_info(port), **fields)

    return factory


@pytest.fixture
def silent_handler() -> Callable[..., Handler]:
    """Factory for a listener that accepts and never speaks."""
    return _silent_handler


@pytest.fixture
def banner_handler() -> Callable[[bytes], Handler]:
    """Factory for a listener that sends a fixed payload on accept."""
    return _banner_handler


@pytest.fixture
def closing_handler() -> Handler:
    """Listener that closes every connection right after accept."""
    return _closing_handler


@pytest.fixture
def http_handler() -> Callable[..., Handler]:
    """Factory for a one-request HTTP server with a configurable Server header."""
    return _http_handler


@pytest.fixture
def redis_handler() -> Callable[..., Handler]:
    """Factory for a minimal Redis speaking PING and INFO."""
    return _redis_handler
