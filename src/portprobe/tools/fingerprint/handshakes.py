"""Protocol exchanges used to identify services that stay silent on connect."""

import asyncio
import logging

from portprobe import __version__
from portprobe.modules.models import UNIDENTIFIED, ServiceFingerprint
from portprobe.reference import REDIS_VERSION
from portprobe.utils.net import close_stream, read_available

from .banner import analyze_banner, decode_banner, parse_http_head

logger = logging.getLogger(__name__)

HEADER_SEPARATOR = b"\r\n\r\n"
MAX_HTTP_HEAD = 16384
GRAB_CAP = 512
GRAB_DRAIN_WINDOW = 0.25
REPLY_DRAIN_WINDOW = 0.1
USER_AGENT = f"portprobe/{__version__}"


def _host_header(address: str, port: int) -> str:
    host = f"[{address}]" if ":" in address else address
    return f"{host}:{port}"


async def http_probe(address: str, port: int, timeout: float) -> ServiceFingerprint:
    """
    Send a minimal GET and identify the server from the response head.

    A timeout before the header separator arrives yields an unidentified
    fingerprint carrying whatever partial text was received.
    """
    request = (
        "GET / HTTP/1.1\r\n"
        f"Host: {_host_header(address, port)}\r\n"
        f"User-Agent: {USER_AGENT}\r\n"
        "Accept: */*\r\n"
        "Connection: close\r\n\r\n"
    ).encode()
    response = bytearray()

    async def exchange() -> None:
        reader, writer = await asyncio.open_connection(address, port)
        try:
            writer.write(request)
            await writer.drain()
            while HEADER_SEPARATOR not in response and len(response) < MAX_HTTP_HEAD:
                chunk = await reader.read(4096)
                if not chunk:
                    break
                response.extend(chunk)
        finally:
            await close_stream(writer)

    try:
        await asyncio.wait_for(exchange(), timeout=timeout)
    except (TimeoutError, OSError) as exc:
        if HEADER_SEPARATOR not in response:
            logger.debug("HTTP probe %s:%d incomplete: %r", address, port, exc)
            partial = decode_banner(bytes(response))
            return ServiceFingerprint(identified=False, banner=partial or None)

    head = decode_banner(bytes(response)).split("\r\n\r\n", 1)[0]
    return parse_http_head(head)


async def _read_reply(reader: asyncio.StreamReader) -> str | None:
    """Read one reply to INFO; None for an error reply or malformed framing."""
    header = await reader.readline()
    if not header or header.startswith(b"-"):
        return None
    if header.startswith(b"$"):
        try:
            length = int(header[1:].strip())
        except ValueError:
            return None
        if length < 0:
            return None
        body = await reader.readexactly(length + 2)
        return decode_banner(body[:length])
    # inline reply: take the line plus anything already in flight
    rest = await read_available(reader, MAX_HTTP_HEAD, REPLY_DRAIN_WINDOW)
    return decode_banner(header + rest)


async def kv_probe(address: str, port: int, timeout: float) -> ServiceFingerprint:
    """Redis handshake: PING, then INFO server only after a +PONG."""

    async def exchange() -> ServiceFingerprint:
        reader, writer = await asyncio.open_connection(address, port)
        try:
            writer.write(b"PING\r\n")
            await writer.drain()
            pong = await reader.readline()
            if not pong.startswith(b"+PONG"):
                return ServiceFingerprint(identified=False, banner=decode_banner(pong) or None)

            writer.write(b"INFO server\r\n")
            await writer.drain()
            info = await _read_reply(reader)
            if info is None:
                return UNIDENTIFIED

            match = REDIS_VERSION.search(info)
            return ServiceFingerprint(
                identified=True,
                service="Redis",
                version=match.group(1) if match else None,
                banner=info,
                confidence=1.0 if match else 0.8,
            )
        finally:
            await close_stream(writer)

    try:
        return await asyncio.wait_for(exchange(), timeout=timeout)
    except (TimeoutError, OSError, ValueError, asyncio.IncompleteReadError) as exc:
        logger.debug("Key-value probe %s:%d failed: %r", address, port, exc)
        return UNIDENTIFIED


async def grab_banner(address: str, port: int, timeout: float) -> ServiceFingerprint:
    """Passively read whatever the service sends unprompted, then match it."""
    received = bytearray()

    async def collect() -> None:
        reader, writer = await asyncio.open_connection(address, port)
        try:
            first = await reader.read(GRAB_CAP)
            if not first:
                return
            received.extend(first)
            rest = await read_available(reader, GRAB_CAP - len(received), GRAB_DRAIN_WINDOW)
            received.extend(rest)
        finally:
            await close_stream(writer)

    try:
        await asyncio.wait_for(collect(), timeout=timeout)
    except (TimeoutError, OSError) as exc:
        logger.debug("Banner grab %s:%d ended: %r", address, port, exc)

    if not received:
        return UNIDENTIFIED
    return analyze_banner(decode_banner(bytes(received[:GRAB_CAP])), port)
