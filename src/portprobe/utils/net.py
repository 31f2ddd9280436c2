"""Socket helpers shared by the prober and fingerprinter."""

import asyncio
import logging
import socket
from contextlib import suppress

from portprobe.errors import HostResolutionError

logger = logging.getLogger(__name__)

CLOSE_TIMEOUT = 1.0


async def resolve_host(host: str) -> str:
    """Resolve a hostname or literal address to the first address returned."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise HostResolutionError(f"Could not resolve host {host!r}: {exc}") from exc
    if not infos:
        raise HostResolutionError(f"Could not resolve host {host!r}: no addresses")
    address = infos[0][4][0]
    logger.debug("Resolved %s -> %s", host, address)
    return address


async def close_stream(writer: asyncio.StreamWriter) -> None:
    """Close a stream and wait briefly for the transport to go away."""
    writer.close()
    with suppress(OSError, TimeoutError):
        await asyncio.wait_for(writer.wait_closed(), timeout=CLOSE_TIMEOUT)


async def read_available(
    reader: asyncio.StreamReader,
    limit: int,
    window: float,
) -> bytes:
    """Read until ``limit`` bytes, EOF, or no new data arrives within ``window``."""
    buffer = b""
    while len(buffer) < limit:
        try:
            chunk = await asyncio.wait_for(reader.read(limit - len(buffer)), timeout=window)
        except (TimeoutError, OSError):
            break
        if not chunk:
            break
        buffer += chunk
    return buffer
