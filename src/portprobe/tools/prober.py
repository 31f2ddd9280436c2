"""TCP connect prober that classifies port state and behavior."""

import asyncio
import errno
import logging
import time
from collections.abc import Callable
from enum import Enum

from portprobe.modules.models import PortBehavior, PortState, ProbeResult, ScanOptions
from portprobe.reference import refine_port_info
from portprobe.utils.net import close_stream, read_available

logger = logging.getLogger(__name__)

BANNER_CAP = 512
BANNER_DRAIN_WINDOW = 0.05

_FILTERED_ERRNOS = frozenset({errno.ETIMEDOUT, errno.EHOSTUNREACH, errno.ENETUNREACH})

INFERENCE_IDLE = "Service accepts connection and waits for client input"
INFERENCE_BANNER = "Service sends data immediately after connect (banner)"
INFERENCE_IMMEDIATE_CLOSE = "Service closes connection immediately (protocol enforcement or proxy)"
INFERENCE_REFUSED = "Port is closed (connection actively refused)"
INFERENCE_UNREACHABLE = "Port is filtered (firewall/no route to host)"
INFERENCE_CONNECT_TIMEOUT = "Connection timed out (likely filtered by firewall)"


class LifecyclePhase(Enum):
    PENDING = "pending"
    CONNECTED = "connected"
    SETTLED = "settled"


class ProbeLifecycle:
    """
    Finite-state classifier for a single probe attempt.

    PENDING -> CONNECTED -> SETTLED, or PENDING -> SETTLED on connect failure.
    Only the first terminal event for this instance decides the outcome; every
    event handler returns False when it arrives too late to change anything.
    """

    def __init__(self, port: int, clock: Callable[[], float] = time.perf_counter):
        self.port = port
        self._clock = clock
        self._started = clock()
        self.phase = LifecyclePhase.PENDING
        self.state = PortState.FILTERED
        self.behavior: PortBehavior | None = None
        self.inference = ""
        self.response_time_ms = 0.0
        self.banner: str | None = None

    @property
    def settled(self) -> bool:
        return self.phase is LifecyclePhase.SETTLED

    def _stamp(self) -> None:
        self.response_time_ms = (self._clock() - self._started) * 1000

    def _settle(
        self,
        behavior: PortBehavior | None,
        inference: str,
        state: PortState | None = None,
    ) -> None:
        if state is not None:
            self.state = state
        self.behavior = behavior
        self.inference = inference
        self.phase = LifecyclePhase.SETTLED

    def on_connect(self) -> bool:
        if self.phase is not LifecyclePhase.PENDING:
            return False
        self._stamp()
        self.state = PortState.OPEN
        self.phase = LifecyclePhase.CONNECTED
        return True

    def on_data(self, data: bytes) -> bool:
        if self.phase is not LifecyclePhase.CONNECTED or not data:
            return False
        self.banner = data[:BANNER_CAP].decode("utf-8", errors="replace")
        self._settle(PortBehavior.SENT_DATA, INFERENCE_BANNER)
        return True

    def on_idle_timeout(self) -> bool:
        if self.phase is not LifecyclePhase.CONNECTED:
            return False
        self._settle(PortBehavior.IDLE, INFERENCE_IDLE)
        return True

    def on_peer_close(self) -> bool:
        if self.phase is not LifecyclePhase.CONNECTED:
            return False
        # classification depends on the close itself, so time it
        self._stamp()
        self._settle(PortBehavior.IMMEDIATE_CLOSE, INFERENCE_IMMEDIATE_CLOSE)
        return True

    def on_connect_timeout(self) -> bool:
        if self.phase is not LifecyclePhase.PENDING:
            return False
        self._stamp()
        self._settle(PortBehavior.TIMEOUT, INFERENCE_CONNECT_TIMEOUT, PortState.FILTERED)
        return True

    def on_error(self, exc: OSError) -> bool:
        if self.phase is LifecyclePhase.CONNECTED:
            # reset after accept: the peer dropped us without sending anything
            return self.on_peer_close()
        if self.phase is not LifecyclePhase.PENDING:
            return False
        self._stamp()
        if isinstance(exc, ConnectionRefusedError) or exc.errno == errno.ECONNREFUSED:
            self._settle(None, INFERENCE_REFUSED, PortState.CLOSED)
        elif isinstance(exc, TimeoutError) or exc.errno in _FILTERED_ERRNOS:
            self._settle(None, INFERENCE_UNREACHABLE, PortState.FILTERED)
        else:
            code = errno.errorcode.get(exc.errno) if exc.errno else None
            self._settle(None, f"Error: {code or exc}", PortState.FILTERED)
        return True

    def to_result(self) -> ProbeResult:
        if not self.settled:
            raise RuntimeError(f"Probe for port {self.port} has not settled")
        return ProbeResult(
            port=self.port,
            state=self.state,
            info=refine_port_info(self.port, self.banner),
            behavior=self.behavior,
            inference=self.inference,
            response_time_ms=self.response_time_ms,
            banner=self.banner,
        )


class PortProber:
    """Open one TCP connection per call and classify what the socket does."""

    def __init__(self, options: ScanOptions | None = None):
        self.options = options or ScanOptions()

    async def probe(self, address: str, port: int) -> ProbeResult:
        """
        Probe a single port.

        Never raises for socket-level failures; refused, unreachable and timed-out
        connections are folded into the returned result.
        """
        lifecycle = ProbeLifecycle(port)
        writer: asyncio.StreamWriter | None = None
        try:
            try:
                reader, writer = await asyncio.wait_for(
                    asyncio.open_connection(address, port),
                    timeout=self.options.connect_timeout,
                )
            except TimeoutError:
                lifecycle.on_connect_timeout()
            except OSError as exc:
                lifecycle.on_error(exc)
            else:
                lifecycle.on_connect()
                await self._observe(reader, lifecycle)
        finally:
            if writer is not None:
                await close_stream(writer)

        logger.debug(
            "%s:%d %s %s (%.1fms)",
            address,
            port,
            lifecycle.state.value,
            lifecycle.behavior.value if lifecycle.behavior else "-",
            lifecycle.response_time_ms,
        )
        return lifecycle.to_result()

    async def _observe(self, reader: asyncio.StreamReader, lifecycle: ProbeLifecycle) -> None:
        """Watch a fresh connection for the idle window."""
        try:
            data = await asyncio.wait_for(
                reader.read(BANNER_CAP), timeout=self.options.idle_observe
            )
        except TimeoutError:
            lifecycle.on_idle_timeout()
            return
        except OSError as exc:
            lifecycle.on_error(exc)
            return

        if not data:
            lifecycle.on_peer_close()
            return

        if len(data) < BANNER_CAP:
            data += await read_available(reader, BANNER_CAP - len(data), BANNER_DRAIN_WINDOW)
        lifecycle.on_data(data)
