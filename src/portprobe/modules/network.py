"""Port scan orchestration for portprobe."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from portprobe.modules.models import (
    UNIDENTIFIED,
    PortRange,
    ProbeResult,
    ScanOptions,
    ScanResult,
    Vulnerability,
)
from portprobe.modules.network_helpers.aggregate import build_scan_result
from portprobe.modules.network_helpers.worker_pool import run_bounded
from portprobe.modules.stability import StabilityAssessor
from portprobe.modules.vulnerability import analyze
from portprobe.reference import QUICK_SCAN_PORTS
from portprobe.tools.fingerprint import ServiceFingerprinter
from portprobe.tools.prober import PortProber
from portprobe.utils.net import resolve_host

logger = logging.getLogger(__name__)

Analyzer = Callable[[ProbeResult], list[Vulnerability]]
Resolver = Callable[[str], Awaitable[str]]
ResultCallback = Callable[[ProbeResult], None]


class PortScanner:
    """Sweep ports on one host and enrich every open port."""

    def __init__(
        self,
        options: ScanOptions | None = None,
        *,
        prober: PortProber | None = None,
        assessor: StabilityAssessor | None = None,
        fingerprinter: ServiceFingerprinter | None = None,
        analyzer: Analyzer = analyze,
        resolver: Resolver = resolve_host,
        on_result: ResultCallback | None = None,
    ):
        self.options = options or ScanOptions()
        self.prober = prober or PortProber(self.options)
        self.assessor = assessor or StabilityAssessor(
            self.prober,
            retries=self.options.stability_retries,
            delay=self.options.stability_delay,
        )
        self.fingerprinter = fingerprinter or ServiceFingerprinter()
        self.analyzer = analyzer
        self.resolver = resolver
        self.on_result = on_result

    async def scan(self, host: str) -> ScanResult:
        """Scan the configured port range."""
        return await self._sweep(host, self.options.port_range)

    async def scan_range(self, host: str, start: int, end: int) -> ScanResult:
        """Scan [start, end]; raises InvalidPortRangeError before any I/O."""
        return await self._sweep(host, PortRange(start, end))

    async def quick_scan(self, host: str) -> ScanResult:
        """Scan the curated common-port list, all ports at once."""
        started = time.perf_counter()
        address = await self.resolver(host)
        ports = QUICK_SCAN_PORTS
        logger.info("Quick scan of %s (%s): %d ports", host, address, len(ports))

        results = await asyncio.gather(*(self._process_port(address, port) for port in ports))
        open_ports = [result for result in results if result is not None]
        return build_scan_result(host, address, open_ports, len(ports), started)

    async def _sweep(self, host: str, port_range: PortRange) -> ScanResult:
        started = time.perf_counter()
        address = await self.resolver(host)
        logger.info(
            "Scanning %s (%s) ports %d-%d with %d workers",
            host,
            address,
            port_range.start,
            port_range.end,
            self.options.max_concurrency,
        )

        open_ports: list[ProbeResult] = []

        async def handle(port: int) -> None:
            result = await self._process_port(address, port)
            if result is not None:
                open_ports.append(result)

        await run_bounded(port_range.ports(), self.options.max_concurrency, handle)
        return build_scan_result(host, address, open_ports, len(port_range), started)

    async def _process_port(self, address: str, port: int) -> ProbeResult | None:
        """Probe one port and, if OPEN, run stability, fingerprint and analysis in order."""
        result = await self.prober.probe(address, port)
        if not result.is_open:
            self._notify(result)
            return None

        result = await self._assess(address, result)
        if self.options.enable_fingerprinting:
            result = await self._fingerprint(address, result)
        if self.options.enable_vulnerability_checks:
            result = result.with_vulnerabilities(self.analyzer(result))

        self._notify(result)
        return result

    async def _assess(self, address: str, result: ProbeResult) -> ProbeResult:
        try:
            return await self.assessor.enrich(address, result)
        except Exception:
            logger.warning(
                "Stability assessment failed for %s:%d", address, result.port, exc_info=True
            )
            return result

    async def _fingerprint(self, address: str, result: ProbeResult) -> ProbeResult:
        try:
            return await self.fingerprinter.enrich(address, result)
        except Exception:
            logger.warning("Fingerprinting failed for %s:%d", address, result.port, exc_info=True)
            return result.with_fingerprint(UNIDENTIFIED)

    def _notify(self, result: ProbeResult) -> None:
        if self.on_result is not None:
            self.on_result(result)
