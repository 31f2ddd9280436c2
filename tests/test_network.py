"""Tests for scan orchestration."""

import asyncio
import logging
import socket

import pytest

from portprobe.errors import HostResolutionError, InvalidPortRangeError
from portprobe.modules import network as network_module
from portprobe.modules.models import PortState, ScanOptions, Severity, SeveritySummary, Stability
from portprobe.modules.network import PortScanner
from portprobe.modules.network_helpers.worker_pool import run_bounded
from portprobe.modules.vulnerability import rules
from portprobe.tools.fingerprint import ServiceFingerprinter
from portprobe.utils.net import resolve_host


async def localhost(host: str) -> str:
    return "127.0.0.1"


def fast_options(**overrides) -> ScanOptions:
    values = {
        "connect_timeout_ms": 500,
        "idle_observe_ms": 100,
        "stability_retries": 1,
        "stability_delay_ms": 0,
    }
    values.update(overrides)
    return ScanOptions(**values)


class FakeProber:
    """Reports the given ports OPEN and everything else in ``default_state``."""

    def __init__(self, make_result, open_ports=(), default_state=PortState.CLOSED, delay=0.0):
        self.make_result = make_result
        self.open_ports = set(open_ports)
        self.default_state = default_state
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.probed: list[int] = []

    async def probe(self, address: str, port: int):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            self.probed.append(port)
            state = PortState.OPEN if port in self.open_ports else self.default_state
            return self.make_result(port, state)
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_nginx_end_to_end(tcp_server, http_handler):
    """Silent web server: idle on connect, identified by the HTTP probe."""
    async with tcp_server(http_handler("nginx/1.18.0")) as port:
        scanner = PortScanner(
            fast_options().with_range(port, port),
            fingerprinter=ServiceFingerprinter(timeout=2.0, http_ports={port}),
        )
        result = await scanner.scan("127.0.0.1")

    assert result.ip == "127.0.0.1"
    assert result.total_ports_scanned == 1
    assert [p.port for p in result.open_ports] == [port]

    open_port = result.open_ports[0]
    assert open_port.stability is Stability.STABLE
    assert open_port.fingerprint.identified
    assert open_port.fingerprint.service == "HTTP"
    assert "1.18.0" in open_port.fingerprint.version
    assert rules.OUTDATED_NGINX in open_port.vulnerabilities
    assert rules.UNENCRYPTED_HTTP in open_port.vulnerabilities
    assert rules.VERSION_DISCLOSURE in open_port.vulnerabilities
    assert result.summary == SeveritySummary(medium=1, low=1)
    assert result.risk_score == 8 + 3


@pytest.mark.asyncio
async def test_refused_neighbours_are_not_reported(make_result):
    """One sweep over 1-100: only the listening port appears in the report."""
    prober = FakeProber(make_result, open_ports={42})
    scanner = PortScanner(
        fast_options(max_concurrency=10, enable_fingerprinting=False).with_range(1, 100),
        prober=prober,
        resolver=localhost,
    )

    result = await scanner.scan("example.test")

    assert [p.port for p in result.open_ports] == [42]
    assert result.total_ports_scanned == 100
    assert sorted(prober.probed) == list(range(1, 101))


@pytest.mark.asyncio
async def test_refused_local_port_is_not_reported(tcp_server, http_handler, closed_port):
    async with tcp_server(http_handler("nginx/1.18.0")) as port:
        scanner = PortScanner(
            fast_options(enable_fingerprinting=False),
            resolver=localhost,
        )
        listening = await scanner.scan_range("localhost", port, port)
        refused = await scanner.scan_range("localhost", closed_port, closed_port)

    assert [p.port for p in listening.open_ports] == [port]
    assert refused.open_ports == ()
    assert refused.total_ports_scanned == 1


@pytest.mark.asyncio
async def test_fingerprinter_receives_captured_banner(tcp_server, banner_handler):
    seen = []

    class RecordingFingerprinter(ServiceFingerprinter):
        async def fingerprint(self, address, port, banner=None):
            seen.append(banner)
            return await super().fingerprint(address, port, banner)

    greeting = b"SSH-2.0-OpenSSH_8.9p1 Ubuntu-3\r\n"
    async with tcp_server(banner_handler(greeting)) as port:
        scanner = PortScanner(
            fast_options().with_range(port, port),
            fingerprinter=RecordingFingerprinter(timeout=1.0),
        )
        result = await scanner.scan("127.0.0.1")

    open_port = result.open_ports[0]
    assert open_port.banner == greeting.decode()
    assert seen == [open_port.banner]
    assert open_port.fingerprint.service == "SSH"


@pytest.mark.asyncio
async def test_quick_scan_finds_redis(monkeypatch, tcp_server, redis_handler):
    async with tcp_server(redis_handler("7.2.0")) as port:
        monkeypatch.setattr(network_module, "QUICK_SCAN_PORTS", (port,))
        scanner = PortScanner(
            fast_options(),
            fingerprinter=ServiceFingerprinter(timeout=2.0, http_ports=set(), kv_ports={port}),
        )
        result = await scanner.quick_scan("127.0.0.1")

    assert result.total_ports_scanned == 1
    assert len(result.open_ports) == 1
    fingerprint = result.open_ports[0].fingerprint
    assert fingerprint.service == "Redis"
    assert fingerprint.version == "7.2.0"
    assert rules.REDIS_NO_AUTH in result.vulnerabilities
    assert result.summary.critical == 1


@pytest.mark.asyncio
async def test_all_filtered_scan_is_empty(make_result):
    prober = FakeProber(make_result, default_state=PortState.FILTERED)
    scanner = PortScanner(fast_options().with_range(1, 50), prober=prober, resolver=localhost)

    result = await scanner.scan("example.test")

    assert result.open_ports == ()
    assert result.total_ports_scanned == 50
    assert result.summary == SeveritySummary()
    assert result.risk_score == 0
    assert sorted(prober.probed) == list(range(1, 51))


@pytest.mark.asyncio
async def test_open_ports_sorted_and_bounded(make_result):
    prober = FakeProber(make_result, open_ports={40, 3, 17, 29})
    options = fast_options(max_concurrency=8, enable_fingerprinting=False)
    scanner = PortScanner(options.with_range(1, 40), prober=prober, resolver=localhost)

    result = await scanner.scan("example.test")

    ports = [p.port for p in result.open_ports]
    assert ports == [3, 17, 29, 40]
    assert len(ports) <= result.total_ports_scanned


@pytest.mark.asyncio
async def test_concurrency_never_exceeds_limit(make_result):
    prober = FakeProber(make_result, delay=0.01)
    scanner = PortScanner(
        fast_options(max_concurrency=5).with_range(1, 60), prober=prober, resolver=localhost
    )

    await scanner.scan("example.test")

    assert prober.max_in_flight == 5
    assert len(prober.probed) == 60


@pytest.mark.asyncio
async def test_scan_range_validates_before_resolving(make_result):
    resolved = []

    async def tracking_resolver(host: str) -> str:
        resolved.append(host)
        return "127.0.0.1"

    scanner = PortScanner(prober=FakeProber(make_result), resolver=tracking_resolver)

    with pytest.raises(InvalidPortRangeError):
        await scanner.scan_range("example.test", 100, 10)
    with pytest.raises(InvalidPortRangeError):
        await scanner.scan_range("example.test", 0, 10)
    assert resolved == []


@pytest.mark.asyncio
async def test_scan_range_overrides_configured_range(make_result):
    prober = FakeProber(make_result, open_ports={22})
    scanner = PortScanner(
        fast_options(enable_fingerprinting=False), prober=prober, resolver=localhost
    )

    result = await scanner.scan_range("example.test", 20, 25)

    assert result.total_ports_scanned == 6
    assert [p.port for p in result.open_ports] == [22]


@pytest.mark.asyncio
async def test_resolution_failure_aborts_scan(make_result):
    async def failing_resolver(host: str) -> str:
        raise HostResolutionError(f"Could not resolve host {host!r}")

    prober = FakeProber(make_result)
    scanner = PortScanner(prober=prober, resolver=failing_resolver)

    with pytest.raises(HostResolutionError):
        await scanner.quick_scan("nope.invalid")
    assert prober.probed == []


@pytest.mark.asyncio
async def test_stability_failure_keeps_port(make_result, caplog):
    class BrokenAssessor:
        async def enrich(self, address, result):
            raise RuntimeError("assessor crashed")

    prober = FakeProber(make_result, open_ports={3306})
    scanner = PortScanner(
        fast_options(enable_fingerprinting=False).with_range(3306, 3306),
        prober=prober,
        assessor=BrokenAssessor(),
        resolver=localhost,
    )

    with caplog.at_level(logging.WARNING, logger="portprobe.modules.network"):
        result = await scanner.scan("example.test")

    open_port = result.open_ports[0]
    assert open_port.stability is None
    assert open_port.vulnerabilities[0].severity is Severity.CRITICAL
    assert "Stability assessment failed" in caplog.text


@pytest.mark.asyncio
async def test_disabled_stages_are_skipped(make_result):
    prober = FakeProber(make_result, open_ports={3306})
    scanner = PortScanner(
        fast_options(enable_fingerprinting=False, enable_vulnerability_checks=False).with_range(
            3306, 3306
        ),
        prober=prober,
        resolver=localhost,
    )

    result = await scanner.scan("example.test")

    open_port = result.open_ports[0]
    assert open_port.fingerprint is None
    assert open_port.vulnerabilities == ()
    assert result.risk_score == 0


@pytest.mark.asyncio
async def test_on_result_sees_every_port(make_result):
    seen = []
    prober = FakeProber(make_result, open_ports={2})
    scanner = PortScanner(
        fast_options(enable_fingerprinting=False).with_range(1, 4),
        prober=prober,
        resolver=localhost,
        on_result=lambda result: seen.append((result.port, result.state)),
    )

    await scanner.scan("example.test")

    assert sorted(seen) == [
        (1, PortState.CLOSED),
        (2, PortState.OPEN),
        (3, PortState.CLOSED),
        (4, PortState.CLOSED),
    ]


@pytest.mark.asyncio
async def test_run_bounded_propagates_handler_errors():
    handled = []

    async def handler(item: int) -> None:
        if item == 3:
            raise ValueError("bad item")
        handled.append(item)
        await asyncio.sleep(0)

    with pytest.raises(ValueError):
        await run_bounded(range(10), 2, handler)
    assert 3 not in handled


@pytest.mark.asyncio
async def test_resolve_literal_address():
    assert await resolve_host("127.0.0.1") == "127.0.0.1"


@pytest.mark.asyncio
async def test_resolve_failure_raises(monkeypatch):
    loop = asyncio.get_running_loop()

    async def fail(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(loop, "getaddrinfo", fail)

    with pytest.raises(HostResolutionError):
        await resolve_host("does-not-exist.invalid")
