"""Scan report aggregation."""

import time

from portprobe.modules.models import (
    ProbeResult,
    ScanResult,
    SeveritySummary,
    calculate_risk_score,
)


def build_scan_result(
    host: str,
    ip: str,
    open_ports: list[ProbeResult],
    total_ports_scanned: int,
    started: float,
) -> ScanResult:
    """Sort open ports, tally findings and stamp the elapsed time since ``started``."""
    ordered = tuple(sorted(open_ports, key=lambda result: result.port))
    vulnerabilities = [vuln for result in ordered for vuln in result.vulnerabilities]
    return ScanResult(
        host=host,
        ip=ip,
        open_ports=ordered,
        total_ports_scanned=total_ports_scanned,
        scan_time_ms=(time.perf_counter() - started) * 1000,
        summary=SeveritySummary.from_vulnerabilities(vulnerabilities),
        risk_score=calculate_risk_score(vulnerabilities),
    )
