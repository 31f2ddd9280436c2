"""Data models for probes, fingerprints, findings and scan reports."""

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any

from portprobe.errors import InvalidPortRangeError

MIN_PORT = 1
MAX_PORT = 65535


class PortState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    FILTERED = "FILTERED"


class PortBehavior(str, Enum):
    IDLE = "idle"
    IMMEDIATE_CLOSE = "immediate_close"
    SENT_DATA = "sent_data"
    TIMEOUT = "timeout"


class Stability(str, Enum):
    STABLE = "STABLE"
    EPHEMERAL = "EPHEMERAL"


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"


SEVERITY_WEIGHTS = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 15,
    Severity.MEDIUM: 8,
    Severity.LOW: 3,
    Severity.INFO: 0,
}


@dataclass(frozen=True)
class PortInfo:
    """Static service label for a port."""

    service: str
    category: str
    description: str | None = None


@dataclass(frozen=True)
class PortRange:
    """Inclusive port range, validated on construction."""

    start: int = MIN_PORT
    end: int = MAX_PORT

    def __post_init__(self) -> None:
        for value in (self.start, self.end):
            if not isinstance(value, int) or not MIN_PORT <= value <= MAX_PORT:
                raise InvalidPortRangeError(
                    f"Port {value!r} is outside {MIN_PORT}-{MAX_PORT}"
                )
        if self.start > self.end:
            raise InvalidPortRangeError(
                f"Invalid port range {self.start}-{self.end}: start is greater than end"
            )

    def __len__(self) -> int:
        return self.end - self.start + 1

    def ports(self) -> range:
        return range(self.start, self.end + 1)

    @classmethod
    def parse(cls, spec: str) -> "PortRange":
        """Parse 'a-b' (or a single port) into a PortRange."""
        spec = spec.strip()
        low, sep, high = spec.partition("-")
        if not low.strip().isdigit() or (sep and not high.strip().isdigit()):
            raise InvalidPortRangeError(f"Invalid port range {spec!r}. Use format: 1-1000")
        start = int(low)
        end = int(high) if sep else start
        return cls(start, end)


@dataclass(frozen=True)
class ScanOptions:
    """Per-scan tuning. Timings are milliseconds."""

    connect_timeout_ms: int = 1000
    idle_observe_ms: int = 300
    max_concurrency: int = 200
    stability_retries: int = 3
    stability_delay_ms: int = 400
    enable_fingerprinting: bool = True
    enable_vulnerability_checks: bool = True
    port_range: PortRange = field(default_factory=PortRange)

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        if self.connect_timeout_ms <= 0:
            raise ValueError("connect_timeout_ms must be > 0")
        if self.idle_observe_ms < 0 or self.stability_delay_ms < 0:
            raise ValueError("idle_observe_ms and stability_delay_ms must be >= 0")
        if self.stability_retries < 0:
            raise ValueError("stability_retries must be >= 0")

    @property
    def connect_timeout(self) -> float:
        return self.connect_timeout_ms / 1000

    @property
    def idle_observe(self) -> float:
        return self.idle_observe_ms / 1000

    @property
    def stability_delay(self) -> float:
        return self.stability_delay_ms / 1000

    def with_range(self, start: int, end: int) -> "ScanOptions":
        return replace(self, port_range=PortRange(start, end))


@dataclass(frozen=True)
class ServiceFingerprint:
    """Inferred service identity for an open port."""

    identified: bool
    service: str | None = None
    version: str | None = None
    banner: str | None = None
    confidence: float = 0.0


UNIDENTIFIED = ServiceFingerprint(identified=False)


@dataclass(frozen=True)
class Vulnerability:
    """A finding produced by the vulnerability analyzer."""

    severity: Severity
    title: str
    description: str
    recommendation: str


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one probe attempt, enriched stage by stage along the OPEN path."""

    port: int
    state: PortState
    info: PortInfo
    behavior: PortBehavior | None = None
    inference: str = ""
    response_time_ms: float = 0.0
    banner: str | None = None
    stability: Stability | None = None
    fingerprint: ServiceFingerprint | None = None
    vulnerabilities: tuple[Vulnerability, ...] = ()

    @property
    def is_open(self) -> bool:
        return self.state is PortState.OPEN

    def _require_open(self, stage: str) -> None:
        if not self.is_open:
            raise ValueError(f"Cannot attach {stage} to {self.state.value} port {self.port}")

    def with_stability(self, stability: Stability, inference: str | None = None) -> "ProbeResult":
        self._require_open("stability")
        return replace(
            self,
            stability=stability,
            inference=inference if inference is not None else self.inference,
        )

    def with_fingerprint(self, fingerprint: ServiceFingerprint) -> "ProbeResult":
        self._require_open("fingerprint")
        return replace(self, fingerprint=fingerprint)

    def with_vulnerabilities(self, vulnerabilities: list[Vulnerability]) -> "ProbeResult":
        self._require_open("vulnerabilities")
        return replace(self, vulnerabilities=tuple(vulnerabilities))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        data["behavior"] = self.behavior.value if self.behavior else None
        data["stability"] = self.stability.value if self.stability else None
        data["vulnerabilities"] = [
            {**asdict(v), "severity": v.severity.value} for v in self.vulnerabilities
        ]
        return data


@dataclass(frozen=True)
class SeveritySummary:
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @classmethod
    def from_vulnerabilities(cls, vulnerabilities: list[Vulnerability]) -> "SeveritySummary":
        counts = {severity: 0 for severity in Severity}
        for vuln in vulnerabilities:
            counts[vuln.severity] += 1
        return cls(
            critical=counts[Severity.CRITICAL],
            high=counts[Severity.HIGH],
            medium=counts[Severity.MEDIUM],
            low=counts[Severity.LOW],
        )


def calculate_risk_score(vulnerabilities: list[Vulnerability]) -> int:
    """Weighted severity sum, capped at 100."""
    score = sum(SEVERITY_WEIGHTS[vuln.severity] for vuln in vulnerabilities)
    return min(score, 100)


@dataclass(frozen=True)
class ScanResult:
    """Aggregated report for one scan invocation."""

    host: str
    ip: str
    open_ports: tuple[ProbeResult, ...]
    total_ports_scanned: int
    scan_time_ms: float
    summary: SeveritySummary
    risk_score: int = 0

    @property
    def vulnerabilities(self) -> list[Vulnerability]:
        return [vuln for port in self.open_ports for vuln in port.vulnerabilities]

    def to_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "ip": self.ip,
            "open_ports": [port.to_dict() for port in self.open_ports],
            "total_ports_scanned": self.total_ports_scanned,
            "scan_time_ms": round(self.scan_time_ms, 3),
            "summary": asdict(self.summary),
            "risk_score": self.risk_score,
        }
