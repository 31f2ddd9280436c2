"""Service fingerprinting dispatch."""

import logging

from portprobe.modules.models import UNIDENTIFIED, ProbeResult, ServiceFingerprint

from .banner import analyze_banner
from .handshakes import grab_banner, http_probe, kv_probe

logger = logging.getLogger(__name__)

HTTP_PORTS = frozenset({80, 443, 8080, 8443, 8000})
KV_PORTS = frozenset({6379})
DEFAULT_TIMEOUT = 2.0


class ServiceFingerprinter:
    """Identify the service and version behind an open port."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        http_ports: frozenset[int] | set[int] = HTTP_PORTS,
        kv_ports: frozenset[int] | set[int] = KV_PORTS,
    ):
        self.timeout = timeout
        self.http_ports = frozenset(http_ports)
        self.kv_ports = frozenset(kv_ports)

    async def fingerprint(
        self, address: str, port: int, banner: str | None = None
    ) -> ServiceFingerprint:
        """
        Fingerprint one port.

        Args:
            address: Resolved IP address
            port: Open port
            banner: Banner already captured by the prober; skips network I/O

        Returns:
            A fingerprint; ``identified=False`` when nothing could be inferred.
        """
        if banner:
            return analyze_banner(banner, port)

        try:
            if port in self.http_ports:
                return await http_probe(address, port, self.timeout)
            if port in self.kv_ports:
                return await kv_probe(address, port, self.timeout)
            return await grab_banner(address, port, self.timeout)
        except Exception:
            logger.debug("Fingerprinting %s:%d failed", address, port, exc_info=True)
            return UNIDENTIFIED

    async def enrich(self, address: str, result: ProbeResult) -> ProbeResult:
        """Return ``result`` with a fingerprint merged in."""
        fingerprint = await self.fingerprint(address, result.port, result.banner)
        return result.with_fingerprint(fingerprint)
