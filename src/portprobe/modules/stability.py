"""Re-probe open ports to separate listening services from transient endpoints."""

import asyncio
import logging
from typing import Protocol

from portprobe.modules.models import PortState, ProbeResult, Stability

logger = logging.getLogger(__name__)

INFERENCE_EPHEMERAL = "Ephemeral/dynamic port (likely outbound connection, not service)"


class Prober(Protocol):
    async def probe(self, address: str, port: int) -> ProbeResult: ...


class StabilityAssessor:
    """Classify an already-open port as STABLE or EPHEMERAL."""

    def __init__(self, prober: Prober, retries: int = 3, delay: float = 0.4):
        self.prober = prober
        self.retries = retries
        self.delay = delay

    async def assess(self, address: str, port: int) -> Stability:
        """
        Run ``retries`` independent probe rounds, pausing ``delay`` seconds before each.

        The first round that does not see the port OPEN makes it EPHEMERAL.
        """
        for round_no in range(1, self.retries + 1):
            await asyncio.sleep(self.delay)
            result = await self.prober.probe(address, port)
            if result.state is not PortState.OPEN:
                logger.debug(
                    "%s:%d went %s on stability round %d/%d",
                    address,
                    port,
                    result.state.value,
                    round_no,
                    self.retries,
                )
                return Stability.EPHEMERAL
        return Stability.STABLE

    async def enrich(self, address: str, result: ProbeResult) -> ProbeResult:
        """Return ``result`` with its stability classification merged in."""
        stability = await self.assess(address, result.port)
        if stability is Stability.EPHEMERAL:
            return result.with_stability(stability, INFERENCE_EPHEMERAL)
        return result.with_stability(stability)
