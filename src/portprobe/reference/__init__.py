"""Static reference data: port labels and protocol banner patterns."""

from .patterns import HTTP_SERVER_HEADER, HTTP_SERVER_PATTERN, REDIS_VERSION, SERVICE_PATTERNS
from .ports import (
    QUICK_SCAN_PORTS,
    UNKNOWN_PORT,
    WELL_KNOWN_PORTS,
    get_port_info,
    refine_port_info,
)

__all__ = [
    "HTTP_SERVER_HEADER",
    "HTTP_SERVER_PATTERN",
    "QUICK_SCAN_PORTS",
    "REDIS_VERSION",
    "SERVICE_PATTERNS",
    "UNKNOWN_PORT",
    "WELL_KNOWN_PORTS",
    "get_port_info",
    "refine_port_info",
]
