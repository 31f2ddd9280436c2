"""Service fingerprinting: banner matching and protocol handshakes."""

from .banner import analyze_banner, parse_http_head
from .fingerprinter import HTTP_PORTS, KV_PORTS, ServiceFingerprinter
from .handshakes import grab_banner, http_probe, kv_probe

__all__ = [
    "HTTP_PORTS",
    "KV_PORTS",
    "ServiceFingerprinter",
    "analyze_banner",
    "grab_banner",
    "http_probe",
    "kv_probe",
    "parse_http_head",
]
