"""Pure banner and HTTP-head analysis; no network I/O."""

from portprobe.modules.models import ServiceFingerprint
from portprobe.reference import (
    HTTP_SERVER_HEADER,
    HTTP_SERVER_PATTERN,
    SERVICE_PATTERNS,
    UNKNOWN_PORT,
    get_port_info,
)

CONFIDENCE_VERSIONED = 0.9
CONFIDENCE_PRESENCE = 0.7
CONFIDENCE_STATUS_LINE = 0.6
CONFIDENCE_PORT_TABLE = 0.3


def decode_banner(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def analyze_banner(banner: str, port: int | None = None) -> ServiceFingerprint:
    """
    Match a captured banner against the protocol pattern families.

    Families are tried in order and the first match wins. A pattern without a
    version group still identifies the service, with version "Unknown". If no
    family matches, the well-known port table supplies a name without a version.
    """
    for service, patterns in SERVICE_PATTERNS.items():
        for pattern in patterns:
            match = pattern.search(banner)
            if not match:
                continue
            version = match.group(1) if pattern.groups and match.group(1) else None
            if version:
                return ServiceFingerprint(
                    identified=True,
                    service=service,
                    version=version.strip(),
                    banner=banner,
                    confidence=CONFIDENCE_VERSIONED,
                )
            return ServiceFingerprint(
                identified=True,
                service=service,
                version="Unknown",
                banner=banner,
                confidence=CONFIDENCE_PRESENCE,
            )

    if port is not None:
        info = get_port_info(port)
        if info is not UNKNOWN_PORT:
            return ServiceFingerprint(
                identified=True,
                service=info.service,
                banner=banner,
                confidence=CONFIDENCE_PORT_TABLE,
            )

    return ServiceFingerprint(identified=False, banner=banner or None)


def parse_http_head(head: str) -> ServiceFingerprint:
    """Identify the web server from an HTTP response head (status line + headers)."""
    if not head or not head.startswith("HTTP/"):
        return ServiceFingerprint(identified=False, banner=head or None)

    server_match = HTTP_SERVER_PATTERN.search(head)
    if server_match:
        name, number = server_match.group(1), server_match.group(2)
        version = f"{name}/{number}" if number else name
        return ServiceFingerprint(
            identified=True,
            service="HTTP",
            version=version,
            banner=head,
            confidence=CONFIDENCE_VERSIONED,
        )

    header_match = HTTP_SERVER_HEADER.search(head)
    if header_match:
        return ServiceFingerprint(
            identified=True,
            service="HTTP",
            version=header_match.group(1).strip(),
            banner=head,
            confidence=CONFIDENCE_VERSIONED,
        )

    return ServiceFingerprint(
        identified=True,
        service="HTTP",
        banner=head,
        confidence=CONFIDENCE_STATUS_LINE,
    )
