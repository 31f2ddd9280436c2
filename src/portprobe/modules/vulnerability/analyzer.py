"""Map an enriched probe result to vulnerability findings."""

import re

from portprobe.modules.models import ProbeResult, Stability, Vulnerability

from .rules import (
    CLEARTEXT_FTP,
    EPHEMERAL_ENDPOINT,
    OUTDATED_APACHE,
    OUTDATED_NGINX,
    OUTDATED_OPENSSH,
    PORT_RISK_TABLE,
    REDIS_NO_AUTH,
    UNENCRYPTED_HTTP,
    VERSION_DISCLOSURE,
)

TLS_WEB_PORTS = frozenset({443, 8443})

_VERSION_NUMBER = re.compile(r"(\d+(?:\.\d+)*)")
_OPENSSH = re.compile(r"OpenSSH_(\d+(?:\.\d+)*)", re.IGNORECASE)
_NGINX = re.compile(r"nginx/(\d+(?:\.\d+)*)", re.IGNORECASE)
_APACHE = re.compile(r"apache/(\d+(?:\.\d+)*)", re.IGNORECASE)

# (pattern over banner/version text, minimum safe version, finding)
_OUTDATED_CHECKS = [
    (_OPENSSH, (7, 4), OUTDATED_OPENSSH),
    (_NGINX, (1, 20), OUTDATED_NGINX),
    (_APACHE, (2, 4, 51), OUTDATED_APACHE),
]


def _version_tuple(text: str) -> tuple[int, ...]:
    return tuple(int(part) for part in text.split(".") if part.isdigit())


def _outdated(result: ProbeResult) -> list[Vulnerability]:
    fingerprint = result.fingerprint
    haystack = " ".join(
        text
        for text in (
            fingerprint.version if fingerprint else None,
            fingerprint.banner if fingerprint else None,
            result.banner,
        )
        if text
    )
    if not haystack:
        return []
    findings: list[Vulnerability] = []
    for pattern, minimum, finding in _OUTDATED_CHECKS:
        match = pattern.search(haystack)
        if match and _version_tuple(match.group(1)) < minimum:
            findings.append(finding)
    return findings


def _discloses_version(version: str | None) -> bool:
    return bool(version and version != "Unknown" and _VERSION_NUMBER.search(version))


def analyze(result: ProbeResult) -> list[Vulnerability]:
    """
    Return findings for one probe result.

    Pure function: no I/O, tolerates any combination of optional fields, and
    returns an empty list for ports that are not OPEN.
    """
    if not result.is_open:
        return []

    findings: list[Vulnerability] = []
    port_rule = PORT_RISK_TABLE.get(result.port)
    if port_rule:
        findings.append(port_rule)

    fingerprint = result.fingerprint
    if fingerprint and fingerprint.identified:
        # a handshake fingerprint means INFO was answered; banner matches report "Unknown"
        if fingerprint.service == "Redis" and fingerprint.version != "Unknown":
            findings.append(REDIS_NO_AUTH)
        if fingerprint.service == "FTP":
            findings.append(CLEARTEXT_FTP)
        if fingerprint.service == "HTTP" and result.port not in TLS_WEB_PORTS:
            findings.append(UNENCRYPTED_HTTP)
        if _discloses_version(fingerprint.version):
            findings.append(VERSION_DISCLOSURE)

    findings.extend(_outdated(result))

    if result.stability is Stability.EPHEMERAL:
        findings.append(EPHEMERAL_ENDPOINT)

    unique: list[Vulnerability] = []
    seen: set[str] = set()
    for finding in findings:
        if finding.title in seen:
            continue
        seen.add(finding.title)
        unique.append(finding)
    return unique
