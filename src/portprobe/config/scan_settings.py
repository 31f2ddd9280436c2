"""Scan option resolution from environment, config file and CLI overrides."""

import logging
import os
from collections.abc import Callable
from typing import Any

from portprobe.modules.models import PortRange, ScanOptions

from .env_loader import load_global_config

logger = logging.getLogger(__name__)

DEFAULT_FINGERPRINT_TIMEOUT = 2.0

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _nonnegative_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None


def _flag(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return None


def _positive_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


# ScanOptions field -> (environment variable, parser)
SCAN_SETTINGS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "connect_timeout_ms": ("PORTPROBE_CONNECT_TIMEOUT_MS", _positive_int),
    "idle_observe_ms": ("PORTPROBE_IDLE_OBSERVE_MS", _nonnegative_int),
    "max_concurrency": ("PORTPROBE_MAX_CONCURRENCY", _positive_int),
    "stability_retries": ("PORTPROBE_STABILITY_RETRIES", _nonnegative_int),
    "stability_delay_ms": ("PORTPROBE_STABILITY_DELAY_MS", _nonnegative_int),
    "enable_fingerprinting": ("PORTPROBE_FINGERPRINT", _flag),
    "enable_vulnerability_checks": ("PORTPROBE_VULN_CHECKS", _flag),
}

FINGERPRINT_TIMEOUT_ENV = "PORTPROBE_FINGERPRINT_TIMEOUT"


def _scan_section() -> dict[str, Any]:
    section = load_global_config().get("scan") or {}
    if not isinstance(section, dict):
        logger.warning("Ignoring 'scan' config section: expected a mapping")
        return {}
    return section


def load_scan_settings() -> dict[str, Any]:
    """
    Collect ScanOptions fields from the config file and environment.

    Environment variables win over the ``scan:`` section of the global config.
    Values that fail to parse are skipped with a warning.

    Returns:
        Mapping of ScanOptions field names to parsed values
    """
    settings: dict[str, Any] = {}

    for key, raw in _scan_section().items():
        if key not in SCAN_SETTINGS:
            continue
        value = SCAN_SETTINGS[key][1](raw)
        if value is None:
            logger.warning("Ignoring invalid config value scan.%s=%r", key, raw)
            continue
        settings[key] = value

    for key, (env_key, parse) in SCAN_SETTINGS.items():
        raw = os.environ.get(env_key)
        if not raw:
            continue
        value = parse(raw)
        if value is None:
            logger.warning("Ignoring invalid %s=%r", env_key, raw)
            continue
        settings[key] = value

    return settings


def build_scan_options(port_range: PortRange | None = None, **overrides: Any) -> ScanOptions:
    """
    Build ScanOptions with priority: overrides > environment > config file > defaults.

    Overrides set to None are treated as not given. Out-of-range overrides are
    rejected by ScanOptions with ValueError.
    """
    settings = load_scan_settings()
    settings.update({key: value for key, value in overrides.items() if value is not None})
    if port_range is not None:
        settings["port_range"] = port_range
    return ScanOptions(**settings)


def get_fingerprint_timeout() -> float:
    """Fingerprint handshake timeout in seconds (env > config file > default)."""
    raw = os.environ.get(FINGERPRINT_TIMEOUT_ENV)
    if raw:
        value = _positive_float(raw)
        if value is not None:
            return value
        logger.warning("Ignoring invalid %s=%r", FINGERPRINT_TIMEOUT_ENV, raw)

    raw = _scan_section().get("fingerprint_timeout")
    if raw is not None:
        value = _positive_float(raw)
        if value is not None:
            return value
        logger.warning("Ignoring invalid config value scan.fingerprint_timeout=%r", raw)

    return DEFAULT_FINGERPRINT_TIMEOUT
