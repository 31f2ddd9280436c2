"""
Configuration management for portprobe.

Supports multiple configuration sources in order of priority:
1. CLI flags (highest priority)
2. Environment variables (PORTPROBE_*)
3. Global config file (~/.portprobe/config.yml, ``scan:`` section)
4. Default values (lowest priority)
"""

from .env_loader import get_global_config_path, load_global_config
from .scan_settings import (
    DEFAULT_FINGERPRINT_TIMEOUT,
    FINGERPRINT_TIMEOUT_ENV,
    SCAN_SETTINGS,
    build_scan_options,
    get_fingerprint_timeout,
    load_scan_settings,
)

__all__ = [
    # env_loader
    "get_global_config_path",
    "load_global_config",
    # scan_settings
    "DEFAULT_FINGERPRINT_TIMEOUT",
    "FINGERPRINT_TIMEOUT_ENV",
    "SCAN_SETTINGS",
    "build_scan_options",
    "get_fingerprint_timeout",
    "load_scan_settings",
]
