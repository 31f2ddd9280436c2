"""Configuration file loading."""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def get_global_config_path() -> Path:
    """Return the path of ~/.portprobe/config.yml."""
    return Path.home() / ".portprobe" / "config.yml"


def load_global_config() -> dict[str, Any]:
    """Load global configuration from ~/.portprobe/config.yml."""
    config_path = get_global_config_path()
    if not config_path.exists():
        return {}
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", config_path)
        return {}
    return data
