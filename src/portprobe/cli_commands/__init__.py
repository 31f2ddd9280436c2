"""CLI command modules; importing this package registers every command on ``app``."""

from . import scan_command, version_command  # noqa: F401
from .shared import app, console

__all__ = ["app", "console"]
