"""portprobe CLI - behavioral TCP port scanner."""

from portprobe.cli_commands import app, console
from portprobe.config import build_scan_options, get_fingerprint_timeout
from portprobe.modules.network import PortScanner
from portprobe.tools.fingerprint import ServiceFingerprinter
from portprobe.utils.async_utils import safe_async_run
from portprobe.utils.debug import configure_logging

__all__ = [
    "PortScanner",
    "ServiceFingerprinter",
    "app",
    "build_scan_options",
    "configure_logging",
    "console",
    "get_fingerprint_timeout",
    "main",
    "safe_async_run",
]


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
