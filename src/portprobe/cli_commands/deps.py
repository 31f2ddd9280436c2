"""Late binding between command modules and the ``portprobe.cli`` facade.

``scan`` fetches ``PortScanner``, ``build_scan_options`` and ``configure_logging``
through the facade on every invocation, so a patched facade attribute is what runs.
"""

from importlib import import_module
from types import ModuleType

FACADE_MODULE = "portprobe.cli"


def cli_module() -> ModuleType:
    """Return the facade module, importing it on first use."""
    return import_module(FACADE_MODULE)
