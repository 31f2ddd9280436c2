"""Exceptions that abort a whole scan."""


class PortProbeError(RuntimeError):
    """Base class for fatal scan errors."""


class HostResolutionError(PortProbeError):
    """The target host could not be resolved to an address."""


class InvalidPortRangeError(PortProbeError, ValueError):
    """Port range is reversed or outside 1-65535."""
