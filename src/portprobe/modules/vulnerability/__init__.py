"""Rule-based vulnerability analysis for open ports."""

from .analyzer import analyze
from .rules import PORT_RISK_TABLE

__all__ = ["PORT_RISK_TABLE", "analyze"]
