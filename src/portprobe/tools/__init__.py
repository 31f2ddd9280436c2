"""Network probing and service fingerprinting tools."""
