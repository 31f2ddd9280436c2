"""Scan orchestration, stability assessment and vulnerability analysis."""
