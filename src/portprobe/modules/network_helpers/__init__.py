"""Helpers for the scan orchestrator."""
