"""Modification orchestration and safe-patch engine."""

__version__ = "0.1.0"
