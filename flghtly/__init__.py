"""Flghtly: flight disruption compensation checks and claim handling."""

__version__ = "1.0.0"
