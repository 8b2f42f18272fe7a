"""Orrery - Keplerian and circular orbit animation engine for the inner planets."""

__version__ = "0.2.0"
