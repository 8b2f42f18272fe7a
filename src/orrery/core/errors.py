"""Exception types raised by the orrery engine."""
from __future__ import annotations


class OrreryError(Exception):
    """Base class for all orrery errors."""


class ConfigurationError(OrreryError, ValueError):
    """Orbital elements or mode data that cannot be simulated."""


class MotionModelError(OrreryError, AttributeError):
    """A phase variable was read under the wrong motion model."""


__all__ = ["ConfigurationError", "MotionModelError", "OrreryError"]
