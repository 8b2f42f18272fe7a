"""Simulation clock scaling and the orbit-seconds slider conversions."""
from __future__ import annotations

from .config import SLIDER_CFG, SliderCfg


class TimeController:
    """Global time scale and pause state shared by every body.

    ``scale`` is not validated. Callers are expected to pass a positive
    frequency multiplier; zero or negative values are accepted and simply
    freeze or reverse the simulation.
    """

    def __init__(self, initial_scale: float = 1.0) -> None:
        self.scale = initial_scale
        self.base_scale = initial_scale
        self.is_paused = False

    def __repr__(self) -> str:
        return f"TimeController(scale={self.scale!r}, paused={self.is_paused})"

    def set_scale(self, new_scale: float) -> float:
        self.scale = new_scale
        return self.scale

    def adjust_scale(self, factor: float) -> float:
        self.scale *= factor
        return self.scale

    def pause(self) -> None:
        self.is_paused = True

    def resume(self) -> None:
        self.is_paused = False

    def toggle(self) -> bool:
        self.is_paused = not self.is_paused
        return self.is_paused

    def reset(self) -> None:
        self.scale = self.base_scale
        self.is_paused = False

    def get_delta(self, real_delta: float) -> float:
        return 0.0 if self.is_paused else real_delta * self.scale


def orbit_seconds_to_scale(seconds: float, reference_period: float = 1.0) -> float:
    """Scale at which a body of ``reference_period`` orbits once in ``seconds``."""

    if seconds <= 0.0:
        raise ValueError("seconds per orbit must be positive")
    return reference_period / seconds


def scale_to_orbit_seconds(scale: float, reference_period: float = 1.0) -> float:
    if scale <= 0.0:
        return float("inf")
    return reference_period / scale


def clamp_orbit_seconds(seconds: float, cfg: SliderCfg = SLIDER_CFG) -> float:
    return max(cfg.min_earth_orbit_seconds, min(cfg.max_earth_orbit_seconds, seconds))


__all__ = [
    "TimeController",
    "clamp_orbit_seconds",
    "orbit_seconds_to_scale",
    "scale_to_orbit_seconds",
]
