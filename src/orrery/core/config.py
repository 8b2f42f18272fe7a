"""Configuration dataclasses for the orrery simulation."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KeplerCfg:
    max_iterations: int = 10
    convergence_threshold: float = 1e-6


@dataclass(frozen=True)
class PathCfg:
    resolution: int = 360
    max_rendered_points: int = 240


@dataclass(frozen=True)
class TransitionTiming:
    """Durations, in seconds, of each mode transition phase."""

    fade_out: float = 0.150
    swap_elements: float = 0.0
    path_transition: float = 0.800
    position_snap: float = 0.050
    fade_in: float = 0.300

    @property
    def total(self) -> float:
        return (
            self.fade_out
            + self.swap_elements
            + self.path_transition
            + self.position_snap
            + self.fade_in
        )


@dataclass(frozen=True)
class SliderCfg:
    """Bounds for the "real seconds per Earth orbit" speed control."""

    min_earth_orbit_seconds: float = 12.0
    max_earth_orbit_seconds: float = 240.0
    default_earth_orbit_seconds: float = 60.0
    step_factor: float = 1.25


@dataclass(frozen=True)
class RenderCfg:
    width: int = 900
    height: int = 700
    fps: int = 60
    background_color: tuple[int, int, int] = (0, 12, 28)
    sun_color: tuple[int, int, int] = (255, 204, 77)
    sun_radius: int = 14
    sun_glow_color: tuple[int, int, int] = (255, 170, 60)
    sun_glow_alpha: int = 70
    orbit_color: tuple[int, int, int, int] = (255, 255, 255, 26)
    orbit_line_width: int = 1
    hud_text_color: tuple[int, int, int] = (234, 241, 255)
    hud_muted_color: tuple[int, int, int] = (150, 170, 200)
    hud_background_color: tuple[int, int, int, int] = (12, 18, 30, 150)
    hud_font_size: int = 16
    hud_font_names: tuple[str, ...] = ("dejavusans", "arial", "helvetica")
    pixels_per_unit: float = 1.8
    min_pixels_per_unit: float = 0.4
    max_pixels_per_unit: float = 6.0
    zoom_step: float = 1.1
    min_body_pixel_radius: int = 2


KEPLER_CFG = KeplerCfg()
PATH_CFG = PathCfg()
TRANSITION_TIMING = TransitionTiming()
SLIDER_CFG = SliderCfg()
RENDER_CFG = RenderCfg()


__all__ = [
    "KEPLER_CFG",
    "KeplerCfg",
    "PATH_CFG",
    "PathCfg",
    "RENDER_CFG",
    "RenderCfg",
    "SLIDER_CFG",
    "SliderCfg",
    "TRANSITION_TIMING",
    "TransitionTiming",
]
