from __future__ import annotations

from typing import Sequence

import numpy as np
import pygame

from orrery.core.config import RenderCfg
from orrery.core.paths import downsample_points

from .camera import Camera


def parse_color(value: str | tuple[int, int, int]) -> tuple[int, int, int]:
    color = pygame.Color(value)
    return color.r, color.g, color.b


def draw_sun(surface: pygame.Surface, camera: Camera, *, render_cfg: RenderCfg) -> None:
    center = camera.origin
    radius = render_cfg.sun_radius
    glow_radius = radius * 2
    glow = pygame.Surface((glow_radius * 2, glow_radius * 2), pygame.SRCALPHA)
    pygame.draw.circle(
        glow,
        (*render_cfg.sun_glow_color, render_cfg.sun_glow_alpha),
        (glow_radius, glow_radius),
        glow_radius,
    )
    surface.blit(glow, glow.get_rect(center=center))
    pygame.draw.circle(surface, render_cfg.sun_color, center, radius)


def draw_orbit_path(
    surface: pygame.Surface,
    camera: Camera,
    path: np.ndarray | Sequence[tuple[float, float]],
    *,
    render_cfg: RenderCfg,
    max_points: int,
) -> None:
    points = downsample_points(path, max_points)
    if len(points) < 2:
        return
    screen_points = [camera.to_screen(x, y) for x, y in points]
    overlay = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
    if render_cfg.orbit_line_width <= 1:
        pygame.draw.aalines(overlay, render_cfg.orbit_color, True, screen_points)
    else:
        pygame.draw.lines(overlay, render_cfg.orbit_color, True, screen_points, render_cfg.orbit_line_width)
    surface.blit(overlay, (0, 0))


def draw_body(
    surface: pygame.Surface,
    camera: Camera,
    position: tuple[float, float],
    size: float,
    color: tuple[int, int, int],
    *,
    alpha: int,
    render_cfg: RenderCfg,
) -> None:
    if alpha <= 0:
        return
    radius = max(render_cfg.min_body_pixel_radius, int(round(camera.scale_length(size) / 2.0)))
    center = camera.to_screen(*position)
    if alpha >= 255:
        pygame.draw.circle(surface, color, center, radius)
        return
    body_surface = pygame.Surface((radius * 2, radius * 2), pygame.SRCALPHA)
    pygame.draw.circle(body_surface, (*color, alpha), (radius, radius), radius)
    surface.blit(body_surface, body_surface.get_rect(center=center))


def interpolate_paths(start: np.ndarray, end: np.ndarray, fraction: float) -> np.ndarray:
    """Blend two sampled paths point by point, ``fraction`` in ``[0, 1]``."""

    if start.shape != end.shape:
        return end
    t = min(1.0, max(0.0, fraction))
    # ease-in-out, matching a CSS path transition
    eased = t * t * (3.0 - 2.0 * t)
    return start + (end - start) * eased
