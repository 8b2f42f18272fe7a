"""Orbit path geometry for reference display."""
from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .config import KEPLER_CFG, PATH_CFG, KeplerCfg
from .kepler import elliptical_offsets
from .model import MotionModel, OrbitalElements


def sample_orbit_path(
    elements: OrbitalElements,
    model: MotionModel,
    resolution: int = PATH_CFG.resolution,
    cfg: KeplerCfg = KEPLER_CFG,
) -> np.ndarray:
    """Closed polyline approximating the orbit curve.

    Returns ``resolution + 1`` rows of ``(x, y)`` offsets from the focus; the
    last row repeats the first. Elliptical samples are spaced uniformly in
    mean anomaly and run through the full position pipeline each, so they
    bunch up near aphelion.
    """

    if resolution < 3:
        raise ValueError(f"resolution must be at least 3, got {resolution}")

    samples = np.arange(resolution, dtype=float) * (2.0 * math.pi / resolution)
    if model is MotionModel.ELLIPTICAL:
        points = elliptical_offsets(samples, elements, cfg)
    else:
        radius = elements.semi_major_axis
        points = np.column_stack((np.cos(samples) * radius, np.sin(samples) * radius))
    return np.vstack((points, points[:1]))


def max_step_length(path: np.ndarray) -> float:
    """Longest segment of a sampled path."""

    if len(path) < 2:
        return 0.0
    return float(np.max(np.linalg.norm(np.diff(path, axis=0), axis=1)))


def downsample_points(
    points: Sequence[tuple[float, float]], max_points: int
) -> list[tuple[float, float]]:
    points = [(float(x), float(y)) for x, y in points]
    if len(points) <= max_points:
        return points
    step = max(1, math.ceil(len(points) / max_points))
    sampled = points[::step]
    if sampled[-1] != points[-1]:
        sampled.append(points[-1])
    return sampled


__all__ = ["downsample_points", "max_step_length", "sample_orbit_path"]
