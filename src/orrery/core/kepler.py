"""Kepler's equation and the planar position pipeline."""
from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from .config import KEPLER_CFG, KeplerCfg

if TYPE_CHECKING:  # pragma: no cover
    from .model import OrbitalElements


def solve_kepler(
    mean_anomaly: float,
    eccentricity: float,
    max_iter: int = KEPLER_CFG.max_iterations,
    tol: float = KEPLER_CFG.convergence_threshold,
) -> float:
    """Return the eccentric anomaly ``E`` solving ``M = E - e sin E``.

    Newton-Raphson starting from ``E = M``. Iteration stops once the
    correction drops below ``tol``; otherwise the value after ``max_iter``
    steps is returned as is. Accurate for ``e`` up to about 0.9.
    """

    E = mean_anomaly
    for _ in range(max_iter):
        delta = (E - eccentricity * math.sin(E) - mean_anomaly) / (
            1.0 - eccentricity * math.cos(E)
        )
        E -= delta
        if abs(delta) < tol:
            break
    return E


def solve_kepler_array(
    mean_anomaly: np.ndarray,
    eccentricity: float,
    max_iter: int = KEPLER_CFG.max_iterations,
    tol: float = KEPLER_CFG.convergence_threshold,
) -> np.ndarray:
    """Element-wise :func:`solve_kepler` for an array of mean anomalies."""

    M = np.asarray(mean_anomaly, dtype=float)
    E = M.copy()
    for _ in range(max_iter):
        delta = (E - eccentricity * np.sin(E) - M) / (1.0 - eccentricity * np.cos(E))
        E -= delta
        if np.all(np.abs(delta) < tol):
            break
    return E


def kepler_residual(eccentric_anomaly: float, mean_anomaly: float, eccentricity: float) -> float:
    return abs(eccentric_anomaly - eccentricity * math.sin(eccentric_anomaly) - mean_anomaly)


def true_anomaly(eccentric_anomaly: float, eccentricity: float) -> float:
    return math.atan2(
        math.sqrt(1.0 - eccentricity * eccentricity) * math.sin(eccentric_anomaly),
        math.cos(eccentric_anomaly) - eccentricity,
    )


def circular_offset(angle: float, radius: float) -> tuple[float, float]:
    return math.cos(angle) * radius, math.sin(angle) * radius


def elliptical_offset(
    mean_anomaly: float,
    elements: OrbitalElements,
    cfg: KeplerCfg = KEPLER_CFG,
) -> tuple[float, float]:
    """Screen-plane offset of a body from the focus of its ellipse.

    The orbital-plane position is rotated by the longitude of perihelion and
    then the y axis is compressed by ``cos(inclination)``. This is a
    foreshortening, not a 3D projection.
    """

    e = elements.eccentricity
    E = solve_kepler(mean_anomaly, e, cfg.max_iterations, cfg.convergence_threshold)
    nu = true_anomaly(E, e)
    r = elements.semi_major_axis * (1.0 - e * math.cos(E))

    x = r * math.cos(nu)
    y = r * math.sin(nu)

    omega = elements.longitude_of_perihelion
    rotated_x = x * math.cos(omega) - y * math.sin(omega)
    rotated_y = x * math.sin(omega) + y * math.cos(omega)
    return rotated_x, rotated_y * math.cos(elements.inclination)


def elliptical_offsets(
    mean_anomalies: np.ndarray,
    elements: OrbitalElements,
    cfg: KeplerCfg = KEPLER_CFG,
) -> np.ndarray:
    """Vectorised :func:`elliptical_offset`, returns an ``(n, 2)`` array."""

    e = elements.eccentricity
    E = solve_kepler_array(mean_anomalies, e, cfg.max_iterations, cfg.convergence_threshold)
    nu = np.arctan2(np.sqrt(1.0 - e * e) * np.sin(E), np.cos(E) - e)
    r = elements.semi_major_axis * (1.0 - e * np.cos(E))

    x = r * np.cos(nu)
    y = r * np.sin(nu)

    omega = elements.longitude_of_perihelion
    rotated_x = x * math.cos(omega) - y * math.sin(omega)
    rotated_y = (x * math.sin(omega) + y * math.cos(omega)) * math.cos(elements.inclination)
    return np.column_stack((rotated_x, rotated_y))


__all__ = [
    "circular_offset",
    "elliptical_offset",
    "elliptical_offsets",
    "kepler_residual",
    "solve_kepler",
    "solve_kepler_array",
    "true_anomaly",
]
