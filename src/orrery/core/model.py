"""Data models for the orbiting bodies."""
from __future__ import annotations

import enum
import math
import random
from dataclasses import dataclass

from .config import KEPLER_CFG, KeplerCfg
from .errors import ConfigurationError, MotionModelError
from .kepler import circular_offset, elliptical_offset

TWO_PI = 2.0 * math.pi


class MotionModel(enum.Enum):
    CIRCULAR = "circular"
    ELLIPTICAL = "elliptical"

    @classmethod
    def from_flag(cls, use_elliptical: bool) -> "MotionModel":
        return cls.ELLIPTICAL if use_elliptical else cls.CIRCULAR


@dataclass(frozen=True)
class OrbitalElements:
    """Orbital elements of one body in one mode.

    Angles are in radians, ``period`` is simulation time per revolution.
    Invalid values raise :class:`ConfigurationError` on construction so that
    a bad body can never reach the tick loop.
    """

    eccentricity: float
    inclination: float
    longitude_of_perihelion: float
    semi_major_axis: float
    period: float

    def __post_init__(self) -> None:
        for name in ("eccentricity", "inclination", "longitude_of_perihelion", "semi_major_axis", "period"):
            if not math.isfinite(getattr(self, name)):
                raise ConfigurationError(f"{name} must be finite, got {getattr(self, name)!r}")
        if not 0.0 <= self.eccentricity < 1.0:
            raise ConfigurationError(f"eccentricity must lie in [0, 1), got {self.eccentricity}")
        if self.semi_major_axis <= 0.0:
            raise ConfigurationError(f"semi_major_axis must be positive, got {self.semi_major_axis}")
        if self.period <= 0.0:
            raise ConfigurationError(f"period must be positive, got {self.period}")

    @classmethod
    def from_degrees(
        cls,
        *,
        eccentricity: float,
        inclination_deg: float,
        longitude_of_perihelion_deg: float,
        semi_major_axis: float,
        period: float,
    ) -> "OrbitalElements":
        return cls(
            eccentricity=eccentricity,
            inclination=math.radians(inclination_deg),
            longitude_of_perihelion=math.radians(longitude_of_perihelion_deg),
            semi_major_axis=semi_major_axis,
            period=period,
        )

    @property
    def semi_minor_axis(self) -> float:
        return self.semi_major_axis * math.sqrt(1.0 - self.eccentricity**2)

    @property
    def focal_distance(self) -> float:
        return self.semi_major_axis * self.eccentricity

    @property
    def mean_motion(self) -> float:
        return TWO_PI / self.period


@dataclass(frozen=True)
class Appearance:
    """Presentation attributes, never read by the engine itself."""

    size: float
    color: str


class OrbitalBody:
    """One orbiting body and its motion phase.

    The phase is a single value whose meaning depends on ``motion_model``:
    an unbounded ``angle`` for circular motion, or a ``mean_anomaly`` kept
    in ``[0, 2pi)`` for elliptical motion.
    """

    def __init__(
        self,
        name: str,
        elements: OrbitalElements,
        motion_model: MotionModel,
        phase: float = 0.0,
        *,
        appearance: Appearance | None = None,
    ) -> None:
        if not math.isfinite(phase):
            raise ConfigurationError(f"initial phase of {name!r} must be finite")
        self.name = name
        self._elements = elements
        self._motion_model = motion_model
        self._phase = phase % TWO_PI if motion_model is MotionModel.ELLIPTICAL else phase
        self.appearance = appearance

    @classmethod
    def with_random_phase(
        cls,
        name: str,
        elements: OrbitalElements,
        motion_model: MotionModel,
        rng: random.Random,
        *,
        appearance: Appearance | None = None,
    ) -> "OrbitalBody":
        return cls(name, elements, motion_model, rng.uniform(0.0, TWO_PI), appearance=appearance)

    def __repr__(self) -> str:
        return (
            f"OrbitalBody(name={self.name!r}, motion_model={self._motion_model.name}, "
            f"phase={self._phase:.6f})"
        )

    @property
    def elements(self) -> OrbitalElements:
        return self._elements

    @property
    def motion_model(self) -> MotionModel:
        return self._motion_model

    @property
    def phase(self) -> float:
        return self._phase

    @property
    def angle(self) -> float:
        if self._motion_model is not MotionModel.CIRCULAR:
            raise MotionModelError(f"{self.name} uses elliptical motion; read mean_anomaly")
        return self._phase

    @property
    def mean_anomaly(self) -> float:
        if self._motion_model is not MotionModel.ELLIPTICAL:
            raise MotionModelError(f"{self.name} uses circular motion; read angle")
        return self._phase

    def advance(self, scaled_delta: float) -> None:
        step = self._elements.mean_motion * scaled_delta
        if self._motion_model is MotionModel.ELLIPTICAL:
            self._phase = (self._phase + step) % TWO_PI
        else:
            self._phase += step

    def position(self, cfg: KeplerCfg = KEPLER_CFG) -> tuple[float, float]:
        if self._motion_model is MotionModel.ELLIPTICAL:
            return elliptical_offset(self._phase, self._elements, cfg)
        return circular_offset(self._phase, self._elements.semi_major_axis)

    def apply(
        self,
        elements: OrbitalElements,
        motion_model: MotionModel,
        appearance: Appearance | None = None,
    ) -> None:
        """Swap in new elements and model, carrying the phase over."""

        self._elements = elements
        self._motion_model = motion_model
        if motion_model is MotionModel.ELLIPTICAL:
            self._phase %= TWO_PI
        if appearance is not None:
            self.appearance = appearance


__all__ = ["Appearance", "MotionModel", "OrbitalBody", "OrbitalElements", "TWO_PI"]
