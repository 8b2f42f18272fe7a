"""View mode and orbital parameter definitions for the inner planets."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from orrery.core.errors import ConfigurationError
from orrery.core.model import Appearance, MotionModel, OrbitalElements


@dataclass(frozen=True)
class OrbitalParameters:
    """Real astronomical elements, angles in degrees."""

    eccentricity: float
    inclination_deg: float
    longitude_of_perihelion_deg: float
    mean_longitude_deg: float


@dataclass(frozen=True)
class BodyConfig:
    base_size: float
    base_orbit_radius: float
    period: float
    color: str
    eccentricity: float | None = None

    def __post_init__(self) -> None:
        if not self.period > 0.0:
            raise ConfigurationError(f"period must be positive, got {self.period}")
        if not self.base_orbit_radius > 0.0:
            raise ConfigurationError(f"base_orbit_radius must be positive, got {self.base_orbit_radius}")
        if self.eccentricity is not None and not 0.0 <= self.eccentricity < 1.0:
            raise ConfigurationError(f"eccentricity must lie in [0, 1), got {self.eccentricity}")


@dataclass(frozen=True)
class ModeConfig:
    key: str
    name: str
    planet_scale: float
    orbit_scale: float
    time_scale: float
    show_orbits: bool
    use_elliptical_orbits: bool
    bodies: Mapping[str, BodyConfig] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.bodies:
            raise ConfigurationError(f"mode {self.key!r} defines no bodies")
        for label in ("planet_scale", "orbit_scale", "time_scale"):
            if not getattr(self, label) > 0.0:
                raise ConfigurationError(f"{label} of mode {self.key!r} must be positive")
        object.__setattr__(self, "bodies", MappingProxyType(dict(self.bodies)))

    @property
    def motion_model(self) -> MotionModel:
        return MotionModel.from_flag(self.use_elliptical_orbits)

    def body_names(self) -> tuple[str, ...]:
        return tuple(self.bodies)

    def elements_for(self, name: str, params: OrbitalParameters) -> OrbitalElements:
        body = self.bodies[name]
        eccentricity = body.eccentricity if body.eccentricity is not None else params.eccentricity
        return OrbitalElements(
            eccentricity=eccentricity,
            inclination=math.radians(params.inclination_deg),
            longitude_of_perihelion=math.radians(params.longitude_of_perihelion_deg),
            semi_major_axis=body.base_orbit_radius * self.orbit_scale,
            period=body.period,
        )

    def appearance_for(self, name: str) -> Appearance:
        body = self.bodies[name]
        return Appearance(size=body.base_size * self.planet_scale, color=body.color)


ORBITAL_PARAMETERS: Mapping[str, OrbitalParameters] = MappingProxyType(
    {
        "mercury": OrbitalParameters(0.206, 7.0, 77.45, 252.25),
        "venus": OrbitalParameters(0.007, 3.4, 131.53, 181.98),
        "earth": OrbitalParameters(0.017, 0.0, 102.94, 100.46),
        "mars": OrbitalParameters(0.093, 1.85, 336.04, 355.45),
    }
)

MODE_DEFINITIONS: tuple[ModeConfig, ...] = (
    ModeConfig(
        key="simple",
        name="Simple View",
        planet_scale=1.0,
        orbit_scale=1.0,
        time_scale=1 / 60,
        show_orbits=True,
        use_elliptical_orbits=False,
        bodies={
            "mercury": BodyConfig(10, 50, 0.24, "#A0522D"),
            "venus": BodyConfig(15, 90, 0.62, "#DEB887"),
            "earth": BodyConfig(16, 130, 1.00, "#4169E1"),
            "mars": BodyConfig(12, 170, 1.88, "#CD5C5C"),
        },
    ),
    ModeConfig(
        key="realistic",
        name="Realistic View",
        planet_scale=0.6,
        orbit_scale=1.5,
        time_scale=1 / 60,
        show_orbits=True,
        use_elliptical_orbits=True,
        bodies={
            "mercury": BodyConfig(4.9, 40, 0.24, "#A0522D", eccentricity=0.206),
            "venus": BodyConfig(12.1, 70, 0.62, "#DEB887", eccentricity=0.007),
            "earth": BodyConfig(12.7, 100, 1.00, "#4169E1", eccentricity=0.017),
            "mars": BodyConfig(6.8, 150, 1.88, "#CD5C5C", eccentricity=0.093),
        },
    ),
)


@dataclass(frozen=True)
class ModeRegistry:
    """Immutable set of modes plus the orbital parameters they draw on.

    Every mode must animate the same body set, and every body must have
    orbital parameters. Elements are derived once on construction so that
    invalid combinations fail on load rather than during a mode switch.
    """

    modes: Mapping[str, ModeConfig]
    orbital_parameters: Mapping[str, OrbitalParameters]

    def __post_init__(self) -> None:
        if not self.modes:
            raise ConfigurationError("at least one mode is required")
        body_set: frozenset[str] | None = None
        for key, mode in self.modes.items():
            if key != mode.key:
                raise ConfigurationError(f"mode {mode.key!r} registered under key {key!r}")
            names = frozenset(mode.body_names())
            if body_set is None:
                body_set = names
            elif names != body_set:
                raise ConfigurationError(
                    f"mode {mode.key!r} bodies {sorted(names)} differ from {sorted(body_set)}"
                )
            for name in names:
                if name not in self.orbital_parameters:
                    raise ConfigurationError(f"no orbital parameters for body {name!r}")
                mode.elements_for(name, self.orbital_parameters[name])
        object.__setattr__(self, "modes", MappingProxyType(dict(self.modes)))
        object.__setattr__(self, "orbital_parameters", MappingProxyType(dict(self.orbital_parameters)))

    def __contains__(self, key: object) -> bool:
        return key in self.modes

    def __getitem__(self, key: str) -> ModeConfig:
        return self.modes[key]

    def __iter__(self):
        return iter(self.modes)

    def __len__(self) -> int:
        return len(self.modes)

    def get(self, key: str) -> ModeConfig | None:
        return self.modes.get(key)

    def elements_for(self, mode: ModeConfig, name: str) -> OrbitalElements:
        return mode.elements_for(name, self.orbital_parameters[name])


def build_mode_registry(
    modes: Iterable[ModeConfig] = MODE_DEFINITIONS,
    orbital_parameters: Mapping[str, OrbitalParameters] = ORBITAL_PARAMETERS,
) -> ModeRegistry:
    """Key ``modes`` by their ``key`` and freeze them into a registry."""

    table: dict[str, ModeConfig] = {}
    for mode in modes:
        if mode.key in table:
            raise ConfigurationError(f"duplicate mode key {mode.key!r}")
        table[mode.key] = mode
    return ModeRegistry(modes=table, orbital_parameters=orbital_parameters)


DEFAULT_MODE_KEY = MODE_DEFINITIONS[0].key
MODE_DISPLAY_ORDER: list[str] = [mode.key for mode in MODE_DEFINITIONS]


__all__ = [
    "BodyConfig",
    "DEFAULT_MODE_KEY",
    "MODE_DEFINITIONS",
    "MODE_DISPLAY_ORDER",
    "ModeConfig",
    "ModeRegistry",
    "ORBITAL_PARAMETERS",
    "OrbitalParameters",
    "build_mode_registry",
]
