"""Simulation core: orbital maths, timekeeping and the coordinator."""

from .coordinator import (
    PHASE_SEQUENCE,
    SimulationCoordinator,
    SimulationListener,
    TransitionPhase,
    TransitionState,
)
from .errors import ConfigurationError, MotionModelError, OrreryError
from .kepler import elliptical_offset, solve_kepler
from .model import Appearance, MotionModel, OrbitalBody, OrbitalElements
from .paths import sample_orbit_path
from .scheduling import ManualScheduler, RealtimeScheduler, Scheduler
from .timekeeping import TimeController

__all__ = [
    "Appearance",
    "ConfigurationError",
    "ManualScheduler",
    "MotionModel",
    "MotionModelError",
    "OrbitalBody",
    "OrbitalElements",
    "OrreryError",
    "PHASE_SEQUENCE",
    "RealtimeScheduler",
    "Scheduler",
    "SimulationCoordinator",
    "SimulationListener",
    "TimeController",
    "TransitionPhase",
    "TransitionState",
    "elliptical_offset",
    "sample_orbit_path",
    "solve_kepler",
]
