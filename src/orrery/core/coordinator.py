"""Tick loop and mode transition state machine for the orrery."""
from __future__ import annotations

import enum
import logging
import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Mapping

import numpy as np

from .config import KEPLER_CFG, PATH_CFG, TRANSITION_TIMING, KeplerCfg, PathCfg, TransitionTiming
from .model import Appearance, OrbitalBody
from .paths import sample_orbit_path
from .scheduling import Scheduler
from .timekeeping import TimeController

if TYPE_CHECKING:  # pragma: no cover
    from orrery.data.modes import ModeConfig, ModeRegistry

logger = logging.getLogger(__name__)

Position = tuple[float, float]

# Phase durations are compared with this slack so that chained float timers
# (0.15 + 0.8 + ...) cannot leave a phase a hair short of finishing.
_PHASE_EPSILON = 1e-9


class TransitionPhase(enum.Enum):
    IDLE = "idle"
    FADING_OUT = "fading_out"
    SWAPPING_ELEMENTS = "swapping_elements"
    WAITING_FOR_PATH_TRANSITION = "waiting_for_path_transition"
    SNAPPING_POSITION = "snapping_position"
    FADING_IN = "fading_in"


PHASE_SEQUENCE: tuple[TransitionPhase, ...] = (
    TransitionPhase.FADING_OUT,
    TransitionPhase.SWAPPING_ELEMENTS,
    TransitionPhase.WAITING_FOR_PATH_TRANSITION,
    TransitionPhase.SNAPPING_POSITION,
    TransitionPhase.FADING_IN,
)


def phase_durations(timing: TransitionTiming) -> dict[TransitionPhase, float]:
    return {
        TransitionPhase.FADING_OUT: timing.fade_out,
        TransitionPhase.SWAPPING_ELEMENTS: timing.swap_elements,
        TransitionPhase.WAITING_FOR_PATH_TRANSITION: timing.path_transition,
        TransitionPhase.SNAPPING_POSITION: timing.position_snap,
        TransitionPhase.FADING_IN: timing.fade_in,
    }


@dataclass(frozen=True)
class TransitionState:
    """Read-only snapshot of the transition state machine."""

    phase: TransitionPhase = TransitionPhase.IDLE
    target_mode: str | None = None
    elapsed_in_phase: float = 0.0
    started_at: float | None = None

    @property
    def active(self) -> bool:
        return self.phase is not TransitionPhase.IDLE


class SimulationListener:
    """Receiver for everything the coordinator reports outward.

    Subclasses override what they need; every hook defaults to a no-op.
    """

    def on_positions(self, positions: Mapping[str, Position], sim_time: float) -> None:
        pass

    def on_visibility(self, visible: bool) -> None:
        pass

    def on_mode_applied(self, mode: ModeConfig) -> None:
        pass

    def on_transition_phase(self, phase: TransitionPhase, target_mode: str | None) -> None:
        pass


class SimulationCoordinator:
    """Owns the bodies, advances them every frame and swaps modes safely.

    Mode switches run through :data:`PHASE_SEQUENCE`. While a switch is in
    flight, :meth:`on_tick` keeps the clock bookkeeping but leaves every body
    untouched; positions are only recomputed at phase boundaries.
    """

    def __init__(
        self,
        registry: ModeRegistry,
        scheduler: Scheduler,
        *,
        initial_mode: str | None = None,
        time_controller: TimeController | None = None,
        rng: random.Random | None = None,
        timing: TransitionTiming = TRANSITION_TIMING,
        kepler_cfg: KeplerCfg = KEPLER_CFG,
        path_cfg: PathCfg = PATH_CFG,
        clock: Callable[[], float] = time.perf_counter,
        listeners: Iterable[SimulationListener] = (),
    ) -> None:
        key = initial_mode if initial_mode is not None else next(iter(registry))
        mode = registry.get(key)
        if mode is None:
            raise KeyError(f"unknown mode {key!r}")

        self._registry = registry
        self._scheduler = scheduler
        self._mode = mode
        self.time_controller = time_controller or TimeController(mode.time_scale)
        self._rng = rng or random.Random()
        self._durations = phase_durations(timing)
        self._kepler_cfg = kepler_cfg
        self._path_cfg = path_cfg
        self._clock = clock
        self._listeners: list[SimulationListener] = list(listeners)

        self._bodies: dict[str, OrbitalBody] = {}
        for name in mode.body_names():
            self._bodies[name] = OrbitalBody.with_random_phase(
                name,
                registry.elements_for(mode, name),
                mode.motion_model,
                self._rng,
                appearance=mode.appearance_for(name),
            )
        self._positions: dict[str, Position] = self._compute_positions()
        self._paths: dict[str, np.ndarray] = {}
        self._visible = True

        self._running = False
        self._frame_handle: int | None = None
        self._last_timestamp: float | None = None
        self.sim_time = 0.0

        self._phase = TransitionPhase.IDLE
        self._target: ModeConfig | None = None
        self._elapsed_in_phase = 0.0
        self._generation = 0
        self._started_at: float | None = None
        self._armed_generation = 0
        self._timer_handle: int | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._running

    @property
    def current_mode(self) -> ModeConfig:
        return self._mode

    @property
    def show_orbits(self) -> bool:
        return self._mode.show_orbits

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def body_names(self) -> tuple[str, ...]:
        return tuple(self._bodies)

    @property
    def transition(self) -> TransitionState:
        return TransitionState(
            phase=self._phase,
            target_mode=self._target.key if self._target is not None else None,
            elapsed_in_phase=self._elapsed_in_phase,
            started_at=self._started_at,
        )

    @property
    def transitioning(self) -> bool:
        return self._phase is not TransitionPhase.IDLE

    def body(self, name: str) -> OrbitalBody:
        return self._bodies[name]

    def position(self, name: str) -> Position:
        """Last position reported for ``name``, as an offset from the focus."""

        return self._positions[name]

    def appearance(self, name: str) -> Appearance | None:
        return self._bodies[name].appearance

    def positions(self) -> dict[str, Position]:
        return dict(self._positions)

    def orbit_path(self, name: str) -> np.ndarray:
        path = self._paths.get(name)
        if path is None:
            body = self._bodies[name]
            path = sample_orbit_path(
                body.elements, body.motion_model, self._path_cfg.resolution, self._kepler_cfg
            )
            path.flags.writeable = False
            self._paths[name] = path
        return path

    def add_listener(self, listener: SimulationListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SimulationListener) -> None:
        self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._last_timestamp = self._clock()
        self._frame_handle = self._scheduler.request_frame(self.on_tick)
        logger.debug("tick loop started at %.6f", self._last_timestamp)

    def stop(self) -> None:
        if not self._running:
            return
        if self._frame_handle is not None:
            self._scheduler.cancel_frame(self._frame_handle)
            self._frame_handle = None
        self._running = False
        logger.debug("tick loop stopped")

    def on_tick(self, now: float) -> None:
        real_delta = 0.0 if self._last_timestamp is None else now - self._last_timestamp
        self._last_timestamp = now

        if not self.transitioning:
            scaled_delta = self.time_controller.get_delta(real_delta)
            for body in self._bodies.values():
                body.advance(scaled_delta)
            self.sim_time += scaled_delta
            self._publish_positions()

        if self._running:
            if self._frame_handle is not None:
                self._scheduler.cancel_frame(self._frame_handle)
            self._frame_handle = self._scheduler.request_frame(self.on_tick)

    # ------------------------------------------------------------------
    # Mode transitions
    # ------------------------------------------------------------------
    def set_mode(self, key: str) -> bool:
        """Begin switching to mode ``key``; returns whether it was accepted."""

        if self.transitioning:
            logger.warning(
                "mode switch to %r rejected: transition to %r still in %s",
                key,
                self._target.key if self._target else None,
                self._phase.value,
            )
            return False
        mode = self._registry.get(key)
        if mode is None:
            logger.warning("mode switch rejected: unknown mode %r", key)
            return False

        logger.info("switching mode %r -> %r", self._mode.key, key)
        self._target = mode
        self._started_at = self._clock()
        self._enter_phase(TransitionPhase.FADING_OUT)
        self._settle()
        return True

    def advance_transition(self, elapsed: float) -> TransitionPhase:
        """Report ``elapsed`` seconds spent in the current phase.

        Every phase whose duration is now used up is left in order, running
        the entry action of the next one. Returns the phase reached.
        """

        if not self.transitioning:
            return self._phase
        self._elapsed_in_phase += elapsed
        self._settle()
        return self._phase

    def _settle(self) -> None:
        while self.transitioning:
            duration = self._durations[self._phase]
            if self._elapsed_in_phase < duration - _PHASE_EPSILON:
                break
            overflow = max(0.0, self._elapsed_in_phase - duration)
            self._enter_phase(self._next_phase())
            self._elapsed_in_phase = overflow
        if not self.transitioning:
            self._cancel_phase_timer()
        elif self._armed_generation != self._generation:
            self._cancel_phase_timer()
            remaining = max(0.0, self._durations[self._phase] - self._elapsed_in_phase)
            self._timer_handle = self._scheduler.call_later(
                remaining, self._phase_timer(self._generation)
            )
            self._armed_generation = self._generation

    def _cancel_phase_timer(self) -> None:
        if self._timer_handle is not None:
            self._scheduler.cancel_timer(self._timer_handle)
            self._timer_handle = None

    def _phase_timer(self, generation: int) -> Callable[[], None]:
        def fire() -> None:
            if self._armed_generation == generation:
                self._timer_handle = None
            # Stale once the phase was left through advance_transition().
            if generation != self._generation or not self.transitioning:
                return
            remaining = self._durations[self._phase] - self._elapsed_in_phase
            self.advance_transition(max(0.0, remaining))

        return fire

    def _next_phase(self) -> TransitionPhase:
        index = PHASE_SEQUENCE.index(self._phase)
        if index + 1 < len(PHASE_SEQUENCE):
            return PHASE_SEQUENCE[index + 1]
        return TransitionPhase.IDLE

    def _enter_phase(self, phase: TransitionPhase) -> None:
        self._phase = phase
        self._elapsed_in_phase = 0.0
        self._generation += 1
        target_key = self._target.key if self._target is not None else None
        logger.debug("transition to %r entering %s", target_key, phase.value)
        for listener in self._listeners:
            listener.on_transition_phase(phase, target_key)

        if phase is TransitionPhase.FADING_OUT:
            self._set_visible(False)
        elif phase is TransitionPhase.SWAPPING_ELEMENTS:
            self._swap_elements()
        elif phase is TransitionPhase.SNAPPING_POSITION:
            self._publish_positions()
        elif phase is TransitionPhase.FADING_IN:
            self._set_visible(True)
        elif phase is TransitionPhase.IDLE:
            logger.info("mode %r active", self._mode.key)
            self._target = None
            self._started_at = None

    def _swap_elements(self) -> None:
        mode = self._target
        assert mode is not None
        motion_model = mode.motion_model
        # Resolve everything first so a lookup failure leaves no body half-swapped.
        updates = [
            (body, self._registry.elements_for(mode, name), mode.appearance_for(name))
            for name, body in self._bodies.items()
        ]
        for body, elements, appearance in updates:
            body.apply(elements, motion_model, appearance)
        self._mode = mode
        self._paths.clear()
        for listener in self._listeners:
            listener.on_mode_applied(mode)

    # ------------------------------------------------------------------
    def _compute_positions(self) -> dict[str, Position]:
        return {name: body.position(self._kepler_cfg) for name, body in self._bodies.items()}

    def _publish_positions(self) -> None:
        self._positions = self._compute_positions()
        for listener in self._listeners:
            listener.on_positions(self._positions, self.sim_time)

    def _set_visible(self, visible: bool) -> None:
        self._visible = visible
        for listener in self._listeners:
            listener.on_visibility(visible)


__all__ = [
    "PHASE_SEQUENCE",
    "Position",
    "SimulationCoordinator",
    "SimulationListener",
    "TransitionPhase",
    "TransitionState",
    "phase_durations",
]
