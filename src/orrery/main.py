# src/orrery/main.py
"""
Orrery - inner planets on circular or Keplerian orbits
======================================================

Opens the pygame viewer by default. ``--headless`` runs the same engine on
a simulated clock instead, which together with ``--record`` produces a run
folder that ``orrery-analyze`` can plot.
"""
from __future__ import annotations

import argparse
import logging
import random
from dataclasses import asdict
from typing import Sequence

from orrery import __version__
from orrery.core.config import SLIDER_CFG, TRANSITION_TIMING
from orrery.core.coordinator import SimulationCoordinator
from orrery.core.logging_utils import RecordingListener, RunRecorder
from orrery.core.scheduling import ManualScheduler, RealtimeScheduler
from orrery.core.timekeeping import TimeController, clamp_orbit_seconds, orbit_seconds_to_scale
from orrery.data.modes import DEFAULT_MODE_KEY, MODE_DISPLAY_ORDER, ModeRegistry, build_mode_registry

log = logging.getLogger("orrery")


def parse_switch(value: str) -> tuple[str, float]:
    """Parse ``MODE@SECONDS`` as used by ``--switch``."""

    mode, sep, when = value.partition("@")
    if not sep or not mode:
        raise argparse.ArgumentTypeError(f"expected MODE@SECONDS, got {value!r}")
    try:
        seconds = float(when)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid time in {value!r}") from exc
    if seconds < 0.0:
        raise argparse.ArgumentTypeError(f"switch time must not be negative: {value!r}")
    return mode, seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="orrery", description="Animate the inner planets.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--mode", default=DEFAULT_MODE_KEY, help="initial view mode")
    parser.add_argument("--seed", type=int, default=None, help="seed for the initial planet phases")
    parser.add_argument(
        "--orbit-seconds",
        type=float,
        default=None,
        help=(
            "real seconds per Earth orbit "
            f"({SLIDER_CFG.min_earth_orbit_seconds:g}-{SLIDER_CFG.max_earth_orbit_seconds:g}); "
            "defaults to the mode's time scale"
        ),
    )
    parser.add_argument("--record", action="store_true", help="write a run folder under --runs-dir")
    parser.add_argument("--runs-dir", default="data/runs")
    parser.add_argument("--headless", action="store_true", help="run without a window on a simulated clock")
    parser.add_argument("--duration", type=float, default=60.0, help="headless run length in seconds")
    parser.add_argument("--fps", type=float, default=60.0, help="headless frame rate")
    parser.add_argument(
        "--switch",
        type=parse_switch,
        action="append",
        default=[],
        metavar="MODE@SECONDS",
        help="headless: request a mode switch at the given real time (repeatable)",
    )
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def make_time_controller(registry: ModeRegistry, mode_key: str, orbit_seconds: float | None) -> TimeController:
    if orbit_seconds is None:
        return TimeController(registry[mode_key].time_scale)
    return TimeController(orbit_seconds_to_scale(clamp_orbit_seconds(orbit_seconds)))


def run_headless(
    coordinator: SimulationCoordinator,
    scheduler: ManualScheduler,
    *,
    duration: float,
    fps: float,
    switches: Sequence[tuple[str, float]] = (),
) -> int:
    """Drive ``coordinator`` for ``duration`` simulated seconds; returns frame count."""

    for mode, at in switches:
        scheduler.call_later(at, lambda mode=mode: coordinator.set_mode(mode))
    coordinator.start()
    try:
        frames = scheduler.run(duration, fps)
    finally:
        coordinator.stop()
    log.info("headless run finished: %d frames, simulation time %.4f", frames, coordinator.sim_time)
    return frames


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    registry = build_mode_registry()
    if args.mode not in registry:
        parser.error(f"unknown mode {args.mode!r}; choose from {', '.join(registry)}")
    for mode, _ in args.switch:
        if mode not in registry:
            parser.error(f"unknown mode {mode!r} in --switch")

    scheduler = ManualScheduler() if args.headless else RealtimeScheduler()
    coordinator = SimulationCoordinator(
        registry,
        scheduler,
        initial_mode=args.mode,
        time_controller=make_time_controller(registry, args.mode, args.orbit_seconds),
        rng=random.Random(args.seed),
        clock=scheduler.clock,
    )

    recorder: RunRecorder | None = None
    if args.record:
        recorder = RunRecorder(args.runs_dir)
        recorder.write_meta(
            {
                "version": __version__,
                "mode": args.mode,
                "seed": args.seed,
                "time_scale": coordinator.time_controller.scale,
                "headless": args.headless,
                "fps": args.fps,
                "bodies": list(coordinator.body_names),
                "transition_timing": asdict(TRANSITION_TIMING),
                "switches": [{"mode": m, "at": at} for m, at in args.switch],
            }
        )
        coordinator.add_listener(RecordingListener(recorder, coordinator))

    try:
        if args.headless:
            run_headless(
                coordinator,
                scheduler,
                duration=args.duration,
                fps=args.fps,
                switches=args.switch,
            )
        else:
            from orrery.render.viewer import OrreryViewer

            assert isinstance(scheduler, RealtimeScheduler)
            OrreryViewer(coordinator, scheduler, mode_order=MODE_DISPLAY_ORDER).run()
    finally:
        if recorder is not None:
            recorder.close()
            log.info("run saved to %s", recorder.run_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
