"""Tests for the tick loop and the mode transition state machine."""
import math
import random
import unittest

from orrery.core.config import TransitionTiming
from orrery.core.coordinator import (
    PHASE_SEQUENCE,
    SimulationCoordinator,
    SimulationListener,
    TransitionPhase,
)
from orrery.core.model import MotionModel
from orrery.core.scheduling import ManualScheduler
from orrery.core.timekeeping import TimeController
from orrery.data.modes import BodyConfig, ModeConfig, ModeRegistry, build_mode_registry

FRAME = 1.0 / 60.0


class RecordingSink(SimulationListener):

    def __init__(self, scheduler):
        self.scheduler = scheduler
        self.calls = []
        self.phase_times = {}

    def on_positions(self, positions, sim_time):
        self.calls.append(("positions", dict(positions)))

    def on_visibility(self, visible):
        self.calls.append(("visibility", visible))

    def on_mode_applied(self, mode):
        self.calls.append(("mode", mode.key))

    def on_transition_phase(self, phase, target_mode):
        self.calls.append(("phase", phase))
        self.phase_times[phase] = self.scheduler.now


def unit_registry():
    """One Earth-like body with period 1 in a circular and an elliptical mode."""
    circular = ModeConfig(key="circle", name="Circle", planet_scale=1.0, orbit_scale=1.0,
                          time_scale=1.0, show_orbits=True, use_elliptical_orbits=False,
                          bodies={"earth": BodyConfig(10, 100, 1.0, "#4169E1")})
    elliptical = ModeConfig(key="ellipse", name="Ellipse", planet_scale=1.0, orbit_scale=2.0,
                            time_scale=1.0, show_orbits=False, use_elliptical_orbits=True,
                            bodies={"earth": BodyConfig(10, 100, 1.0, "#4169E1", 0.017)})
    return build_mode_registry([circular, elliptical])


class CoordinatorTestCase(unittest.TestCase):

    registry_factory = staticmethod(build_mode_registry)

    def setUp(self):
        self.scheduler = ManualScheduler()
        self.coordinator = SimulationCoordinator(
            self.registry_factory(),
            self.scheduler,
            rng=random.Random(1234),
            clock=self.scheduler.clock,
        )
        self.sink = RecordingSink(self.scheduler)
        self.coordinator.add_listener(self.sink)

    def step_frame(self, dt=FRAME):
        self.scheduler.advance(dt)
        self.scheduler.run_frame()

    def phases(self):
        return {name: self.coordinator.body(name).phase for name in self.coordinator.body_names}

    def elements(self):
        return {name: self.coordinator.body(name).elements for name in self.coordinator.body_names}


class TestTickLoop(CoordinatorTestCase):

    registry_factory = staticmethod(unit_registry)

    def test_quarter_period_tick(self):
        """period 1, scale 1, real delta 0.25 advances the angle by pi/2."""
        start = self.coordinator.body("earth").angle
        self.coordinator.start()
        self.step_frame(0.25)
        self.assertAlmostEqual(self.coordinator.body("earth").angle - start, math.pi / 2, places=12)
        self.assertAlmostEqual(self.coordinator.sim_time, 0.25)

    def test_time_scale_applies(self):
        self.coordinator.time_controller.set_scale(2.0)
        start = self.coordinator.body("earth").angle
        self.coordinator.start()
        self.step_frame(0.25)
        self.assertAlmostEqual(self.coordinator.body("earth").angle - start, math.pi, places=12)

    def test_paused_ticks_do_not_advance(self):
        self.coordinator.time_controller.pause()
        before = self.phases()
        self.coordinator.start()
        for _ in range(10):
            self.step_frame()
        self.assertEqual(self.phases(), before)

    def test_first_tick_without_start_has_zero_delta(self):
        before = self.phases()
        self.coordinator.on_tick(42.0)
        self.assertEqual(self.phases(), before)
        self.assertEqual(self.scheduler.pending_frames, 0)

    def test_positions_reported_each_tick(self):
        self.coordinator.start()
        self.step_frame()
        self.step_frame()
        reports = [call for call in self.sink.calls if call[0] == "positions"]
        self.assertEqual(len(reports), 2)
        self.assertEqual(reports[-1][1]["earth"], self.coordinator.position("earth"))
        x, y = self.coordinator.position("earth")
        self.assertAlmostEqual(math.hypot(x, y), 100.0)

    def test_start_is_idempotent(self):
        self.coordinator.start()
        self.coordinator.start()
        self.assertTrue(self.coordinator.running)
        self.assertEqual(self.scheduler.pending_frames, 1)

    def test_stop_cancels_pending_frame(self):
        self.coordinator.start()
        self.step_frame()
        self.coordinator.stop()
        self.coordinator.stop()
        self.assertFalse(self.coordinator.running)
        self.assertEqual(self.scheduler.pending_frames, 0)
        before = self.phases()
        self.step_frame()
        self.assertEqual(self.phases(), before)

    def test_unknown_body_raises_key_error(self):
        with self.assertRaises(KeyError):
            self.coordinator.position("pluto")
        with self.assertRaises(KeyError):
            self.coordinator.orbit_path("pluto")

    def test_orbit_path_is_cached_and_read_only(self):
        path = self.coordinator.orbit_path("earth")
        self.assertIs(self.coordinator.orbit_path("earth"), path)
        with self.assertRaises(ValueError):
            path[0, 0] = 1.0

    def test_unknown_initial_mode(self):
        with self.assertRaises(KeyError):
            SimulationCoordinator(unit_registry(), ManualScheduler(), initial_mode="nope")

    def test_seeded_phases_reproducible(self):
        other = SimulationCoordinator(unit_registry(), ManualScheduler(), rng=random.Random(1234))
        self.assertEqual(other.body("earth").phase, self.coordinator.body("earth").phase)

    def test_time_controller_defaults_to_mode_scale(self):
        coordinator = SimulationCoordinator(build_mode_registry(), ManualScheduler())
        self.assertAlmostEqual(coordinator.time_controller.scale, 1 / 60)
        self.assertAlmostEqual(coordinator.time_controller.base_scale, 1 / 60)


class TestModeTransition(CoordinatorTestCase):

    def test_unknown_mode_rejected_without_state_change(self):
        before = self.elements()
        self.assertFalse(self.coordinator.set_mode("galactic"))
        self.assertFalse(self.coordinator.transitioning)
        self.assertEqual(self.elements(), before)
        self.assertEqual(self.scheduler.pending_timers, 0)
        self.assertEqual(self.sink.calls, [])

    def test_set_mode_during_transition_rejected(self):
        before = self.elements()
        self.assertTrue(self.coordinator.set_mode("realistic"))
        self.assertIs(self.coordinator.transition.phase, TransitionPhase.FADING_OUT)
        self.assertFalse(self.coordinator.set_mode("simple"))
        self.assertEqual(self.elements(), before)
        self.assertEqual(self.coordinator.transition.target_mode, "realistic")

    def test_set_mode_after_swap_rejected(self):
        self.coordinator.set_mode("realistic")
        self.coordinator.advance_transition(0.2)
        self.assertIs(self.coordinator.transition.phase,
                      TransitionPhase.WAITING_FOR_PATH_TRANSITION)
        swapped = self.elements()
        self.assertFalse(self.coordinator.set_mode("simple"))
        self.assertEqual(self.elements(), swapped)
        self.assertEqual(self.coordinator.current_mode.key, "realistic")

    def test_full_transition_timing(self):
        self.assertTrue(self.coordinator.set_mode("realistic"))
        self.scheduler.advance(5.0)
        self.assertFalse(self.coordinator.transitioning)
        times = self.sink.phase_times
        self.assertAlmostEqual(times[TransitionPhase.FADING_OUT], 0.0)
        self.assertAlmostEqual(times[TransitionPhase.SWAPPING_ELEMENTS], 0.150)
        self.assertAlmostEqual(times[TransitionPhase.WAITING_FOR_PATH_TRANSITION], 0.150)
        self.assertAlmostEqual(times[TransitionPhase.SNAPPING_POSITION], 0.950)
        self.assertAlmostEqual(times[TransitionPhase.FADING_IN], 1.000)
        self.assertAlmostEqual(times[TransitionPhase.IDLE], 0.15 + 0.8 + 0.05 + 0.3)

    def test_custom_timing(self):
        timing = TransitionTiming(fade_out=0.1, path_transition=0.2, position_snap=0.0, fade_in=0.1)
        coordinator = SimulationCoordinator(build_mode_registry(), self.scheduler,
                                            timing=timing, clock=self.scheduler.clock)
        sink = RecordingSink(self.scheduler)
        coordinator.add_listener(sink)
        coordinator.set_mode("realistic")
        self.scheduler.advance(1.0)
        self.assertAlmostEqual(sink.phase_times[TransitionPhase.IDLE], timing.total)

    def test_ticks_do_not_mutate_bodies_during_transition(self):
        self.coordinator.start()
        before = self.phases()
        self.assertTrue(self.coordinator.set_mode("realistic"))
        ticks = 0
        while self.coordinator.transitioning:
            self.step_frame()
            if not self.coordinator.transitioning:
                break
            ticks += 1
            self.assertEqual(self.coordinator.sim_time, 0.0)
            for name, phase in self.phases().items():
                self.assertAlmostEqual(phase % (2 * math.pi), before[name] % (2 * math.pi),
                                       places=12)
        self.assertGreaterEqual(ticks, int(1.3 / FRAME) - 2)

    def test_no_jump_after_transition(self):
        self.coordinator.start()
        self.coordinator.set_mode("realistic")
        while self.coordinator.transitioning:
            self.step_frame()
        before = self.phases()
        self.step_frame()
        scale = self.coordinator.time_controller.scale
        for name, phase in self.phases().items():
            period = self.coordinator.body(name).elements.period
            expected = (before[name] + 2 * math.pi / period * FRAME * scale) % (2 * math.pi)
            self.assertAlmostEqual(phase, expected, places=9)

    def test_swap_replaces_elements_and_model_keeping_phase(self):
        before = self.phases()
        self.coordinator.set_mode("realistic")
        self.coordinator.advance_transition(0.15)
        self.assertEqual(self.coordinator.current_mode.key, "realistic")
        for name in self.coordinator.body_names:
            body = self.coordinator.body(name)
            self.assertIs(body.motion_model, MotionModel.ELLIPTICAL)
            self.assertAlmostEqual(body.mean_anomaly, before[name])
        mercury = self.coordinator.body("mercury").elements
        self.assertAlmostEqual(mercury.semi_major_axis, 60.0)
        self.assertAlmostEqual(mercury.eccentricity, 0.206)
        self.assertAlmostEqual(self.coordinator.appearance("earth").size, 12.7 * 0.6)

    def test_positions_recomputed_only_at_snap(self):
        old = self.coordinator.positions()
        self.coordinator.set_mode("realistic")
        self.coordinator.advance_transition(0.15)
        self.assertEqual(self.coordinator.positions(), old)
        self.coordinator.advance_transition(0.8)
        self.assertIs(self.coordinator.transition.phase, TransitionPhase.SNAPPING_POSITION)
        snapped = self.coordinator.positions()
        for name in self.coordinator.body_names:
            self.assertEqual(snapped[name], self.coordinator.body(name).position())
        self.assertNotEqual(snapped, old)

    def test_manual_stepping_visits_every_phase_in_order(self):
        self.coordinator.set_mode("realistic")
        self.assertIs(self.coordinator.advance_transition(0.1), TransitionPhase.FADING_OUT)
        self.assertIs(self.coordinator.advance_transition(0.05),
                      TransitionPhase.WAITING_FOR_PATH_TRANSITION)
        self.assertIs(self.coordinator.advance_transition(0.8), TransitionPhase.SNAPPING_POSITION)
        self.assertIs(self.coordinator.advance_transition(0.05), TransitionPhase.FADING_IN)
        self.assertIs(self.coordinator.advance_transition(0.3), TransitionPhase.IDLE)
        visited = [call[1] for call in self.sink.calls if call[0] == "phase"]
        self.assertEqual(visited, list(PHASE_SEQUENCE) + [TransitionPhase.IDLE])

    def test_stale_timers_ignored_after_manual_stepping(self):
        self.coordinator.set_mode("realistic")
        self.coordinator.advance_transition(1.3)
        self.assertFalse(self.coordinator.transitioning)
        self.assertEqual(self.scheduler.pending_timers, 0)
        self.scheduler.advance(5.0)
        visited = [call[1] for call in self.sink.calls if call[0] == "phase"]
        self.assertEqual(visited.count(TransitionPhase.IDLE), 1)

    def test_listener_notification_order(self):
        self.coordinator.set_mode("realistic")
        self.scheduler.advance(2.0)
        kinds = [(kind, value if kind != "positions" else None) for kind, value in self.sink.calls]
        self.assertEqual(kinds, [
            ("phase", TransitionPhase.FADING_OUT),
            ("visibility", False),
            ("phase", TransitionPhase.SWAPPING_ELEMENTS),
            ("mode", "realistic"),
            ("phase", TransitionPhase.WAITING_FOR_PATH_TRANSITION),
            ("phase", TransitionPhase.SNAPPING_POSITION),
            ("positions", None),
            ("phase", TransitionPhase.FADING_IN),
            ("visibility", True),
            ("phase", TransitionPhase.IDLE),
        ])
        self.assertTrue(self.coordinator.visible)

    def test_stop_does_not_abort_transition(self):
        self.coordinator.start()
        self.coordinator.set_mode("realistic")
        self.coordinator.stop()
        self.scheduler.advance(2.0)
        self.assertFalse(self.coordinator.transitioning)
        self.assertEqual(self.coordinator.current_mode.key, "realistic")
        self.assertEqual(self.scheduler.pending_frames, 0)

    def test_switch_back_and_forth(self):
        self.coordinator.set_mode("realistic")
        self.scheduler.advance(2.0)
        self.assertTrue(self.coordinator.set_mode("simple"))
        self.scheduler.advance(2.0)
        self.assertEqual(self.coordinator.current_mode.key, "simple")
        self.assertIs(self.coordinator.body("earth").motion_model, MotionModel.CIRCULAR)

    def test_orbit_paths_regenerated_after_swap(self):
        old_path = self.coordinator.orbit_path("mars")
        self.coordinator.set_mode("realistic")
        self.scheduler.advance(2.0)
        new_path = self.coordinator.orbit_path("mars")
        self.assertIsNot(new_path, old_path)
        self.assertEqual(new_path.shape, old_path.shape)

    def test_started_at_records_switch_time(self):
        self.assertIsNone(self.coordinator.transition.started_at)
        self.scheduler.advance(0.5)
        self.coordinator.set_mode("realistic")
        self.assertAlmostEqual(self.coordinator.transition.started_at, 0.5)
        self.scheduler.advance(0.2)
        self.assertAlmostEqual(self.coordinator.transition.started_at, 0.5)
        self.scheduler.advance(2.0)
        self.assertIsNone(self.coordinator.transition.started_at)

    def test_manual_step_cancels_superseded_timer(self):
        self.coordinator.set_mode("realistic")
        self.assertEqual(self.scheduler.pending_timers, 1)
        self.coordinator.advance_transition(0.15)
        self.assertEqual(self.scheduler.pending_timers, 1)
        self.assertIs(self.coordinator.transition.phase, TransitionPhase.WAITING_FOR_PATH_TRANSITION)


class LookupFailingRegistry(ModeRegistry):
    """Registry whose element lookup fails for one body of one mode."""

    def elements_for(self, mode, name):
        if mode.key == "realistic" and name == "mars":
            raise KeyError(name)
        return super().elements_for(mode, name)


class TestSwapIsAllOrNothing(unittest.TestCase):

    def test_failed_lookup_leaves_every_body_unchanged(self):
        base = build_mode_registry()
        registry = LookupFailingRegistry(base.modes, base.orbital_parameters)
        scheduler = ManualScheduler()
        coordinator = SimulationCoordinator(registry, scheduler, rng=random.Random(3),
                                            clock=scheduler.clock)
        before = {name: coordinator.body(name).elements for name in coordinator.body_names}
        coordinator.set_mode("realistic")
        with self.assertRaises(KeyError):
            coordinator.advance_transition(0.15)
        for name in coordinator.body_names:
            self.assertIs(coordinator.body(name).motion_model, MotionModel.CIRCULAR)
            self.assertEqual(coordinator.body(name).elements, before[name])
        self.assertEqual(coordinator.current_mode.key, "simple")


if __name__ == '__main__':
    unittest.main()
