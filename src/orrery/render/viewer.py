"""Pygame window that drives the coordinator and draws its output."""
from __future__ import annotations

import logging
from typing import Mapping, Sequence

import numpy as np
import pygame

from orrery.core.config import (
    PATH_CFG,
    RENDER_CFG,
    SLIDER_CFG,
    TRANSITION_TIMING,
    PathCfg,
    RenderCfg,
    SliderCfg,
    TransitionTiming,
)
from orrery.core.coordinator import (
    Position,
    SimulationCoordinator,
    SimulationListener,
    TransitionPhase,
)
from orrery.core.scheduling import RealtimeScheduler
from orrery.core.timekeeping import clamp_orbit_seconds, orbit_seconds_to_scale, scale_to_orbit_seconds
from orrery.data.modes import ModeConfig

from .camera import Camera
from .draw import draw_body, draw_orbit_path, draw_sun, interpolate_paths, parse_color
from .ui import build_text_panel, load_font

logger = logging.getLogger(__name__)


class Fade:
    """Linear opacity ramp between 0 and 255."""

    def __init__(self, value: float = 255.0) -> None:
        self._start_value = value
        self._end_value = value
        self._start_time = 0.0
        self._duration = 0.0

    def start(self, target: float, now: float, duration: float) -> None:
        self._start_value = self.value(now)
        self._end_value = target
        self._start_time = now
        self._duration = duration

    def value(self, now: float) -> float:
        if self._duration <= 0.0:
            return self._end_value
        t = min(1.0, max(0.0, (now - self._start_time) / self._duration))
        return self._start_value + (self._end_value - self._start_value) * t


class OrreryViewer(SimulationListener):
    """Interactive front end.

    Keys: SPACE pause, UP/DOWN speed, R reset speed, M or TAB next mode,
    1-9 pick mode, O toggle orbit paths, mouse wheel zoom, ESC quit.
    """

    def __init__(
        self,
        coordinator: SimulationCoordinator,
        scheduler: RealtimeScheduler,
        *,
        mode_order: Sequence[str],
        render_cfg: RenderCfg = RENDER_CFG,
        slider_cfg: SliderCfg = SLIDER_CFG,
        path_cfg: PathCfg = PATH_CFG,
        timing: TransitionTiming = TRANSITION_TIMING,
    ) -> None:
        self.coordinator = coordinator
        self.scheduler = scheduler
        self.mode_order = list(mode_order)
        self.render_cfg = render_cfg
        self.slider_cfg = slider_cfg
        self.path_cfg = path_cfg
        self.timing = timing

        self._positions: dict[str, Position] = coordinator.positions()
        self._fade = Fade(255.0)
        self._orbits_enabled = coordinator.show_orbits
        self._paths: dict[str, np.ndarray] = {}
        self._path_from: dict[str, np.ndarray] = {}
        self._path_morph_start: float | None = None
        self._running = False
        self._attached = False
        self._camera: Camera | None = None
        self._refresh_paths()

    # ------------------------------------------------------------------
    # SimulationListener
    # ------------------------------------------------------------------
    def on_positions(self, positions: Mapping[str, Position], sim_time: float) -> None:
        self._positions = dict(positions)

    def on_visibility(self, visible: bool) -> None:
        now = self.scheduler.clock()
        if visible:
            self._fade.start(255.0, now, self.timing.fade_in)
        else:
            self._fade.start(0.0, now, self.timing.fade_out)

    def on_mode_applied(self, mode: ModeConfig) -> None:
        self._path_from = dict(self._paths)
        self._refresh_paths()
        self._orbits_enabled = mode.show_orbits
        if self._camera is not None:
            self._camera.fit_radius(self._max_extent())

    def on_transition_phase(self, phase: TransitionPhase, target_mode: str | None) -> None:
        if phase is TransitionPhase.WAITING_FOR_PATH_TRANSITION:
            self._path_morph_start = self.scheduler.clock()

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------
    def change_speed(self, faster: bool) -> None:
        controller = self.coordinator.time_controller
        seconds = scale_to_orbit_seconds(controller.scale)
        factor = self.slider_cfg.step_factor
        seconds = seconds / factor if faster else seconds * factor
        controller.set_scale(orbit_seconds_to_scale(clamp_orbit_seconds(seconds, self.slider_cfg)))

    def next_mode(self) -> None:
        current = self.coordinator.current_mode.key
        index = self.mode_order.index(current) if current in self.mode_order else -1
        self.select_mode(self.mode_order[(index + 1) % len(self.mode_order)])

    def select_mode(self, key: str) -> None:
        if not self.coordinator.set_mode(key):
            logger.info("mode %r not applied", key)

    def handle_event(self, event: pygame.event.Event, camera: Camera) -> None:
        if event.type == pygame.QUIT:
            self._running = False
        elif event.type == pygame.MOUSEWHEEL:
            step = self.render_cfg.zoom_step
            camera.zoom_by_factor(step if event.y > 0 else 1.0 / step)
        elif event.type == pygame.KEYDOWN:
            key = event.key
            controller = self.coordinator.time_controller
            if key == pygame.K_ESCAPE:
                self._running = False
            elif key == pygame.K_SPACE:
                controller.toggle()
            elif key == pygame.K_UP:
                self.change_speed(faster=True)
            elif key == pygame.K_DOWN:
                self.change_speed(faster=False)
            elif key == pygame.K_r:
                controller.reset()
            elif key in (pygame.K_m, pygame.K_TAB):
                self.next_mode()
            elif key == pygame.K_o:
                self._orbits_enabled = not self._orbits_enabled
            elif pygame.K_1 <= key <= pygame.K_9:
                index = key - pygame.K_1
                if index < len(self.mode_order):
                    self.select_mode(self.mode_order[index])

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def _refresh_paths(self) -> None:
        self._paths = {name: self.coordinator.orbit_path(name) for name in self.coordinator.body_names}

    def _max_extent(self) -> float:
        if not self._paths:
            return 0.0
        return max(float(np.max(np.abs(path))) for path in self._paths.values())

    def _current_path(self, name: str, now: float) -> np.ndarray:
        target = self._paths[name]
        if self._path_morph_start is None or name not in self._path_from:
            return target
        duration = self.timing.path_transition
        fraction = 1.0 if duration <= 0.0 else (now - self._path_morph_start) / duration
        if fraction >= 1.0:
            return target
        return interpolate_paths(self._path_from[name], target, fraction)

    def _hud_lines(self) -> list[tuple[str, tuple[int, int, int]]]:
        cfg = self.render_cfg
        controller = self.coordinator.time_controller
        seconds = scale_to_orbit_seconds(controller.scale)
        transition = self.coordinator.transition
        lines = [
            (self.coordinator.current_mode.name, cfg.hud_text_color),
            (f"Earth orbit: {seconds:.1f} s", cfg.hud_text_color),
            ("PAUSED" if controller.is_paused else "running", cfg.hud_muted_color),
        ]
        if transition.active:
            lines.append((f"-> {transition.target_mode} ({transition.phase.value})", cfg.hud_muted_color))
        lines.append(("SPACE pause  UP/DOWN speed  M mode  O orbits", cfg.hud_muted_color))
        return lines

    def draw(self, surface: pygame.Surface, camera: Camera, font: pygame.font.Font) -> None:
        cfg = self.render_cfg
        now = self.scheduler.clock()
        surface.fill(cfg.background_color)

        if self._orbits_enabled:
            for name in self.coordinator.body_names:
                draw_orbit_path(
                    surface,
                    camera,
                    self._current_path(name, now),
                    render_cfg=cfg,
                    max_points=self.path_cfg.max_rendered_points,
                )

        draw_sun(surface, camera, render_cfg=cfg)

        alpha = int(self._fade.value(now))
        for name in self.coordinator.body_names:
            appearance = self.coordinator.appearance(name)
            if appearance is None:
                continue
            draw_body(
                surface,
                camera,
                self._positions[name],
                appearance.size,
                parse_color(appearance.color),
                alpha=alpha,
                render_cfg=cfg,
            )

        panel = build_text_panel(font, self._hud_lines(), background_color=cfg.hud_background_color)
        surface.blit(panel, (12, 12))

    # ------------------------------------------------------------------
    def run(self) -> None:
        cfg = self.render_cfg
        pygame.init()
        try:
            screen = pygame.display.set_mode((cfg.width, cfg.height), pygame.RESIZABLE)
            pygame.display.set_caption("Orrery")
            clock = pygame.time.Clock()
            font = load_font(cfg.hud_font_names, cfg.hud_font_size)
            camera = Camera(
                (cfg.width, cfg.height),
                cfg.pixels_per_unit,
                min_ppu=cfg.min_pixels_per_unit,
                max_ppu=cfg.max_pixels_per_unit,
            )

            camera.fit_radius(self._max_extent())
            self._camera = camera

            self.coordinator.add_listener(self)
            self._attached = True
            self.coordinator.start()
            self._running = True
            while self._running:
                for event in pygame.event.get():
                    if event.type == pygame.VIDEORESIZE:
                        camera.update_size(event.size)
                    self.handle_event(event, camera)
                self.scheduler.pump()
                camera.update()
                self.draw(screen, camera, font)
                pygame.display.flip()
                clock.tick(cfg.fps)
        finally:
            self.coordinator.stop()
            if self._attached:
                self.coordinator.remove_listener(self)
                self._attached = False
            pygame.quit()


__all__ = ["Fade", "OrreryViewer"]
