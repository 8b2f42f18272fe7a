"""Run recording helpers scoped to the orrery package."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from .coordinator import Position, SimulationListener, TransitionPhase

if TYPE_CHECKING:  # pragma: no cover
    from orrery.data.modes import ModeConfig

    from .coordinator import SimulationCoordinator

logger = logging.getLogger(__name__)

TIMESERIES_FILENAME = "timeseries.csv"
EVENTS_FILENAME = "events.csv"
META_FILENAME = "meta.json"
LAST_RUN_FILENAME = "last_run.txt"


class RunRecorder:
    """Buffered recorder that stores body positions and events as CSV.

    Parameters
    ----------
    root_dir:
        Directory under which a folder per run is created.
    run_id:
        Optional run identifier. Defaults to ``YYYYmmdd_HHMMSS_run``; a
        numeric suffix is added when the folder already exists.
    timeseries_flush_threshold, events_flush_threshold:
        Buffered rows before an automatic flush to disk.
    """

    TIMESERIES_HEADER = ["t", "body", "x", "y", "phase"]
    EVENTS_HEADER = ["t", "type", "details"]

    def __init__(
        self,
        root_dir: str | Path = "data/runs",
        run_id: Optional[str] = None,
        *,
        timeseries_flush_threshold: int = 400,
        events_flush_threshold: int = 20,
    ) -> None:
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        def make_candidate(suffix: Optional[int] = None) -> str:
            base = run_id or f"{timestamp}_run"
            if suffix is None:
                return base
            return f"{base}_{suffix:02d}"

        candidate_id = make_candidate()
        suffix = 1
        while (self.root_dir / candidate_id).exists():
            candidate_id = make_candidate(suffix)
            suffix += 1

        self.run_id = candidate_id
        self.run_dir = self.root_dir / self.run_id
        self.run_dir.mkdir(parents=True, exist_ok=False)

        self.timeseries_path = self.run_dir / TIMESERIES_FILENAME
        self.events_path = self.run_dir / EVENTS_FILENAME
        self.meta_path = self.run_dir / META_FILENAME

        self._ts_file = self.timeseries_path.open("w", newline="", encoding="utf-8")
        self._ts_file.write(",".join(self.TIMESERIES_HEADER) + "\n")
        self._ev_file = self.events_path.open("w", newline="", encoding="utf-8")
        self._ev_file.write(",".join(self.EVENTS_HEADER) + "\n")

        self._ts_buffer: list[str] = []
        self._ev_buffer: list[str] = []
        self._ts_threshold = max(1, timeseries_flush_threshold)
        self._ev_threshold = max(1, events_flush_threshold)
        self._closed = False

        (self.root_dir / LAST_RUN_FILENAME).write_text(self.run_id, encoding="utf-8")
        logger.info("recording run to %s", self.run_dir)

    # ------------------------------------------------------------------
    def write_meta(self, meta: dict) -> None:
        with self.meta_path.open("w", encoding="utf-8") as fh:
            json.dump(meta, fh, indent=2, sort_keys=True)

    # ------------------------------------------------------------------
    def log_ts(self, values: Sequence[object]) -> None:
        self._ts_buffer.append(",".join(self._format_value(v) for v in values))
        if len(self._ts_buffer) >= self._ts_threshold:
            self._flush_timeseries()

    # ------------------------------------------------------------------
    def log_event(self, t: float, event_type: str, details: dict | None = None) -> None:
        detail_text = json.dumps(details, sort_keys=True) if details else ""
        # JSON contains commas, so the details column is always quoted.
        quoted = '"' + detail_text.replace('"', '""') + '"'
        self._ev_buffer.append(f"{self._format_value(t)},{event_type},{quoted}")
        if len(self._ev_buffer) >= self._ev_threshold:
            self._flush_events()

    # ------------------------------------------------------------------
    def close(self) -> None:
        if self._closed:
            return
        self._flush_timeseries()
        self._flush_events()
        self._ts_file.close()
        self._ev_file.close()
        self._closed = True

    # ------------------------------------------------------------------
    def _flush_timeseries(self) -> None:
        if self._ts_buffer:
            self._ts_file.write("\n".join(self._ts_buffer) + "\n")
            self._ts_file.flush()
            self._ts_buffer.clear()

    def _flush_events(self) -> None:
        if self._ev_buffer:
            self._ev_file.write("\n".join(self._ev_buffer) + "\n")
            self._ev_file.flush()
            self._ev_buffer.clear()

    @staticmethod
    def _format_value(value: object) -> str:
        if isinstance(value, float):
            return f"{value:.10g}"
        return str(value)

    # ------------------------------------------------------------------
    def __enter__(self) -> "RunRecorder":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self.close()
        return None


class RecordingListener(SimulationListener):
    """Feeds coordinator output into a :class:`RunRecorder`.

    Positions are written every ``every_ticks`` reports; events are always
    written.
    """

    def __init__(
        self,
        recorder: RunRecorder,
        coordinator: SimulationCoordinator,
        *,
        every_ticks: int = 1,
    ) -> None:
        self.recorder = recorder
        self.coordinator = coordinator
        self.every_ticks = max(1, every_ticks)
        self._reports = 0

    def on_positions(self, positions: Mapping[str, Position], sim_time: float) -> None:
        self._reports += 1
        if (self._reports - 1) % self.every_ticks:
            return
        for name, (x, y) in positions.items():
            phase = self.coordinator.body(name).phase
            self.recorder.log_ts([sim_time, name, float(x), float(y), float(phase)])

    def on_visibility(self, visible: bool) -> None:
        self.recorder.log_event(
            self.coordinator.sim_time, "visibility", {"visible": visible}
        )

    def on_mode_applied(self, mode: ModeConfig) -> None:
        self.recorder.log_event(
            self.coordinator.sim_time,
            "mode_applied",
            {"mode": mode.key, "elliptical": mode.use_elliptical_orbits},
        )

    def on_transition_phase(self, phase: TransitionPhase, target_mode: str | None) -> None:
        self.recorder.log_event(
            self.coordinator.sim_time,
            "transition",
            {"phase": phase.value, "target": target_mode},
        )


__all__ = [
    "EVENTS_FILENAME",
    "LAST_RUN_FILENAME",
    "META_FILENAME",
    "RecordingListener",
    "RunRecorder",
    "TIMESERIES_FILENAME",
]
