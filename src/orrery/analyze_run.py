"""Analyze a recorded orrery run and generate diagnostic figures."""
from __future__ import annotations

import argparse
import csv
import json
import math
from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from orrery.core.logging_utils import (
    EVENTS_FILENAME,
    LAST_RUN_FILENAME,
    META_FILENAME,
    TIMESERIES_FILENAME,
)

FIGS_SUBDIR = "figs"
BodySeries = Dict[str, np.ndarray]


def load_timeseries(path: Path) -> Dict[str, BodySeries]:
    """Group the timeseries rows per body into arrays ``t, x, y, phase``."""

    columns: Dict[str, Dict[str, List[float]]] = {}
    with path.open("r", newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            body = columns.setdefault(row["body"], {"t": [], "x": [], "y": [], "phase": []})
            for key in ("t", "x", "y", "phase"):
                body[key].append(float(row[key]))
    return {
        name: {key: np.asarray(values) for key, values in series.items()}
        for name, series in columns.items()
    }


def load_events(path: Path) -> List[dict]:
    events: List[dict] = []
    with path.open("r", newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            if not row:
                continue
            event = {"t": float(row["t"]), "type": row["type"], "details": {}}
            details_raw = row.get("details", "")
            if details_raw:
                try:
                    event["details"] = json.loads(details_raw)
                except json.JSONDecodeError:
                    event["details"] = details_raw
            events.append(event)
    return events


def ensure_fig_dir(run_dir: Path) -> Path:
    fig_dir = run_dir / FIGS_SUBDIR
    fig_dir.mkdir(parents=True, exist_ok=True)
    return fig_dir


def estimate_period(series: BodySeries) -> float | None:
    """Least-squares period from the unwrapped phase, or ``None`` if flat."""

    t = series["t"]
    if t.size < 2 or float(t[-1] - t[0]) <= 0.0:
        return None
    phase = np.unwrap(series["phase"])
    slope, _ = np.polyfit(t, phase, 1)
    if abs(slope) < 1e-12:
        return None
    return float(2.0 * math.pi / abs(slope))


def mode_switch_times(events: Sequence[dict]) -> List[tuple[float, str]]:
    switches = []
    for event in events:
        if event["type"] == "mode_applied" and isinstance(event["details"], dict):
            switches.append((event["t"], str(event["details"].get("mode", "?"))))
    return switches


def plot_orbits(fig_dir: Path, series: Dict[str, BodySeries]) -> None:
    fig, ax = plt.subplots(figsize=(6, 6))
    for name, data in series.items():
        ax.plot(data["x"], data["y"], lw=1.0, label=name)
    ax.scatter([0.0], [0.0], color="#ffcc4d", s=60, label="sun")
    ax.set_aspect("equal", "box")
    ax.invert_yaxis()
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_title("Body positions")
    ax.legend(loc="upper right", fontsize="small")
    fig.tight_layout()
    fig.savefig(fig_dir / "orbits_xy.png", dpi=150)
    plt.close(fig)


def plot_phase(fig_dir: Path, series: Dict[str, BodySeries], events: Sequence[dict]) -> None:
    fig, ax = plt.subplots(figsize=(7, 4))
    for name, data in series.items():
        ax.plot(data["t"], np.unwrap(data["phase"]), lw=1.2, label=name)
    for t, mode in mode_switch_times(events):
        ax.axvline(t, color="#868e96", linestyle="--", alpha=0.7)
        ax.annotate(mode, (t, 0.0), rotation=90, fontsize="x-small", va="bottom")
    ax.set_xlabel("simulation time")
    ax.set_ylabel("unwrapped phase [rad]")
    ax.set_title("Phase over time")
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize="small")
    fig.tight_layout()
    fig.savefig(fig_dir / "phase.png", dpi=150)
    plt.close(fig)


def plot_radius(fig_dir: Path, series: Dict[str, BodySeries]) -> None:
    fig, ax = plt.subplots(figsize=(7, 4))
    for name, data in series.items():
        ax.plot(data["t"], np.hypot(data["x"], data["y"]), lw=1.2, label=name)
    ax.set_xlabel("simulation time")
    ax.set_ylabel("distance from focus")
    ax.set_title("Radius over time")
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize="small")
    fig.tight_layout()
    fig.savefig(fig_dir / "radius.png", dpi=150)
    plt.close(fig)


def print_summary(run_dir: Path, meta: dict, series: Dict[str, BodySeries], events: Sequence[dict]) -> None:
    print(f"Run: {run_dir.name}")
    print(f" Mode at start: {meta.get('mode', '?')}  seed: {meta.get('seed')}")
    print(f" Time scale: {meta.get('time_scale', float('nan')):.6g}")
    for name, data in series.items():
        period = estimate_period(data)
        period_text = f"{period:.4f}" if period is not None else "n/a"
        print(f"  {name:<8} samples={data['t'].size:<6} estimated period={period_text}")
    switches = mode_switch_times(events)
    if switches:
        print(" Mode switches: " + ", ".join(f"{mode} @ t={t:.4f}" for t, mode in switches))
    else:
        print(" Mode switches: none")


def resolve_run_dir(parser: argparse.ArgumentParser, run_dir: str | None, runs_dir: Path) -> Path:
    if run_dir:
        run_path = Path(run_dir)
        if not run_path.is_dir():
            run_path = runs_dir / run_dir
    else:
        last_run_file = runs_dir / LAST_RUN_FILENAME
        if not last_run_file.exists():
            parser.error(f"no run given and {last_run_file} is missing")
        run_path = runs_dir / last_run_file.read_text(encoding="utf-8").strip()
    if not run_path.is_dir():
        parser.error(f"run folder not found: {run_path}")
    return run_path


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Plot a recorded orrery run.")
    parser.add_argument("run_dir", nargs="?", help="run folder, or its name under --runs-dir")
    parser.add_argument("--runs-dir", default="data/runs")
    args = parser.parse_args(argv)

    run_path = resolve_run_dir(parser, args.run_dir, Path(args.runs_dir))
    meta_path = run_path / META_FILENAME
    ts_path = run_path / TIMESERIES_FILENAME
    ev_path = run_path / EVENTS_FILENAME
    if not meta_path.exists() or not ts_path.exists() or not ev_path.exists():
        parser.error("run folder lacks meta/timeseries/events files")

    with meta_path.open("r", encoding="utf-8") as fh:
        meta = json.load(fh)
    series = load_timeseries(ts_path)
    events = load_events(ev_path)
    if not series:
        parser.error("timeseries.csv is empty, nothing to analyze")

    fig_dir = ensure_fig_dir(run_path)
    plot_orbits(fig_dir, series)
    plot_phase(fig_dir, series, events)
    plot_radius(fig_dir, series)
    print_summary(run_path, meta, series, events)


if __name__ == "__main__":
    main()
