"""Scheduling primitives used to drive the coordinator."""
from __future__ import annotations

import heapq
import itertools
import time
from typing import Callable, Protocol

FrameCallback = Callable[[float], None]
TimerCallback = Callable[[], None]


class Scheduler(Protocol):
    """Frame and timer source supplied by the presentation layer."""

    def request_frame(self, callback: FrameCallback) -> int: ...

    def cancel_frame(self, handle: int) -> None: ...

    def call_later(self, delay: float, callback: TimerCallback) -> int: ...

    def cancel_timer(self, handle: int) -> None: ...


class ManualScheduler:
    """Deterministic scheduler with a simulated clock.

    Nothing runs until the owner calls :meth:`advance` or :meth:`run_frame`.
    Timers fire in due-time order (ties in arming order) with the clock set
    to their due time. Frame callbacks receive the current clock value.
    """

    def __init__(self, start_time: float = 0.0) -> None:
        self.now = start_time
        self._counter = itertools.count(1)
        self._frames: dict[int, FrameCallback] = {}
        self._timers: list[tuple[float, int, TimerCallback]] = []

    def clock(self) -> float:
        return self.now

    # ------------------------------------------------------------------
    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._counter)
        self._frames[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._frames.pop(handle, None)

    def call_later(self, delay: float, callback: TimerCallback) -> int:
        handle = next(self._counter)
        heapq.heappush(self._timers, (self.now + max(0.0, delay), handle, callback))
        return handle

    def cancel_timer(self, handle: int) -> None:
        remaining = [entry for entry in self._timers if entry[1] != handle]
        if len(remaining) != len(self._timers):
            heapq.heapify(remaining)
            self._timers = remaining

    # ------------------------------------------------------------------
    @property
    def pending_frames(self) -> int:
        return len(self._frames)

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that comes due."""

        target = self.now + seconds
        while self._timers and self._timers[0][0] <= target:
            due, _, callback = heapq.heappop(self._timers)
            self.now = max(self.now, due)
            callback()
        self.now = target

    def run_frame(self) -> int:
        """Invoke the frame callbacks pending right now; returns how many ran."""

        frames, self._frames = self._frames, {}
        for callback in frames.values():
            callback(self.now)
        return len(frames)

    def run(self, duration: float, fps: float = 60.0) -> int:
        """Alternate clock steps of ``1/fps`` and frames for ``duration``."""

        frame_dt = 1.0 / fps
        steps = int(round(duration * fps))
        for _ in range(steps):
            self.advance(frame_dt)
            self.run_frame()
        return steps


class RealtimeScheduler(ManualScheduler):
    """:class:`ManualScheduler` whose clock follows :func:`time.perf_counter`.

    The render loop calls :meth:`pump` once per frame.
    """

    def __init__(self) -> None:
        super().__init__(time.perf_counter())

    def clock(self) -> float:
        return time.perf_counter()

    def pump(self) -> int:
        self.advance(max(0.0, time.perf_counter() - self.now))
        return self.run_frame()


__all__ = ["FrameCallback", "ManualScheduler", "RealtimeScheduler", "Scheduler", "TimerCallback"]
