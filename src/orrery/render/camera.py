from __future__ import annotations

from dataclasses import dataclass


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


@dataclass
class CameraState:
    ppu: float
    ppu_target: float


class Camera:
    """Maps model-space offsets around the central body onto the window.

    The central body always sits in the middle of the window; only the zoom
    (pixels per model unit) changes, eased towards its target every frame.
    """

    def __init__(
        self,
        size: tuple[int, int],
        ppu: float,
        *,
        min_ppu: float,
        max_ppu: float,
    ) -> None:
        self._size = size
        self._min_ppu = min_ppu
        self._max_ppu = max_ppu
        ppu = _clamp(ppu, min_ppu, max_ppu)
        self._state = CameraState(ppu=ppu, ppu_target=ppu)

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    def update_size(self, size: tuple[int, int]) -> None:
        self._size = size

    @property
    def ppu(self) -> float:
        return self._state.ppu

    @property
    def ppu_target(self) -> float:
        return self._state.ppu_target

    @property
    def origin(self) -> tuple[int, int]:
        width, height = self._size
        return width // 2, height // 2

    def zoom_by_factor(self, factor: float) -> None:
        self._state.ppu_target = _clamp(self._state.ppu_target * factor, self._min_ppu, self._max_ppu)

    def fit_radius(self, radius: float, margin: float = 0.9) -> None:
        """Zoom so that a circle of ``radius`` fills ``margin`` of the window."""

        if radius <= 0.0:
            return
        half = min(self._size) / 2.0
        self._state.ppu_target = _clamp(half * margin / radius, self._min_ppu, self._max_ppu)

    def update(self, smoothing: float = 0.15) -> None:
        state = self._state
        state.ppu += (state.ppu_target - state.ppu) * smoothing
        state.ppu = _clamp(state.ppu, self._min_ppu, self._max_ppu)

    def to_screen(self, x: float, y: float) -> tuple[int, int]:
        # Model offsets are already in screen orientation: +y points down.
        ox, oy = self.origin
        return ox + int(round(x * self._state.ppu)), oy + int(round(y * self._state.ppu))

    def scale_length(self, length: float) -> float:
        return length * self._state.ppu
