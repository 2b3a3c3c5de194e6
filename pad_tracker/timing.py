import time
from typing import Callable, Optional


class TimingSmoother:
    """Exponential moving averages of per-frame duration and frames per second.

    Each tracking session owns one instance. Call ``update_duration`` and
    ``tick_fps`` once per processed frame.
    """

    def __init__(
        self,
        duration_alpha: float = 0.02,
        fps_alpha: float = 0.3,
        window_s: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not 0.0 < duration_alpha <= 1.0 or not 0.0 < fps_alpha <= 1.0:
            raise ValueError("smoothing coefficients must be in (0, 1]")
        self.duration_alpha = duration_alpha
        self.fps_alpha = fps_alpha
        self.window_s = window_s
        self._clock = clock

        self.avg_duration = 0.0
        self.avg_fps = 0.0
        self._window_start: Optional[float] = None
        self._window_count = 0

    def update_duration(self, duration: float) -> float:
        a = self.duration_alpha
        self.avg_duration = (1.0 - a) * self.avg_duration + a * duration
        return self.avg_duration

    def tick_fps(self) -> float:
        now = self._clock()
        if self._window_start is None:
            self._window_start = now
        elif now - self._window_start > self.window_s:
            a = self.fps_alpha
            self.avg_fps = (1.0 - a) * self.avg_fps + a * self._window_count
            self._window_start = now
            self._window_count = 0

        self._window_count += 1
        return self.avg_fps

    def reset(self) -> None:
        self.avg_duration = 0.0
        self.avg_fps = 0.0
        self._window_start = None
        self._window_count = 0
