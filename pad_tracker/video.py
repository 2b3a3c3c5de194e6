from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import cv2
import numpy as np


class VideoRecorder:
    """cv2.VideoWriter opened lazily with the size of the first frame."""

    def __init__(self, path: str | Path, fps: float, fourcc: str = "MJPG"):
        self.path = Path(path)
        self.fps = fps if fps > 0 else 30.0
        self.fourcc = fourcc
        self._writer: Any = None
        self.frames_written = 0

    def write(self, image: np.ndarray) -> None:
        if self._writer is None:
            h, w = image.shape[:2]
            self._writer = cv2.VideoWriter(
                str(self.path), cv2.VideoWriter_fourcc(*self.fourcc), self.fps, (w, h)
            )
            if not self._writer.isOpened():
                self._writer = None
                raise RuntimeError(f"Failed to open video writer: {self.path}")
        self._writer.write(image)
        self.frames_written += 1

    def release(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._writer = None


PAUSE_KEYS = {ord("p"), ord(" ")}
QUIT_KEYS = {ord("q"), 27}


class PreviewWindow:
    """Live preview with key polling. ``p``/space pauses, ``q``/ESC quits."""

    def __init__(self, name: str = "pad_tracker", key_delay_ms: int = 1):
        self.name = name
        self.key_delay_ms = max(1, int(key_delay_ms))
        self._opened = False

    def show(self, image: np.ndarray) -> bool:
        """Display a frame; False when the user asked to stop."""
        cv2.imshow(self.name, image)
        self._opened = True
        key = cv2.waitKey(self.key_delay_ms) & 0xFF
        if key in PAUSE_KEYS:
            key = cv2.waitKey(0) & 0xFF
        return key not in QUIT_KEYS

    def close(self) -> None:
        if self._opened:
            cv2.destroyWindow(self.name)
            self._opened = False


def draw_overlay(image: np.ndarray, lines: list[str], origin: Optional[tuple[int, int]] = None) -> np.ndarray:
    x, y = origin or (10, 30)
    for line in lines:
        cv2.putText(
            image,
            line,
            (x, y),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.7,
            (255, 255, 255),
            2,
            cv2.LINE_AA,
        )
        y += 28
    return image
