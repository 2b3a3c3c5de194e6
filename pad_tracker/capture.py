"""Frame sources for the tracker.

A source is either a live camera (device index or /dev/videoN) or a video
file; both go through cv2.VideoCapture.
"""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import cv2

from .types import Frame


class FrameSource(ABC):
    """Abstract base class for frame sources."""

    @abstractmethod
    def start(self) -> None:
        """Open the source. Raises RuntimeError when it cannot be opened."""
        ...

    @abstractmethod
    def read(self) -> Optional[Frame]:
        """Next frame, or None at end of stream / read failure."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Release resources. Safe to call more than once."""
        ...

    def nominal_fps(self) -> float:
        """Frame rate hint for video writers; 0 when unknown."""
        return 0.0


def parse_device(source: int | str) -> Optional[int]:
    """Device index for ``0``, ``"0"`` or ``"/dev/video0"``; None for file paths."""
    if isinstance(source, int):
        return source
    text = str(source).strip()
    if text.isdigit():
        return int(text)
    match = re.match(r"^/dev/video(\d+)$", text)
    if match:
        return int(match.group(1))
    return None


class VideoCaptureSource(FrameSource):
    """Camera device or video file read through cv2.VideoCapture."""

    def __init__(self, source: int | str, fps: int = 0, width: int = 0, height: int = 0):
        self.source = source
        self.fps = fps
        self.width = width
        self.height = height
        self.cap: Any = None
        self.frame_id = 0

    @property
    def is_device(self) -> bool:
        return parse_device(self.source) is not None

    def start(self) -> None:
        device = parse_device(self.source)
        if device is not None:
            self.cap = cv2.VideoCapture(device)
            if self.width:
                self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            if self.height:
                self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
            if self.fps:
                self.cap.set(cv2.CAP_PROP_FPS, self.fps)
        else:
            self.cap = cv2.VideoCapture(str(self.source))

        if not self.cap.isOpened():
            self.cap.release()
            self.cap = None
            raise RuntimeError(f"Failed to open video source: {self.source}")

        self.frame_id = 0

    def read(self) -> Optional[Frame]:
        if self.cap is None:
            return None

        ok, img = self.cap.read()
        if not ok or img is None:
            return None

        self.frame_id += 1
        ts = time.strftime("%Y-%m-%dT%H:%M:%S")
        return Frame(self.frame_id, ts, img)

    def nominal_fps(self) -> float:
        """FPS reported by the backend, falling back to the requested value."""
        if self.cap is not None:
            reported = float(self.cap.get(cv2.CAP_PROP_FPS) or 0.0)
            if reported > 0:
                return reported
        return float(self.fps)

    def stop(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None
