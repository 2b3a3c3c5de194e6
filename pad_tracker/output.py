from __future__ import annotations

import csv
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, TextIO

from .types import TrackRecord


class OutputSink(ABC):
    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def write(self, record: TrackRecord) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class ConsoleOutput(OutputSink):
    """Tab-separated telemetry lines, one per tracked frame."""

    HEADER = ["FrameNo", "Timestamp", "RunningTime", "FPS", "MarkerID", "X", "Y", "Z"]

    def __init__(self, stream: Optional[TextIO] = None, precision: int = 4):
        self.stream = stream
        self.precision = precision

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    def open(self) -> None:
        print("\t".join(self.HEADER), file=self._out())

    def format(self, record: TrackRecord) -> str:
        p = self.precision
        marker = "-" if record.marker_id is None else str(record.marker_id)
        return "\t".join([
            str(record.seq),
            record.timestamp,
            f"{record.avg_duration_ms:.2f}",
            f"{record.avg_fps:.2f}",
            marker,
            f"{record.x:.{p}f}",
            f"{record.y:.{p}f}",
            f"{record.z:.{p}f}",
        ])

    def write(self, record: TrackRecord) -> None:
        out = self._out()
        print(self.format(record), file=out)
        out.flush()

    def close(self) -> None:
        return None


class CsvOutput(OutputSink):
    HEADER = [
        "seq", "frame_idx", "timestamp",
        "avg_duration_ms", "avg_fps", "marker_id",
        "x", "y", "z",
        "roll", "pitch", "yaw",
    ]

    def __init__(self, csv_path: str | Path):
        self.csv_path = Path(csv_path)
        self._fh = None
        self._w = None

    def open(self) -> None:
        self._fh = self.csv_path.open("w", newline="", encoding="utf-8")
        self._w = csv.writer(self._fh)
        self._w.writerow(self.HEADER)

    def write(self, record: TrackRecord) -> None:
        if self._w is None:
            return
        self._w.writerow([
            record.seq, record.frame_idx, record.timestamp,
            f"{record.avg_duration_ms:.3f}", f"{record.avg_fps:.3f}",
            "" if record.marker_id is None else record.marker_id,
            f"{record.x:.6f}", f"{record.y:.6f}", f"{record.z:.6f}",
            f"{record.roll:.6f}", f"{record.pitch:.6f}", f"{record.yaw:.6f}",
        ])

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            self._w = None

