import json
from pathlib import Path
from time import strftime
from typing import Optional


class SessionStorage:
    """Per-run output directory: videos, telemetry CSV, log and config manifest."""

    def __init__(self, root: str, name: str = "session"):
        self.root = Path(root)
        self.name = name
        self.session_dir: Optional[Path] = None

    def begin(self) -> str:
        sid = f"{self.name}_{strftime('%Y%m%d_%H%M%S')}"
        self.session_dir = self.root / sid
        suffix = 1
        while self.session_dir.exists():
            self.session_dir = self.root / f"{sid}_{suffix}"
            suffix += 1
        self.session_dir.mkdir(parents=True)
        return str(self.session_dir)

    def _path(self, filename: str) -> Path:
        if self.session_dir is None:
            raise RuntimeError("SessionStorage.begin() has not been called")
        return self.session_dir / filename

    @property
    def raw_video_path(self) -> Path:
        return self._path("raw.avi")

    @property
    def annotated_video_path(self) -> Path:
        return self._path("annotated.avi")

    @property
    def csv_path(self) -> Path:
        return self._path("track.csv")

    @property
    def log_path(self) -> Path:
        return self._path("session.log")

    def write_manifest(self, meta: dict):
        with open(self._path("config.json"), "w", encoding="utf-8") as fp:
            json.dump(meta, fp, indent=2, default=str)
