from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from .calib import CameraIntrinsics, load_calib
from .transforms import MARKER_AXIS_SIGNS


@dataclass
class TrackerConfig:
    session_name: str = "pad"
    source: int | str = 0  # device index or video file path
    fps: int = 0  # 0 keeps the device default
    width: int = 0
    height: int = 0
    calibration_path: Optional[str] = None
    intrinsics: Optional[CameraIntrinsics] = None
    aruco_dict: str = "4x4_50"
    marker_length_m: float = 0.15
    target_id: Optional[int] = None
    axis_signs: tuple[float, float, float] = MARKER_AXIS_SIGNS
    duration_alpha: float = 0.02
    fps_alpha: float = 0.3
    fps_window_s: float = 1.0
    output_dir: Optional[str] = None  # session root; None writes no files
    record_raw: bool = False
    record_annotated: bool = False
    video_fourcc: str = "MJPG"
    write_csv: bool = True
    display: bool = False
    key_delay_ms: int = 1
    max_frames: Optional[int] = None

    def __post_init__(self) -> None:
        self.axis_signs = _normalize_axis_signs(self.axis_signs)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def apply_overrides(self, **kwargs: Any) -> "TrackerConfig":
        for key, value in kwargs.items():
            if value is not None and hasattr(self, key):
                setattr(self, key, value)
        self.axis_signs = _normalize_axis_signs(self.axis_signs)
        return self

    def resolve_intrinsics(self) -> CameraIntrinsics:
        """Inline intrinsics win over the calibration file."""
        if self.intrinsics is not None:
            return self.intrinsics
        if self.calibration_path:
            return load_calib(self.calibration_path)
        raise ValueError("No camera intrinsics: set calibration_path or intrinsics")


def _normalize_axis_signs(value: Any) -> tuple[float, float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ValueError("axis_signs must be a sequence of three values")
    signs = tuple(float(v) for v in value)
    if any(s not in (-1.0, 1.0) for s in signs):
        raise ValueError(f"axis_signs entries must be +1 or -1, got {signs}")
    return signs  # type: ignore[return-value]


def _normalize_source(value: Any) -> int | str:
    if isinstance(value, str) and value.isdigit():
        return int(value)
    if isinstance(value, (int, str)):
        return value
    raise ValueError(f"source must be a device index or a path, got {value!r}")


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML config root must be a mapping")
    return data


def load_config(path: str | Path) -> TrackerConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")

    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(p)
    else:
        with p.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)

    if not isinstance(raw, dict):
        raise ValueError("Config root must be a JSON/YAML object")

    cfg = TrackerConfig()
    cfg.session_name = str(raw.get("session_name", cfg.session_name))
    cfg.source = _normalize_source(raw.get("source", cfg.source))
    cfg.fps = int(raw.get("fps", cfg.fps))
    cfg.width = int(raw.get("width", cfg.width))
    cfg.height = int(raw.get("height", cfg.height))
    cfg.calibration_path = raw.get("calibration_path", cfg.calibration_path)
    if cfg.calibration_path is not None:
        cfg.calibration_path = str(cfg.calibration_path)
    intr_raw = raw.get("intrinsics")
    if intr_raw is not None:
        cfg.intrinsics = CameraIntrinsics.from_dict(intr_raw)
    cfg.aruco_dict = str(raw.get("aruco_dict", cfg.aruco_dict))
    cfg.marker_length_m = float(raw.get("marker_length_m", cfg.marker_length_m))
    cfg.target_id = raw.get("target_id", cfg.target_id)
    if cfg.target_id is not None:
        cfg.target_id = int(cfg.target_id)
    cfg.axis_signs = _normalize_axis_signs(raw.get("axis_signs", cfg.axis_signs))
    cfg.duration_alpha = float(raw.get("duration_alpha", cfg.duration_alpha))
    cfg.fps_alpha = float(raw.get("fps_alpha", cfg.fps_alpha))
    cfg.fps_window_s = float(raw.get("fps_window_s", cfg.fps_window_s))
    cfg.output_dir = raw.get("output_dir", cfg.output_dir)
    if cfg.output_dir is not None:
        cfg.output_dir = str(cfg.output_dir)
    cfg.record_raw = bool(raw.get("record_raw", cfg.record_raw))
    cfg.record_annotated = bool(raw.get("record_annotated", cfg.record_annotated))
    cfg.video_fourcc = str(raw.get("video_fourcc", cfg.video_fourcc))
    if len(cfg.video_fourcc) != 4:
        raise ValueError(f"video_fourcc must be four characters, got {cfg.video_fourcc!r}")
    cfg.write_csv = bool(raw.get("write_csv", cfg.write_csv))
    cfg.display = bool(raw.get("display", cfg.display))
    cfg.key_delay_ms = int(raw.get("key_delay_ms", cfg.key_delay_ms))
    cfg.max_frames = raw.get("max_frames", cfg.max_frames)
    if cfg.max_frames is not None:
        cfg.max_frames = int(cfg.max_frames)

    return cfg
