from dataclasses import dataclass
from typing import Any, Optional

@dataclass
class Frame:
    idx: int
    ts_iso: str
    image: Any  # numpy array

@dataclass(frozen=True)
class Pose:
    rvec: Any
    tvec: Any
    marker_id: Optional[int] = None
    corners: Any = None  # (1,4,2) ndarray, image space

@dataclass(frozen=True)
class GlobalPose:
    position: Any  # (3,) world-frame translation
    attitude: tuple[float, float, float]  # roll, pitch, yaw [rad]

@dataclass
class TrackRecord:
    seq: int
    frame_idx: int
    timestamp: str
    avg_duration_ms: float
    avg_fps: float
    marker_id: Optional[int]
    x: float
    y: float
    z: float
    roll: float
    pitch: float
    yaw: float

@dataclass
class SessionSummary:
    ok: bool
    frames_read: int
    frames_tracked: int
    avg_fps: float
    session_path: Optional[str] = None
    csv_path: Optional[str] = None
    log_path: Optional[str] = None
