from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import cv2
import numpy as np


@dataclass
class CameraIntrinsics:
    """Pinhole intrinsics plus distortion, as produced by camera calibration."""

    fx: float
    fy: float
    cx: float
    cy: float
    dist_coeffs: list[float] = field(default_factory=lambda: [0.0] * 5)
    image_size: Optional[tuple[int, int]] = None

    @property
    def camera_matrix(self) -> np.ndarray:
        return np.array(
            [[self.fx, 0.0, self.cx], [0.0, self.fy, self.cy], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )

    @property
    def dist(self) -> np.ndarray:
        return np.asarray(self.dist_coeffs, dtype=np.float64).reshape(-1, 1)

    def as_dict(self) -> dict[str, Any]:
        return {
            "fx": self.fx,
            "fy": self.fy,
            "cx": self.cx,
            "cy": self.cy,
            "dist": list(self.dist_coeffs),
        }

    @classmethod
    def from_matrix(cls, K, dist, image_size=None) -> "CameraIntrinsics":
        K = np.asarray(K, dtype=np.float64)
        if K.shape != (3, 3):
            raise ValueError(f"camera_matrix must be 3x3, got {K.shape}")
        coeffs = [] if dist is None else np.asarray(dist, dtype=np.float64).reshape(-1).tolist()
        return cls(
            float(K[0, 0]), float(K[1, 1]), float(K[0, 2]), float(K[1, 2]),
            coeffs, image_size,
        )

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "CameraIntrinsics":
        if not isinstance(raw, dict):
            raise ValueError("intrinsics must be a mapping with fx, fy, cx, cy")
        try:
            fx, fy = float(raw["fx"]), float(raw["fy"])
            cx, cy = float(raw["cx"]), float(raw["cy"])
        except KeyError as exc:
            raise ValueError(f"intrinsics missing key: {exc.args[0]}") from exc
        dist = [float(v) for v in raw.get("dist", [0.0] * 5)]
        return cls(fx, fy, cx, cy, dist)


def load_calib(path: str | Path) -> CameraIntrinsics:
    """Read camera_matrix / dist_coeffs from an OpenCV FileStorage file."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Calibration not found: {p}")

    fs = cv2.FileStorage(str(p), cv2.FILE_STORAGE_READ)
    try:
        K_node = fs.getNode("camera_matrix")
        dist_node = fs.getNode("dist_coeffs")
        if K_node.empty():
            raise ValueError(f"{p}: missing camera_matrix")
        if dist_node.empty():
            raise ValueError(f"{p}: missing dist_coeffs")
        K = K_node.mat()
        dist = dist_node.mat()

        size = None
        w_node, h_node = fs.getNode("image_width"), fs.getNode("image_height")
        if not w_node.empty() and not h_node.empty():
            size = (int(w_node.real()), int(h_node.real()))
    finally:
        fs.release()

    return CameraIntrinsics.from_matrix(K, dist, size)
