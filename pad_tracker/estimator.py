from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np

from .calib import CameraIntrinsics
from .types import Pose


class PoseEstimator(ABC):
    """Detects the pad marker in an image and solves its camera-frame pose."""

    @abstractmethod
    def detect_and_solve_pose(self, image: np.ndarray) -> Optional[Pose]: ...

    def draw(self, image: np.ndarray, pose: Pose) -> np.ndarray:
        return image.copy()


def get_dict(name: str):
    """
    Resolve an ArUco dictionary by name ("4x4_50", "DICT_6X6_250", ...).
    Works on OpenCV >= 4.7 (getPredefinedDictionary) and older (Dictionary_get).
    """
    key = (name or "").strip().upper()
    if not key.startswith("DICT_"):
        key = "DICT_" + key
    code = getattr(cv2.aruco, key, None)
    if code is None:
        raise ValueError(f"Unknown ArUco dictionary: {name!r}")

    if hasattr(cv2.aruco, "getPredefinedDictionary"):
        return cv2.aruco.getPredefinedDictionary(code)
    return cv2.aruco.Dictionary_get(code)


def _make_params():
    """Create detector parameters across OpenCV versions."""
    if hasattr(cv2.aruco, "DetectorParameters_create"):
        return cv2.aruco.DetectorParameters_create()
    return cv2.aruco.DetectorParameters()


def marker_object_points(marker_length: float) -> np.ndarray:
    """Marker corners in the marker frame, in detectMarkers corner order."""
    half = marker_length / 2.0
    return np.array(
        [[-half, half, 0.0], [half, half, 0.0], [half, -half, 0.0], [-half, -half, 0.0]],
        dtype=np.float64,
    )


class ArucoPoseEstimator(PoseEstimator):
    """
    Single-marker pose from cv2.aruco detection and IPPE square PnP.
    If target_id is None the first detected marker is used.
    """

    def __init__(
        self,
        intrinsics: CameraIntrinsics,
        marker_length_m: float,
        dict_name: str = "4x4_50",
        target_id: Optional[int] = None,
    ):
        if marker_length_m <= 0:
            raise ValueError("marker_length_m must be positive")
        self.K = intrinsics.camera_matrix
        self.dist = intrinsics.dist
        self.marker_length = marker_length_m
        self.target_id = target_id
        self._obj_points = marker_object_points(marker_length_m)

        self.dictionary = get_dict(dict_name)
        self.params = _make_params()
        self._detector = None
        if hasattr(cv2.aruco, "ArucoDetector"):
            self._detector = cv2.aruco.ArucoDetector(self.dictionary, self.params)

    def _detect(self, image: np.ndarray):
        if self._detector is not None:
            corners, ids, _rej = self._detector.detectMarkers(image)
        else:
            corners, ids, _rej = cv2.aruco.detectMarkers(
                image, self.dictionary, parameters=self.params
            )
        return corners, ids

    def detect_and_solve_pose(self, image: np.ndarray) -> Optional[Pose]:
        corners, ids = self._detect(image)
        if ids is None or len(ids) == 0:
            return None

        chosen = None
        for i, mid in enumerate(ids.flatten()):
            if self.target_id is None or int(mid) == self.target_id:
                chosen = i
                break
        if chosen is None:
            return None

        marker_corners = np.asarray(corners[chosen], dtype=np.float64).reshape(4, 2)
        ok, rvec, tvec = cv2.solvePnP(
            self._obj_points,
            marker_corners,
            self.K,
            self.dist,
            flags=cv2.SOLVEPNP_IPPE_SQUARE,
        )
        if not ok:
            return None

        return Pose(
            rvec.reshape(3),
            tvec.reshape(3),
            int(ids.flatten()[chosen]),
            corners[chosen],
        )

    def draw(self, image: np.ndarray, pose: Pose) -> np.ndarray:
        out = image.copy()
        if pose.corners is not None:
            ids = None
            if pose.marker_id is not None:
                ids = np.array([[pose.marker_id]], dtype=np.int32)
            cv2.aruco.drawDetectedMarkers(out, [np.asarray(pose.corners, dtype=np.float32)], ids)
        cv2.drawFrameAxes(
            out, self.K, self.dist, pose.rvec, pose.tvec, max(0.01, self.marker_length * 0.5)
        )
        return out
