"""Camera-to-world pose conversion for the landing-pad marker."""

import math
from typing import Sequence, Tuple

import cv2
import numpy as np

from .types import GlobalPose


# Camera convention (Y down, Z into the scene) -> world convention (Y up, Z back)
AXIS_FLIP = np.diag([1.0, -1.0, -1.0])

# Per-axis sign applied to the world-frame translation. The x flip matches how
# the pad marker is mounted; override through TrackerConfig.axis_signs.
MARKER_AXIS_SIGNS = (-1.0, 1.0, 1.0)

ROTATION_TOLERANCE = 1e-6
SINGULAR_THRESHOLD = 1e-6


class InvalidRotationError(ValueError):
    """Raised when a matrix handed to the Euler step is not a rotation."""


def rotation_matrix_from_rvec(rvec: np.ndarray) -> np.ndarray:
    """Rodrigues: rotation vector (3,) or (3,1) -> 3x3 rotation matrix."""
    rvec = np.asarray(rvec, dtype=np.float64).reshape(3)
    R, _ = cv2.Rodrigues(rvec)
    return R


def is_rotation_matrix(R: np.ndarray, tol: float = ROTATION_TOLERANCE) -> bool:
    """True when R is 3x3 and ||R^T R - I||_F < tol."""
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        return False
    return bool(np.linalg.norm(np.eye(3) - R.T @ R) < tol)


def rotation_matrix_to_euler(
    R: np.ndarray, singular_threshold: float = SINGULAR_THRESHOLD
) -> Tuple[float, float, float]:
    """
    Decompose a rotation matrix into (roll, pitch, yaw) for R = Rz @ Ry @ Rx.

    Below ``singular_threshold`` for sy the pitch is at +-90 degrees (gimbal
    lock); yaw is then fixed to 0 and the remaining rotation goes to roll.

    Raises:
        InvalidRotationError: R fails the orthonormality check.
    """
    R = np.asarray(R, dtype=np.float64)
    if not is_rotation_matrix(R):
        raise InvalidRotationError(f"not a rotation matrix:\n{R}")

    sy = math.sqrt(R[0, 0] * R[0, 0] + R[1, 0] * R[1, 0])

    if sy >= singular_threshold:
        x = math.atan2(R[2, 1], R[2, 2])
        y = math.atan2(-R[2, 0], sy)
        z = math.atan2(R[1, 0], R[0, 0])
    else:
        x = math.atan2(-R[1, 2], R[1, 1])
        y = math.atan2(-R[2, 0], sy)
        z = 0.0

    return x, y, z


def euler_to_rotation_matrix(x: float, y: float, z: float) -> np.ndarray:
    """Build R = Rz(z) @ Ry(y) @ Rx(x), the inverse of rotation_matrix_to_euler."""
    cx, sx = math.cos(x), math.sin(x)
    cy, sy = math.cos(y), math.sin(y)
    cz, sz = math.cos(z), math.sin(z)

    Rx = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    Ry = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    Rz = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])

    return Rz @ Ry @ Rx


def rvec_tvec_to_matrix(rvec: np.ndarray, tvec: np.ndarray) -> np.ndarray:
    """
    Convert rotation vector and translation vector to 4x4 transformation matrix.

    Args:
        rvec: Rotation vector (3,) or (3,1)
        tvec: Translation vector (3,) or (3,1)

    Returns:
        4x4 homogeneous transformation matrix
    """
    T = np.eye(4)
    T[:3, :3] = rotation_matrix_from_rvec(rvec)
    T[:3, 3] = np.asarray(tvec, dtype=np.float64).reshape(3)
    return T


def invert_transform(T: np.ndarray) -> np.ndarray:
    """
    Invert a 4x4 homogeneous transformation matrix.

    For SE(3): T^-1 = [R^T, -R^T * t; 0, 1]
    """
    T_inv = np.eye(4)
    R = T[:3, :3]
    t = T[:3, 3]

    R_T = R.T
    T_inv[:3, :3] = R_T
    T_inv[:3, 3] = -R_T @ t

    return T_inv


def convert_to_global(
    rvec: np.ndarray,
    tvec: np.ndarray,
    axis_signs: Sequence[float] = MARKER_AXIS_SIGNS,
) -> GlobalPose:
    """
    Express a camera-frame marker pose in the world (ground) frame.

    Given:
        rvec, tvec: pose of the marker in the camera frame (solvePnP output)

    Compute:
        R_tc = R_ct^T, T_tc = inv(T_ct)
        attitude = euler(F @ R_tc) with F = diag(1, -1, -1)
        position = axis_signs * (-R_tc @ t)

    Args:
        rvec: Rotation vector of the marker (camera frame)
        tvec: Translation vector of the marker (camera frame)
        axis_signs: Per-axis sign applied to the world translation

    Returns:
        GlobalPose with the world position and (roll, pitch, yaw)
    """
    T_tc = invert_transform(rvec_tvec_to_matrix(rvec, tvec))
    R_tc = T_tc[:3, :3]

    attitude = rotation_matrix_to_euler(AXIS_FLIP @ R_tc)

    t_world = T_tc[:3, 3]
    position = np.asarray(axis_signs, dtype=np.float64).reshape(3) * t_world

    return GlobalPose(position, attitude)
