"""Landing-pad marker tracker: camera pose -> world position telemetry."""

from .config import TrackerConfig
from .estimator import PoseEstimator
from .transforms import convert_to_global
from .worker import TrackerSession

__all__ = ["TrackerConfig", "PoseEstimator", "convert_to_global", "TrackerSession"]
