import json
from pathlib import Path

import numpy as np
import pytest

from pad_tracker.calib import CameraIntrinsics, load_calib
from pad_tracker.config import TrackerConfig, load_config


def test_load_config_json(tmp_path: Path):
    cfg_path = tmp_path / "pad.json"
    cfg_path.write_text(
        json.dumps(
            {
                "session_name": "padA",
                "source": "2",
                "fps": 20,
                "width": 640,
                "height": 480,
                "aruco_dict": "6x6_250",
                "marker_length_m": 0.2,
                "target_id": 7,
                "axis_signs": [1, -1, 1],
                "intrinsics": {"fx": 600, "fy": 610, "cx": 320, "cy": 240},
            }
        ),
        encoding="utf-8",
    )

    cfg = load_config(cfg_path)
    assert cfg.session_name == "padA"
    assert cfg.source == 2
    assert cfg.fps == 20
    assert cfg.width == 640
    assert cfg.aruco_dict == "6x6_250"
    assert cfg.target_id == 7
    assert cfg.axis_signs == (1.0, -1.0, 1.0)
    assert cfg.intrinsics.fx == 600.0
    assert cfg.resolve_intrinsics().dist_coeffs == [0.0] * 5

    cfg.apply_overrides(session_name="padB", fps=10, target_id=None)
    assert cfg.session_name == "padB"
    assert cfg.fps == 10
    assert cfg.target_id == 7


def test_load_config_yaml(tmp_path: Path):
    cfg_path = tmp_path / "pad.yaml"
    cfg_path.write_text(
        "source: flights/run1.mp4\n"
        "marker_length_m: 0.5\n"
        "output_dir: out\n"
        "record_raw: true\n"
        "max_frames: 100\n",
        encoding="utf-8",
    )

    cfg = load_config(cfg_path)
    assert cfg.source == "flights/run1.mp4"
    assert cfg.marker_length_m == 0.5
    assert cfg.output_dir == "out"
    assert cfg.record_raw is True
    assert cfg.record_annotated is False
    assert cfg.max_frames == 100


def test_config_defaults():
    cfg = TrackerConfig()
    assert cfg.source == 0
    assert cfg.axis_signs == (-1.0, 1.0, 1.0)
    assert cfg.output_dir is None
    assert cfg.duration_alpha == 0.02
    assert cfg.fps_alpha == 0.3


def test_missing_config_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.json")


@pytest.mark.parametrize(
    "raw",
    [
        [1, 2, 3],
        {"axis_signs": [1, 1]},
        {"axis_signs": [1, 0.5, 1]},
        {"intrinsics": {"fx": 1.0}},
        {"video_fourcc": "MP4"},
    ],
)
def test_invalid_config_content(tmp_path: Path, raw):
    cfg_path = tmp_path / "bad.json"
    cfg_path.write_text(json.dumps(raw), encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(cfg_path)


@pytest.mark.parametrize("signs", [(0.0, 1.0, 1.0), (1.0, 1.0), (2.0, -1.0, 1.0)])
def test_constructor_validates_axis_signs(signs):
    with pytest.raises(ValueError):
        TrackerConfig(axis_signs=signs)


def test_overrides_validate_axis_signs():
    cfg = TrackerConfig()

    cfg.apply_overrides(axis_signs=[1, 1, -1])
    assert cfg.axis_signs == (1.0, 1.0, -1.0)

    with pytest.raises(ValueError):
        cfg.apply_overrides(axis_signs=(0.0, 1.0, 1.0))


def test_resolve_intrinsics_requires_a_source():
    with pytest.raises(ValueError):
        TrackerConfig().resolve_intrinsics()


def test_load_calib_roundtrip(tmp_path: Path):
    import cv2

    K = np.array([[800.0, 0.0, 320.0], [0.0, 805.0, 240.0], [0.0, 0.0, 1.0]])
    dist = np.array([[0.1, -0.05, 0.0, 0.0, 0.01]])
    path = tmp_path / "calib.yml"
    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_WRITE)
    fs.write("camera_matrix", K)
    fs.write("dist_coeffs", dist)
    fs.write("image_width", 640)
    fs.write("image_height", 480)
    fs.release()

    intr = load_calib(path)

    assert np.allclose(intr.camera_matrix, K)
    assert np.allclose(intr.dist.ravel(), dist.ravel())
    assert intr.image_size == (640, 480)

    cfg = TrackerConfig(calibration_path=str(path))
    assert cfg.resolve_intrinsics().fy == 805.0


@pytest.mark.parametrize("missing", ["camera_matrix", "dist_coeffs"])
def test_load_calib_requires_both_nodes(tmp_path: Path, missing):
    import cv2

    nodes = {
        "camera_matrix": np.eye(3) * 700.0,
        "dist_coeffs": np.zeros((1, 5)),
    }
    del nodes[missing]
    path = tmp_path / "partial.yml"
    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_WRITE)
    for key, value in nodes.items():
        fs.write(key, value)
    fs.release()

    with pytest.raises(ValueError, match=missing):
        load_calib(path)


def test_load_calib_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_calib(tmp_path / "missing.yml")


def test_intrinsics_matrix():
    intr = CameraIntrinsics(500.0, 510.0, 320.0, 240.0)
    K = intr.camera_matrix

    assert K[0, 0] == 500.0
    assert K[1, 1] == 510.0
    assert K[0, 2] == 320.0
    assert K[2, 2] == 1.0
    assert intr.dist.shape == (5, 1)
