import argparse
import logging
import signal
import sys

from .calib import CameraIntrinsics
from .config import TrackerConfig, load_config
from .logging_utils import parse_level, setup_logger
from .transforms import InvalidRotationError
from .worker import TrackerSession


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Track the landing-pad marker and log its world position")
    ap.add_argument("--config", help="Path to JSON/YAML config")

    ap.add_argument("--session-name")
    ap.add_argument("--source", help="Camera index, /dev/videoN or video file path")
    ap.add_argument("--fps", type=int)
    ap.add_argument("--width", type=int)
    ap.add_argument("--height", type=int)
    ap.add_argument("--calib", help="OpenCV FileStorage file with camera_matrix/dist_coeffs")
    ap.add_argument("--intrinsics", nargs=4, type=float, metavar=("FX", "FY", "CX", "CY"))
    ap.add_argument("--dist", nargs="+", type=float, help="Distortion coefficients for --intrinsics")
    ap.add_argument("--dict")
    ap.add_argument("--marker-length-m", type=float)
    ap.add_argument("--target-id", type=int)
    ap.add_argument("--axis-signs", nargs=3, type=float, metavar=("SX", "SY", "SZ"))
    ap.add_argument("--out", help="Session root directory for CSV, video and log files")
    ap.add_argument("--record-raw", action="store_true")
    ap.add_argument("--record-annotated", action="store_true")
    ap.add_argument("--no-csv", action="store_true")
    ap.add_argument("--display", action="store_true")
    ap.add_argument("--key-delay-ms", type=int)
    ap.add_argument("--max-frames", type=int)
    ap.add_argument("--log-level", type=parse_level, default=logging.INFO, help="DEBUG, INFO, WARNING, ERROR")

    return ap


def _apply_args(cfg: TrackerConfig, args: argparse.Namespace) -> TrackerConfig:
    source = args.source
    if isinstance(source, str) and source.isdigit():
        source = int(source)

    intrinsics = None
    if args.intrinsics is not None:
        fx, fy, cx, cy = args.intrinsics
        intrinsics = CameraIntrinsics(fx, fy, cx, cy, list(args.dist or [0.0] * 5))

    axis_signs = tuple(args.axis_signs) if args.axis_signs is not None else None

    cfg.apply_overrides(
        session_name=args.session_name,
        source=source,
        fps=args.fps,
        width=args.width,
        height=args.height,
        calibration_path=args.calib,
        intrinsics=intrinsics,
        aruco_dict=args.dict,
        marker_length_m=args.marker_length_m,
        target_id=args.target_id,
        axis_signs=axis_signs,
        output_dir=args.out,
        record_raw=True if args.record_raw else None,
        record_annotated=True if args.record_annotated else None,
        write_csv=False if args.no_csv else None,
        display=True if args.display else None,
        key_delay_ms=args.key_delay_ms,
        max_frames=args.max_frames,
    )
    return cfg


def main(argv=None) -> int:
    ap = _build_parser()
    args = ap.parse_args(argv)

    try:
        cfg = load_config(args.config) if args.config else TrackerConfig()
        cfg = _apply_args(cfg, args)
    except (ValueError, FileNotFoundError) as exc:
        setup_logger(args.session_name or TrackerConfig.session_name, args.log_level).error(
            "invalid configuration: %s", exc
        )
        return 1

    logger = setup_logger(cfg.session_name, args.log_level)
    session = TrackerSession(cfg, logger=logger)

    def _handle_signal(_sig, _frame):
        session.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle_signal)

    try:
        summary = session.run()
    except InvalidRotationError:
        raise
    except (ValueError, FileNotFoundError) as exc:
        logger.error("tracking aborted: %s", exc)
        return 1
    print(summary, file=sys.stderr)
    return 0 if summary.ok else 1


if __name__ == "__main__":
    sys.exit(main())
