from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .capture import FrameSource, VideoCaptureSource
from .config import TrackerConfig
from .estimator import ArucoPoseEstimator, PoseEstimator
from .logging_utils import add_file_handler, setup_logger
from .output import ConsoleOutput, CsvOutput, OutputSink
from .storage import SessionStorage
from .timing import TimingSmoother
from .transforms import convert_to_global
from .types import Frame, Pose, SessionSummary, TrackRecord
from .video import PreviewWindow, VideoRecorder, draw_overlay


class TrackerSession:
    """
    One tracking run: read -> detect/solve -> convert -> emit -> record/display.

    Smoothing state lives on the session, so several sessions can run side by
    side without sharing anything.
    """

    def __init__(
        self,
        config: TrackerConfig,
        estimator: Optional[PoseEstimator] = None,
        source: Optional[FrameSource] = None,
        outputs: Optional[list[OutputSink]] = None,
        logger: Optional[logging.Logger] = None,
        preview: Optional[PreviewWindow] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.config = config
        self.logger = logger or setup_logger(config.session_name)
        self.estimator = estimator
        self.source = source
        self.outputs = outputs
        self.preview = preview
        self._clock = clock
        self.timing = TimingSmoother(
            duration_alpha=config.duration_alpha,
            fps_alpha=config.fps_alpha,
            window_s=config.fps_window_s,
        )
        self.seq = 0
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def _build_source(self) -> FrameSource:
        if self.source is not None:
            return self.source
        return VideoCaptureSource(
            self.config.source,
            self.config.fps,
            self.config.width,
            self.config.height,
        )

    def _build_estimator(self) -> PoseEstimator:
        if self.estimator is not None:
            return self.estimator
        return ArucoPoseEstimator(
            self.config.resolve_intrinsics(),
            self.config.marker_length_m,
            self.config.aruco_dict,
            self.config.target_id,
        )

    def _build_outputs(self, storage: Optional[SessionStorage]) -> list[OutputSink]:
        if self.outputs is not None:
            return self.outputs
        outputs: list[OutputSink] = [ConsoleOutput()]
        if storage is not None and self.config.write_csv:
            outputs.append(CsvOutput(storage.csv_path))
        return outputs

    def process_frame(self, estimator: PoseEstimator, frame: Frame) -> tuple[Optional[Pose], Optional[TrackRecord]]:
        """Estimate and convert one frame; a record only when the marker was found."""
        start = self._clock()
        pose = estimator.detect_and_solve_pose(frame.image)
        if pose is None:
            return None, None

        world = convert_to_global(pose.rvec, pose.tvec, self.config.axis_signs)
        duration_ms = (self._clock() - start) * 1000.0

        self.seq += 1
        x, y, z = (float(v) for v in world.position)
        roll, pitch, yaw = world.attitude
        record = TrackRecord(
            self.seq,
            frame.idx,
            frame.ts_iso,
            self.timing.update_duration(duration_ms),
            self.timing.tick_fps(),
            pose.marker_id,
            x, y, z,
            roll, pitch, yaw,
        )
        return pose, record

    def _annotate(self, estimator: PoseEstimator, frame: Frame, pose: Optional[Pose], record: Optional[TrackRecord]):
        if pose is None:
            draw = frame.image.copy()
            return draw_overlay(draw, [f"#{frame.idx} no marker"])
        draw = estimator.draw(frame.image, pose)
        return draw_overlay(draw, [
            f"#{frame.idx} id={record.marker_id} fps={record.avg_fps:.1f}",
            f"x={record.x:.3f} y={record.y:.3f} z={record.z:.3f}",
        ])

    def _release(self, name: str, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception as exc:
            self.logger.warning("failed to release %s: %s", name, exc)

    def run(self) -> SessionSummary:
        estimator = self._build_estimator()
        source = self._build_source()

        try:
            source.start()
        except RuntimeError as exc:
            self.logger.error(
                "Unable to read video stream (%s). Is the camera index or file path correct?", exc
            )
            return SessionSummary(False, 0, 0, 0.0)

        storage = None
        file_handler = None
        if self.config.output_dir:
            storage = SessionStorage(self.config.output_dir, name=self.config.session_name)
            try:
                storage.begin()
                storage.write_manifest(self.config.as_dict())
                file_handler = add_file_handler(
                    self.logger, self.config.session_name, str(storage.log_path)
                )
            except OSError:
                self._release("source", source.stop)
                raise

        outputs = self._build_outputs(storage)
        recorders: dict[str, VideoRecorder] = {}
        preview = self.preview
        if preview is None and self.config.display:
            preview = PreviewWindow(self.config.session_name, self.config.key_delay_ms)

        self.logger.info("tracking started: source=%s", self.config.source)

        t0 = time.time()
        frames_read = 0
        frames_tracked = 0

        try:
            for out in outputs:
                out.open()

            if storage is not None:
                fps = source.nominal_fps()
                if self.config.record_raw:
                    recorders["raw"] = VideoRecorder(storage.raw_video_path, fps, self.config.video_fourcc)
                if self.config.record_annotated:
                    recorders["annotated"] = VideoRecorder(
                        storage.annotated_video_path, fps, self.config.video_fourcc
                    )

            while not self._stop_event.is_set():
                if self.config.max_frames and frames_read >= self.config.max_frames:
                    break

                frame = source.read()
                if frame is None:
                    self.logger.warning("Unable to read next frame. Ending tracking.")
                    break
                frames_read += 1

                pose, record = self.process_frame(estimator, frame)
                if record is not None:
                    frames_tracked += 1
                    for out in outputs:
                        out.write(record)

                if "raw" in recorders:
                    recorders["raw"].write(frame.image)

                if "annotated" in recorders or preview is not None:
                    annotated = self._annotate(estimator, frame, pose, record)
                    if "annotated" in recorders:
                        recorders["annotated"].write(annotated)
                    if preview is not None and not preview.show(annotated):
                        self.logger.info("stopped from preview window")
                        break

        finally:
            self._release("source", source.stop)
            for name, rec in recorders.items():
                self._release(f"{name} video", rec.release)
            if preview is not None:
                self._release("preview", preview.close)
            for out in outputs:
                self._release(type(out).__name__, out.close)

            avg = frames_read / max(1e-6, (time.time() - t0))
            self.logger.info(
                "summary frames=%d tracked=%d avg_fps=%.2f", frames_read, frames_tracked, avg
            )
            if file_handler is not None:
                self.logger.removeHandler(file_handler)
                file_handler.close()

        return SessionSummary(
            True,
            frames_read,
            frames_tracked,
            avg,
            str(storage.session_dir) if storage is not None else None,
            str(storage.csv_path) if storage is not None and self.config.write_csv else None,
            str(storage.log_path) if storage is not None else None,
        )
