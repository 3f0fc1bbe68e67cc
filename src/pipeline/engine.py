"""
Frame driver for the presence monitor.

This module runs the per-frame loop:
acquire frame -> preprocess -> infer -> decode -> suppress -> track ->
render -> schedule next frame.

Exactly one pass runs at a time; the next frame is not read until the
current pass has rendered. Per-frame errors are caught here and never end
the loop.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import cv2
import numpy as np

from detection.labels import load_labels
from inference.backend import InferenceAdapter
from inference.opencv_backend import OpenCvDnnConfig, OpenCvDnnEngine
from models.config import Config
from models.errors import InferenceError, InvalidFrameError, ResourceExhaustionError
from models.frame import FrameData
from models.presence import PresenceReport
from observation import ObservationSource, create_source_from_config
from pipeline.scope import FrameScope
from pipeline.stages.detect import DetectStage, create_detect_stage
from render.base import RenderSink
from render.opencv_renderer import create_renderer
from runtime.context import DetectionSession
from tracking.presence import create_presence_tracker


class DriverState(Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    RENDERING = "rendering"
    SCHEDULED = "scheduled"
    STOPPED = "stopped"


@dataclass
class PipelineConfig:
    """
    Configuration for the frame driver.

    Attributes:
        refresh_hz: Target passes per second; 0 runs passes back to back.
        max_consecutive_failures: Max frame read failures before stopping.
        report_interval: Seconds between presence summary log messages.
        memory_budget_mb: Per-frame buffer budget; None = unlimited.
        display: Enable cv2 display window.
    """
    refresh_hz: float = 60.0
    max_consecutive_failures: int = 10
    report_interval: float = 5.0
    memory_budget_mb: Optional[float] = None
    display: bool = False


@dataclass
class PipelineStats:
    """Runtime statistics for the driver."""
    frame_count: int = 0
    processed_count: int = 0
    last_detection_count: int = 0
    invalid_frames: int = 0
    inference_errors: int = 0
    frame_errors: int = 0
    consecutive_failures: int = 0
    start_time: float = field(default_factory=time.time)
    last_report_log_time: float = field(default_factory=time.time)


class FrameScheduler:
    """
    Paces detection passes to a refresh rate, like a display frame callback.

    The wait happens after a pass has fully completed, so passes never overlap.
    """

    def __init__(
        self,
        refresh_hz: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.refresh_hz = refresh_hz
        self._clock = clock
        self._sleep = sleep
        self._next_tick: Optional[float] = None

    @property
    def interval(self) -> float:
        return 1.0 / self.refresh_hz if self.refresh_hz and self.refresh_hz > 0 else 0.0

    def wait(self) -> None:
        """Block until the next tick. Late passes are not made up."""
        interval = self.interval
        if interval <= 0:
            return
        now = self._clock()
        if self._next_tick is None or self._next_tick < now:
            self._next_tick = now
        delay = self._next_tick - now
        if delay > 0:
            self._sleep(delay)
        self._next_tick += interval


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


class FrameDriver:
    """
    Drives detection passes over an ObservationSource.

    State machine: IDLE -> DETECTING -> RENDERING -> SCHEDULED -> DETECTING ...
    STOPPED is terminal: reached when the source goes inactive, on stop(),
    after too many read failures, or on a fatal error.

    Example:
        driver = FrameDriver(source, detect_stage, session, renderer, PipelineConfig())
        driver.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        detect_stage: DetectStage,
        session: DetectionSession,
        renderer: RenderSink,
        config: PipelineConfig,
        clock_ms: Callable[[], float] = _wall_clock_ms,
        scheduler: Optional[FrameScheduler] = None,
    ):
        self.source = source
        self.detect_stage = detect_stage
        self.session = session
        self.renderer = renderer
        self.config = config
        self.stats = PipelineStats()
        self._clock_ms = clock_ms
        self._scheduler = scheduler or FrameScheduler(config.refresh_hz)
        self._state = DriverState.IDLE
        self._running = False
        self._surface: Optional[np.ndarray] = None
        self._callbacks: List[Callable[[int], None]] = []
        self._last_pass_time: Optional[float] = None
        self._fps = 0.0

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def surface(self) -> Optional[np.ndarray]:
        """The most recently rendered surface."""
        return self._surface

    def add_callback(self, callback: Callable[[int], None]) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking the frame's detection count.
        """
        self._callbacks.append(callback)

    def _budget_bytes(self) -> Optional[int]:
        if self.config.memory_budget_mb is None:
            return None
        return int(self.config.memory_budget_mb * 1024 * 1024)

    def run(self) -> None:
        """
        Run the detection loop.

        Opens the source, runs passes until it goes inactive or stop() is
        called, then closes resources.

        Raises:
            ResourceExhaustionError: Fatal; propagated after cleanup.
        """
        self._running = True
        self.stats = PipelineStats()

        try:
            self.source.open()
            logging.info(f"Frame driver started: source={self.source.source_id}")

            while self._running:
                frame_data = self.source.read()

                if frame_data is None:
                    if not self.source.is_active:
                        logging.info("Source inactive, clearing surface and stopping")
                        self._clear_surface()
                        break
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    time.sleep(0.5)
                    continue

                self.stats.consecutive_failures = 0
                report = self.process_frame(frame_data)

                count = report.detection_count if report is not None else 0
                for callback in self._callbacks:
                    try:
                        callback(count)
                    except Exception as e:
                        logging.warning(f"Callback error: {e}")

                if self.config.display and self._surface is not None:
                    if not self._handle_display():
                        break  # User pressed 'q'

                self._handle_periodic_tasks()

                if not self._running:
                    break
                self._state = DriverState.SCHEDULED
                self._scheduler.wait()

        except KeyboardInterrupt:
            logging.info("Frame driver interrupted by user")
        except ResourceExhaustionError as e:
            logging.error(f"Fatal resource error, stopping: {e}")
            raise
        finally:
            self._cleanup()

    def run_once(self) -> Optional[PresenceReport]:
        """
        Open the source, run a single pass on its first frame and close it.

        Used for still images: the rendered surface is kept afterwards.
        """
        try:
            self.source.open()
            frame_data = self.source.read()
            if frame_data is None:
                logging.warning(f"Source {self.source.source_id} produced no frame")
                return None
            return self.process_frame(frame_data)
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the driver to stop after the current frame."""
        self._running = False

    def process_frame(self, frame_data: FrameData) -> Optional[PresenceReport]:
        """
        Run one full pass on a frame.

        Any per-frame fault is logged and counted in stats, and the frame is
        skipped; only resource exhaustion escapes.

        Returns:
            The frame's PresenceReport, or None if the frame was skipped.

        Raises:
            ResourceExhaustionError: Buffer allocation failed (fatal).
        """
        self._state = DriverState.DETECTING
        self.stats.frame_count += 1

        try:
            if not frame_data.is_valid:
                raise InvalidFrameError(f"Frame has zero dimensions {frame_data.size}")
            with FrameScope(budget_bytes=self._budget_bytes()) as scope:
                detections = self.detect_stage.process(frame_data.frame, scope=scope)

                now = self._clock_ms()
                update = self.session.tracker.update(detections.selected, now, boxes=detections.boxes)

                self._state = DriverState.RENDERING
                surface = frame_data.frame.copy()
                self.renderer.render(
                    surface,
                    detections.boxes,
                    detections.scores,
                    detections.class_indices,
                    detections.ratios,
                )
        except InvalidFrameError as e:
            self.stats.invalid_frames += 1
            logging.warning(f"Skipping invalid frame {frame_data.frame_index}: {e}")
            self._clear_surface()
            return None
        except InferenceError as e:
            self.stats.inference_errors += 1
            logging.warning(f"Inference failed on frame {frame_data.frame_index}, skipping: {e}")
            return None
        except ResourceExhaustionError:
            raise
        except Exception as e:
            self.stats.frame_errors += 1
            logging.warning(f"Frame {frame_data.frame_index} failed, skipping: {e!r}")
            return None

        self._surface = surface
        self.stats.processed_count += 1
        self.stats.last_detection_count = update.detection_count
        self._update_fps()

        report = PresenceReport(
            frame_index=frame_data.frame_index,
            timestamp=now,
            detection_count=update.detection_count,
            entities=self.session.tracker.snapshot(),
            detections=[d.to_dict() for d in detections.to_detections()],
        )
        self.session.publish(report, surface, fps=self._fps)
        logging.debug(f"Number of persons detected: {update.detection_count}")
        return report

    def _update_fps(self) -> None:
        now = time.monotonic()
        if self._last_pass_time is not None:
            elapsed = now - self._last_pass_time
            if elapsed > 0:
                self._fps = 1.0 / elapsed
        self._last_pass_time = now

    def _clear_surface(self) -> None:
        if self._surface is not None:
            self.renderer.clear(self._surface)
        self.session.clear_frame()

    def _handle_display(self) -> bool:
        """
        Handle cv2 display window.

        Returns False if user pressed 'q' to quit.
        """
        cv2.imshow("Presence Monitor", self._surface)
        key = cv2.waitKey(1) & 0xFF
        return key != ord('q')

    def _handle_periodic_tasks(self) -> None:
        """Log a presence summary periodically."""
        now = time.time()
        if now - self.stats.last_report_log_time < self.config.report_interval:
            return
        self.stats.last_report_log_time = now

        report = self.session.latest_report
        logging.info(
            f"Driver stats: frames={self.stats.frame_count}, "
            f"processed={self.stats.processed_count}, "
            f"invalid={self.stats.invalid_frames}, "
            f"inference_errors={self.stats.inference_errors}, "
            f"frame_errors={self.stats.frame_errors}, "
            f"detections={self.stats.last_detection_count}, "
            f"present={len(self.session.tracker.get_present())}, "
            f"tracked={len(self.session.tracker)}"
        )
        if report is not None:
            for entity in report.entities:
                logging.info(
                    f"Entity {entity['key']} total absence: "
                    f"{entity['total_absence_duration']:.0f} ms "
                    f"(present={entity['present']})"
                )

    def _cleanup(self) -> None:
        """Clean up resources."""
        self._running = False

        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        if self.config.display:
            cv2.destroyAllWindows()

        self._state = DriverState.STOPPED
        logging.info("Frame driver stopped")


def create_driver_from_config(
    config: Dict[str, Any],
    engine: Any = None,
    renderer: Optional[RenderSink] = None,
    source: Optional[ObservationSource] = None,
    web_state: Any = None,
    display: bool = False,
    image_path: Optional[str] = None,
) -> FrameDriver:
    """
    Factory function to create a FrameDriver from a config dict.

    Args:
        config: Full application config dict.
        engine: Inference engine; loaded from model.path when None.
        renderer: Render sink; built from the render section when None.
        source: Observation source; built from the source section when None.
        web_state: Optional shared state for the reporting API.
        display: Enable display window.
        image_path: Run a single pass over this image instead of the stream.
    """
    cfg = Config.from_dict(config)

    labels = load_labels(cfg.model.labels_path)
    if engine is None:
        engine = OpenCvDnnEngine(
            OpenCvDnnConfig(
                model_path=cfg.model.path,
                input_shape=cfg.model.input_shape,
                input_layout=cfg.model.input_layout,
                warmup=cfg.model.warmup,
            )
        )
    adapter = InferenceAdapter(engine)
    detect_stage = create_detect_stage(cfg.suppression, cfg.model, adapter, labels)

    if source is None:
        source = create_source_from_config(config.get("source", {}) or {}, image_path=image_path)
    if renderer is None:
        renderer = create_renderer(cfg.render, labels, adapter.model_size)

    session = DetectionSession(
        tracker=create_presence_tracker(cfg.presence),
        labels=labels,
        session_id=source.source_id,
        web_state=web_state,
    )

    pipeline_config = PipelineConfig(
        refresh_hz=cfg.driver.refresh_hz,
        max_consecutive_failures=cfg.driver.max_consecutive_failures,
        report_interval=cfg.driver.report_interval,
        memory_budget_mb=cfg.driver.memory_budget_mb,
        display=display or cfg.render.display,
    )
    return FrameDriver(source, detect_stage, session, renderer, pipeline_config)
