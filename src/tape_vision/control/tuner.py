"""
Pipeline tuner - Continuous tuning + detection loop.

Each cycle:
1. Grab the latest camera frame (may be empty)
2. Read a fresh TuningSnapshot from the table
3. Apply exposure / ring light from the snapshot
4. Hand new PipelineParameters to the pipeline
5. Run detection and publish the annotated frame (if a frame was grabbed)

Exposure is always applied before detection with the same cycle's
snapshot. The loop only ends when its stop event is set.
"""

from __future__ import annotations

import logging
import threading

from tape_vision.config import FRAME_TIMEOUT, STATS_EVERY
from tape_vision.params import PipelineParameters, TuningSnapshot
from tape_vision.perception import ReflectiveTapePipeline, VideoOutput
from tape_vision.store import ParameterStore
from .exposure import ExposureController, ExposureSetting

logger = logging.getLogger(__name__)


class PipelineTuner:
    """
    Keeps a pipeline and camera in sync with a tuning table.

    Usage:
        tuner = PipelineTuner(camera, ReflectiveTapePipeline(), table, output)
        tuner.start()
        ...
        tuner.stop()

    For tests or custom scheduling call run_once() directly.
    """

    def __init__(
        self,
        camera,
        pipeline: ReflectiveTapePipeline,
        store: ParameterStore,
        output: VideoOutput | None = None,
        exposure: ExposureController | None = None,
        initial: TuningSnapshot | None = None,
        frame_timeout: float = FRAME_TIMEOUT,
    ):
        self.camera = camera
        self.pipeline = pipeline
        self.store = store
        self.output = output
        self.exposure = exposure or ExposureController(camera, store)
        self.frame_timeout = frame_timeout

        self._snapshot = initial or TuningSnapshot()
        self._snapshot.publish_defaults(store)

        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        # Stats
        self._cycles = 0
        self._frames_processed = 0
        self._missed_frames = 0
        self._last_detection_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def snapshot(self) -> TuningSnapshot:
        return self._snapshot

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def frames_processed(self) -> int:
        return self._frames_processed

    @property
    def last_setting(self) -> ExposureSetting | None:
        return self.exposure.last_setting

    def start(self) -> None:
        """Run the loop on a dedicated daemon thread."""
        if self.is_running:
            logger.warning("Tuner already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_forever,
            args=(self._stop_event,),
            name="pipeline-tuner",
            daemon=True,
        )
        self._thread.start()
        logger.info("Tuner started")

    def stop(self, timeout: float = 2.0) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("Tuner stopped")

    def run_forever(self, stop_event: threading.Event) -> None:
        """Cycle until ``stop_event`` is set. Errors never end the loop."""
        while not stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                logger.error(f"Tuner cycle error: {e}", exc_info=True)
                # Avoid spinning when something fails before the frame wait
                stop_event.wait(self.frame_timeout)

            if self._cycles % STATS_EVERY == 0:
                self._log_stats()

    def run_once(self) -> list:
        """
        Execute one tuning cycle.

        Returns:
            Detections for this cycle (empty when no frame was available).
        """
        self._cycles += 1

        frame = self.camera.grab(self.frame_timeout)

        snapshot = TuningSnapshot.read(self.store, self._snapshot)
        self._snapshot = snapshot

        self.exposure.apply(snapshot.exposure)
        self.pipeline.set_values(PipelineParameters.from_snapshot(snapshot))

        if frame is None or frame.size == 0:
            self._missed_frames += 1
            logger.debug("No image")
            return []

        annotated, detections = self.pipeline.detect(frame)
        self._frames_processed += 1
        self._last_detection_count = len(detections)

        if self.output is not None:
            self.output.put_frame(annotated, detections)
        return detections

    def status(self) -> dict:
        setting = self.last_setting
        return {
            "running": self.is_running,
            "cycles": self._cycles,
            "frames": self._frames_processed,
            "missed": self._missed_frames,
            "detections": self._last_detection_count,
            "exposure": str(setting) if setting else None,
            "ringlight": setting.illuminator if setting else None,
        }

    def _log_stats(self):
        """Log periodic statistics."""
        logger.info(
            f"Cycle {self._cycles}: "
            f"frames={self._frames_processed}, "
            f"missed={self._missed_frames}, "
            f"detections={self._last_detection_count}, "
            f"exposure={self.last_setting}"
        )
