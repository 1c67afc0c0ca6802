"""
Camera sensor - USB camera frame source with exposure control.

Capture runs in a background thread so the tuner always gets the most
recent frame instead of a stale buffered one.
"""

from __future__ import annotations

import logging
import threading
import time

import cv2
import numpy as np

from tape_vision.camera_config import CameraConfig
from tape_vision.config import JPEG_QUALITY, V4L2_EXPOSURE_AUTO, V4L2_EXPOSURE_MANUAL

logger = logging.getLogger(__name__)

# Returned by grab() when no new frame is ready
EMPTY_FRAME = np.empty((0, 0, 3), dtype=np.uint8)


class Camera:
    """
    USB camera via OpenCV VideoCapture (V4L2 backend).

    Usage:
        camera = Camera(config)
        camera.start()

        frame = camera.grab()
        if frame.size:
            ...

        camera.set_exposure_manual(20)
        camera.stop()
    """

    def __init__(self, config: CameraConfig):
        self.config = config
        self.name = config.name

        self._cap: cv2.VideoCapture | None = None
        self._running = False
        self._thread: threading.Thread | None = None
        self._cond = threading.Condition()

        # Latest captured frame
        self._frame: np.ndarray | None = None
        self._frame_id = 0
        self._grabbed_id = 0
        self._timestamp: float = 0.0

        # Last exposure written to the device: "auto" or manual level
        self._exposure: str | int | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def exposure(self) -> str | int | None:
        return self._exposure

    def start(self) -> bool:
        """Open the device and start the capture thread."""
        if self._running:
            logger.warning(f"Camera '{self.name}' already running")
            return True

        logger.info(f"Starting camera '{self.name}' on {self.config.path}")
        self._cap = cv2.VideoCapture(self.config.path, cv2.CAP_V4L2)
        if not self._cap.isOpened():
            logger.error(f"Failed to open camera '{self.name}' on {self.config.path}")
            self._cap = None
            return False

        self._apply_video_mode()

        self._running = True
        self._thread = threading.Thread(
            target=self._capture_loop, name=f"capture-{self.name}", daemon=True,
        )
        self._thread.start()
        logger.info(
            f"Camera '{self.name}' started: "
            f"{self.config.width}x{self.config.height}@{self.config.fps}"
        )
        return True

    def stop(self):
        """Stop camera capture."""
        self._running = False

        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None

        if self._cap:
            self._cap.release()
            self._cap = None

        with self._cond:
            self._cond.notify_all()

        logger.info(f"Camera '{self.name}' stopped")

    def grab(self, timeout: float = 0.0) -> np.ndarray:
        """
        Get the most recent frame not yet grabbed.

        Args:
            timeout: Seconds to wait for a new frame (0 = don't wait).

        Returns:
            BGR frame, or EMPTY_FRAME (size 0) if no new frame arrived.
        """
        with self._cond:
            if self._frame_id == self._grabbed_id and timeout > 0:
                self._cond.wait_for(
                    lambda: self._frame_id != self._grabbed_id or not self._running,
                    timeout=timeout,
                )
            if self._frame is None or self._frame_id == self._grabbed_id:
                return EMPTY_FRAME
            self._grabbed_id = self._frame_id
            return self._frame

    @property
    def frame_count(self) -> int:
        return self._frame_id

    def get_frame(self) -> np.ndarray | None:
        """Get latest camera frame (BGR) without consuming it for grab()."""
        with self._cond:
            if self._frame is not None:
                return self._frame.copy()
            return None

    def get_timestamp(self) -> float:
        """Get timestamp of latest frame."""
        with self._cond:
            return self._timestamp

    def get_jpeg_frame(self, quality: int = JPEG_QUALITY) -> bytes | None:
        """
        Get latest raw frame as JPEG bytes.

        Returns:
            JPEG bytes, or None if no frame available.
        """
        frame = self.get_frame()
        if frame is None:
            return None
        ret, jpeg = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
        if not ret:
            return None
        return jpeg.tobytes()

    def set_exposure_auto(self) -> None:
        if self._exposure == "auto":
            return
        if self._set(cv2.CAP_PROP_AUTO_EXPOSURE, V4L2_EXPOSURE_AUTO):
            self._exposure = "auto"
            logger.info(f"Camera '{self.name}': exposure auto")

    def set_exposure_manual(self, level: int) -> None:
        """Fixed exposure, level 0-100 scaled onto the device range."""
        level = max(0, min(100, int(level)))
        if self._exposure == level:
            return
        if self._exposure in (None, "auto"):
            if not self._set(cv2.CAP_PROP_AUTO_EXPOSURE, V4L2_EXPOSURE_MANUAL):
                return
        if self._set(cv2.CAP_PROP_EXPOSURE, self.exposure_absolute(level)):
            self._exposure = level
            logger.info(f"Camera '{self.name}': exposure manual {level}")

    def exposure_absolute(self, level: int) -> int:
        """Map a 0-100 level onto the device's exposure_absolute range."""
        low, high = self.config.exposure_min, self.config.exposure_max
        return int(round(low + (high - low) * level / 100))

    # --------------- Internal helpers ---------------

    def _set(self, prop: int, value: float) -> bool:
        if self._cap is None:
            return False
        ok = self._cap.set(prop, value)
        if not ok:
            logger.warning(f"Camera '{self.name}': failed to set property {prop}={value}")
        return ok

    def _apply_video_mode(self) -> None:
        cfg = self.config
        if cfg.pixel_format:
            self._set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*cfg.pixel_format))
        self._set(cv2.CAP_PROP_FRAME_WIDTH, cfg.width)
        self._set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.height)
        self._set(cv2.CAP_PROP_FPS, cfg.fps)
        if cfg.brightness is not None:
            self._set(cv2.CAP_PROP_BRIGHTNESS, cfg.brightness)

    def _capture_loop(self):
        """Background capture thread."""
        while self._running:
            try:
                ret, frame = self._cap.read()
                if not ret:
                    time.sleep(0.01)
                    continue

                with self._cond:
                    self._frame = frame
                    self._frame_id += 1
                    self._timestamp = time.time()
                    self._cond.notify_all()

            except Exception as e:
                if self._running:
                    logger.error(f"Camera '{self.name}' capture error: {e}")
                    time.sleep(0.1)

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()
