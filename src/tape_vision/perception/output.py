"""
Video output - Latest annotated frame for remote viewers.

One frame in, one frame out: every put_frame() overwrites the previous
frame. The web server encodes on demand for each MJPEG client.
"""

from __future__ import annotations

import threading
import time

import cv2
import numpy as np

from tape_vision.config import JPEG_QUALITY
from .geometry import Detection


class VideoOutput:
    """Thread-safe holder for the latest processed frame."""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._frame: np.ndarray | None = None
        self._detections: list[Detection] = []
        self._timestamp: float = 0.0
        self._frame_count = 0

    @property
    def timestamp(self) -> float:
        return self._timestamp

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def put_frame(self, frame: np.ndarray, detections: list[Detection] = ()) -> None:
        with self._lock:
            self._frame = frame
            self._detections = list(detections)
            self._timestamp = time.time()
            self._frame_count += 1

    def get_frame(self) -> np.ndarray | None:
        """Latest annotated frame (copy), or None before the first frame."""
        with self._lock:
            if self._frame is None:
                return None
            return self._frame.copy()

    def get_detections(self) -> list[Detection]:
        with self._lock:
            return self._detections.copy()

    def get_jpeg_frame(self, quality: int = JPEG_QUALITY) -> bytes | None:
        """
        Get latest frame as JPEG bytes.

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
