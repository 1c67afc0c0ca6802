"""
Reflective tape detection pipeline.

Stages:
1. HSV colour threshold -> binary mask
2. External contours of the mask
3. Minimum-area rotated rectangle per contour
4. Area + shape band filtering
5. Corner reconstruction and annotation

A failing stage is logged and treated as "no result"; detect() always
returns an annotated copy of the input frame.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import cv2
import numpy as np

from tape_vision.params import PipelineParameters, TuningSnapshot
from .geometry import Candidate, Detection, to_detections

logger = logging.getLogger(__name__)

# Colors (BGR)
_RED = (0, 0, 255)
_GREEN = (0, 255, 0)
_YELLOW = (0, 255, 255)


class VisionPipeline(ABC):
    """Processes one frame into detections and an annotated frame."""

    @abstractmethod
    def detect(
        self,
        frame: np.ndarray,
        params: PipelineParameters | None = None,
    ) -> tuple[np.ndarray, list[Detection]]:
        """
        Run detection on a BGR frame.

        Args:
            frame: Input frame (not modified).
            params: Parameters for this call; defaults to the values
                last given to set_values().

        Returns:
            (annotated copy of the frame, detections)
        """
        ...


class ReflectiveTapePipeline(VisionPipeline):
    """
    Finds left- and right-leaning tape strips.

    Usage:
        pipeline = ReflectiveTapePipeline()
        pipeline.set_values(params)
        annotated, detections = pipeline.detect(frame)
    """

    def __init__(self, params: PipelineParameters | None = None):
        self._params = params or PipelineParameters.from_snapshot(TuningSnapshot())

    @property
    def params(self) -> PipelineParameters:
        return self._params

    def set_values(self, params: PipelineParameters) -> None:
        """Replace the configured parameters (single reference swap)."""
        self._params = params

    def detect(self, frame, params=None):
        # One read; a concurrent set_values() cannot change this call's values
        params = params or self._params
        annotated = frame.copy()

        mask = self.segment(frame, params)
        if mask is None:
            return annotated, []

        contours = self.find_contours(mask)
        if not contours:
            return annotated, []

        candidates = self.fit_candidates(contours)
        detections = to_detections(candidates, params)

        self._annotate(annotated, contours, detections)
        return annotated, detections

    # ── Stages ──────────────────────────────────────────────────

    @staticmethod
    def segment(frame: np.ndarray, params: PipelineParameters) -> np.ndarray | None:
        """Binary mask of pixels inside the colour band, None on failure."""
        try:
            hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)
            return cv2.inRange(hsv, params.color.lower, params.color.upper)
        except cv2.error as e:
            logger.warning(f"Color segmentation failed: {e}")
            return None

    @staticmethod
    def find_contours(mask: np.ndarray) -> list[np.ndarray]:
        """Outer contours only, simple chain compression."""
        try:
            contours, _ = cv2.findContours(
                mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE,
            )
        except cv2.error as e:
            logger.warning(f"Contour extraction failed: {e}")
            return []
        return list(contours)

    @staticmethod
    def fit_candidates(contours: list[np.ndarray]) -> list[Candidate]:
        candidates = []
        for contour in contours:
            try:
                rect = cv2.minAreaRect(contour)
            except cv2.error as e:
                logger.warning(f"Rectangle fit failed: {e}")
                continue
            candidates.append(Candidate.from_rotated_rect(rect))
        return candidates

    # ── Drawing ─────────────────────────────────────────────────

    @staticmethod
    def _annotate(image: np.ndarray, contours: list[np.ndarray], detections: list[Detection]) -> None:
        cv2.drawContours(image, contours, -1, _RED, 1)

        for det in detections:
            c = det.candidate
            top_left = (int(round(c.x - c.width / 2)), int(round(c.y - c.height / 2)))
            bottom_right = (int(round(c.x + c.width / 2)), int(round(c.y + c.height / 2)))
            cv2.rectangle(image, top_left, bottom_right, _YELLOW, 1)

        if detections:
            outlines = [
                np.array(det.corners, dtype=np.float64).round().astype(np.int32)
                for det in detections
            ]
            cv2.polylines(image, outlines, True, _GREEN, 1)
