"""Shared fixtures: synthetic frames, parameters and fake hardware."""

import cv2
import numpy as np
import pytest

from tape_vision.params import ColorBand, PipelineParameters, Range, ShapeBand
from tape_vision.sensors import EMPTY_FRAME
from tape_vision.store import TuningTable

# BGR colour with OpenCV HSV (25, 255, 255)
TAPE_BGR = (0, 212, 255)


def blank_frame(width=320, height=240):
    return np.zeros((height, width, 3), dtype=np.uint8)


def draw_rect(frame, x, y, w, h, color=TAPE_BGR):
    """Filled axis-aligned rectangle covering w x h pixels from (x, y)."""
    cv2.rectangle(frame, (x, y), (x + w - 1, y + h - 1), color, -1)
    return frame


def draw_rotated(frame, center, size, angle, color=TAPE_BGR):
    """Filled rotated rectangle (OpenCV angle convention)."""
    box = cv2.boxPoints((center, size, angle))
    cv2.fillPoly(frame, [np.round(box).astype(np.int32)], color)
    return frame


def make_params(
    hue=(20, 30),
    sat=(100, 255),
    val=(100, 255),
    min_area=50.0,
    left_ratio=(1.5, 3.5),
    left_angle=(-10, 10),
    right_ratio=(1.5, 3.5),
    right_angle=(80, 100),
):
    return PipelineParameters(
        color=ColorBand.of(hue, sat, val),
        left=ShapeBand("left", Range.of(*left_ratio), Range.of(*left_angle)),
        right=ShapeBand("right", Range.of(*right_ratio), Range.of(*right_angle)),
        min_area=min_area,
    )


class FakeCamera:
    """Frame source + exposure device recording every call."""

    def __init__(self, frames=()):
        self.frames = list(frames)
        self.calls = []

    def grab(self, timeout=0.0):
        self.calls.append(("grab",))
        if self.frames:
            return self.frames.pop(0)
        return EMPTY_FRAME

    def set_exposure_auto(self):
        self.calls.append(("auto",))

    def set_exposure_manual(self, level):
        self.calls.append(("manual", level))


@pytest.fixture
def params():
    return make_params()


@pytest.fixture
def table():
    return TuningTable("Camera0")


@pytest.fixture
def fake_camera():
    return FakeCamera()
