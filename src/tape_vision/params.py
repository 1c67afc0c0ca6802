"""
Pipeline parameters and the per-cycle tuning snapshot.

The tuner rebuilds a TuningSnapshot from the table every cycle, then turns it
into an immutable PipelineParameters value handed to the pipeline as a whole.
Nothing here is ever mutated in place.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields

import numpy as np

from tape_vision import config
from tape_vision.store import ParameterStore

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round like the dashboard does (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Range:
    """Closed interval, always stored with low <= high."""

    low: float
    high: float

    @classmethod
    def of(cls, a: float, b: float) -> Range:
        """Build from two bounds in either order."""
        return cls(min(a, b), max(a, b))

    def strictly_contains(self, value: float) -> bool:
        return self.low < value < self.high


@dataclass(frozen=True)
class ColorBand:
    """Inclusive HSV channel ranges (OpenCV scale)."""

    hue: Range
    saturation: Range
    value: Range

    @classmethod
    def of(cls, h: tuple, s: tuple, v: tuple) -> ColorBand:
        def channel(bounds):
            lo, hi = (max(0, min(255, round_half_up(b))) for b in bounds)
            return Range.of(lo, hi)

        return cls(channel(h), channel(s), channel(v))

    @property
    def lower(self) -> np.ndarray:
        return np.array(
            [self.hue.low, self.saturation.low, self.value.low], dtype=np.uint8
        )

    @property
    def upper(self) -> np.ndarray:
        return np.array(
            [self.hue.high, self.saturation.high, self.value.high], dtype=np.uint8
        )


@dataclass(frozen=True)
class ShapeBand:
    """Aspect ratio (height/width) and angle window for one tape orientation."""

    name: str  # "left" or "right"
    ratio: Range
    angle: Range

    def matches(self, ratio: float, angle: float) -> bool:
        if not self.ratio.strictly_contains(ratio):
            return False
        # Orientations repeat every 180 degrees: -88 is also 92
        return any(
            self.angle.strictly_contains(a) for a in (angle, angle - 180, angle + 180)
        )


@dataclass(frozen=True)
class PipelineParameters:
    """Complete configuration for one detection cycle."""

    color: ColorBand
    left: ShapeBand
    right: ShapeBand
    min_area: float = 0.0

    @property
    def bands(self) -> tuple[ShapeBand, ShapeBand]:
        return (self.left, self.right)

    @classmethod
    def from_snapshot(cls, snap: TuningSnapshot) -> PipelineParameters:
        return cls(
            color=ColorBand.of(
                (snap.h_min, snap.h_max),
                (snap.s_min, snap.s_max),
                (snap.v_min, snap.v_max),
            ),
            left=ShapeBand(
                "left",
                Range.of(snap.ratio_left_min, snap.ratio_left_max),
                Range.of(snap.angle_left_min, snap.angle_left_max),
            ),
            right=ShapeBand(
                "right",
                Range.of(snap.ratio_right_min, snap.ratio_right_max),
                Range.of(snap.angle_right_min, snap.angle_right_max),
            ),
            min_area=snap.min_area,
        )


# Snapshot field -> table key
STORE_KEYS = {
    "h_min": "hsvHMin",
    "h_max": "hsvHMax",
    "s_min": "hsvSMin",
    "s_max": "hsvSMax",
    "v_min": "hsvVMin",
    "v_max": "hsvVMax",
    "ratio_left_min": "hwRatio1Min",
    "ratio_left_max": "hwRatio1Max",
    "ratio_right_min": "hwRatio2Min",
    "ratio_right_max": "hwRatio2Max",
    "angle_left_min": "angle1Min",
    "angle_left_max": "angle1Max",
    "angle_right_min": "angle2Min",
    "angle_right_max": "angle2Max",
    "min_area": "minSizeEntry",
    "exposure": "exposureEntry",
}

RINGLIGHT_KEY = "ringlight"


@dataclass(frozen=True)
class TuningSnapshot:
    """Raw tuning scalars read from the table in one cycle."""

    h_min: float = config.DEFAULT_HSV_H[0]
    h_max: float = config.DEFAULT_HSV_H[1]
    s_min: float = config.DEFAULT_HSV_S[0]
    s_max: float = config.DEFAULT_HSV_S[1]
    v_min: float = config.DEFAULT_HSV_V[0]
    v_max: float = config.DEFAULT_HSV_V[1]
    ratio_left_min: float = config.DEFAULT_RATIO_LEFT[0]
    ratio_left_max: float = config.DEFAULT_RATIO_LEFT[1]
    ratio_right_min: float = config.DEFAULT_RATIO_RIGHT[0]
    ratio_right_max: float = config.DEFAULT_RATIO_RIGHT[1]
    angle_left_min: float = config.DEFAULT_ANGLE_LEFT[0]
    angle_left_max: float = config.DEFAULT_ANGLE_LEFT[1]
    angle_right_min: float = config.DEFAULT_ANGLE_RIGHT[0]
    angle_right_max: float = config.DEFAULT_ANGLE_RIGHT[1]
    min_area: float = config.DEFAULT_MIN_AREA
    exposure: float = config.DEFAULT_EXPOSURE

    @classmethod
    def read(cls, store: ParameterStore, previous: TuningSnapshot) -> TuningSnapshot:
        """
        Read every key from the store.

        Keys that are missing or unreadable keep the value from ``previous``
        instead of falling back to zero.
        """
        values = {}
        for f in fields(cls):
            key = STORE_KEYS[f.name]
            held = getattr(previous, f.name)
            try:
                values[f.name] = store.get_number(key, held)
            except Exception as e:
                logger.warning(f"Failed to read {key}: {e}, keeping {held}")
                values[f.name] = held
        return cls(**values)

    def publish_defaults(self, store: ParameterStore) -> None:
        """Seed the store with these values without overwriting operator edits."""
        for f in fields(self):
            store.set_default(STORE_KEYS[f.name], getattr(self, f.name))
