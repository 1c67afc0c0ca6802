"""
Rotated rectangle geometry for tape candidates.

cv2.minAreaRect reports its angle differently across OpenCV releases
(4.5.1 moved from [-90, 0) to (0, 90]) and may swap width and height for
the same shape. Candidates are normalised so that:

- height is the long side, width the short side
- angle is the long axis' rotation from image vertical, in (-90, 90]

An upright strip has angle 0, a strip lying flat has angle 90, and a strip
leaning right (top towards +x) has a positive angle.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from tape_vision.params import PipelineParameters

Point = tuple[float, float]


@dataclass(frozen=True)
class Candidate:
    """Minimum-area rotated rectangle fitted to one contour."""

    x: float
    y: float
    width: float
    height: float
    angle: float  # degrees from vertical

    @property
    def center(self) -> Point:
        return (self.x, self.y)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def ratio(self) -> float | None:
        """Height / width, None for degenerate (zero-width) rectangles."""
        if self.width <= 0:
            return None
        return self.height / self.width

    @classmethod
    def from_rotated_rect(cls, rect) -> Candidate:
        """Build from cv2.minAreaRect output ((cx, cy), (w, h), angle)."""
        (cx, cy), (w, h), a = rect
        if w > h:
            w, h = h, w
            a -= 90.0
        while a > 90.0:
            a -= 180.0
        while a <= -90.0:
            a += 180.0
        return cls(float(cx), float(cy), float(w), float(h), float(a))


@dataclass(frozen=True)
class Detection:
    """Candidate that passed all filters."""

    candidate: Candidate
    band: str  # "left" or "right"
    corners: tuple[Point, Point, Point, Point]

    def to_dict(self) -> dict:
        c = self.candidate
        return {
            "band": self.band,
            "x": round(c.x, 1),
            "y": round(c.y, 1),
            "width": round(c.width, 1),
            "height": round(c.height, 1),
            "angle": round(c.angle, 1),
            "corners": [[round(px, 1), round(py, 1)] for px, py in self.corners],
        }


def matching_band(candidate: Candidate, params: PipelineParameters) -> str | None:
    """
    Name of the first shape band the candidate fits, or None.

    A candidate must reach the minimum area regardless of shape.
    """
    if candidate.area < params.min_area:
        return None
    ratio = candidate.ratio
    if ratio is None:
        return None
    for band in params.bands:
        if band.matches(ratio, candidate.angle):
            return band.name
    return None


def filter_candidates(
    candidates: list[Candidate],
    params: PipelineParameters,
) -> list[tuple[Candidate, str]]:
    """Keep candidates matching at least one band, paired with the band name."""
    kept = []
    for candidate in candidates:
        band = matching_band(candidate, params)
        if band is not None:
            kept.append((candidate, band))
    return kept


def rect_corners(candidate: Candidate) -> tuple[Point, Point, Point, Point]:
    """
    Reconstruct the four corners from center, size and angle.

    The angle is scaled with 90 units per half turn (rad = angle / 90 * pi).
    At angle 0 the corners are center +/- (width/2, height/2).
    """
    rad = candidate.angle / 90.0 * math.pi
    cos, sin = math.cos(rad), math.sin(rad)

    # Half-width runs along x and half-height along y before rotation
    wx, wy = cos * candidate.width / 2, sin * candidate.width / 2
    hx, hy = -sin * candidate.height / 2, cos * candidate.height / 2

    x, y = candidate.x, candidate.y
    return (
        (x + hx + wx, y + hy + wy),
        (x + hx - wx, y + hy - wy),
        (x - hx - wx, y - hy - wy),
        (x - hx + wx, y - hy + wy),
    )


def to_detections(
    candidates: list[Candidate],
    params: PipelineParameters,
) -> list[Detection]:
    return [
        Detection(candidate, band, rect_corners(candidate))
        for candidate, band in filter_candidates(candidates, params)
    ]
