"""
Perception Layer - Finding tape in frames.

Contains:
- ReflectiveTapePipeline: colour + shape detection of tape strips
- Candidate / Detection: rotated rectangle results
- VideoOutput: latest annotated frame for viewers
"""

from .geometry import Candidate, Detection, filter_candidates, rect_corners
from .pipeline import VisionPipeline, ReflectiveTapePipeline
from .output import VideoOutput

__all__ = [
    "Candidate",
    "Detection",
    "filter_candidates",
    "rect_corners",
    "VisionPipeline",
    "ReflectiveTapePipeline",
    "VideoOutput",
]
