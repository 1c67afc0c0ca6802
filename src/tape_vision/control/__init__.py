"""
Control Layer - Tuning loop.

Keeps the camera exposure and pipeline parameters in sync with the
tuning table and runs detection every cycle.
"""

from .exposure import ExposureController, ExposureMode, ExposureSetting, exposure_for
from .tuner import PipelineTuner

__all__ = [
    "ExposureController",
    "ExposureMode",
    "ExposureSetting",
    "exposure_for",
    "PipelineTuner",
]
