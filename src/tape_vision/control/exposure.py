"""
Exposure control - Tuning value -> camera exposure + ring light.

The LED ring light is only useful with a short fixed exposure, so the two
are switched together: manual exposure turns the ring light on, automatic
exposure turns it off.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from tape_vision.params import RINGLIGHT_KEY, round_half_up
from tape_vision.store import ParameterStore

logger = logging.getLogger(__name__)


class ExposureMode(Enum):
    AUTO = "auto"
    MANUAL = "manual"


@dataclass(frozen=True)
class ExposureSetting:
    mode: ExposureMode
    level: int | None = None  # MANUAL only, 0-100

    @property
    def illuminator(self) -> bool:
        return self.mode is ExposureMode.MANUAL

    def __str__(self) -> str:
        if self.mode is ExposureMode.AUTO:
            return "auto"
        return f"manual({self.level})"


AUTO = ExposureSetting(ExposureMode.AUTO)


def exposure_for(level: float) -> ExposureSetting:
    """Manual exposure for levels in [0, 100], automatic for anything else."""
    try:
        level = float(level)
    except (TypeError, ValueError):
        return AUTO
    if not math.isfinite(level):
        return AUTO
    rounded = round_half_up(level)
    if rounded < 0 or rounded > 100:
        return AUTO
    return ExposureSetting(ExposureMode.MANUAL, rounded)


class ExposureController:
    """
    Applies exposure settings to a camera and publishes the ring light flag.

    Usage:
        exposure = ExposureController(camera, table)
        setting = exposure.apply(snapshot.exposure)
    """

    def __init__(self, camera, store: ParameterStore):
        self.camera = camera
        self.store = store
        self._last: ExposureSetting | None = None

    @property
    def last_setting(self) -> ExposureSetting | None:
        return self._last

    def apply(self, level: float) -> ExposureSetting:
        setting = exposure_for(level)

        if setting.mode is ExposureMode.AUTO:
            self.camera.set_exposure_auto()
        else:
            self.camera.set_exposure_manual(setting.level)
        self.store.set_boolean(RINGLIGHT_KEY, setting.illuminator)

        if setting != self._last:
            logger.info(f"Exposure {setting}, ring light {'on' if setting.illuminator else 'off'}")
        self._last = setting
        return setting
