"""
Camera descriptor loading.

JSON format:
    {
        "cameras": [
            {
                "name": <camera name>,
                "path": <device path, e.g. "/dev/video0">,
                "pixel format": <"MJPEG", "YUYV", etc>,    // optional
                "width": <video mode width>,               // optional
                "height": <video mode height>,             // optional
                "fps": <video mode fps>,                   // optional
                "brightness": <percentage brightness>,     // optional
                "exposure range": [<min>, <max>]           // optional
            }
        ]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from tape_vision.config import (
    CAMERA_FPS,
    CAMERA_HEIGHT,
    CAMERA_WIDTH,
    EXPOSURE_ABSOLUTE_MAX,
    EXPOSURE_ABSOLUTE_MIN,
)

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Camera descriptor is missing or malformed."""


@dataclass
class CameraConfig:
    name: str
    path: str
    width: int = CAMERA_WIDTH
    height: int = CAMERA_HEIGHT
    fps: int = CAMERA_FPS
    pixel_format: str | None = None  # FOURCC, e.g. "MJPG"
    brightness: int | None = None  # 0-100
    exposure_min: int = EXPOSURE_ABSOLUTE_MIN
    exposure_max: int = EXPOSURE_ABSOLUTE_MAX


# Descriptor pixel format names -> FOURCC
_FOURCC = {
    "MJPEG": "MJPG",
    "YUYV": "YUYV",
    "RGB565": "RGBP",
    "BGR": "BGR3",
    "GRAY": "GREY",
}


def parse_camera(data: dict) -> CameraConfig:
    """Read a single camera entry."""
    name = data.get("name")
    if name is None:
        raise ConfigError("could not read camera name")
    path = data.get("path")
    if path is None:
        raise ConfigError(f"camera '{name}': could not read path")

    cam = CameraConfig(name=str(name), path=str(path))
    try:
        if "width" in data:
            cam.width = int(data["width"])
        if "height" in data:
            cam.height = int(data["height"])
        if "fps" in data:
            cam.fps = int(data["fps"])
        if "brightness" in data:
            cam.brightness = int(data["brightness"])
        if "exposure range" in data:
            low, high = data["exposure range"]
            cam.exposure_min, cam.exposure_max = sorted((int(low), int(high)))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"camera '{name}': {e}") from e

    fmt = data.get("pixel format")
    if fmt is not None:
        fmt = str(fmt).upper()
        if fmt not in _FOURCC:
            logger.warning(f"camera '{name}': unknown pixel format '{fmt}', ignoring")
        else:
            cam.pixel_format = _FOURCC[fmt]

    return cam


def read_config(path: str | Path) -> list[CameraConfig]:
    """
    Read the camera descriptor file.

    Raises:
        ConfigError: file unreadable, not a JSON object, or missing cameras.
    """
    path = Path(path)
    try:
        with open(path) as f:
            top = json.load(f)
    except OSError as e:
        raise ConfigError(f"could not open '{path}': {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"config error in '{path}': {e}") from e

    if not isinstance(top, dict):
        raise ConfigError(f"config error in '{path}': must be JSON object")

    cameras = top.get("cameras")
    if not isinstance(cameras, list):
        raise ConfigError(f"config error in '{path}': could not read cameras")

    configs = []
    for entry in cameras:
        if not isinstance(entry, dict):
            raise ConfigError(f"config error in '{path}': camera entry must be an object")
        try:
            configs.append(parse_camera(entry))
        except ConfigError as e:
            raise ConfigError(f"config error in '{path}': {e}") from e
    return configs
