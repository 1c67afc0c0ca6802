"""
Sensor Layer - Hardware interfaces.

Provides:
- Camera: USB camera frame source with exposure control
"""

from .camera import Camera, EMPTY_FRAME

__all__ = ["Camera", "EMPTY_FRAME"]
