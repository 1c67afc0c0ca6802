"""
Web Layer - Viewer and remote tuning interface.

Provides:
- Annotated camera streams (MJPEG)
- Tuning table read/write
- Status and detections JSON
"""

from .server import create_app, run_server

__all__ = ["create_app", "run_server"]
