"""
Reflective tape vision for a robot coprocessor.

Layers:
- sensors: camera frame source and exposure control
- perception: colour/shape detection pipeline and annotated output
- control: tuning loop keeping the pipeline in sync with the tuning table
- web: MJPEG streams and remote tuning API
"""

__version__ = "0.1.0"
