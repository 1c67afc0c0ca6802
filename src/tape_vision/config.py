"""
Configuration constants for the tape vision coprocessor.

Values here are fixed at startup. Everything an operator tunes while the
robot runs lives in the tuning table instead (see store.py).
"""

from pathlib import Path

# =============================================================================
# FILES
# =============================================================================

# Camera descriptor written by the coprocessor image
CONFIG_FILE = "/boot/frc.json"

# Persisted tuning tables, one <table name>.json each (operator presses "save")
PARAMS_DIR = Path(__file__).parent

# =============================================================================
# CAMERA
# =============================================================================

CAMERA_WIDTH = 320
CAMERA_HEIGHT = 240
CAMERA_FPS = 30

# V4L2 auto exposure property values (CAP_PROP_AUTO_EXPOSURE)
V4L2_EXPOSURE_AUTO = 3
V4L2_EXPOSURE_MANUAL = 1

# exposure_absolute range the 0-100 manual level maps onto (1/10000 s)
EXPOSURE_ABSOLUTE_MIN = 1
EXPOSURE_ABSOLUTE_MAX = 5000

# =============================================================================
# TUNING LOOP
# =============================================================================

# Name of the tuning table and video output for the processed camera
TABLE_NAME = "Camera0"

# Max seconds the tuner waits for a new frame before skipping a cycle
FRAME_TIMEOUT = 0.1

# Log loop statistics every N cycles
STATS_EVERY = 300

# =============================================================================
# DEFAULT TUNING VALUES (published to the table on startup)
# =============================================================================

# HSV range for green LED ring on retro-reflective tape
DEFAULT_HSV_H = (50, 90)
DEFAULT_HSV_S = (100, 255)
DEFAULT_HSV_V = (100, 255)

# Height/width ratio of one tape strip (5.5" x 2")
DEFAULT_RATIO_LEFT = (1.5, 4.0)
DEFAULT_RATIO_RIGHT = (1.5, 4.0)

# Tape strips lean ~14.5 deg from vertical
DEFAULT_ANGLE_LEFT = (-25.0, -5.0)
DEFAULT_ANGLE_RIGHT = (5.0, 25.0)

DEFAULT_MIN_AREA = 50.0

# Outside 0-100 means automatic exposure
DEFAULT_EXPOSURE = -1

# =============================================================================
# WEB INTERFACE
# =============================================================================

WEB_HOST = "0.0.0.0"
WEB_PORT = 5800
STREAM_FPS = 20
JPEG_QUALITY = 80
