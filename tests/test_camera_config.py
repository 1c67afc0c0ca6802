import json

import pytest

from tape_vision.camera_config import CameraConfig, ConfigError, parse_camera, read_config
from tape_vision.config import CAMERA_WIDTH


def write(tmp_path, data):
    path = tmp_path / "frc.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


def test_reads_cameras(tmp_path):
    path = write(tmp_path, {
        "team": 2415,
        "cameras": [
            {
                "name": "rPi Camera 0",
                "path": "/dev/video0",
                "pixel format": "mjpeg",
                "width": 640,
                "height": 480,
                "fps": 30,
                "exposure range": [5000, 1],
            },
            {"name": "driver", "path": "/dev/video1"},
        ],
    })
    cams = read_config(path)
    assert [c.name for c in cams] == ["rPi Camera 0", "driver"]
    first = cams[0]
    assert (first.width, first.height, first.fps) == (640, 480, 30)
    assert first.pixel_format == "MJPG"
    assert (first.exposure_min, first.exposure_max) == (1, 5000)
    assert cams[1].width == CAMERA_WIDTH


def test_unknown_pixel_format_is_ignored():
    cam = parse_camera({"name": "c", "path": "/dev/video0", "pixel format": "H264"})
    assert cam.pixel_format is None


@pytest.mark.parametrize("entry, message", [
    ({"path": "/dev/video0"}, "could not read camera name"),
    ({"name": "c"}, "could not read path"),
    ({"name": "c", "path": "/dev/video0", "width": "wide"}, "camera 'c'"),
])
def test_bad_camera_entries(entry, message):
    with pytest.raises(ConfigError, match=message):
        parse_camera(entry)


@pytest.mark.parametrize("content, message", [
    ("[]", "must be JSON object"),
    ("{}", "could not read cameras"),
    ("{broken", "config error"),
    ('{"cameras": [{"path": "/dev/video0"}]}', "could not read camera name"),
])
def test_bad_files(tmp_path, content, message):
    with pytest.raises(ConfigError, match=message):
        read_config(write(tmp_path, content))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="could not open"):
        read_config(tmp_path / "nope.json")


def test_defaults():
    cam = CameraConfig("c", "/dev/video0")
    assert cam.exposure_min < cam.exposure_max
