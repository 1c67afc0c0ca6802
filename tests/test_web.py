"""Web API tests against an in-process aiohttp server."""

import asyncio
import json

import numpy as np
import pytest
from aiohttp.test_utils import TestClient, TestServer

from tape_vision.camera_config import CameraConfig
from tape_vision.perception import ReflectiveTapePipeline, VideoOutput
from tape_vision.perception.geometry import Candidate, Detection, rect_corners
from tape_vision.control import PipelineTuner
from tape_vision.sensors import Camera
from tape_vision.web import create_app

from conftest import FakeCamera


def run(app, scenario):
    """Run ``scenario(client)`` against ``app``."""

    async def go():
        async with TestClient(TestServer(app)) as client:
            return await scenario(client)

    return asyncio.run(go())


@pytest.fixture
def camera_with_frame():
    camera = Camera(CameraConfig("driver", "/dev/null"))
    with camera._cond:
        camera._frame = np.zeros((24, 32, 3), np.uint8)
        camera._frame_id += 1
    return camera


@pytest.fixture
def output():
    out = VideoOutput("Camera0")
    c = Candidate(50, 60, 10, 30, -5)
    out.put_frame(np.zeros((24, 32, 3), np.uint8), [Detection(c, "left", rect_corners(c))])
    return out


def test_get_table(table):
    table.update(hsvHMin=55)
    app = create_app(tables={"Camera0": table})

    async def scenario(client):
        resp = await client.get("/api/tables/Camera0")
        return resp.status, await resp.json()

    status, body = run(app, scenario)
    assert status == 200
    assert body == {"hsvHMin": 55.0}


def test_post_updates_table(table):
    app = create_app(tables={"Camera0": table})

    async def scenario(client):
        resp = await client.post("/api/tables/Camera0", json={"exposureEntry": 40, "hsvSMin": "120"})
        return resp.status, await resp.json()

    status, body = run(app, scenario)
    assert status == 200
    assert body["exposureEntry"] == 40.0
    assert table.get_number("hsvSMin", 0) == 120.0


def test_post_save_writes_file(table, tmp_path):
    app = create_app(tables={"Camera0": table}, params_dir=tmp_path)

    async def scenario(client):
        resp = await client.post("/api/tables/Camera0", json={"minSizeEntry": 75, "_save": True})
        return resp.status

    assert run(app, scenario) == 200
    saved = json.loads((tmp_path / "Camera0.json").read_text())
    assert saved == {"minSizeEntry": 75.0}
    assert "_save" not in table.to_dict()


def test_unknown_table_is_404(table):
    app = create_app(tables={"Camera0": table})

    async def scenario(client):
        get = await client.get("/api/tables/nope")
        post = await client.post("/api/tables/nope", json={"a": 1})
        return get.status, post.status

    assert run(app, scenario) == (404, 404)


@pytest.mark.parametrize("body", ["{not json", "[1, 2]"])
def test_bad_body_is_400(table, body):
    app = create_app(tables={"Camera0": table})

    async def scenario(client):
        resp = await client.post(
            "/api/tables/Camera0", data=body, headers={"Content-Type": "application/json"},
        )
        return resp.status

    assert run(app, scenario) == 400
    assert table.to_dict() == {}


def test_detections(output):
    app = create_app(outputs={"Camera0": output})

    async def scenario(client):
        found = await client.get("/api/detections/Camera0")
        missing = await client.get("/api/detections/other")
        return await found.json(), missing.status

    body, missing = run(app, scenario)
    assert missing == 404
    assert body["timestamp"] == output.timestamp
    (det,) = body["detections"]
    assert det["band"] == "left"
    assert len(det["corners"]) == 4


def test_status(output, table):
    tuner = PipelineTuner(FakeCamera(), ReflectiveTapePipeline(), table, output)
    tuner.run_once()
    app = create_app(outputs={"Camera0": output}, tables={"Camera0": table}, tuners={"Camera0": tuner})

    async def scenario(client):
        resp = await client.get("/api/status")
        return await resp.json()

    status = run(app, scenario)["Camera0"]
    assert status["running"] is False
    assert status["cycles"] == 1
    assert status["missed"] == 1
    assert status["stream_frames"] == 1


def test_index_lists_streams_and_tables(output, table):
    app = create_app(outputs={"Camera0": output}, tables={"Camera0": table})

    async def scenario(client):
        resp = await client.get("/")
        return resp.status, await resp.text()

    status, html = run(app, scenario)
    assert status == 200
    assert "/stream/Camera0" in html
    assert "/api/tables/Camera0" in html


def test_unknown_stream_is_404():
    app = create_app()

    async def scenario(client):
        resp = await client.get("/stream/nope")
        return resp.status

    assert run(app, scenario) == 404


def test_save_flag_must_be_true(table, tmp_path):
    app = create_app(tables={"Camera0": table}, params_dir=tmp_path)

    async def scenario(client):
        resp = await client.post("/api/tables/Camera0", json={"minSizeEntry": 75, "_save": "false"})
        return resp.status

    assert run(app, scenario) == 200
    assert not (tmp_path / "Camera0.json").exists()
    assert table.get_number("minSizeEntry", 0) == 75.0


def test_save_failure_is_reported_as_json(table, tmp_path):
    app = create_app(tables={"Camera0": table}, params_dir=tmp_path / "missing")

    async def scenario(client):
        resp = await client.post("/api/tables/Camera0", json={"minSizeEntry": 75, "_save": True})
        return resp.status, await resp.json()

    status, body = run(app, scenario)
    assert status == 500
    assert "Save failed" in body["error"]
    assert body["values"]["minSizeEntry"] == 75.0


def test_raw_camera_stream(camera_with_frame):
    app = create_app(cameras={"driver": camera_with_frame})

    async def scenario(client):
        resp = await client.get("/stream/driver")
        first = await resp.content.readline()
        resp.close()
        return resp.status, resp.content_type, first

    status, content_type, first = run(app, scenario)
    assert status == 200
    assert content_type == "multipart/x-mixed-replace"
    assert first == b"--frame\r\n"


def test_cameras_listed_and_counted(camera_with_frame):
    app = create_app(cameras={"driver": camera_with_frame})

    async def scenario(client):
        index = await client.get("/")
        status = await client.get("/api/status")
        return await index.text(), await status.json()

    html, status = run(app, scenario)
    assert "/stream/driver" in html
    assert status["driver"]["camera_frames"] == 1
