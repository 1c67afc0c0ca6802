"""
Web server - aiohttp application for viewers and remote tuning.
"""

import asyncio
import logging
from pathlib import Path

from aiohttp import web

from tape_vision.config import PARAMS_DIR, STREAM_FPS, WEB_HOST, WEB_PORT

logger = logging.getLogger(__name__)


class WebServer:
    """
    Dashboard / tuning interface.

    Provides:
    - Annotated camera stream per video output (MJPEG)
    - Read/write access to tuning tables
    - Tuner status and latest detections

    Args:
        outputs: name -> VideoOutput
        tables: name -> TuningTable
        tuners: name -> PipelineTuner
        params_dir: where "_save" requests write table files
        cameras: name -> Camera, streamed raw
    """

    def __init__(self, outputs=None, tables=None, tuners=None, params_dir=None, cameras=None):
        self.outputs = outputs or {}
        self.tables = tables or {}
        self.tuners = tuners or {}
        self.cameras = cameras or {}
        self.params_dir = Path(params_dir) if params_dir else PARAMS_DIR
        self.app = web.Application()
        self._setup_routes()

    def _setup_routes(self):
        """Configure routes."""
        self.app.router.add_get("/", self.index)

        # API
        self.app.router.add_get("/api/status", self.api_status)
        self.app.router.add_get("/api/tables/{name}", self.api_table_get)
        self.app.router.add_post("/api/tables/{name}", self.api_table_set)
        self.app.router.add_get("/api/detections/{name}", self.api_detections)

        # Streams
        self.app.router.add_get("/stream/{name}", self.stream_output)

    async def index(self, request):
        """Links to every stream and table."""
        streams = "".join(
            f'<li><a href="/stream/{name}">{name}</a></li>' for name in self.outputs
        )
        raw = "".join(
            f'<li><a href="/stream/{name}">{name} (raw)</a></li>'
            for name in self.cameras if name not in self.outputs
        )
        tables = "".join(
            f'<li><a href="/api/tables/{name}">{name}</a></li>' for name in self.tables
        )
        html = f"""
        <!DOCTYPE html>
        <html>
        <head><title>Tape Vision</title></head>
        <body>
            <h1>Tape Vision</h1>
            <h2>Streams</h2><ul>{streams}{raw}</ul>
            <h2>Tuning tables</h2><ul>{tables}</ul>
            <p><a href="/api/status">Status</a></p>
        </body>
        </html>
        """
        return web.Response(text=html, content_type="text/html")

    async def api_status(self, request):
        """Tuner and stream status."""
        status = {
            name: tuner.status() for name, tuner in self.tuners.items()
        }
        for name, output in self.outputs.items():
            status.setdefault(name, {})["stream_frames"] = output.frame_count
        for name, camera in self.cameras.items():
            status.setdefault(name, {})["camera_frames"] = camera.frame_count
        return web.json_response(status)

    async def api_table_get(self, request):
        """Get current tuning values."""
        table = self.tables.get(request.match_info["name"])
        if table is None:
            return web.json_response({"error": "Unknown table"}, status=404)
        return web.json_response(table.to_dict())

    async def api_table_set(self, request):
        """Update tuning values. Include _save=true to persist to disk."""
        name = request.match_info["name"]
        table = self.tables.get(name)
        if table is None:
            return web.json_response({"error": "Unknown table"}, status=404)

        try:
            data = await request.json()
        except ValueError:
            return web.json_response({"error": "Invalid JSON"}, status=400)
        if not isinstance(data, dict):
            return web.json_response({"error": "Expected JSON object"}, status=400)

        save = data.pop("_save", False) is True
        table.update(**data)

        if save:
            try:
                table.save(self.params_dir / f"{name}.json")
            except OSError as e:
                logger.error(f"Failed to save table {name}: {e}")
                return web.json_response(
                    {"error": f"Save failed: {e}", "values": table.to_dict()}, status=500,
                )

        return web.json_response(table.to_dict())

    async def api_detections(self, request):
        """Latest detections for a video output."""
        output = self.outputs.get(request.match_info["name"])
        if output is None:
            return web.json_response({"error": "Unknown stream"}, status=404)
        return web.json_response({
            "timestamp": output.timestamp,
            "detections": [d.to_dict() for d in output.get_detections()],
        })

    async def stream_output(self, request):
        """MJPEG stream of annotated frames, or raw frames for a plain camera."""
        name = request.match_info["name"]
        output = self.outputs.get(name) or self.cameras.get(name)
        if output is None:
            return web.Response(status=404, text="Unknown stream")

        response = web.StreamResponse()
        response.content_type = "multipart/x-mixed-replace; boundary=frame"
        await response.prepare(request)

        last_count = -1
        try:
            while True:
                if output.frame_count != last_count:
                    last_count = output.frame_count
                    jpeg = output.get_jpeg_frame()
                    if jpeg:
                        await response.write(
                            b"--frame\r\n"
                            b"Content-Type: image/jpeg\r\n\r\n"
                            + jpeg
                            + b"\r\n"
                        )
                await asyncio.sleep(1.0 / STREAM_FPS)
        except (ConnectionResetError, ConnectionAbortedError):
            pass
        except Exception as e:
            logger.error(f"Stream {output.name} error: {e}")

        return response


def create_app(outputs=None, tables=None, tuners=None, params_dir=None, cameras=None) -> web.Application:
    """Create the web application."""
    server = WebServer(outputs, tables, tuners, params_dir, cameras)
    return server.app


async def run_server(
    outputs=None, tables=None, tuners=None, params_dir=None, cameras=None,
    host=WEB_HOST, port=WEB_PORT,
):
    """Run the web server."""
    app = create_app(outputs, tables, tuners, params_dir, cameras)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info(f"Web server running at http://{host}:{port}")
    return runner
