#!/usr/bin/env python3
"""
Tape vision coprocessor - Main Entry Point

Usage:
    tape-vision                      # Read /boot/frc.json
    tape-vision my_cameras.json      # Custom camera descriptor
    tape-vision --port 8080          # Custom web port
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from tape_vision.camera_config import ConfigError, read_config
from tape_vision.config import CONFIG_FILE, PARAMS_DIR, TABLE_NAME, WEB_HOST, WEB_PORT

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Reflective tape vision coprocessor")
    parser.add_argument(
        "config_file",
        nargs="?",
        default=CONFIG_FILE,
        help=f"Camera descriptor JSON (default: {CONFIG_FILE})",
    )
    parser.add_argument(
        "--params-dir",
        type=Path,
        default=PARAMS_DIR,
        help="Directory for saved tuning tables",
    )
    parser.add_argument("--host", default=WEB_HOST, help="Web interface host")
    parser.add_argument("--port", type=int, default=WEB_PORT, help="Web interface port")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser.parse_args(argv)


def build_processing(cameras, params_dir: Path):
    """
    Wire a tuner, tuning table and annotated output onto the first camera.

    Every camera is still streamed raw by the web server.

    Returns:
        (outputs, tables, tuners) keyed by TABLE_NAME, empty without a camera.
    """
    from tape_vision.control import PipelineTuner
    from tape_vision.perception import ReflectiveTapePipeline, VideoOutput
    from tape_vision.store import TuningTable

    outputs = {}
    tables = {}
    tuners = {}

    if not cameras:
        logger.warning("No camera available, serving web interface only")
        return outputs, tables, tuners

    # Image processing on the first camera only
    table = TuningTable.load(TABLE_NAME, Path(params_dir) / f"{TABLE_NAME}.json")
    output = VideoOutput(TABLE_NAME)
    tables[TABLE_NAME] = table
    outputs[TABLE_NAME] = output
    tuners[TABLE_NAME] = PipelineTuner(cameras[0], ReflectiveTapePipeline(), table, output)
    return outputs, tables, tuners


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    logger.info("Tape vision starting...")

    try:
        camera_configs = read_config(args.config_file)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    from tape_vision.sensors import Camera
    from tape_vision.web import run_server

    cameras = []
    for cfg in camera_configs:
        camera = Camera(cfg)
        if camera.start():
            cameras.append(camera)

    outputs, tables, tuners = build_processing(cameras, args.params_dir)
    for tuner in tuners.values():
        tuner.start()

    async def run_web():
        runner = await run_server(
            outputs=outputs,
            tables=tables,
            tuners=tuners,
            params_dir=args.params_dir,
            cameras={camera.name: camera for camera in cameras},
            host=args.host,
            port=args.port,
        )
        logger.info("Press Ctrl+C to stop")
        try:
            while True:
                await asyncio.sleep(1)
        except asyncio.CancelledError:
            pass
        finally:
            await runner.cleanup()

    try:
        asyncio.run(run_web())
    except KeyboardInterrupt:
        logger.info("Shutdown requested")
    finally:
        for tuner in tuners.values():
            tuner.stop()
        for camera in cameras:
            camera.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
