"""
Application Initialization
==========================
This module parses the command line, sets up logging, constructs the main
window and starts the Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Turns command-line flags into an AppConfig.
2. Instantiates the Main Window (which owns the parameter store, the
   surface manager and the render scheduler).
3. Keeps the package importable without side effects.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from fractalview import __version__
from fractalview.application import create_app
from fractalview.config import AppConfig, DEFAULT_POINT_DEPTH, FRAME_INTERVAL_MS
from fractalview.logging_config import setup_logging
from fractalview.view.main_window import MainWindow

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fractalview",
        description="Interactive viewer for a fractal-noise 3D point cloud.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level.")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file.")
    parser.add_argument(
        "--threaded",
        action="store_true",
        help="Generate point sets on a background thread.",
    )
    parser.add_argument(
        "--presentation-factor",
        type=float,
        default=1.0,
        help="Fraction of the container width used by the canvas, in (0, 1].",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=DEFAULT_POINT_DEPTH,
        help="Subdivision depth of the point grid (4**depth points).",
    )
    parser.add_argument(
        "--frame-interval",
        type=int,
        default=FRAME_INTERVAL_MS,
        help="Coalescing window in milliseconds.",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> AppConfig:
    return AppConfig(
        threaded_generation=args.threaded,
        presentation_factor=args.presentation_factor,
        point_depth=args.depth,
        frame_interval_ms=args.frame_interval,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # 1. Setup Logging (Console + Optional File)
    setup_logging(level=logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)

    # 2. Validate the configuration before any window exists
    try:
        app_config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    # 3. Create the Qt Application
    app = create_app()

    # 4. Initialize the Main Window and start the Event Loop
    window = MainWindow(app_config)
    window.show()
    logger.info(f"Started with {app_config}")
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
