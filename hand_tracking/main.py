#!/usr/bin/env python3
"""
Hand Tracking Receiver - Main Entry Point

Listens for hand landmark datagrams and renders them with the selected
renderer until interrupted.

Environment Variables:
    HAND_TRACKING_PORT: UDP port to listen on (default: 5032)

Usage:
    python -m hand_tracking.main --renderer console
    python -m hand_tracking.main --renderer preview --port 5032
"""

import argparse
import logging
import os
import signal
import sys
import threading
from typing import List, Optional

from .controller import HandTrackingController
from .frame import HandFrame
from .renderer import ConsoleRenderer, HandRenderer, SceneRenderer
from .udp_receiver import DEFAULT_PORT

logger = logging.getLogger(__name__)

RENDERERS = ("console", "scene", "preview")


def build_renderer(name: str) -> HandRenderer:
    """Create a renderer by CLI name."""
    if name == "console":
        return ConsoleRenderer(min_interval_s=0.5)
    if name == "scene":
        return SceneRenderer()
    if name == "preview":
        # OpenCV is only needed for the preview window
        from .preview import PreviewRenderer
        return PreviewRenderer()
    raise ValueError(f"Unknown renderer: {name}")


def default_port() -> int:
    value = os.environ.get("HAND_TRACKING_PORT")
    if not value:
        return DEFAULT_PORT
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring invalid HAND_TRACKING_PORT={value!r}")
        return DEFAULT_PORT


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Hand Tracking Receiver",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Local address to bind",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=default_port(),
        help="UDP port to receive hand tracking data",
    )
    parser.add_argument(
        "--renderer",
        choices=RENDERERS,
        default="console",
        help="Renderer for decoded frames",
    )
    parser.add_argument(
        "--log-payloads",
        action="store_true",
        help="Log every received payload",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def _on_frame_updated(frame: HandFrame) -> None:
    logger.debug(f"Hand tracking data updated at {frame.timestamp:.3f}")


def _on_error(error: Exception) -> None:
    logger.warning(f"Receive error: {error}")


def run(args: argparse.Namespace) -> int:
    """Run the receiver until a shutdown signal. Returns an exit code."""
    renderer = build_renderer(args.renderer)
    controller = HandTrackingController(
        renderer,
        port=args.port,
        host=args.host,
        on_frame_updated=_on_frame_updated,
        on_error=_on_error,
        log_payloads=args.log_payloads,
    )

    shutdown = threading.Event()

    def signal_handler(signum, frame):
        logger.info("Shutdown signal received")
        shutdown.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, signal_handler)

    try:
        if not controller.start():
            logger.error(f"Could not start receiving on port {args.port}")
            return 1
        logger.info(f"Started receiving on port {args.port} ({args.renderer} renderer)")

        render = getattr(renderer, "render", None)
        while not shutdown.is_set():
            if render is None:
                shutdown.wait(0.5)
                continue
            # Preview window must be driven from this thread
            key = render(wait_ms=30) & 0xFF
            if key in (27, ord('q')):
                logger.info("Quit requested")
                shutdown.set()
    finally:
        logger.info(f"Receiver stats: {controller.get_stats()}")
        controller.dispose()
    return 0


def main() -> None:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        sys.exit(run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
