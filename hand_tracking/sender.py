#!/usr/bin/env python3
"""
Hand frame sender and synthetic demo source.

FrameSender encodes landmark points into the ``[x,y,z,...]`` wire format and
sends one UDP datagram per frame. Running the module streams a procedurally
animated hand, which is handy for exercising a receiver without a camera.

Usage:
    python -m hand_tracking.sender --port 5032 --rate 30
"""

import argparse
import logging
import math
import socket
import time
from typing import Optional, Sequence, Tuple

from .frame import NUM_HAND_POINTS, Point3D, format_payload
from .udp_receiver import DEFAULT_PORT

logger = logging.getLogger(__name__)


class FrameSender:
    """Fire-and-forget UDP sender for hand frames."""

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = DEFAULT_PORT,
        precision: Optional[int] = 3,
    ):
        """
        Initialize sender.

        Args:
            host: Receiver host
            port: Receiver UDP port
            precision: Decimals per value (None for full precision)
        """
        self.host = host
        self.port = port
        self.precision = precision

        self._sock: Optional[socket.socket] = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._frames_sent = 0
        self._send_failures = 0

    def send(self, points: Sequence[Point3D]) -> bool:
        """
        Send one frame.

        Returns:
            True if the datagram was handed to the OS
        """
        if len(points) != NUM_HAND_POINTS:
            logger.warning(f"Refusing to send frame with {len(points)} points")
            return False
        return self.send_raw(format_payload(points, self.precision))

    def send_raw(self, payload: str) -> bool:
        """Send an already-encoded payload."""
        if self._sock is None:
            return False
        try:
            self._sock.sendto(payload.encode("utf-8"), (self.host, self.port))
            self._frames_sent += 1
            return True
        except OSError as e:
            self._send_failures += 1
            logger.warning(f"Send failed: {e}")
            return False

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> "FrameSender":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_stats(self) -> dict:
        return {
            "frames_sent": self._frames_sent,
            "send_failures": self._send_failures,
        }


# ============================================================================
# Synthetic Hand
# ============================================================================

# (base angle from vertical in degrees, joint distances from wrist in px)
_FINGER_LAYOUT: Tuple[Tuple[float, Tuple[float, float, float, float]], ...] = (
    (-55.0, (35.0, 65.0, 90.0, 110.0)),   # thumb
    (-15.0, (80.0, 115.0, 138.0, 158.0)),  # index
    (0.0, (82.0, 122.0, 148.0, 170.0)),    # middle
    (14.0, (78.0, 114.0, 138.0, 158.0)),   # ring
    (28.0, (72.0, 100.0, 118.0, 134.0)),   # pinky
)


def synthetic_hand(
    t: float,
    width: int = 640,
    height: int = 480,
) -> Tuple[Point3D, ...]:
    """
    Generate a waving, opening and closing hand at time t.

    Coordinates follow the tracker convention: image pixels with y up.
    """
    wave = math.radians(20.0 * math.sin(2.0 * math.pi * 0.5 * t))
    openness = 0.75 + 0.25 * math.sin(2.0 * math.pi * 0.25 * t)

    wx, wy = width / 2.0, height * 0.15
    points = [Point3D(wx, wy, 0.0)]
    for base_deg, distances in _FINGER_LAYOUT:
        angle = math.radians(base_deg) + wave
        for joint, dist in enumerate(distances):
            d = dist * (openness if joint > 0 else 1.0)
            points.append(Point3D(
                wx + d * math.sin(angle),
                wy + d * math.cos(angle),
                -2.0 * (joint + 1),
            ))
    return tuple(points)


def main() -> None:
    """Stream a synthetic hand to a receiver."""
    parser = argparse.ArgumentParser(
        description="Synthetic hand frame sender",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Receiver host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Receiver UDP port")
    parser.add_argument("--rate", type=float, default=30.0, help="Frames per second")
    parser.add_argument(
        "--duration",
        type=float,
        default=0.0,
        help="Seconds to run (0 = until interrupted)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    target_dt = 1.0 / args.rate
    t0 = time.time()
    logger.info(f"Sending synthetic hand to {args.host}:{args.port} at {args.rate:.1f} Hz")

    with FrameSender(host=args.host, port=args.port) as sender:
        try:
            while True:
                loop_start = time.time()
                elapsed = loop_start - t0
                if args.duration > 0 and elapsed >= args.duration:
                    break

                sender.send(synthetic_hand(elapsed))

                # Rate limiting
                spent = time.time() - loop_start
                if spent < target_dt:
                    time.sleep(target_dt - spent)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        logger.info(f"Sender stats: {sender.get_stats()}")


if __name__ == "__main__":
    main()
