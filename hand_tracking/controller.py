"""
Hand tracking controller.

Coordinates UDP reception, payload decoding and rendering:

    UDPReceiver -> parse_frame -> HandRenderer.update_point (x21) -> on_frame_updated

All decoding and renderer calls for a payload run synchronously on the
receiver's background thread. Renderers that need a specific thread must
marshal internally.
"""

import logging
import threading
import time
from typing import Callable, Optional, Tuple

from .frame import NUM_HAND_POINTS, HandFrame
from .parser import parse_frame
from .renderer import HandRenderer
from .udp_receiver import DEFAULT_PORT, UDPReceiver

logger = logging.getLogger(__name__)


class HandTrackingController:
    """
    Owns one UDPReceiver and one renderer.

    Features:
    - Initializes the renderer with the landmark count on construction
    - Pushes every decoded frame to the renderer in landmark order
    - Keeps the latest decoded frame (replaced whole, never mutated)
    - Single handler per event: frame updated, transport error
    """

    def __init__(
        self,
        renderer: HandRenderer,
        port: int = DEFAULT_PORT,
        host: str = "0.0.0.0",
        on_frame_updated: Optional[Callable[[HandFrame], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        log_payloads: bool = False,
    ):
        """
        Initialize the controller.

        Args:
            renderer: Renderer implementation receiving point updates
            port: UDP port to listen on
            host: Local address to bind
            on_frame_updated: Called with each decoded frame (receive thread)
            on_error: Called with transport errors (receive thread)
            log_payloads: Echo raw payloads through the receiver's logger
        """
        self.renderer = renderer
        self.on_frame_updated = on_frame_updated
        self.on_error = on_error

        self._receiver = UDPReceiver(
            port=port,
            host=host,
            on_data=self._handle_data,
            on_error=self._handle_error,
            log_payloads=log_payloads,
        )
        self._latest_frame: Optional[HandFrame] = None
        self._disposed = False
        # Held around every renderer call; dispose() takes it to fence cleanup
        self._render_lock = threading.RLock()

        # Statistics
        self._frames_decoded = 0
        self._payloads_dropped = 0
        self._errors = 0
        self._last_frame_time: Optional[float] = None

        self.renderer.initialize(NUM_HAND_POINTS)

    @property
    def receiver(self) -> UDPReceiver:
        return self._receiver

    @property
    def latest_frame(self) -> Optional[HandFrame]:
        """Most recently decoded frame, or None before the first one."""
        return self._latest_frame

    @property
    def is_receiving(self) -> bool:
        return self._receiver.is_receiving

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """Bound (host, port) while receiving."""
        return self._receiver.address

    def start(self) -> bool:
        """Start receiving hand tracking data."""
        if self._disposed:
            logger.warning("start() called on a disposed controller")
            return False
        return self._receiver.start()

    def stop(self) -> None:
        """Stop receiving hand tracking data."""
        self._receiver.stop()

    def dispose(self) -> None:
        """Stop receiving, release the socket and clean up the renderer once."""
        with self._render_lock:
            if self._disposed:
                return
            self._disposed = True
        self.stop()
        self._receiver.dispose()
        with self._render_lock:
            self.renderer.cleanup()
        logger.info("Hand tracking controller disposed")

    def __enter__(self) -> "HandTrackingController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _handle_data(self, data: str) -> None:
        if self._disposed:
            return

        frame = parse_frame(data)
        if frame is None:
            self._payloads_dropped += 1
            return

        self._latest_frame = frame
        self._frames_decoded += 1
        self._last_frame_time = time.time()

        for index, point in enumerate(frame.points):
            with self._render_lock:
                # dispose() may land between two points of the same frame
                if self._disposed:
                    return
                self.renderer.update_point(index, point)

        if self._disposed:
            return
        if self.on_frame_updated:
            self.on_frame_updated(frame)

    def _handle_error(self, error: Exception) -> None:
        self._errors += 1
        if self.on_error:
            self.on_error(error)
        else:
            logger.warning(f"Transport error: {error}")

    def get_stats(self) -> dict:
        """Get controller statistics."""
        total = self._frames_decoded + self._payloads_dropped
        return {
            "frames_decoded": self._frames_decoded,
            "payloads_dropped": self._payloads_dropped,
            "drop_rate": self._payloads_dropped / total if total > 0 else 0.0,
            "transport_errors": self._errors,
            "last_frame_time": self._last_frame_time,
            "receiver": self._receiver.get_stats(),
        }
