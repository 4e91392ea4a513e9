"""
OpenCV preview renderer.

Point updates arrive on the receive thread and are only buffered here;
drawing and window handling happen in render(), which must be called from
the thread that owns the OpenCV window (normally the main thread).
"""

import logging
import threading
import time
from typing import List, Optional, Set, Tuple

import cv2
import numpy as np

from .frame import HAND_CONNECTIONS, NUM_HAND_POINTS, Point3D

logger = logging.getLogger(__name__)


class PreviewRenderer:
    """
    Draws the hand skeleton in an OpenCV window.

    Incoming coordinates are tracker image pixels with y pointing up, so
    they are flipped back onto the canvas.
    """

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        window_name: str = "Hand Tracking Preview",
        show_window: bool = True,
    ):
        """
        Initialize preview renderer.

        Args:
            width: Canvas width in pixels
            height: Canvas height in pixels
            window_name: OpenCV window title
            show_window: If False, render() only draws (no imshow)
        """
        self.width = width
        self.height = height
        self.window_name = window_name
        self.show_window = show_window

        self.connections: Set[Tuple[int, int]] = set(HAND_CONNECTIONS)
        self.font = cv2.FONT_HERSHEY_SIMPLEX

        self._lock = threading.Lock()
        self._points: np.ndarray = np.zeros((NUM_HAND_POINTS, 3), dtype=np.float32)
        self._seen: List[bool] = [False] * NUM_HAND_POINTS
        self._updates = 0
        self._last_update: Optional[float] = None
        self._initialized = False
        self._window_open = False

    def initialize(self, num_points: int) -> None:
        with self._lock:
            self._points = np.zeros((num_points, 3), dtype=np.float32)
            self._seen = [False] * num_points
        self._initialized = True
        logger.info(f"PreviewRenderer initialized with {num_points} hand points")

    def update_point(self, index: int, position: Point3D) -> None:
        if not self._initialized:
            return
        with self._lock:
            if index < 0 or index >= len(self._points):
                return
            self._points[index] = position.as_tuple()
            self._seen[index] = True
            self._updates += 1
            self._last_update = time.time()

    def update_line(self, start_index: int, end_index: int) -> None:
        with self._lock:
            self.connections.add((start_index, end_index))

    def cleanup(self) -> None:
        self._initialized = False
        if self._window_open:
            cv2.destroyWindow(self.window_name)
            self._window_open = False

    def snapshot(self) -> Tuple[np.ndarray, List[bool]]:
        """Copy of buffered points and which indices have been seen."""
        with self._lock:
            return self._points.copy(), list(self._seen)

    def draw(self, canvas: Optional[np.ndarray] = None) -> np.ndarray:
        """Draw the current skeleton onto a canvas (new black canvas if None)."""
        if canvas is None:
            canvas = np.zeros((self.height, self.width, 3), dtype=np.uint8)

        points, seen = self.snapshot()
        with self._lock:
            connections = sorted(self.connections)

        pixels = [
            (int(round(p[0])), int(round(self.height - p[1])))
            for p in points
        ]

        for start, end in connections:
            if start >= len(pixels) or end >= len(pixels):
                continue
            if seen[start] and seen[end]:
                cv2.line(canvas, pixels[start], pixels[end], (0, 255, 0), 2)

        for i, px in enumerate(pixels):
            if seen[i]:
                cv2.circle(canvas, px, 4, (0, 0, 255), -1)

        status = "No data" if self._last_update is None else f"Updates: {self._updates}"
        cv2.putText(canvas, status, (10, 20), self.font, 0.5, (255, 255, 255), 1)
        return canvas

    def render(self, wait_ms: int = 1) -> int:
        """
        Draw and show one preview frame. Call from the UI thread.

        Returns:
            Key code from cv2.waitKey (-1 if no key), or -1 when not showing
        """
        canvas = self.draw()
        if not self.show_window:
            return -1
        cv2.imshow(self.window_name, canvas)
        self._window_open = True
        return cv2.waitKey(wait_ms)
