"""
Renderer sinks for decoded hand frames.

Every renderer implements the HandRenderer contract. The controller calls
initialize() once before any update, update_point() with indices in
[0, num_points) from the receive thread, and cleanup() at most once.
Skeleton connectivity is a renderer decision; the controller never calls
update_line() itself.
"""

import logging
import sys
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Set, TextIO, Tuple

import numpy as np

from .frame import LANDMARK_NAMES, NUM_HAND_POINTS, Point3D

logger = logging.getLogger(__name__)


class HandRenderer(Protocol):
    """Capability interface for anything that displays hand landmarks."""

    def initialize(self, num_points: int) -> None: ...

    def update_point(self, index: int, position: Point3D) -> None: ...

    def update_line(self, start_index: int, end_index: int) -> None: ...

    def cleanup(self) -> None: ...


# ============================================================================
# Scene-graph adapter
# ============================================================================

@dataclass
class SceneNode:
    """A transform in a scene graph (one per landmark)."""
    name: str
    local_position: Tuple[float, float, float] = (0.0, 0.0, 0.0)


class SceneRenderer:
    """
    Maps landmarks onto scene-graph node transforms.

    Coordinates from the tracker (image pixels) are converted to scene units:
    ``x = x_offset - x / scale``, ``y = y / scale``, ``z = z / scale``.
    """

    def __init__(
        self,
        nodes: Optional[Sequence[SceneNode]] = None,
        coordinate_scale: float = 100.0,
        x_offset: float = 7.0,
    ):
        """
        Initialize scene renderer.

        Args:
            nodes: Node per landmark; one node per LANDMARK_NAMES entry if None
            coordinate_scale: Divisor applied to every coordinate
            x_offset: Offset the mirrored x axis is measured from
        """
        if nodes is None:
            nodes = [SceneNode(name) for name in LANDMARK_NAMES]
        self.nodes: List[SceneNode] = list(nodes)
        self.coordinate_scale = coordinate_scale
        self.x_offset = x_offset

        self.lines: Set[Tuple[int, int]] = set()
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self, num_points: int) -> None:
        if len(self.nodes) != num_points:
            logger.error(
                f"SceneRenderer: expected {num_points} hand nodes, but found {len(self.nodes)}"
            )
            return
        self._initialized = True
        logger.info(f"SceneRenderer initialized with {num_points} hand points")

    def to_scene(self, position: Point3D) -> Tuple[float, float, float]:
        """Transform a tracker-space point to scene space."""
        return (
            self.x_offset - position.x / self.coordinate_scale,
            position.y / self.coordinate_scale,
            position.z / self.coordinate_scale,
        )

    def update_point(self, index: int, position: Point3D) -> None:
        if not self._initialized:
            return
        if index < 0 or index >= len(self.nodes):
            return
        node = self.nodes[index]
        if node is None:
            return
        with self._lock:
            node.local_position = self.to_scene(position)

    def update_line(self, start_index: int, end_index: int) -> None:
        # Line geometry is drawn by the scene itself; only remember the edge
        self.lines.add((start_index, end_index))

    def cleanup(self) -> None:
        self._initialized = False

    def positions(self) -> np.ndarray:
        """Snapshot of all node positions as an (N, 3) array."""
        with self._lock:
            return np.array([n.local_position for n in self.nodes], dtype=np.float32)


# ============================================================================
# Console / debug adapter
# ============================================================================

class ConsoleRenderer:
    """
    Prints one line per completed frame.

    A frame is complete when the last landmark index has been updated.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        min_interval_s: float = 0.0,
        precision: int = 1,
    ):
        """
        Initialize console renderer.

        Args:
            stream: Output stream (default: sys.stdout)
            min_interval_s: Minimum time between printed frames
            precision: Decimals shown per coordinate
        """
        self.stream = stream
        self.min_interval_s = min_interval_s
        self.precision = precision

        self.num_points = NUM_HAND_POINTS
        self.frames_printed = 0
        self._points: List[Optional[Point3D]] = []
        self._last_print = 0.0

    def initialize(self, num_points: int) -> None:
        self.num_points = num_points
        self._points = [None] * num_points
        self._write(f"Hand renderer ready ({num_points} points)")

    def update_point(self, index: int, position: Point3D) -> None:
        if index < 0 or index >= len(self._points):
            return
        self._points[index] = position
        if index == self.num_points - 1:
            self._frame_complete()

    def update_line(self, start_index: int, end_index: int) -> None:
        pass

    def cleanup(self) -> None:
        self._write(f"Hand renderer closed after {self.frames_printed} frames")
        self._points = []

    def _frame_complete(self) -> None:
        now = time.monotonic()
        if self.frames_printed and now - self._last_print < self.min_interval_s:
            return
        self._last_print = now
        self.frames_printed += 1

        wrist = self._points[0]
        p = self.precision
        coords = " ".join(
            f"{i}:({pt.x:.{p}f},{pt.y:.{p}f},{pt.z:.{p}f})"
            for i, pt in enumerate(self._points) if pt is not None
        )
        head = f"wrist=({wrist.x:.{p}f}, {wrist.y:.{p}f}, {wrist.z:.{p}f})" if wrist else "wrist=?"
        self._write(f"[frame {self.frames_printed}] {head} {coords}")

    def _write(self, line: str) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        print(line, file=stream, flush=True)
