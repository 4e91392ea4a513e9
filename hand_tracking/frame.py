"""
Hand frame data model.

Defines the immutable point and frame types produced by the decoder, the
MediaPipe Hands landmark numbering shared by senders and renderers, and the
text wire format used on the UDP link.
"""

import time
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np

# ============================================================================
# MediaPipe Landmark Indices
# ============================================================================

NUM_HAND_POINTS = 21
VALUES_PER_FRAME = NUM_HAND_POINTS * 3

WRIST = 0
THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP = 1, 2, 3, 4
INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP = 5, 6, 7, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP = 9, 10, 11, 12
RING_MCP, RING_PIP, RING_DIP, RING_TIP = 13, 14, 15, 16
PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP = 17, 18, 19, 20

# Finger joint tuples
THUMB = (THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP)
INDEX = (INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP)
MIDDLE = (MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP)
RING = (RING_MCP, RING_PIP, RING_DIP, RING_TIP)
PINKY = (PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP)

LANDMARK_NAMES = (
    "wrist",
    "thumb_cmc", "thumb_mcp", "thumb_ip", "thumb_tip",
    "index_mcp", "index_pip", "index_dip", "index_tip",
    "middle_mcp", "middle_pip", "middle_dip", "middle_tip",
    "ring_mcp", "ring_pip", "ring_dip", "ring_tip",
    "pinky_mcp", "pinky_pip", "pinky_dip", "pinky_tip",
)

# Skeleton edges (same topology as mp.solutions.hands.HAND_CONNECTIONS)
HAND_CONNECTIONS: Tuple[Tuple[int, int], ...] = (
    (WRIST, THUMB_CMC), (THUMB_CMC, THUMB_MCP), (THUMB_MCP, THUMB_IP), (THUMB_IP, THUMB_TIP),
    (WRIST, INDEX_MCP), (INDEX_MCP, INDEX_PIP), (INDEX_PIP, INDEX_DIP), (INDEX_DIP, INDEX_TIP),
    (INDEX_MCP, MIDDLE_MCP), (MIDDLE_MCP, MIDDLE_PIP), (MIDDLE_PIP, MIDDLE_DIP), (MIDDLE_DIP, MIDDLE_TIP),
    (MIDDLE_MCP, RING_MCP), (RING_MCP, RING_PIP), (RING_PIP, RING_DIP), (RING_DIP, RING_TIP),
    (RING_MCP, PINKY_MCP), (PINKY_MCP, PINKY_PIP), (PINKY_PIP, PINKY_DIP), (PINKY_DIP, PINKY_TIP),
    (WRIST, PINKY_MCP),
)


@dataclass(frozen=True)
class Point3D:
    """A single landmark position."""
    x: float
    y: float
    z: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"


@dataclass(frozen=True)
class HandFrame:
    """
    One decoded hand pose.

    Attributes:
        points: Exactly NUM_HAND_POINTS landmarks, ordered by landmark index
        timestamp: Wall-clock time (seconds) at which the frame was decoded
    """
    points: Tuple[Point3D, ...]
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        points = tuple(self.points)
        if len(points) != NUM_HAND_POINTS:
            raise ValueError(
                f"HandFrame requires {NUM_HAND_POINTS} points, got {len(points)}"
            )
        object.__setattr__(self, "points", points)

    def get_point(self, index: int) -> Point3D:
        """Get a landmark by index (0-20)."""
        if index < 0 or index >= NUM_HAND_POINTS:
            raise IndexError(
                f"Index must be between 0 and {NUM_HAND_POINTS - 1}, got {index}"
            )
        return self.points[index]

    def to_array(self, dtype=np.float32) -> np.ndarray:
        """Return the landmarks as a (21, 3) array."""
        return np.array([p.as_tuple() for p in self.points], dtype=dtype)

    def __len__(self) -> int:
        return NUM_HAND_POINTS

    def __iter__(self) -> Iterator[Point3D]:
        return iter(self.points)


def format_payload(points: Sequence[Point3D], precision: Optional[int] = None) -> str:
    """
    Encode points into the wire format ``[x0,y0,z0,x1,...]``.

    Args:
        points: Points to encode, in landmark order
        precision: Fixed number of decimals, or None for shortest round-trip repr

    Returns:
        Payload text
    """
    values = []
    for p in points:
        for v in p.as_tuple():
            if precision is None:
                values.append(repr(float(v)))
            else:
                values.append(f"{float(v):.{precision}f}")
    return "[" + ",".join(values) + "]"


def points_from_landmarks(landmarks, width: int, height: int) -> Tuple[Point3D, ...]:
    """
    Convert normalized MediaPipe landmarks to image-space points.

    x and z are scaled by the image width, y is flipped so that it grows
    upwards (``height - y * height``).

    Args:
        landmarks: Sequence of objects with x, y, z attributes (e.g. ``hand.landmark``)
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        Tuple of NUM_HAND_POINTS points
    """
    points = tuple(
        Point3D(
            x=float(lm.x * width),
            y=float(height - lm.y * height),
            z=float(lm.z * width),
        )
        for lm in landmarks
    )
    if len(points) != NUM_HAND_POINTS:
        raise ValueError(f"Expected {NUM_HAND_POINTS} landmarks, got {len(points)}")
    return points
