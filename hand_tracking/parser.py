"""
Frame decoder for hand tracking datagrams.

Expected format: ``[x1,y1,z1,x2,y2,z2,...,x21,y21,z21]``

Decoding is permissive about framing (brackets are stripped when present,
values past the 63rd are ignored) and strict about content (too few values
or any unparseable number among the first 63 drops the whole payload).
Failures are reported as ``None``, never raised.
"""

import re
from typing import List, Optional, Tuple

from .frame import NUM_HAND_POINTS, VALUES_PER_FRAME, HandFrame, Point3D

# Invariant-culture decimal: '.' point, optional sign/exponent, no grouping.
# ASCII only, float() would otherwise accept other scripts' digits.
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def _parse_number(token: str) -> float:
    token = token.strip()
    if not _NUMBER_RE.fullmatch(token):
        raise ValueError(f"not a decimal number: {token!r}")
    return float(token)


def parse_frame(data: Optional[str]) -> Optional[HandFrame]:
    """
    Parse hand tracking data from a payload string.

    Args:
        data: The raw payload text

    Returns:
        Parsed HandFrame, or None if the payload is malformed or too short
    """
    if not data:
        return None

    text = data.strip()
    if text.startswith("["):
        text = text[1:]
    if text.endswith("]"):
        text = text[:-1]

    tokens = text.split(",")
    if len(tokens) < VALUES_PER_FRAME:
        return None

    try:
        values: List[float] = [_parse_number(t) for t in tokens[:VALUES_PER_FRAME]]
    except ValueError:
        return None

    points = tuple(
        Point3D(values[i * 3], values[i * 3 + 1], values[i * 3 + 2])
        for i in range(NUM_HAND_POINTS)
    )
    return HandFrame(points=points)


def try_parse_frame(data: Optional[str]) -> Tuple[bool, Optional[HandFrame]]:
    """
    Try to parse hand tracking data.

    Returns:
        Tuple of (success, frame_or_None)
    """
    frame = parse_frame(data)
    return frame is not None, frame
