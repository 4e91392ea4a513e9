"""
Capture health for the tracker.

An unplugged camera or a dropped RTSP session keeps returning failed reads
without ever raising. CaptureMonitor classifies each ``cap.read()`` result
and tells the tracker when the source has been dead long enough that it
should be reopened.
"""

import enum
import logging
import time
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


class CaptureAction(enum.Enum):
    PROCESS = "process"
    SKIP = "skip"
    REOPEN = "reopen"


def usable_image(image: Optional[np.ndarray]) -> bool:
    """True for a non-empty HxWx3 image."""
    return (
        image is not None
        and image.size > 0
        and image.ndim == 3
        and image.shape[2] == 3
    )


class CaptureMonitor:
    """Tracks consecutive failed reads and decides when to reopen."""

    def __init__(self, reopen_after_s: float = 2.0):
        """
        Args:
            reopen_after_s: How long reads must keep failing before the
                source is reopened
        """
        self.reopen_after_s = reopen_after_s

        self._failing_since: Optional[float] = None
        self._frames_used = 0
        self._frames_skipped = 0
        self._reopens = 0

    def observe(self, ok: bool, image: Optional[np.ndarray]) -> CaptureAction:
        """Classify one ``(ok, image)`` pair from cv2.VideoCapture.read()."""
        if ok and usable_image(image):
            self._frames_used += 1
            self._failing_since = None
            return CaptureAction.PROCESS

        self._frames_skipped += 1
        now = time.monotonic()
        if self._failing_since is None:
            self._failing_since = now
            return CaptureAction.SKIP

        if now - self._failing_since >= self.reopen_after_s:
            logger.warning(
                f"Capture failing for {now - self._failing_since:.1f}s, reopening source"
            )
            # Give the reopened source a fresh window
            self._failing_since = None
            self._reopens += 1
            return CaptureAction.REOPEN
        return CaptureAction.SKIP

    @property
    def failing(self) -> bool:
        return self._failing_since is not None

    def get_stats(self) -> dict:
        return {
            "frames_used": self._frames_used,
            "frames_skipped": self._frames_skipped,
            "reopens": self._reopens,
        }
