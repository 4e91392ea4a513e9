#!/usr/bin/env python3
"""
Hand Tracker - camera/RTSP landmark source.

Captures frames, runs MediaPipe Hands on them and sends the 21 landmarks of
the first detected hand to a receiver as one UDP datagram per frame.

Usage:
    python -m hand_tracking.tracker --camera 0 --port 5032 --preview
    python -m hand_tracking.tracker --rtsp rtsp://10.8.34.150:8554/handcam
"""

import argparse
import logging
import sys
import time
from typing import Optional, Union

import cv2
import mediapipe as mp

from .capture import CaptureAction, CaptureMonitor
from .frame import points_from_landmarks
from .sender import FrameSender
from .udp_receiver import DEFAULT_PORT

logger = logging.getLogger(__name__)


def rtsp_tcp_url(url: str) -> str:
    """Force RTSP over TCP; UDP transport drops packets and corrupts decodes."""
    if '?' not in url:
        return url + '?rtsp_transport=tcp'
    if 'rtsp_transport' not in url:
        return url + '&rtsp_transport=tcp'
    return url


class HandTracker:
    """
    Integrates capture, MediaPipe and the UDP sender.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = DEFAULT_PORT,
        camera_index: int = 0,
        rtsp_url: Optional[str] = None,
        rate: float = 30.0,
        show_preview: bool = False,
        reopen_after_s: float = 2.0,
    ):
        """
        Initialize the tracker.

        Args:
            host: Receiver host
            port: Receiver UDP port
            camera_index: Camera device index (used if rtsp_url is None)
            rtsp_url: RTSP stream URL (overrides camera_index if set)
            rate: Maximum frames sent per second
            show_preview: Whether to show OpenCV preview window
            reopen_after_s: Seconds of failed reads before the source is reopened
        """
        self.host = host
        self.port = port
        self.camera_index = camera_index
        self.rtsp_url = rtsp_url
        self.rate = rate
        self.show_preview = show_preview

        self.capture_monitor = CaptureMonitor(reopen_after_s=reopen_after_s)
        self.sender: Optional[FrameSender] = None

        self.cap: Optional[cv2.VideoCapture] = None
        self.hands = None

        self._running = False
        self._frames_sent = 0
        self.font = cv2.FONT_HERSHEY_SIMPLEX

    @property
    def source(self) -> Union[str, int]:
        """What cv2.VideoCapture is opened with."""
        if self.rtsp_url:
            return rtsp_tcp_url(self.rtsp_url)
        return self.camera_index

    def start(self) -> None:
        """Open the camera, MediaPipe and the socket."""
        logger.info("Starting Hand Tracker...")

        if not self._init_camera():
            raise RuntimeError("Failed to initialize camera")

        self.hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            model_complexity=1,
            min_detection_confidence=0.5,
            min_tracking_confidence=0.5,
        )
        self.sender = FrameSender(host=self.host, port=self.port)

        self._running = True
        logger.info(f"Hand Tracker sending to {self.host}:{self.port}")

    def stop(self) -> None:
        """Release camera, MediaPipe and socket."""
        logger.info("Stopping Hand Tracker...")
        self._running = False

        if self.sender:
            self.sender.close()
            self.sender = None
        if self.cap:
            self.cap.release()
            self.cap = None
        if self.hands:
            self.hands.close()
            self.hands = None
        if self.show_preview:
            cv2.destroyAllWindows()

        logger.info(
            f"Hand Tracker stopped after {self._frames_sent} frames "
            f"({self.capture_monitor.get_stats()})"
        )

    def run(self) -> None:
        """Capture loop."""
        target_dt = 1.0 / self.rate

        while self._running:
            loop_start = time.time()

            try:
                self._process_frame()
            except Exception as e:
                logger.error(f"Error in capture loop: {e}")

            if self.show_preview:
                key = cv2.waitKey(1) & 0xFF
                if key in (27, ord('q')):
                    logger.info("Quit requested")
                    self._running = False

            # Rate limiting
            elapsed = time.time() - loop_start
            if elapsed < target_dt:
                time.sleep(target_dt - elapsed)

    def _process_frame(self) -> bool:
        """
        Read, detect and send one frame.

        Returns:
            True if landmarks were sent
        """
        ok, image = self.cap.read()

        action = self.capture_monitor.observe(ok, image)
        if action is CaptureAction.REOPEN:
            self._reopen_camera()
            return False
        if action is CaptureAction.SKIP:
            logger.debug("Skipping unusable capture")
            return False

        image = cv2.flip(image, 1)
        h, w = image.shape[:2]
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

        results = self.hands.process(rgb)

        sent = False
        hand = None
        if results.multi_hand_landmarks:
            hand = results.multi_hand_landmarks[0]
            points = points_from_landmarks(hand.landmark, w, h)
            if self.sender and self.sender.send(points):
                self._frames_sent += 1
                sent = True

        if self.show_preview:
            self._draw_preview(image, hand, h)
        return sent

    def _draw_preview(self, image, hand, h: int) -> None:
        if hand is not None:
            mp.solutions.drawing_utils.draw_landmarks(
                image, hand, mp.solutions.hands.HAND_CONNECTIONS
            )
        status = "Hand detected" if hand is not None else "No hand"
        color = (0, 255, 0) if hand is not None else (0, 0, 255)
        cv2.putText(image, status, (20, 40), self.font, 0.9, color, 2)
        cv2.putText(
            image,
            f"Sent: {self._frames_sent} -> {self.host}:{self.port}",
            (20, h - 20),
            self.font, 0.5, (255, 255, 255), 1
        )
        cv2.imshow("Hand Tracker", image)

    def _open_capture(self) -> cv2.VideoCapture:
        return cv2.VideoCapture(self.source)

    def _init_camera(self) -> bool:
        """Initialize video capture."""
        logger.info(f"Opening capture source: {self.source}")
        self.cap = self._open_capture()

        if not self.cap.isOpened():
            logger.error("Failed to open camera source")
            return False

        width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = self.cap.get(cv2.CAP_PROP_FPS)
        logger.info(f"Camera opened: {width}x{height} @ {fps:.1f} fps")
        return True

    def _reopen_camera(self) -> bool:
        if self.cap:
            self.cap.release()
            self.cap = None
        if not self._init_camera():
            # Keep the loop alive; the next failed reads trigger another attempt
            logger.warning("Reopen failed, will retry")
            return False
        return True


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Hand Tracker (MediaPipe -> UDP)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Receiver host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Receiver UDP port")
    parser.add_argument("--camera", type=int, default=0, help="Camera device index")
    parser.add_argument(
        "--rtsp",
        type=str,
        default=None,
        help="RTSP URL (overrides --camera if set)",
    )
    parser.add_argument("--rate", type=float, default=30.0, help="Maximum send rate (Hz)")
    parser.add_argument("--preview", action="store_true", help="Show preview window")
    parser.add_argument(
        "--reopen-after",
        type=float,
        default=2.0,
        help="Seconds of failed reads before the capture source is reopened",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    tracker = HandTracker(
        host=args.host,
        port=args.port,
        camera_index=args.camera,
        rtsp_url=args.rtsp,
        rate=args.rate,
        show_preview=args.preview,
        reopen_after_s=args.reopen_after,
    )

    try:
        tracker.start()
        tracker.run()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Tracker error: {e}")
        sys.exit(1)
    finally:
        tracker.stop()


if __name__ == "__main__":
    main()
