"""
Hand Tracking - UDP hand landmark receiver.

This package receives 21-point hand landmark frames sent as UDP text
datagrams by an external tracker, decodes them and forwards every frame to
a pluggable renderer:

- UDPReceiver listens on a background thread
- parse_frame decodes ``[x,y,z,...]`` payloads
- HandTrackingController wires receiver, decoder and renderer together

A MediaPipe tracker and a synthetic sender are included for producing data.
"""

from .controller import HandTrackingController
from .frame import HAND_CONNECTIONS, NUM_HAND_POINTS, HandFrame, Point3D
from .parser import parse_frame, try_parse_frame
from .renderer import ConsoleRenderer, HandRenderer, SceneNode, SceneRenderer
from .udp_receiver import DEFAULT_PORT, ReceiverState, UDPReceiver

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_PORT",
    "HAND_CONNECTIONS",
    "NUM_HAND_POINTS",
    "ConsoleRenderer",
    "HandFrame",
    "HandRenderer",
    "HandTrackingController",
    "Point3D",
    "ReceiverState",
    "SceneNode",
    "SceneRenderer",
    "UDPReceiver",
    "parse_frame",
    "try_parse_frame",
]
