"""Shared fixtures for the hand tracking test suite."""

import socket
import threading
import time

import pytest

from hand_tracking.frame import Point3D


class RecordingRenderer:
    """Renderer test double that records every call in order."""

    def __init__(self, delay_s: float = 0.0):
        self.delay_s = delay_s
        self.calls = []
        self.points = []
        self.cleanup_count = 0
        self.threads = set()
        self._lock = threading.Lock()

    def initialize(self, num_points):
        with self._lock:
            self.calls.append(("initialize", num_points))

    def update_point(self, index, position):
        if self.delay_s:
            time.sleep(self.delay_s)
        with self._lock:
            self.calls.append(("update_point", index, position))
            self.points.append((index, position))
            self.threads.add(threading.current_thread().name)

    def update_line(self, start_index, end_index):
        with self._lock:
            self.calls.append(("update_line", start_index, end_index))

    def cleanup(self):
        with self._lock:
            self.calls.append(("cleanup",))
            self.cleanup_count += 1

    @property
    def point_count(self):
        with self._lock:
            return len(self.points)


def make_payload(values):
    """Build a wire payload from a flat list of numbers."""
    return "[" + ",".join(str(v) for v in values) + "]"


def send_datagram(port, text, host="127.0.0.1"):
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.sendto(text.encode("utf-8"), (host, port))


def wait_for(predicate, timeout=2.0, interval=0.01):
    """Poll predicate until it is truthy or timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def sequential_values():
    """63 values 1..63 (21 triples)."""
    return list(range(1, 64))


@pytest.fixture
def sequential_payload(sequential_values):
    return make_payload(sequential_values)


@pytest.fixture
def sample_points():
    return tuple(Point3D(float(i), float(i) * 2.0, -float(i) / 10.0) for i in range(21))
