"""
UDP receiver for hand tracking datagrams.

Handles:
- Binding a UDP socket and receiving on a dedicated background thread
- Delivering each datagram as text to a data callback
- Reporting transport errors to an error callback (never raised to callers)
- Cooperative shutdown: close the socket, then a bounded join

Disposal is terminal: once dispose() has run, start() refuses to restart.
"""

import enum
import logging
import socket
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_PORT = 5032


class ReceiverState(enum.Enum):
    IDLE = "idle"
    RECEIVING = "receiving"
    DISPOSED = "disposed"


@dataclass
class ReceiverStats:
    """Statistics about received datagrams."""
    datagrams_received: int = 0
    errors_reported: int = 0
    start_time: Optional[float] = None
    last_receive_time: Optional[float] = None


class UDPReceiver:
    """
    Background UDP listener.

    Features:
    - One receive thread per instance, started on demand
    - Idempotent start/stop, terminal dispose
    - Errors during a deliberate stop are suppressed
    """

    THREAD_JOIN_TIMEOUT_S = 1.0
    RECV_BUFFER_SIZE = 65535
    # recvfrom wakes up at this interval to re-check the active flag
    POLL_INTERVAL_S = 0.2

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        host: str = "0.0.0.0",
        on_data: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        log_payloads: bool = False,
    ):
        """
        Initialize UDP receiver.

        Args:
            port: UDP port to listen on (0 picks a free port)
            host: Local address to bind
            on_data: Callback for each received payload (decoded as UTF-8)
            on_error: Callback for transport errors while receiving
            log_payloads: Echo every payload and error through the logger
        """
        self.port = port
        self.host = host
        self.on_data = on_data
        self.on_error = on_error
        self.log_payloads = log_payloads

        self._state = ReceiverState.IDLE
        self._lock = threading.Lock()
        self._sock: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._address: Optional[Tuple[str, int]] = None

        self.stats = ReceiverStats()

    @property
    def state(self) -> ReceiverState:
        return self._state

    @property
    def is_receiving(self) -> bool:
        """Check if the receive loop is supposed to be running."""
        return self._state is ReceiverState.RECEIVING

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """Bound (host, port) while receiving, else None."""
        return self._address if self.is_receiving else None

    def start(self) -> bool:
        """
        Bind the socket and start the receive thread.

        Returns:
            True if receiving (including when already started), False if the
            receiver is disposed or the socket could not be bound
        """
        bind_error: Optional[OSError] = None
        with self._lock:
            if self._state is ReceiverState.DISPOSED:
                logger.warning("start() called on a disposed UDP receiver")
                return False
            if self._state is ReceiverState.RECEIVING:
                return True

            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((self.host, self.port))
                sock.settimeout(self.POLL_INTERVAL_S)
            except OSError as e:
                sock.close()
                bind_error = e
            else:
                stop_event = threading.Event()
                address = sock.getsockname()
                self._sock = sock
                self._stop_event = stop_event
                self._address = address
                self._state = ReceiverState.RECEIVING
                self.stats.start_time = time.time()

                self._thread = threading.Thread(
                    target=self._receive_loop,
                    args=(sock, stop_event),
                    name=f"udp-receiver-{address[1]}",
                    daemon=True,
                )
                self._thread.start()

        # Handlers run without the lock held; they may call back into start/stop
        if bind_error is not None:
            logger.error(f"Failed to bind UDP socket on {self.host}:{self.port}: {bind_error}")
            self._report_error(bind_error)
            return False

        logger.info(f"UDP receiver listening on {address[0]}:{address[1]}")
        return True

    def stop(self) -> None:
        """Stop receiving. Safe to call repeatedly or before start()."""
        with self._lock:
            sock, thread, stop_event = self._sock, self._thread, self._stop_event
            self._sock = None
            self._thread = None
            self._stop_event = None
            if self._state is ReceiverState.RECEIVING:
                self._state = ReceiverState.IDLE

        if stop_event is not None:
            stop_event.set()

        if sock is not None:
            # shutdown() wakes a thread blocked in recvfrom; ENOTCONN is expected
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()

        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=self.THREAD_JOIN_TIMEOUT_S)
            if thread.is_alive():
                logger.warning(
                    f"Receive thread did not exit within {self.THREAD_JOIN_TIMEOUT_S:.1f}s"
                )

        if sock is not None:
            logger.info("UDP receiver stopped")

    def dispose(self) -> None:
        """Stop and make the receiver permanently unusable."""
        self.stop()
        with self._lock:
            self._state = ReceiverState.DISPOSED

    def __enter__(self) -> "UDPReceiver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _receive_loop(self, sock: socket.socket, stop_event: threading.Event) -> None:
        """Blocking receive-and-dispatch loop (runs on the receive thread)."""
        while not stop_event.is_set():
            try:
                data, addr = sock.recvfrom(self.RECV_BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                if stop_event.is_set():
                    break
                self._report_error(e)
                continue

            if stop_event.is_set():
                break

            self.stats.datagrams_received += 1
            self.stats.last_receive_time = time.time()

            text = data.decode("utf-8", errors="replace")
            if self.log_payloads:
                logger.info(f"{addr[0]}:{addr[1]} -> {text}")

            if self.on_data is None:
                continue
            try:
                self.on_data(text)
            except Exception as e:
                if not stop_event.is_set():
                    self._report_error(e)

        logger.debug("Receive loop exited")

    def _report_error(self, error: Exception) -> None:
        self.stats.errors_reported += 1
        if self.log_payloads:
            logger.info(f"Receive error: {error!r}")

        if self.on_error is None:
            logger.warning(f"UDP receive error: {error}")
            return
        try:
            self.on_error(error)
        except Exception as e:
            logger.error(f"Error handler raised: {e}")

    def get_stats(self) -> dict:
        """Get receiver statistics."""
        return {
            "state": self._state.value,
            "address": self.address,
            "datagrams_received": self.stats.datagrams_received,
            "errors_reported": self.stats.errors_reported,
            "start_time": self.stats.start_time,
            "last_receive_time": self.stats.last_receive_time,
        }
