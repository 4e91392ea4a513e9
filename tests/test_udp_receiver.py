"""Tests for the background UDP receiver."""

import socket
import threading

import pytest

from hand_tracking.udp_receiver import DEFAULT_PORT, ReceiverState, UDPReceiver

from conftest import send_datagram, wait_for


@pytest.fixture
def receiver():
    """Receiver on an ephemeral loopback port, disposed after the test."""
    rx = UDPReceiver(port=0, host="127.0.0.1")
    yield rx
    rx.dispose()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_defaults(self):
        rx = UDPReceiver()
        assert rx.port == DEFAULT_PORT == 5032
        assert rx.state is ReceiverState.IDLE
        assert rx.is_receiving is False
        assert rx.address is None

    def test_start_and_stop(self, receiver):
        assert receiver.start() is True
        assert receiver.state is ReceiverState.RECEIVING
        assert receiver.address[1] > 0
        receiver.stop()
        assert receiver.state is ReceiverState.IDLE
        assert receiver.is_receiving is False

    def test_double_start_is_noop(self, receiver):
        assert receiver.start() is True
        address, thread = receiver.address, receiver._thread
        assert receiver.start() is True
        assert receiver.address == address
        assert receiver._thread is thread
        assert sum(t.name == thread.name for t in threading.enumerate()) == 1

    def test_stop_before_start(self, receiver):
        receiver.stop()
        assert receiver.state is ReceiverState.IDLE

    def test_stop_twice(self, receiver):
        receiver.start()
        receiver.stop()
        receiver.stop()
        assert receiver.is_receiving is False

    def test_stop_joins_thread(self, receiver):
        receiver.start()
        thread = receiver._thread
        receiver.stop()
        assert not thread.is_alive()

    def test_restart_after_stop(self, receiver):
        got = []
        receiver.on_data = got.append
        receiver.start()
        receiver.stop()
        assert receiver.start() is True
        send_datagram(receiver.address[1], "again")
        assert wait_for(lambda: got == ["again"])

    def test_stop_releases_port(self):
        rx = UDPReceiver(port=0, host="127.0.0.1")
        rx.start()
        port = rx.address[1]
        rx.stop()
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.bind(("127.0.0.1", port))
        rx.dispose()


class TestDispose:
    def test_dispose_is_terminal(self, receiver):
        receiver.start()
        receiver.dispose()
        assert receiver.state is ReceiverState.DISPOSED
        assert receiver.start() is False
        assert receiver.is_receiving is False

    def test_dispose_without_start(self):
        rx = UDPReceiver(port=0)
        rx.dispose()
        assert rx.state is ReceiverState.DISPOSED

    def test_dispose_twice(self, receiver):
        receiver.start()
        receiver.dispose()
        receiver.dispose()
        assert receiver.state is ReceiverState.DISPOSED

    def test_context_manager(self):
        with UDPReceiver(port=0, host="127.0.0.1") as rx:
            rx.start()
            assert rx.is_receiving
        assert rx.state is ReceiverState.DISPOSED


# ---------------------------------------------------------------------------
# Data and errors
# ---------------------------------------------------------------------------

class TestDataDelivery:
    def test_payload_delivered_as_text(self, receiver):
        got = []
        receiver.on_data = got.append
        receiver.start()
        send_datagram(receiver.address[1], "[1,2,3]")
        assert wait_for(lambda: got == ["[1,2,3]"])

    def test_delivered_on_background_thread(self, receiver):
        threads = []
        receiver.on_data = lambda _: threads.append(threading.current_thread())
        receiver.start()
        send_datagram(receiver.address[1], "x")
        assert wait_for(lambda: len(threads) == 1)
        assert threads[0] is not threading.current_thread()

    def test_invalid_utf8_replaced(self, receiver):
        got = []
        receiver.on_data = got.append
        receiver.start()
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.sendto(b"[\xff\xfe]", ("127.0.0.1", receiver.address[1]))
        assert wait_for(lambda: len(got) == 1)
        assert got[0].startswith("[") and "�" in got[0]

    def test_order_preserved(self, receiver):
        got = []
        receiver.on_data = got.append
        receiver.start()
        for i in range(20):
            send_datagram(receiver.address[1], str(i))
        assert wait_for(lambda: len(got) == 20)
        assert got == [str(i) for i in range(20)]

    def test_stats(self, receiver):
        receiver.on_data = lambda _: None
        receiver.start()
        send_datagram(receiver.address[1], "a")
        assert wait_for(lambda: receiver.stats.datagrams_received == 1)
        stats = receiver.get_stats()
        assert stats["state"] == "receiving"
        assert stats["datagrams_received"] == 1
        assert stats["last_receive_time"] is not None

    def test_log_payloads(self, receiver, caplog):
        receiver.log_payloads = True
        receiver.on_data = lambda _: None
        with caplog.at_level("INFO", logger="hand_tracking.udp_receiver"):
            receiver.start()
            send_datagram(receiver.address[1], "hello-log")
            assert wait_for(lambda: receiver.stats.datagrams_received == 1)
        assert any("hello-log" in r.getMessage() for r in caplog.records)


class TestErrors:
    def test_handler_exception_reported(self, receiver):
        errors = []

        def boom(_):
            raise RuntimeError("renderer exploded")

        receiver.on_data = boom
        receiver.on_error = errors.append
        receiver.start()
        send_datagram(receiver.address[1], "x")
        assert wait_for(lambda: len(errors) == 1)
        assert isinstance(errors[0], RuntimeError)

    def test_loop_continues_after_error(self, receiver):
        got, errors = [], []

        def flaky(text):
            if text == "bad":
                raise ValueError("bad")
            got.append(text)

        receiver.on_data = flaky
        receiver.on_error = errors.append
        receiver.start()
        send_datagram(receiver.address[1], "bad")
        assert wait_for(lambda: len(errors) == 1)
        send_datagram(receiver.address[1], "good")
        assert wait_for(lambda: got == ["good"])

    def test_no_error_on_deliberate_stop(self, receiver):
        errors = []
        receiver.on_error = errors.append
        receiver.start()
        receiver.stop()
        receiver.start()
        receiver.dispose()
        assert errors == []

    def test_bind_failure_reported_not_raised(self):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as holder:
            holder.bind(("127.0.0.1", 0))
            port = holder.getsockname()[1]
            errors = []
            rx = UDPReceiver(port=port, host="127.0.0.1", on_error=errors.append)
            # holder lacks SO_REUSEADDR, so the port cannot be shared
            assert rx.start() is False
            assert rx.state is ReceiverState.IDLE
            assert len(errors) == 1
            assert isinstance(errors[0], OSError)
            rx.dispose()

    def test_bind_failure_handler_may_call_back(self):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as holder:
            holder.bind(("127.0.0.1", 0))
            port = holder.getsockname()[1]
            rx = UDPReceiver(port=port, host="127.0.0.1")
            handled = []

            def on_error(error):
                rx.stop()
                rx.dispose()
                handled.append(error)

            rx.on_error = on_error
            result = []
            starter = threading.Thread(target=lambda: result.append(rx.start()), daemon=True)
            starter.start()
            starter.join(timeout=2.0)

            assert not starter.is_alive(), "start() blocked inside its error handler"
            assert result == [False]
            assert len(handled) == 1
            assert rx.state is ReceiverState.DISPOSED

    def test_error_handler_exception_swallowed(self, receiver):
        def bad_handler(_):
            raise RuntimeError("handler broken")

        def boom(_):
            raise ValueError("x")

        got = []
        receiver.on_error = bad_handler
        receiver.on_data = boom
        receiver.start()
        send_datagram(receiver.address[1], "x")
        assert wait_for(lambda: receiver.stats.errors_reported == 1)
        receiver.on_data = got.append
        send_datagram(receiver.address[1], "y")
        assert wait_for(lambda: got == ["y"])

    def test_stop_from_callback(self, receiver):
        stopped = threading.Event()

        def stop_self(_):
            receiver.stop()
            stopped.set()

        receiver.on_data = stop_self
        receiver.start()
        send_datagram(receiver.address[1], "x")
        assert stopped.wait(2.0)
        assert receiver.is_receiving is False
