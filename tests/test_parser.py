"""Tests for the hand frame decoder."""

import time

import pytest

from hand_tracking.frame import HandFrame
from hand_tracking.parser import parse_frame, try_parse_frame

from conftest import make_payload


class TestValidPayloads:
    def test_sequential_values(self, sequential_payload):
        frame = parse_frame(sequential_payload)
        assert isinstance(frame, HandFrame)
        assert frame.get_point(0).as_tuple() == (1.0, 2.0, 3.0)
        assert frame.get_point(20).as_tuple() == (61.0, 62.0, 63.0)

    def test_points_follow_value_order(self, sequential_values, sequential_payload):
        frame = parse_frame(sequential_payload)
        flat = [v for p in frame.points for v in p.as_tuple()]
        assert flat == [float(v) for v in sequential_values]

    def test_decimal_and_signed_values(self):
        values = [-1.5, 0.25, 1e-3, 320.125, -0.0, 7] * 10 + [1.0, 2.0, 3.0]
        frame = parse_frame(make_payload(values))
        assert frame is not None
        assert frame.get_point(0).as_tuple() == (-1.5, 0.25, 0.001)
        assert frame.get_point(1).x == pytest.approx(320.125)

    def test_exponent_notation(self):
        values = ["1.5e2", "-2E-1", "+3"] * 21
        frame = parse_frame(make_payload(values))
        assert frame.get_point(0).as_tuple() == (150.0, -0.2, 3.0)

    def test_whitespace_around_payload_and_tokens(self, sequential_values):
        payload = "  [ " + " , ".join(str(v) for v in sequential_values) + " ]\n"
        frame = parse_frame(payload)
        assert frame is not None
        assert frame.get_point(20).as_tuple() == (61.0, 62.0, 63.0)

    def test_brackets_optional(self, sequential_values):
        bare = ",".join(str(v) for v in sequential_values)
        assert parse_frame(bare) is not None
        assert parse_frame("[" + bare) is not None
        assert parse_frame(bare + "]") is not None

    def test_extra_values_ignored(self, sequential_values):
        exact = parse_frame(make_payload(sequential_values))
        extended = parse_frame(make_payload(sequential_values + list(range(64, 71))))
        assert extended is not None
        assert extended.points == exact.points

    def test_trailing_garbage_after_63rd_value_ignored(self, sequential_values):
        frame = parse_frame(make_payload(sequential_values + ["abc", ""]))
        assert frame is not None

    def test_deterministic(self, sequential_payload):
        assert parse_frame(sequential_payload).points == parse_frame(sequential_payload).points

    def test_timestamp_stamped_at_decode(self, sequential_payload):
        before = time.time()
        frame = parse_frame(sequential_payload)
        assert before <= frame.timestamp <= time.time()


class TestMalformedPayloads:
    @pytest.mark.parametrize("data", [None, "", "   ", "[]", "[1,2,3]", "hello"])
    def test_trivially_invalid(self, data):
        assert parse_frame(data) is None

    def test_62_values(self):
        assert parse_frame(make_payload(range(1, 63))) is None

    def test_non_numeric_token(self, sequential_values):
        values = list(sequential_values)
        values[30] = "abc"
        assert parse_frame(make_payload(values)) is None

    def test_empty_token(self, sequential_values):
        values = list(sequential_values)
        values[10] = ""
        assert parse_frame(make_payload(values)) is None

    def test_last_required_token_bad(self, sequential_values):
        values = list(sequential_values)
        values[62] = "x"
        assert parse_frame(make_payload(values)) is None

    @pytest.mark.parametrize("token", [
        "1_000", "nan", "inf", "0x10", "1.2.3", "--1",
        "١",        # Arabic-Indic one
        "７",        # fullwidth seven
        "1.٥e2",
    ])
    def test_non_decimal_forms_rejected(self, sequential_values, token):
        values = list(sequential_values)
        values[0] = token
        assert parse_frame(make_payload(values)) is None

    def test_comma_decimal_separator_shifts_values(self):
        # Locale-style "1,5" is two numbers, never one
        values = ["0,5"] * 63
        frame = parse_frame(make_payload(values))
        assert frame is not None
        assert frame.get_point(0).as_tuple() == (0.0, 5.0, 0.0)

    def test_never_raises_on_binary_noise(self):
        noise = "�\x00[\x01,,]" * 20
        assert parse_frame(noise) is None


class TestTryParse:
    def test_success(self, sequential_payload):
        ok, frame = try_parse_frame(sequential_payload)
        assert ok is True
        assert frame is not None

    def test_failure(self):
        ok, frame = try_parse_frame("[1,2,3]")
        assert ok is False
        assert frame is None
