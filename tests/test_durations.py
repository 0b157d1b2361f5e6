"""Tests for duration parsing and formatting."""

import argparse
from datetime import timedelta

import pytest

from peat.durations import duration_arg, format_duration, format_latency, parse_duration


class TestParseDuration:
    @pytest.mark.parametrize("text, expected", [
        ("60s", timedelta(seconds=60)),
        ("1m", timedelta(minutes=1)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("2d", timedelta(days=2)),
        ("1w", timedelta(weeks=1)),
        ("1y", timedelta(days=365)),
        ("250ms", timedelta(milliseconds=250)),
        ("1m30s", timedelta(seconds=90)),
        (" 5m ", timedelta(minutes=5)),
    ])
    def test_valid(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "5", "m", "1x", "1h 30m", "-5m", "h1"])
    def test_invalid_raises_value_error(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)


class TestFormatDuration:
    @pytest.mark.parametrize("value, expected", [
        (timedelta(0), "0s"),
        (timedelta(hours=1), "1h"),
        (timedelta(hours=1, minutes=30), "1h30m"),
        (timedelta(seconds=90), "1m30s"),
        (timedelta(days=1, hours=2), "1d2h"),
        (timedelta(milliseconds=1500), "1s500ms"),
    ])
    def test_compact(self, value, expected):
        assert format_duration(value) == expected

    def test_parse_of_format_is_identity_for_flag_values(self):
        for text in ("1h", "5m", "1h30m", "2d"):
            assert format_duration(parse_duration(text)) == text


class TestFormatLatency:
    def test_microseconds(self):
        assert format_latency(0.000250) == "250µs"

    def test_milliseconds(self):
        assert format_latency(0.0425) == "42ms"

    def test_seconds(self):
        assert format_latency(2.34) == "2.3s"


def test_duration_arg_raises_argparse_error():
    with pytest.raises(argparse.ArgumentTypeError):
        duration_arg("soon")
    assert duration_arg("10s") == timedelta(seconds=10)
