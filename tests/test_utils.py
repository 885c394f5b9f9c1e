"""Tests for shared helpers."""

from __future__ import annotations

import datetime
import logging

import pytest

from boardstats.core.utils import (
    PerformanceMonitor,
    compute_content_hash,
    format_duration,
    format_percentage,
    format_streak,
    percentage,
    safe_divide,
    timed,
    whole_days_between,
    whole_hours_between,
)

T0 = datetime.datetime(2024, 1, 1, tzinfo=datetime.UTC)


class TestArithmetic:
    def test_safe_divide(self):
        assert safe_divide(1, 4) == 0.25
        assert safe_divide(1, 0) == 0.0
        assert safe_divide(1, 0, default=-1.0) == -1.0

    def test_percentage(self):
        assert percentage(1, 8) == pytest.approx(12.5)
        assert percentage(3, 0) == 0.0


class TestElapsed:
    @pytest.mark.parametrize(
        "delta, hours",
        [
            (datetime.timedelta(minutes=59), 0),
            (datetime.timedelta(hours=23, minutes=59), 23),
            (datetime.timedelta(hours=25), 25),
            (-datetime.timedelta(minutes=90), -1),
        ],
    )
    def test_whole_hours(self, delta, hours):
        assert whole_hours_between(T0, T0 + delta) == hours

    def test_whole_days(self):
        assert whole_days_between(T0, T0 + datetime.timedelta(days=2, hours=23)) == 2
        assert whole_days_between(T0, T0) == 0


class TestFormatting:
    def test_streak(self):
        assert format_streak(3) == "W3"
        assert format_streak(-2) == "L2"
        assert format_streak(0) == "-"

    def test_percentage(self):
        assert format_percentage(62.5) == "62.5%"
        assert format_percentage(66.666, decimals=2) == "66.67%"

    def test_duration(self):
        assert format_duration(0.012) == "12ms"
        assert format_duration(1.5) == "1.5s"
        assert format_duration(150) == "2m 30s"

    def test_hash_is_stable(self):
        assert compute_content_hash("abc") == compute_content_hash("abc")
        assert compute_content_hash("abc") != compute_content_hash("abd")


class TestTiming:
    def test_timed_preserves_result(self, caplog):
        @timed
        def add(a, b):
            return a + b

        with caplog.at_level(logging.DEBUG, logger="boardstats.core.utils"):
            assert add(2, 3) == 5
        assert "add completed" in caplog.text

    def test_monitor_records_elapsed(self):
        with PerformanceMonitor("noop") as monitor:
            pass
        assert monitor.elapsed >= 0.0

    def test_monitor_does_not_swallow(self):
        with pytest.raises(RuntimeError):
            with PerformanceMonitor("boom"):
                raise RuntimeError("boom")
