"""
Tests for chat timestamp normalization.
"""
from datetime import datetime

import pytest

from ..core.timestamps import normalize_timestamp, parse_timestamp
from .conftest import FIXED_NOW


class TestParseTimestamp:
    """Supported export grammars."""

    @pytest.mark.parametrize("raw, expected", [
        ("2024/03/12, 14:05", datetime(2024, 3, 12, 14, 5)),
        ("12/03/24, 14:05", datetime(2024, 3, 12, 14, 5)),
        ("12/03/2024, 14:05", datetime(2024, 3, 12, 14, 5)),
        ("[12/03/24 14:05:33]", datetime(2024, 3, 12, 14, 5, 33)),
        ("12/03/24 14:05:33", datetime(2024, 3, 12, 14, 5, 33)),
        ("[12/03/2024, 14:05:33]", datetime(2024, 3, 12, 14, 5, 33)),
        ("12.03.2024, 14:05", datetime(2024, 3, 12, 14, 5)),
        ("12-03-2024, 14:05", datetime(2024, 3, 12, 14, 5)),
        ("12.03.24 14:05", datetime(2024, 3, 12, 14, 5)),
        ("3/4/24, 9:07", datetime(2024, 4, 3, 9, 7)),
    ])
    def test_grammars(self, raw, expected):
        assert parse_timestamp(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("12/03/24, 2:05 PM", datetime(2024, 3, 12, 14, 5)),
        ("12/03/24, 2:05 pm", datetime(2024, 3, 12, 14, 5)),
        ("12/03/24, 12:15 AM", datetime(2024, 3, 12, 0, 15)),
        ("12/03/24, 12:15 PM", datetime(2024, 3, 12, 12, 15)),
        ("12/03/24, 9:07 a.m.", datetime(2024, 3, 12, 9, 7)),
        ("12/03/24, 9:07 PM", datetime(2024, 3, 12, 21, 7)),
    ])
    def test_twelve_hour_clock(self, raw, expected):
        assert parse_timestamp(raw) == expected

    @pytest.mark.parametrize("raw", [
        "",
        "yesterday",
        "31/02/2024, 10:00",
        "12/13/2024, 10:00",
        "12/03-2024, 10:00",
        "12/03/24, 14:05 PM",
    ])
    def test_unparsable(self, raw):
        assert parse_timestamp(raw) is None


class TestNormalizeTimestamp:
    """Fallback to processing time."""

    def test_parsed_value_is_returned(self, clock):
        assert normalize_timestamp("2024/03/12, 14:05", clock) == datetime(2024, 3, 12, 14, 5)

    def test_falls_back_to_clock(self, clock):
        assert normalize_timestamp("not a date", clock) == FIXED_NOW

    def test_default_clock_is_now(self):
        before = datetime.now()
        result = normalize_timestamp("not a date")
        assert before <= result <= datetime.now()
