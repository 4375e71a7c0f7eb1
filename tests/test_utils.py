"""Helpers."""

from datetime import datetime

import pytest

from award_finder.utils import (
    format_duration,
    format_layover,
    format_points,
    haversine_distance,
    parse_local_time,
    round_half_up,
    to_epoch_ms,
    validate_airport_code,
)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(12.5) == 13
    assert round_half_up(12.49) == 12


def test_local_time_ignores_offset():
    assert parse_local_time("2025-06-01T08:00:00Z") == datetime(2025, 6, 1, 8, 0)
    assert parse_local_time("2025-06-01T08:00:00+05:30") == datetime(2025, 6, 1, 8, 0)


def test_epoch_ms():
    assert to_epoch_ms(datetime(1970, 1, 1, 0, 1)) == 60000


def test_haversine():
    # JFK-LHR is about 3,450 statute miles
    assert 3400 < haversine_distance(40.6413, -73.7781, 51.4700, -0.4543) < 3500
    assert haversine_distance(10.0, 10.0, 10.0, 10.0) == 0


def test_formatting():
    assert format_duration(330) == "5h 30m"
    assert format_layover(45) == "45m"
    assert format_layover(120) == "2h"
    assert format_points(12500) == "12,500"


def test_airport_code():
    assert validate_airport_code(" jfk ") == "JFK"
    with pytest.raises(ValueError):
        validate_airport_code("JFKX")
