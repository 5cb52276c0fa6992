import math
from datetime import datetime, timezone

import pytest

from seriesscope import timestamps
from seriesscope.delta import format_time_delta
from seriesscope.timestamps import TimestampNormalizer, parse_day_first


def _local_ms(*args) -> float:
    return datetime(*args).timestamp() * 1000


def test_numbers_pass_through():
    n = TimestampNormalizer()
    assert n.normalize(1000) == 1000.0
    assert n.normalize(12.5) == 12.5


def test_numeric_strings_are_epoch_millis():
    n = TimestampNormalizer()
    assert n.normalize("1700000000000") == 1700000000000.0
    assert n.normalize(" 42.5 ") == 42.5
    assert n.normalize("-5") == -5.0


def test_day_first_custom_format():
    n = TimestampNormalizer()
    # 5 January, not 1 May
    assert n.normalize("05-01-2024 10:00:00:000") == _local_ms(2024, 1, 5, 10, 0, 0)


def test_custom_format_milliseconds_and_discarded_micros():
    n = TimestampNormalizer()
    base = _local_ms(2024, 1, 5, 10, 0, 0)
    assert n.normalize("05-01-2024 10:00:00:123") == base + 123
    assert n.normalize("05-01-2024 10:00:00:123.456789") == base + 123
    assert n.normalize("05-01-2024 10:00:00") == base


def test_custom_format_two_digit_year_is_twentieth_century():
    assert parse_day_first("05-01-24 10:00:00") == _local_ms(1924, 1, 5, 10, 0, 0)
    assert parse_day_first("05-01-99 10:00:00:250") == _local_ms(1999, 1, 5, 10, 0, 0) + 250


def test_custom_format_invalid_components_are_nan():
    n = TimestampNormalizer()
    assert math.isnan(n.normalize("31-13-2024 10:00:00"))
    assert math.isnan(n.normalize("05-01 10:00:00"))


def test_iso_with_zone_and_naive():
    n = TimestampNormalizer()
    utc = datetime(2024, 1, 5, 10, 0, 0, tzinfo=timezone.utc).timestamp() * 1000
    assert n.normalize("2024-01-05T10:00:00Z") == utc
    assert n.normalize("2024-01-05T10:00:00") == _local_ms(2024, 1, 5, 10, 0, 0)


def test_generic_dates_resolve_day_first():
    n = TimestampNormalizer()
    assert n.normalize("05/01/2024") == _local_ms(2024, 1, 5)
    assert n.normalize("05/01/24") == _local_ms(2024, 1, 5)


@pytest.mark.parametrize("raw", ["", "   ", "not a date", None, True])
def test_unparseable_inputs_return_nan(raw):
    assert math.isnan(TimestampNormalizer().normalize(raw))


def test_successful_parses_are_memoized(monkeypatch):
    calls = {"n": 0}
    original = timestamps.parse_day_first

    def counting(text):
        calls["n"] += 1
        return original(text)

    monkeypatch.setattr(timestamps, "parse_day_first", counting)

    n = TimestampNormalizer()
    first = n.normalize("05-01-2024 10:00:00:000")
    second = n.normalize("05-01-2024 10:00:00:000")

    assert first == second
    assert calls["n"] == 1
    assert n.cache_size == 1


def test_failures_are_not_cached_and_cache_can_be_cleared():
    n = TimestampNormalizer()
    n.normalize("garbage")
    assert n.cache_size == 0

    n.normalize("05-01-2024 10:00:00")
    assert n.cache_size == 1
    n.clear_cache()
    assert n.cache_size == 0


def test_iso_fractions_truncate_to_whole_milliseconds():
    n = TimestampNormalizer()
    start = n.normalize("2024-01-05T10:00:00.000000Z")
    end = n.normalize("2024-01-05T10:00:01.250600Z")
    assert end - start == 1250.0
    assert n.normalize("2024-01-05T10:00:00.999999") == _local_ms(2024, 1, 5, 10, 0, 0) + 999


def test_iso_fraction_delta_formats_whole_milliseconds():
    n = TimestampNormalizer()
    elapsed = n.normalize("2024-01-05T10:00:01.250600Z") - n.normalize("2024-01-05T10:00:00.000000Z")
    assert format_time_delta(elapsed) == "1s 250ms"


@pytest.mark.parametrize("raw", ["10:00:00", "10:00", "9:30:15.5", "10:00 PM"])
def test_time_of_day_without_date_is_nan(raw):
    assert math.isnan(TimestampNormalizer().normalize(raw))
