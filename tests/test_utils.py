import math

from seriesscope.utils import format_time_auto, format_value, parse_number, ureg


def test_format_time_auto_picks_readable_unit():
    assert format_time_auto(0.0025) == "2.5 ms"
    assert format_time_auto(1.5) == "1.5 s"
    assert format_time_auto(7200) == "2 h"
    assert format_time_auto(0) == "0 s"


def test_format_time_auto_accepts_quantities():
    assert format_time_auto(250 * ureg.millisecond) == "250 ms"


def test_format_value():
    assert format_value(3.0) == "3.0000"
    assert format_value(-0.5) == "-0.5000"
    assert format_value(0.0001) == "1.000e-04"


def test_parse_number():
    assert parse_number("1.50") == 1.5
    assert parse_number(" 7 ") == 7.0
    assert parse_number(3) == 3.0
    assert math.isnan(parse_number(""))
    assert math.isnan(parse_number(None))
    assert math.isnan(parse_number("abc"))
