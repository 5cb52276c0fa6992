import math

import numpy as np
import pytest

from seriesscope.constants import NEAREST_STRATEGY_INDEXED, NEAREST_STRATEGY_LINEAR
from seriesscope.index import ChannelIndex
from seriesscope.models import ChannelSeries, TimeRange
from seriesscope.resolver import (
    NearestPointResolver,
    PlotRect,
    approx_timestamp,
    locate_click,
    nearest_in_series,
    nearest_index_linear,
    nearest_index_sorted,
)

STRATEGIES = [NEAREST_STRATEGY_LINEAR, NEAREST_STRATEGY_INDEXED]


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_tie_break_returns_first_equal_timestamp(strategy):
    series = ChannelSeries("c", np.array([0.0, 10.0, 10.0]), np.array([1.0, 2.0, 3.0]))
    point = nearest_in_series(series, 10.0, strategy)
    assert point.index == 1
    assert point.timestamp == 10.0
    assert point.value == 2.0


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_equal_distance_prefers_lower_index(strategy):
    series = ChannelSeries("c", np.array([0.0, 10.0]), np.array([1.0, 2.0]))
    assert nearest_in_series(series, 5.0, strategy).index == 0


def test_sorted_search_matches_linear_scan():
    t = np.array([0.0, 0.0, 10.0, 20.0, 20.0, 30.0])
    for target in [-5.0, 0.0, 4.0, 5.0, 6.0, 10.0, 15.0, 20.0, 25.0, 30.0, 40.0]:
        assert nearest_index_sorted(t, target) == nearest_index_linear(t, target), target


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_null_value_is_reported_as_none(strategy):
    series = ChannelSeries("c", np.array([0.0, 10.0]), np.array([math.nan, 2.0]))
    point = nearest_in_series(series, 1.0, strategy)
    assert point.index == 0
    assert point.value is None


def test_empty_series_or_bad_target_is_not_found():
    assert nearest_in_series(ChannelSeries.empty("c"), 5.0) is None
    series = ChannelSeries("c", np.array([0.0]), np.array([1.0]))
    assert nearest_in_series(series, math.nan) is None


def test_resolver_uses_index(make_store):
    index = ChannelIndex(make_store("TimeStamp,V\n1000,5.0\n2000,8.0\n"))
    resolver = NearestPointResolver(index, NEAREST_STRATEGY_LINEAR)

    # not indexed yet: behaves like an empty channel
    assert resolver.nearest("V", 1000.0) is None

    index.ensure_indexed(["V"])
    point = resolver.nearest("V", 1600.0)
    assert (point.index, point.timestamp, point.value) == (1, 2000.0, 8.0)
    assert resolver.nearest("missing", 1600.0) is None


def test_resolver_rejects_unknown_strategy(make_store):
    with pytest.raises(ValueError):
        NearestPointResolver(ChannelIndex(make_store("TimeStamp,V\n1,1\n")), "fast")


def test_approx_timestamp():
    assert approx_timestamp(TimeRange(1000.0, 2000.0), 0.25) == 1250.0
    assert math.isnan(approx_timestamp(TimeRange.empty(), 0.5))


def test_locate_click_equal_bands():
    rect = PlotRect(left=100, top=50, width=400, height=200)
    assert locate_click(300, 60, rect, 2) == (0, 0.5)
    assert locate_click(200, 200, rect, 2) == (1, 0.25)
    assert locate_click(300, 300, rect, 2) is None
    assert locate_click(300, 60, rect, 0) is None


def test_locate_click_grid_bands():
    rect = PlotRect(left=0, top=0, width=400, height=200)
    grids = [PlotRect(20, 0, 360, 90), PlotRect(20, 110, 360, 90)]
    assert locate_click(200, 120, rect, 2, grids) == (1, 0.5)
    assert locate_click(200, 100, rect, 2, grids) is None
