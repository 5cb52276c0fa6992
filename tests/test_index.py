import math

import numpy as np
import pytest

from seriesscope.exceptions import InvalidSeries
from seriesscope.index import ChannelIndex
from seriesscope.models import ChannelSeries
from seriesscope.parser import ChunkedIngestor
from seriesscope.store import RawRowStore


CSV = (
    "TimeStamp,a,b\n"
    "3000,1,x\n"
    "1000,2,\n"
    "garbage,9,9\n"
    "2000,3,4\n"
)


def test_series_sorted_and_unparseable_rows_excluded(make_store):
    index = ChannelIndex(make_store(CSV))
    index.ensure_indexed({"a"})

    series = index.get_series("a")
    assert series.timestamps.tolist() == [1000.0, 2000.0, 3000.0]
    assert series.values.tolist() == [2.0, 3.0, 1.0]
    assert np.all(np.diff(series.timestamps) >= 0)


def test_null_and_text_values_become_none(make_store):
    index = ChannelIndex(make_store(CSV))
    index.ensure_indexed(["b"])
    assert index.get_series("b").points() == [(1000.0, None), (2000.0, 4.0), (3000.0, None)]


def test_ensure_indexed_is_idempotent(make_store):
    index = ChannelIndex(make_store(CSV))
    index.ensure_indexed({"a"})
    first = index.get_series("a")
    index.ensure_indexed({"a"})

    assert index.build_count == 1
    assert index.get_series("a") is first


def test_evict_then_rebuild(make_store):
    index = ChannelIndex(make_store(CSV))
    index.ensure_indexed(["a", "b"])
    before = index.get_series("a").timestamps.copy()

    index.evict("a")
    assert "a" not in index
    assert index.cached_channels == ["b"]
    assert index.get_series("a").n == 0

    index.ensure_indexed(["a"])
    assert index.build_count == 3
    assert np.array_equal(index.get_series("a").timestamps, before)


def test_unknown_channel_is_empty(make_store):
    index = ChannelIndex(make_store(CSV))
    assert index.get_series("missing").n == 0
    index.evict("missing")


def test_equal_timestamps_keep_ingestion_order(make_store):
    index = ChannelIndex(make_store("TimeStamp,a\n10,1\n0,5\n10,2\n10,3\n"))
    index.ensure_indexed(["a"])
    assert index.get_series("a").points() == [(0.0, 5.0), (10.0, 1.0), (10.0, 2.0), (10.0, 3.0)]


def test_sort_invariant_across_windows(make_store):
    lines = ["TimeStamp,a"] + [f"{(i * 7919) % 1000},{i}" for i in range(300)]
    index = ChannelIndex(make_store("\n".join(lines), window_lines=16))
    index.ensure_indexed(["a"])
    series = index.get_series("a")
    assert series.n == 300
    assert np.all(np.diff(series.timestamps) >= 0)


def test_channel_series_validation():
    with pytest.raises(InvalidSeries):
        ChannelSeries("c", np.array([2.0, 1.0]), np.array([0.0, 0.0]))
    with pytest.raises(InvalidSeries):
        ChannelSeries("c", np.array([1.0]), np.array([0.0, 1.0]))
    with pytest.raises(InvalidSeries):
        ChannelSeries("c", np.array([math.nan]), np.array([0.0]))


def test_channel_series_slice_time():
    series = ChannelSeries("c", np.array([0.0, 10.0, 20.0, 30.0]), np.array([1.0, 2.0, 3.0, 4.0]))
    out = series.slice_time(10.0, 20.0)
    assert out.timestamps.tolist() == [10.0, 20.0]
    assert out.t_start == 10.0 and out.t_end == 20.0


def test_unsealed_store_is_not_indexed():
    store = RawRowStore()
    store.begin(1)
    partial = ChunkedIngestor().ingest("TimeStamp,a\n0,1\n10,2\n")
    store.append_chunk(1, partial.chunks[0])

    index = ChannelIndex(store)
    index.ensure_indexed(["a"])
    assert "a" not in index
    assert index.build_count == 0

    store.seal(1, partial.columns, partial.time_range)
    index.ensure_indexed(["a"])
    assert index.get_series("a").n == 2
