"""Nearest-point resolution and click-to-timestamp mapping"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .constants import DEFAULT_NEAREST_STRATEGY, NEAREST_STRATEGIES, NEAREST_STRATEGY_LINEAR
from .index import ChannelIndex
from .models import ChannelSeries, NearestPoint, TimeRange


@dataclass(frozen=True, slots=True)
class PlotRect:
    """Pixel rectangle (left, top, width, height)"""
    left: float
    top: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


def nearest_index_linear(timestamps: np.ndarray, target: float) -> int:
    """Index minimizing |t - target|; the lowest index wins ties."""
    return int(np.argmin(np.abs(timestamps - target)))


def nearest_index_sorted(timestamps: np.ndarray, target: float) -> int:
    """
    Binary-search equivalent of nearest_index_linear() for sorted input.

    Among equal minimal distances the lowest index is returned, including
    runs of duplicate timestamps.
    """
    n = timestamps.size
    i = int(np.searchsorted(timestamps, target, side="left"))
    if i == 0:
        return 0
    if i == n:
        left = n - 1
    else:
        # timestamps[i] is the first entry >= target, so it is already the
        # first of its run
        if timestamps[i] - target < target - timestamps[i - 1]:
            return i
        left = i - 1
    return int(np.searchsorted(timestamps, timestamps[left], side="left"))


def nearest_in_series(series: ChannelSeries, target: float,
                      strategy: str = DEFAULT_NEAREST_STRATEGY) -> Optional[NearestPoint]:
    """
    Find the entry of `series` closest to `target`.

    Returns:
        NearestPoint, or None when the series is empty or target is not finite
    """
    if series.n == 0 or not math.isfinite(target):
        return None
    if strategy == NEAREST_STRATEGY_LINEAR:
        idx = nearest_index_linear(series.timestamps, target)
    else:
        idx = nearest_index_sorted(series.timestamps, target)
    return NearestPoint(index=idx, timestamp=float(series.timestamps[idx]), value=series.value_at(idx))


class NearestPointResolver:
    """Resolves approximate timestamps against the channel index"""

    def __init__(self, index: ChannelIndex, strategy: str = DEFAULT_NEAREST_STRATEGY):
        if strategy not in NEAREST_STRATEGIES:
            raise ValueError(f"Unknown nearest-point strategy: {strategy!r}")
        self.index = index
        self.strategy = strategy

    def nearest(self, channel: str, approx_timestamp: float) -> Optional[NearestPoint]:
        """Nearest point of `channel`, or None if it has no indexed data."""
        return nearest_in_series(self.index.get_series(channel), approx_timestamp, self.strategy)


def approx_timestamp(time_range: TimeRange, pixel_fraction: float) -> float:
    """Map a horizontal fraction of the time axis onto the global time range."""
    if time_range.is_empty:
        return math.nan
    return time_range.start + time_range.span * pixel_fraction


def locate_click(x: float, y: float, rect: PlotRect, channel_count: int,
                 grid_rects: Optional[Sequence[PlotRect]] = None) -> Optional[Tuple[int, float]]:
    """
    Map a click in page pixels to (channel index, horizontal fraction).

    With `grid_rects` (one band per channel, relative to `rect`) the band
    containing the click owns it and the fraction is measured inside that
    band; otherwise the plot area is split into equal-height bands.

    Returns:
        (channel_index, pixel_fraction), or None when the click is outside
        every band
    """
    if channel_count <= 0 or rect.width <= 0 or rect.height <= 0:
        return None

    rel_x = x - rect.left
    rel_y = y - rect.top

    if grid_rects:
        for i, grid in enumerate(grid_rects[:channel_count]):
            if grid.top <= rel_y <= grid.bottom:
                width = grid.width if grid.width > 0 else rect.width
                return i, (rel_x - grid.left) / width
        return None

    channel_index = int(math.floor(rel_y / (rect.height / channel_count)))
    if 0 <= channel_index < channel_count:
        return channel_index, rel_x / rect.width
    return None
