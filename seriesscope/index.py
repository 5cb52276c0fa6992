"""Per-channel series cache built from the raw row store"""
from __future__ import annotations

from typing import Dict, Iterable, List

import numpy as np

from .logger import get_logger
from .models import ChannelSeries
from .store import RawRowStore
from .utils import parse_number

logger = get_logger(__name__)


class ChannelIndex:
    """
    Lazily built, time-sorted ChannelSeries keyed by channel name.

    The raw row store stays the source of truth; an entry can be evicted
    and rebuilt at any time. Only ensure_indexed() populates entries, and
    only from a sealed store.
    """

    def __init__(self, store: RawRowStore):
        self._store = store
        self._series: Dict[str, ChannelSeries] = {}
        self.build_count = 0

    @property
    def cached_channels(self) -> List[str]:
        return list(self._series)

    def __contains__(self, channel: object) -> bool:
        return channel in self._series

    def ensure_indexed(self, channels: Iterable[str]) -> None:
        """
        Build series for every requested channel that is not cached yet.

        Does nothing until the store is sealed, so a half-loaded file never
        ends up in the cache.
        """
        if not self._store.is_sealed:
            logger.debug("Store not sealed; skipping indexing")
            return
        for channel in channels:
            if channel not in self._series:
                self._series[channel] = self._build(channel)

    def get_series(self, channel: str) -> ChannelSeries:
        """Cached series, or an empty one if the channel was never indexed."""
        series = self._series.get(channel)
        return series if series is not None else ChannelSeries.empty(channel)

    def evict(self, channel: str) -> None:
        if self._series.pop(channel, None) is not None:
            logger.debug("Evicted series for %s", channel)

    def clear(self) -> None:
        self._series.clear()

    def _build(self, channel: str) -> ChannelSeries:
        # Single pass over all chunks, then one stable sort
        timestamps = []
        values = []
        for row in self._store.iter_rows():
            if row.has_timestamp:
                timestamps.append(row.parsed_timestamp)
                values.append(parse_number(row.values.get(channel)))

        t = np.asarray(timestamps, dtype=np.float64)
        v = np.asarray(values, dtype=np.float64)
        order = np.argsort(t, kind="stable")
        self.build_count += 1

        logger.debug("Prepared %d points for channel %s", t.size, channel)
        return ChannelSeries(channel, t[order], v[order])
