"""Data models for SeriesScope"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from .exceptions import InvalidSeries
from .utils import format_time_auto, format_value


@dataclass(frozen=True, slots=True)
class RawRow:
    """One parsed input record, kept verbatim for lossless export"""
    timestamp: str  # Original timestamp text
    parsed_timestamp: float  # Epoch milliseconds, NaN when unparseable
    values: Dict[str, Optional[str]] = field(default_factory=dict, repr=False)

    @property
    def has_timestamp(self) -> bool:
        return not math.isnan(self.parsed_timestamp)

    def value(self, channel: str) -> Optional[str]:
        return self.values.get(channel)


# Chunks are immutable once built; their concatenation is the file's row order.
RawChunk = Tuple[RawRow, ...]


@dataclass(frozen=True, slots=True)
class TimeRange:
    """[start, end] epoch bounds over all rows with a parseable timestamp"""
    start: float
    end: float

    @classmethod
    def empty(cls) -> "TimeRange":
        return cls(math.nan, math.nan)

    @property
    def is_empty(self) -> bool:
        return math.isnan(self.start) or math.isnan(self.end)

    @property
    def span(self) -> float:
        return 0.0 if self.is_empty else self.end - self.start


@dataclass(frozen=True, slots=True)
class ChannelSeries:
    """
    Time-sorted (timestamp, value) pairs for one channel.

    Values are float64 with NaN standing for a null field. The series is a
    cache derived from the raw rows and can be rebuilt at any time.
    """
    channel: str
    timestamps: np.ndarray = field(repr=False)
    values: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        t = np.asarray(self.timestamps, dtype=np.float64)
        v = np.asarray(self.values, dtype=np.float64)

        if t.ndim != 1:
            raise InvalidSeries(f"`timestamps` must be 1D, got shape {t.shape}")
        if v.ndim != 1:
            raise InvalidSeries(f"`values` must be 1D, got shape {v.shape}")
        if t.size != v.size:
            raise InvalidSeries(
                f"`timestamps` and `values` must have same length, got {t.size} vs {v.size}"
            )

        if t.size > 0:
            if not np.isfinite(t).all():
                raise InvalidSeries("`timestamps` contains non-finite values (NaN/Inf).")
            if np.any(np.diff(t) < 0):
                raise InvalidSeries("`timestamps` must be monotonic non-decreasing.")

        object.__setattr__(self, "timestamps", t)
        object.__setattr__(self, "values", v)

    @classmethod
    def empty(cls, channel: str) -> "ChannelSeries":
        return cls(channel, np.empty(0), np.empty(0))

    @property
    def n(self) -> int:
        return int(self.timestamps.size)

    def __len__(self) -> int:
        return self.n

    @property
    def t_start(self) -> Optional[float]:
        return None if self.n == 0 else float(self.timestamps[0])

    @property
    def t_end(self) -> Optional[float]:
        return None if self.n == 0 else float(self.timestamps[-1])

    def value_at(self, index: int) -> Optional[float]:
        value = float(self.values[index])
        return None if math.isnan(value) else value

    def points(self) -> List[Tuple[float, Optional[float]]]:
        """Return [(timestamp, value or None)] in plotting order."""
        return [
            (float(t), None if math.isnan(v) else float(v))
            for t, v in zip(self.timestamps.tolist(), self.values.tolist())
        ]

    def slice_time(self, start: Optional[float] = None, end: Optional[float] = None) -> "ChannelSeries":
        """Closed [start, end] slice."""
        if self.n == 0:
            return self
        lo = 0 if start is None else int(np.searchsorted(self.timestamps, start, side="left"))
        hi = self.n if end is None else int(np.searchsorted(self.timestamps, end, side="right"))
        return ChannelSeries(self.channel, self.timestamps[lo:hi], self.values[lo:hi])


@dataclass(frozen=True, slots=True)
class IngestProgress:
    """Emitted after each ingestion window, carrying the rows it produced"""
    fraction: float
    lines_processed: int
    total_lines: int
    chunk: RawChunk = field(default=(), repr=False)


@dataclass(frozen=True, slots=True)
class IngestComplete:
    """Terminal result of a successful ingestion run"""
    chunks: Tuple[RawChunk, ...] = field(repr=False)
    time_range: TimeRange
    columns: Tuple[str, ...]
    row_count: int
    skipped_rows: int = 0
    unparseable_timestamps: int = 0
    total_points: int = 0


@dataclass(frozen=True, slots=True)
class NearestPoint:
    """Entry of a ChannelSeries closest to a queried timestamp"""
    index: int
    timestamp: float
    value: Optional[float]


@dataclass(frozen=True, slots=True)
class SelectedPoint:
    """One anchor of a delta measurement"""
    channel: str
    timestamp: float
    value: Optional[float]


@dataclass(frozen=True, slots=True)
class ChannelDelta:
    channel: str
    value1: float
    value2: float
    delta_value: float


@dataclass(frozen=True, slots=True)
class DeltaResult:
    """Time and per-channel value differences between two selected points"""
    delta_time: float
    formatted_delta_time: str
    per_channel: Tuple[ChannelDelta, ...] = ()

    def for_channel(self, channel: str) -> Optional[ChannelDelta]:
        for delta in self.per_channel:
            if delta.channel == channel:
                return delta
        return None

    def describe(self) -> str:
        """Multi-line summary: elapsed time followed by one line per channel."""
        lines = [f"Δt = {self.formatted_delta_time} ({format_time_auto(self.delta_time / 1000.0)})"]
        for delta in self.per_channel:
            lines.append(f"Δ {delta.channel} = {format_value(delta.delta_value)}")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class ExportResult:
    text: str = field(repr=False)
    rows_written: int
    truncated: bool
