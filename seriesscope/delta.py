"""Two-point delta measurement across active channels"""
from __future__ import annotations

import enum
import math
from typing import Callable, List, Optional, Sequence

from .constants import SECOND_POINT_PROMPT
from .logger import get_logger
from .models import ChannelDelta, DeltaResult, SelectedPoint
from .resolver import NearestPointResolver

logger = get_logger(__name__)


class SelectionState(enum.Enum):
    AWAITING_FIRST = "awaiting_first"
    AWAITING_SECOND = "awaiting_second"


def format_time_delta(milliseconds: float) -> str:
    """
    Format an elapsed time from the coarsest nonzero unit down to seconds.

    Examples:
        90061001 -> "1d 1h 1m 1s"
        61000    -> "1m 1s"
        1250     -> "1s 250ms"
        250      -> "250ms"

    The millisecond part is only shown when seconds is the coarsest unit,
    and is the truncated remainder modulo 1000.
    """
    abs_ms = abs(milliseconds)
    if isinstance(abs_ms, float) and abs_ms.is_integer():
        abs_ms = int(abs_ms)

    seconds = int(math.floor(abs_ms / 1000))
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h {minutes % 60}m {seconds % 60}s"
    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    if seconds > 0:
        return f"{seconds}s {abs_ms % 1000}ms"
    return f"{abs_ms}ms"


class DeltaEngine:
    """
    Point-selection state machine for delta measurements.

    The first resolved point moves the machine to AWAITING_SECOND; the
    second one computes the deltas for every active channel and returns
    to AWAITING_FIRST, so the next point starts a fresh measurement.
    """

    def __init__(self, resolver: NearestPointResolver,
                 active_channels: Callable[[], Sequence[str]],
                 on_prompt: Optional[Callable[[str], None]] = None,
                 on_delta: Optional[Callable[[DeltaResult], None]] = None):
        self.resolver = resolver
        self._active_channels = active_channels
        self.on_prompt = on_prompt
        self.on_delta = on_delta

        self.state = SelectionState.AWAITING_FIRST
        self.point1: Optional[SelectedPoint] = None
        self.point2: Optional[SelectedPoint] = None
        self.last_result: Optional[DeltaResult] = None

    def select(self, channel: str, approx_timestamp: float) -> Optional[SelectedPoint]:
        """
        Resolve the point of `channel` nearest to `approx_timestamp` and feed it
        to the state machine.

        Returns:
            The selected point, or None (state unchanged) if the channel has no data
        """
        nearest = self.resolver.nearest(channel, approx_timestamp)
        if nearest is None:
            logger.debug("No data points for channel %s", channel)
            return None
        point = SelectedPoint(channel=channel, timestamp=nearest.timestamp, value=nearest.value)
        self.select_point(point)
        return point

    def select_point(self, point: SelectedPoint) -> Optional[DeltaResult]:
        """Advance the state machine with an already resolved point."""
        if self.state is SelectionState.AWAITING_FIRST:
            self.point1 = point
            self.point2 = None
            self.state = SelectionState.AWAITING_SECOND
            if self.on_prompt is not None:
                self.on_prompt(SECOND_POINT_PROMPT)
            return None

        self.point2 = point
        result = self.compute_deltas(self.point1, point)
        self.state = SelectionState.AWAITING_FIRST
        return result

    def clear(self) -> None:
        """Forget both points and the last result."""
        self.state = SelectionState.AWAITING_FIRST
        self.point1 = None
        self.point2 = None
        self.last_result = None

    def compute_deltas(self, point1: SelectedPoint, point2: SelectedPoint) -> DeltaResult:
        """
        Resolve both timestamps independently on every active channel.

        Channels where either lookup finds nothing (or a null value) are
        left out of the result.
        """
        delta_time = point2.timestamp - point1.timestamp
        per_channel: List[ChannelDelta] = []

        for channel in self._active_channels():
            first = self.resolver.nearest(channel, point1.timestamp)
            second = self.resolver.nearest(channel, point2.timestamp)
            if first is None or second is None:
                continue
            if first.value is None or second.value is None:
                continue
            per_channel.append(ChannelDelta(
                channel=channel,
                value1=first.value,
                value2=second.value,
                delta_value=second.value - first.value,
            ))

        result = DeltaResult(
            delta_time=delta_time,
            formatted_delta_time=format_time_delta(delta_time),
            per_channel=tuple(per_channel),
        )
        self.last_result = result
        if self.on_delta is not None:
            self.on_delta(result)
        return result
