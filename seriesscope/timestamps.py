"""Timestamp normalization for SeriesScope"""
from __future__ import annotations

import math
import re
import warnings
from datetime import datetime
from typing import Dict, Union

import pandas as pd

from .logger import get_logger

logger = get_logger(__name__)

_NUMERIC_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_TIME_ONLY_RE = re.compile(r"^\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:\s*[AaPp][Mm])?$")

NAN = float("nan")


class TimestampNormalizer:
    """
    Converts heterogeneous timestamp representations to epoch milliseconds.

    Supported inputs:
        - numbers (and numeric strings): passed through as epoch milliseconds
        - "DD-MM-YYYY HH:MM:SS[:mmm[.micros]]" (anything holding '-' and ':')
        - ISO-8601 (anything holding 'T' or 'Z')
        - anything else pandas can parse, resolved day-first, as long as it
          carries a date (a bare time of day is rejected)

    Failures return NaN instead of raising. Successful string parses are
    memoized by their exact text.
    """

    def __init__(self):
        self._cache: Dict[str, float] = {}

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        logger.debug("Clearing %d cached timestamps", len(self._cache))
        self._cache.clear()

    def normalize(self, raw: Union[str, int, float, None]) -> float:
        """
        Parse one timestamp.

        Args:
            raw: Timestamp text or numeric epoch milliseconds

        Returns:
            Epoch milliseconds as float, NaN when unparseable
        """
        if raw is None or isinstance(raw, bool):
            return NAN
        if isinstance(raw, (int, float)):
            return float(raw)

        cached = self._cache.get(raw)
        if cached is not None:
            return cached

        timestamp = self._parse_text(raw)
        if math.isfinite(timestamp):
            self._cache[raw] = timestamp
            return timestamp
        return NAN

    def _parse_text(self, raw: str) -> float:
        text = raw.strip()
        if not text:
            return NAN

        if _NUMERIC_RE.match(text):
            return float(text)

        is_iso = "T" in text or "Z" in text
        try:
            if "-" in text and ":" in text:
                try:
                    return parse_day_first(text)
                except ValueError:
                    if not is_iso:
                        raise
            if is_iso:
                return _to_epoch_ms(pd.Timestamp(text))
            if _TIME_ONLY_RE.match(text):
                raise ValueError("time of day without a date")
            with warnings.catch_warnings():
                # pandas warns when an ISO-like string disagrees with dayfirst
                warnings.simplefilter("ignore", UserWarning)
                return _to_epoch_ms(pd.to_datetime(text, dayfirst=True))
        except (ValueError, TypeError, OverflowError) as e:
            logger.debug("Unparseable timestamp %r: %s", raw, e)
            return NAN


def parse_day_first(text: str) -> float:
    """
    Parse "DD-MM-YYYY HH:MM:SS[:mmm[.micros]]" as local time.

    The microsecond remainder after the millisecond field is discarded.
    Years 0-99 are read as 1900-1999.

    Raises:
        ValueError: if the text does not follow the layout
    """
    parts = text.split()
    if len(parts) < 2:
        raise ValueError(f"missing time part in {text!r}")
    date_part, time_part = parts[0], parts[1]

    date_fields = date_part.split("-")
    if len(date_fields) != 3:
        raise ValueError(f"expected DD-MM-YYYY, got {date_part!r}")
    day, month, year = (int(f) for f in date_fields)
    if year < 100:
        year += 1900

    time_fields = time_part.split(":")
    if len(time_fields) < 3:
        raise ValueError(f"expected HH:MM:SS, got {time_part!r}")
    hours, minutes, seconds = (int(f) for f in time_fields[:3])

    milliseconds = 0
    if len(time_fields) > 3:
        millis = time_fields[3].split(".", 1)[0]
        milliseconds = int(millis) if millis else 0

    moment = datetime(year, month, day, hours, minutes, seconds)
    return float(int(moment.timestamp()) * 1000 + milliseconds)


def _to_epoch_ms(ts: pd.Timestamp) -> float:
    if ts is pd.NaT or pd.isna(ts):
        raise ValueError("not a timestamp")
    if ts.tzinfo is not None:
        return float(ts.value // 1_000_000)
    # Naive timestamps are local wall time
    moment = ts.to_pydatetime(warn=False)
    whole = int(moment.replace(microsecond=0).timestamp()) * 1000
    return float(whole + moment.microsecond // 1000)
