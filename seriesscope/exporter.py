"""Bounded CSV export of the raw row store"""
from __future__ import annotations

from pathlib import Path
from typing import Sequence, Union

from .constants import EXPORT_DELIMITER, EXPORT_FILENAME, EXPORT_ROW_CAP, TIMESTAMP_COLUMN
from .logger import get_logger
from .models import ExportResult
from .store import RawRowStore

logger = get_logger(__name__)


def export_csv(store: RawRowStore, active_channels: Sequence[str],
               row_cap: int = EXPORT_ROW_CAP) -> ExportResult:
    """
    Render the store back to delimited text for the given channels.

    Timestamps and values are written verbatim (empty for null/absent), in
    original row order. Output stops after `row_cap` data rows; callers
    compare `rows_written` with `store.row_count` to detect truncation.

    Args:
        store: Raw row store to export
        active_channels: Ordered channel names to include
        row_cap: Maximum number of data rows

    Returns:
        ExportResult with the text, the number of data rows and a truncation flag
    """
    channels = list(active_channels)
    lines = [EXPORT_DELIMITER.join([TIMESTAMP_COLUMN, *channels])]

    for row in store.iter_rows(limit=row_cap):
        vals = []
        for channel in channels:
            val = row.value(channel)
            vals.append("" if val is None else str(val))
        lines.append(EXPORT_DELIMITER.join([row.timestamp, *vals]))

    rows_written = len(lines) - 1
    truncated = store.row_count > rows_written
    if truncated:
        logger.warning("Export limited to %d of %d rows", rows_written, store.row_count)

    return ExportResult(text="\n".join(lines) + "\n", rows_written=rows_written, truncated=truncated)


def write_export(store: RawRowStore, active_channels: Sequence[str],
                 path: Union[str, Path, None] = None,
                 row_cap: int = EXPORT_ROW_CAP) -> ExportResult:
    """Export to a file (defaults to time_series_export.csv in the working directory)."""
    target = Path(path) if path is not None else Path(EXPORT_FILENAME)
    result = export_csv(store, active_channels, row_cap=row_cap)
    target.write_text(result.text, encoding="utf-8")
    logger.info("Exported %d rows to %s", result.rows_written, target)
    return result
