"""Chunked CSV ingestion for SeriesScope"""
from __future__ import annotations

import csv
import math
import time
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from .constants import INGEST_WINDOW_LINES
from .exceptions import EmptySource, MissingHeader, RowParseFailure
from .logger import get_logger
from .models import IngestComplete, IngestProgress, RawChunk, RawRow, TimeRange
from .timestamps import TimestampNormalizer

logger = get_logger(__name__)

IngestEvent = Union[IngestProgress, IngestComplete]


def split_fields(lines: Sequence[str]) -> List[List[str]]:
    """
    Split raw lines into fields (plain comma splitting, RFC 4180 quotes honoured).

    Raises:
        RowParseFailure: if the lines cannot be split
    """
    try:
        return list(csv.reader(lines, strict=True))
    except csv.Error as e:
        raise RowParseFailure(f"Parse error: {e}") from e


def split_header(text: str) -> Tuple[str, List[str]]:
    """
    Split the source text into its header line and body lines.

    Accepts '\\n' and '\\r\\n' line endings; a final line without a trailing
    newline is kept, trailing blank lines are not.
    """
    lines = text.split("\n")
    lines = [line[:-1] if line.endswith("\r") else line for line in lines]
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        return "", []
    return lines[0], lines[1:]


class ChunkedIngestor:
    """
    Parses delimited time-series text in fixed-size line windows.

    The first header field names the timestamp column, the remaining
    fields name the channels. Each window of body lines becomes one
    RawChunk; after every window an IngestProgress event is yielded, which
    is where the caller gets control back.
    """

    def __init__(self, normalizer: Optional[TimestampNormalizer] = None,
                 window_lines: int = INGEST_WINDOW_LINES):
        if window_lines < 1:
            raise ValueError("window_lines must be >= 1")
        self.normalizer = normalizer if normalizer is not None else TimestampNormalizer()
        self.window_lines = window_lines

    def iter_events(self, text: Optional[str]) -> Iterator[IngestEvent]:
        """
        Parse `text`, yielding progress events and then one IngestComplete.

        Raises:
            EmptySource: if the text or its body is empty
            MissingHeader: if the header line is missing or defines no channel
            RowParseFailure: if a body window cannot be split into fields
        """
        start_time = time.perf_counter()

        if text is None or not text.strip():
            raise EmptySource()

        header_line, body = split_header(text)
        if not header_line.strip():
            raise MissingHeader()

        try:
            header = [h.strip() for h in split_fields([header_line])[0]]
        except RowParseFailure as e:
            raise MissingHeader(f"CSV file has no headers: {e.message}") from e
        if len(header) < 2:
            raise MissingHeader("CSV header defines no channels")
        columns = tuple(header[1:])

        total = len(body)
        if not any(line.strip() for line in body):
            raise EmptySource("CSV file has no data rows")

        logger.info("Processing %d rows of CSV data (%d channels)...", total, len(columns))

        chunks: List[RawChunk] = []
        row_count = 0
        skipped = 0
        unparseable = 0
        min_ts = math.inf
        max_ts = -math.inf

        for window_start in range(0, total, self.window_lines):
            window = body[window_start:window_start + self.window_lines]
            rows: List[RawRow] = []

            for fields in split_fields(window):
                if not fields:
                    continue  # blank line
                if len(fields) < 2:
                    skipped += 1
                    continue

                raw_ts = fields[0]
                ts = self.normalizer.normalize(raw_ts)
                if math.isnan(ts):
                    unparseable += 1
                else:
                    min_ts = min(min_ts, ts)
                    max_ts = max(max_ts, ts)

                values = {}
                for i, channel in enumerate(columns):
                    field = fields[i + 1] if i + 1 < len(fields) else ""
                    values[channel] = field if field != "" else None

                rows.append(RawRow(timestamp=raw_ts, parsed_timestamp=ts, values=values))

            chunk: RawChunk = tuple(rows)
            if chunk:
                chunks.append(chunk)
                row_count += len(chunk)

            lines_processed = window_start + len(window)
            logger.debug("Window %d-%d: %d rows", window_start, lines_processed, len(chunk))
            yield IngestProgress(
                fraction=lines_processed / total,
                lines_processed=lines_processed,
                total_lines=total,
                chunk=chunk,
            )

        time_range = TimeRange(min_ts, max_ts) if row_count and unparseable < row_count else TimeRange.empty()

        if skipped:
            logger.info("Skipped %d rows with fewer than 2 fields", skipped)
        if unparseable:
            logger.warning("%d rows have an unparseable timestamp; kept for export only", unparseable)

        elapsed = time.perf_counter() - start_time
        logger.info("CSV processing complete. %d rows in %d chunks (%.2fs)",
                    row_count, len(chunks), elapsed)

        yield IngestComplete(
            chunks=tuple(chunks),
            time_range=time_range,
            columns=columns,
            row_count=row_count,
            skipped_rows=skipped,
            unparseable_timestamps=unparseable,
            total_points=total * len(columns),
        )

    def ingest(self, text: Optional[str],
               on_progress: Optional[Callable[[IngestProgress], None]] = None) -> IngestComplete:
        """
        Drive iter_events() to completion without yielding to anyone else.

        Args:
            text: Source text
            on_progress: Optional callback invoked for each progress event

        Returns:
            The IngestComplete event
        """
        for event in self.iter_events(text):
            if isinstance(event, IngestComplete):
                return event
            if on_progress is not None:
                on_progress(event)
        raise RuntimeError("ingestion ended without a completion event")
