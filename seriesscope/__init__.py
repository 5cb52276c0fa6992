"""
SeriesScope - exploration core for large delimited time-series files.

- ChunkedIngestor: windowed CSV ingestion with progress events
- RawRowStore: verbatim rows in file order
- ChannelIndex: lazily built, time-sorted per-channel series
- NearestPointResolver / DeltaEngine: two-point delta measurements
- export_csv: bounded export back to delimited text
- ExplorerSession: Qt-facing orchestration of all of the above
"""

from .delta import DeltaEngine, SelectionState, format_time_delta
from .exceptions import (
    ChannelNotFound,
    EmptySource,
    ExplorerError,
    IngestionError,
    InvalidSeries,
    InvalidSettings,
    MissingHeader,
    RowParseFailure,
    SourceUnavailable,
)
from .exporter import export_csv, write_export
from .index import ChannelIndex
from .models import (
    ChannelDelta,
    ChannelSeries,
    DeltaResult,
    ExportResult,
    IngestComplete,
    IngestProgress,
    NearestPoint,
    RawRow,
    SelectedPoint,
    TimeRange,
)
from .parser import ChunkedIngestor
from .resolver import NearestPointResolver, PlotRect
from .settings import ExplorerSettings
from .store import RawRowStore
from .timestamps import TimestampNormalizer


__all__ = [
    # pipeline
    "ChunkedIngestor",
    "TimestampNormalizer",
    "RawRowStore",
    "ChannelIndex",
    "NearestPointResolver",
    "PlotRect",
    "DeltaEngine",
    "SelectionState",
    "format_time_delta",
    "export_csv",
    "write_export",
    "ExplorerSettings",

    # models
    "RawRow",
    "TimeRange",
    "ChannelSeries",
    "IngestProgress",
    "IngestComplete",
    "NearestPoint",
    "SelectedPoint",
    "ChannelDelta",
    "DeltaResult",
    "ExportResult",

    # exceptions
    "ExplorerError",
    "IngestionError",
    "SourceUnavailable",
    "EmptySource",
    "MissingHeader",
    "RowParseFailure",
    "InvalidSeries",
    "InvalidSettings",
    "ChannelNotFound",
]
