"""Exploration session: ties ingestion, channel index and delta tool together"""
from __future__ import annotations

import math
import time
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple, Union

from PyQt6.QtCore import QObject, QTimer, pyqtSignal, pyqtSlot

from .constants import (
    AUTO_SELECT_CHANNEL_COUNT,
    PROGRESS_PARSE_END,
    PROGRESS_READ_DONE,
)
from .delta import DeltaEngine
from .exceptions import ChannelNotFound, IngestionError
from .exporter import export_csv, write_export
from .index import ChannelIndex
from .loader import IngestionThread
from .logger import get_logger
from .models import ChannelSeries, ExportResult, IngestComplete, IngestProgress, SelectedPoint
from .parser import ChunkedIngestor
from .resolver import NearestPointResolver, PlotRect, approx_timestamp, locate_click
from .settings import ExplorerSettings
from .store import RawRowStore
from .timestamps import TimestampNormalizer

logger = get_logger(__name__)


class DatasetChangedDebouncer(QObject):
    """Coalesces bursts of "dataset changed" notifications into one trigger"""
    triggered = pyqtSignal()

    def __init__(self, interval_ms: int, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._pending = False
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._fire)

    @property
    def pending(self) -> bool:
        return self._pending

    def notify(self) -> None:
        """Restart the coalescing window."""
        self._pending = True
        self._timer.start()

    def flush(self) -> None:
        """Fire now if a notification is pending."""
        if self._pending:
            self._timer.stop()
            self._fire()

    def cancel(self) -> None:
        self._timer.stop()
        self._pending = False

    def _fire(self) -> None:
        self._pending = False
        self.triggered.emit()


class ExplorerSession(QObject):
    """
    One interactive exploration of a delimited time-series file.

    Every load starts a new generation: the raw row store, the channel
    index and the point selection are reset first, and anything still
    arriving from an older generation is dropped.
    """
    dataset_changed = pyqtSignal()
    series_ready = pyqtSignal(object)  # Emits [(channel, ChannelSeries)]
    progress_changed = pyqtSignal(int)
    load_failed = pyqtSignal(str)
    load_completed = pyqtSignal(object)  # Emits IngestComplete
    prompt = pyqtSignal(str)
    delta_ready = pyqtSignal(object)  # Emits DeltaResult

    def __init__(self, settings: Optional[ExplorerSettings] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.settings = settings if settings is not None else ExplorerSettings()

        self.normalizer = TimestampNormalizer()
        self.store = RawRowStore()
        self.index = ChannelIndex(self.store)
        self.resolver = NearestPointResolver(self.index, self.settings.nearest_strategy)
        self.delta = DeltaEngine(
            self.resolver,
            lambda: self.selected_channels,
            on_prompt=self.prompt.emit,
            on_delta=self.delta_ready.emit,
        )

        self.debouncer = DatasetChangedDebouncer(self.settings.debounce_ms, self)
        self.debouncer.triggered.connect(self._refresh_series)

        self.columns: List[str] = []
        self.selected_channels: List[str] = []
        self.total_points = 0
        self.visible_points = 0
        self.progress = 0
        self.loading = False
        self.load_complete = False
        self.error: Optional[str] = None
        self.timing_report: Optional[str] = None

        self._generation = 0
        self._source: Optional[str] = None
        self._load_started = 0.0
        self._thread: Optional[IngestionThread] = None
        self._threads: Set[IngestionThread] = set()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @property
    def generation(self) -> int:
        return self._generation

    @property
    def time_range(self):
        return self.store.time_range

    def load(self, source: Union[str, Path]) -> IngestionThread:
        """Start ingesting `source` (path or URL) on a background thread."""
        self._source = str(source)
        generation = self._start_generation()

        thread = IngestionThread(self._source, generation, self.normalizer, self.settings.window_lines)
        thread.progress.connect(self._on_progress)
        thread.chunk_ready.connect(self._on_chunk)
        thread.completed.connect(self._on_completed)
        thread.error.connect(self._on_error)
        thread.finished.connect(self._on_thread_finished)

        self._thread = thread
        self._threads.add(thread)
        thread.start()
        return thread

    def reload(self) -> Optional[IngestionThread]:
        """Re-run ingestion of the last source from scratch (the retry action)."""
        if self._source is None:
            return None
        return self.load(self._source)

    def ingest_text(self, text: str) -> Optional[IngestComplete]:
        """
        Ingest already loaded text on the calling thread.

        Returns:
            IngestComplete, or None if ingestion failed (see `error`)
        """
        generation = self._start_generation()
        ingestor = ChunkedIngestor(self.normalizer, self.settings.window_lines)
        self._on_progress(generation, PROGRESS_READ_DONE, "Parsing data...")

        result: Optional[IngestComplete] = None
        try:
            for event in ingestor.iter_events(text):
                if isinstance(event, IngestProgress):
                    self.store.append_chunk(generation, event.chunk)
                    span = PROGRESS_PARSE_END - PROGRESS_READ_DONE
                    self._on_progress(generation, PROGRESS_READ_DONE + int(event.fraction * span),
                                      "Parsing data...")
                else:
                    result = event
        except IngestionError as e:
            self._on_error(generation, e.message)
            return None

        self._apply_completion(generation, result)
        return result

    def _start_generation(self) -> int:
        if self._thread is not None:
            self._thread.requestInterruption()
            self._thread = None

        self._generation += 1
        self.store.begin(self._generation)
        self.index.clear()
        self.normalizer.clear_cache()
        self.delta.clear()
        self.debouncer.cancel()

        self.progress = 0
        self.loading = True
        self.load_complete = False
        self.error = None
        self.timing_report = None
        self.visible_points = 0
        self._load_started = time.perf_counter()
        return self._generation

    @pyqtSlot()
    def _on_thread_finished(self) -> None:
        # Runs on the session thread; the reference is held until the thread has exited
        thread = self.sender()
        if thread in self._threads:
            thread.wait()
            self._threads.discard(thread)

    @pyqtSlot(int, int, str)
    def _on_progress(self, generation: int, percent: int, message: str) -> None:
        if generation != self._generation:
            return
        if percent > self.progress:
            self.progress = percent
            self.progress_changed.emit(percent)

    @pyqtSlot(int, object)
    def _on_chunk(self, generation: int, chunk) -> None:
        self.store.append_chunk(generation, chunk)

    @pyqtSlot(int, object)
    def _on_completed(self, generation: int, result: IngestComplete) -> None:
        if generation != self._generation:
            logger.debug("Ignoring completion of stale generation %d", generation)
            return
        self._thread = None
        self._apply_completion(generation, result)

    @pyqtSlot(int, str)
    def _on_error(self, generation: int, message: str) -> None:
        if generation != self._generation:
            return
        self._thread = None
        self.store.clear()
        self.index.clear()
        self.loading = False
        self.load_complete = False
        self.error = message
        self.load_failed.emit(message)

    def _apply_completion(self, generation: int, result: IngestComplete) -> None:
        self.store.seal(generation, result.columns, result.time_range)
        self.index.clear()
        self.columns = list(result.columns)
        self.total_points = result.total_points
        self.visible_points = result.total_points

        self.selected_channels = [ch for ch in self.selected_channels if ch in self.columns]
        if not self.selected_channels and self.columns:
            self.selected_channels = self.columns[:AUTO_SELECT_CHANNEL_COUNT]

        self.loading = False
        self.load_complete = True
        if self.progress < PROGRESS_PARSE_END:
            self.progress = PROGRESS_PARSE_END
            self.progress_changed.emit(self.progress)
        self.timing_report = f"CSV loaded in {time.perf_counter() - self._load_started:.2f}s"
        logger.info(self.timing_report)

        self.load_completed.emit(result)
        self.notify_dataset_changed()

    # ------------------------------------------------------------------
    # Channel selection
    # ------------------------------------------------------------------
    def is_channel_selected(self, channel: str) -> bool:
        return channel in self.selected_channels

    def toggle_channel(self, channel: str) -> bool:
        """
        Select or deselect `channel`; deselecting evicts its series.

        Returns:
            True if the channel is selected afterwards
        """
        if channel not in self.columns:
            raise ChannelNotFound(channel)

        if channel in self.selected_channels:
            self.selected_channels.remove(channel)
            self.index.evict(channel)
            selected = False
        else:
            self.selected_channels.append(channel)
            selected = True

        self.notify_dataset_changed()
        return selected

    def select_all_channels(self) -> None:
        self.selected_channels = list(self.columns)
        self.notify_dataset_changed()

    def deselect_all_channels(self) -> None:
        for channel in self.selected_channels:
            self.index.evict(channel)
        self.selected_channels = []
        self.notify_dataset_changed()

    def notify_dataset_changed(self) -> None:
        self.dataset_changed.emit()
        self.debouncer.notify()

    def series_for_plot(self) -> List[Tuple[str, ChannelSeries]]:
        """Index the selected channels and return their series in selection order."""
        channels = list(self.selected_channels)
        self.index.ensure_indexed(channels)
        return [(channel, self.index.get_series(channel)) for channel in channels]

    def _refresh_series(self) -> None:
        if not self.load_complete or not self.selected_channels:
            return
        self.series_ready.emit(self.series_for_plot())

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------
    def handle_click(self, x: float, y: float, rect: PlotRect,
                     grid_rects: Optional[Sequence[PlotRect]] = None) -> Optional[SelectedPoint]:
        """
        Map a Plot Surface click to a channel and timestamp and select the
        nearest point for the delta tool.
        """
        if not self.load_complete:
            return None

        located = locate_click(x, y, rect, len(self.selected_channels), grid_rects)
        if located is None:
            return None
        channel_index, fraction = located
        channel = self.selected_channels[channel_index]

        self.index.ensure_indexed(self.selected_channels)
        return self.delta.select(channel, approx_timestamp(self.store.time_range, fraction))

    def clear_selection(self) -> None:
        self.delta.clear()

    def estimate_visible_points(self, start_time: Optional[float], end_time: Optional[float]) -> int:
        """Advisory point count for a viewport, from the visible share of the time range."""
        span = self.store.time_range.span
        if start_time is None or end_time is None or not span:
            self.visible_points = self.total_points
            return self.visible_points

        visible_ratio = (end_time - start_time) / span
        estimate = self.store.row_count * visible_ratio * len(self.selected_channels)
        self.visible_points = int(math.floor(estimate + 0.5))
        return self.visible_points

    # ------------------------------------------------------------------
    # Export / housekeeping
    # ------------------------------------------------------------------
    def export(self, path: Union[str, Path, None] = None) -> Optional[ExportResult]:
        """Export the selected channels; writes a file when `path` is given."""
        if not self.selected_channels or self.store.row_count == 0:
            return None
        if path is None:
            return export_csv(self.store, self.selected_channels, self.settings.export_row_cap)
        return write_export(self.store, self.selected_channels, path, self.settings.export_row_cap)

    def clear_caches(self) -> None:
        """Free memory held by channel series and the timestamp cache."""
        self.index.clear()
        self.normalizer.clear_cache()
