"""Background source loader thread for SeriesScope"""
from __future__ import annotations

import os
import time
import urllib.request
from typing import BinaryIO, Callable, Optional

from PyQt6.QtCore import QThread, pyqtSignal

from .constants import (
    INGEST_WINDOW_LINES,
    PROGRESS_PARSE_END,
    PROGRESS_READ_DONE,
    PROGRESS_READ_START,
    READ_BLOCK_SIZE,
    SOURCE_ENCODING,
)
from .exceptions import IngestionError, SourceUnavailable
from .logger import get_logger
from .models import IngestComplete, IngestProgress
from .parser import ChunkedIngestor
from .timestamps import TimestampNormalizer

logger = get_logger(__name__)


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_source(source: str,
                on_progress: Optional[Callable[[int, int], None]] = None,
                block_size: int = READ_BLOCK_SIZE) -> str:
    """
    Read the whole source (file path or http(s) URL) as UTF-8 text.

    Args:
        source: File path or URL
        on_progress: Called as (bytes_read, total_bytes) after every block
            when the total size is known
        block_size: Bytes per read

    Raises:
        SourceUnavailable: if the source cannot be read or decoded
    """
    try:
        if is_url(source):
            with urllib.request.urlopen(source) as response:
                total = int(response.headers.get("Content-Length") or 0)
                data = _read_blocks(response, total, on_progress, block_size)
        else:
            total = os.path.getsize(source)
            with open(source, "rb") as f:
                data = _read_blocks(f, total, on_progress, block_size)
        return data.decode(SOURCE_ENCODING)
    except UnicodeDecodeError as e:
        raise SourceUnavailable(f"Load error: {source} is not valid UTF-8 text") from e
    except OSError as e:
        reason = getattr(e, "reason", None) or e.strerror or str(e)
        raise SourceUnavailable(f"Load error: {reason}") from e


def _read_blocks(stream: BinaryIO, total: int,
                 on_progress: Optional[Callable[[int, int], None]], block_size: int) -> bytes:
    blocks = []
    done = 0
    while True:
        block = stream.read(block_size)
        if not block:
            break
        blocks.append(block)
        done += len(block)
        if on_progress is not None and total > 0:
            on_progress(min(done, total), total)
    return b"".join(blocks)


class IngestionThread(QThread):
    """Background thread reading a source and ingesting it window by window"""
    progress = pyqtSignal(int, int, str)  # Emits (generation, progress percentage, status message)
    chunk_ready = pyqtSignal(int, object)  # Emits (generation, RawChunk)
    completed = pyqtSignal(int, object)  # Emits (generation, IngestComplete)
    error = pyqtSignal(int, str)  # Emits (generation, error message)

    def __init__(self, source: str, generation: int,
                 normalizer: Optional[TimestampNormalizer] = None,
                 window_lines: int = INGEST_WINDOW_LINES,
                 block_size: int = READ_BLOCK_SIZE):
        super().__init__()
        self.source = source
        self.generation = generation
        self.normalizer = normalizer if normalizer is not None else TimestampNormalizer()
        self.window_lines = window_lines
        self.block_size = block_size

    def run(self):
        """Read and ingest the source, stopping between windows if interrupted"""
        try:
            start_time = time.time()
            self.progress.emit(self.generation, PROGRESS_READ_START, "Opening file...")

            read_start = time.time()
            text = read_source(self.source, self._on_read_progress, self.block_size)
            read_time = time.time() - read_start
            self.progress.emit(self.generation, PROGRESS_READ_DONE, "Parsing data...")

            ingestor = ChunkedIngestor(self.normalizer, self.window_lines)
            parse_start = time.time()
            result: Optional[IngestComplete] = None

            for event in ingestor.iter_events(text):
                if self.isInterruptionRequested():
                    logger.info("Ingestion generation %d superseded; discarding output",
                                self.generation)
                    return
                if isinstance(event, IngestProgress):
                    if event.chunk:
                        self.chunk_ready.emit(self.generation, event.chunk)
                    span = PROGRESS_PARSE_END - PROGRESS_READ_DONE
                    percent = PROGRESS_READ_DONE + int(event.fraction * span)
                    self.progress.emit(self.generation, min(PROGRESS_PARSE_END, percent),
                                       "Parsing data...")
                else:
                    result = event

            parse_time = time.time() - parse_start
            total_time = time.time() - start_time
            self._log_timing(len(text), read_time, parse_time, total_time, result)

            self.completed.emit(self.generation, result)
        except IngestionError as e:
            logger.error("Ingestion failed: %s", e.message)
            self.error.emit(self.generation, e.message)
        except Exception as e:
            logger.exception("Unexpected failure while loading %s", self.source)
            self.error.emit(self.generation, f"Load error: {e}")

    def _log_timing(self, size_chars: int, read_time: float, parse_time: float,
                    total_time: float, result: Optional[IngestComplete]) -> None:
        size_mb = size_chars / (1024 * 1024)
        name = self.source if is_url(self.source) else os.path.basename(self.source)
        logger.info(
            "Loaded %s: %.2f MB, %d rows, %d chunks | read %.2f ms, parse %.2f ms, total %.2f s",
            name,
            size_mb,
            result.row_count if result else 0,
            len(result.chunks) if result else 0,
            read_time * 1000,
            parse_time * 1000,
            total_time,
        )

    def _on_read_progress(self, done: int, total: int) -> None:
        span = PROGRESS_READ_DONE - PROGRESS_READ_START
        percent = PROGRESS_READ_START + int(done / total * span)
        if percent < PROGRESS_READ_DONE:
            self.progress.emit(self.generation, percent, "Reading file...")
