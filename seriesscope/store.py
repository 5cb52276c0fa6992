"""Raw row store: the ingested chunks, in file order"""
from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Tuple

from .logger import get_logger
from .models import RawChunk, RawRow, TimeRange

logger = get_logger(__name__)


class RawRowStore:
    """
    Ordered sequence of RawChunks.

    Append-only while an ingestion run is active, read-only once sealed.
    Every write carries the generation of the run that produced it; writes
    from a superseded generation are dropped so a stale run can never leak
    rows into the current dataset.
    """

    def __init__(self):
        self._chunks: List[RawChunk] = []
        self._row_count = 0
        self._columns: Tuple[str, ...] = ()
        self._time_range = TimeRange.empty()
        self._generation = 0
        self._sealed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def begin(self, generation: int) -> None:
        """Discard all rows and accept writes from `generation` only."""
        self.clear()
        self._generation = generation

    def append_chunk(self, generation: int, rows: Iterable[RawRow]) -> bool:
        """
        Append one chunk produced by `generation`.

        Returns:
            True if the chunk was stored, False if the generation is stale
        """
        if generation != self._generation:
            logger.debug("Dropping chunk from stale generation %d (current %d)",
                         generation, self._generation)
            return False
        if self._sealed:
            raise RuntimeError("RawRowStore is sealed; start a new generation to reload.")

        chunk = tuple(rows)
        if chunk:
            self._chunks.append(chunk)
            self._row_count += len(chunk)
        return True

    def seal(self, generation: int, columns: Iterable[str], time_range: TimeRange) -> bool:
        """Mark ingestion of `generation` complete."""
        if generation != self._generation:
            logger.debug("Ignoring seal from stale generation %d", generation)
            return False
        self._columns = tuple(columns)
        self._time_range = time_range
        self._sealed = True
        return True

    def clear(self) -> None:
        self._chunks = []
        self._row_count = 0
        self._columns = ()
        self._time_range = TimeRange.empty()
        self._sealed = False

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    @property
    def chunks(self) -> Tuple[RawChunk, ...]:
        return tuple(self._chunks)

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    @property
    def time_range(self) -> TimeRange:
        return self._time_range

    def iter_rows(self, limit: Optional[int] = None) -> Iterator[RawRow]:
        """Yield rows in original order, across chunks in order."""
        emitted = 0
        for chunk in self._chunks:
            for row in chunk:
                if limit is not None and emitted >= limit:
                    return
                yield row
                emitted += 1

    def __len__(self) -> int:
        return self._row_count
