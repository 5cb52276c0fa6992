import pytest
from PyQt6.QtCore import QCoreApplication

from seriesscope.parser import ChunkedIngestor
from seriesscope.store import RawRowStore


@pytest.fixture(scope="session")
def qapp():
    """Headless Qt application shared by tests that need signals or timers."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def make_store():
    """Build a sealed RawRowStore from CSV text."""

    def _make(text: str, window_lines: int = 5000) -> RawRowStore:
        store = RawRowStore()
        store.begin(1)
        result = ChunkedIngestor(window_lines=window_lines).ingest(text)
        for chunk in result.chunks:
            store.append_chunk(1, chunk)
        store.seal(1, result.columns, result.time_range)
        return store

    return _make
