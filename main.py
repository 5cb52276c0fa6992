"""
SeriesScope - Time-Series CSV Explorer

Command-line front end: loads a delimited time-series file on a background
thread, reports what was found, and optionally measures a delta or exports.
"""
import sys
import argparse
import math
import statistics
import time
from datetime import datetime

from PyQt6.QtCore import QCoreApplication

from seriesscope.constants import APP_NAME, NEAREST_STRATEGIES
from seriesscope.exceptions import ExplorerError, IngestionError
from seriesscope.loader import read_source
from seriesscope.logger import get_logger, setup_logging
from seriesscope.models import SelectedPoint
from seriesscope.parser import ChunkedIngestor
from seriesscope.session import ExplorerSession
from seriesscope.settings import ExplorerSettings
from seriesscope.timestamps import TimestampNormalizer

logger = get_logger("seriesscope.main")


def benchmark_load(file_path: str, runs: int, settings: ExplorerSettings) -> int:
    """
    Benchmark ingestion by running it multiple times on the same text.

    Args:
        file_path: Path to the file to benchmark
        runs: Number of times to ingest the file
        settings: Window size used for ingestion

    Returns:
        Process exit code
    """
    print(f"\n{'='*70}")
    print(f"BENCHMARK MODE - Ingesting '{file_path}' {runs} times")
    print(f"{'='*70}\n")

    times = []
    try:
        text = read_source(file_path)
        for run in range(1, runs + 1):
            print(f"Run {run}/{runs}: ", end="", flush=True)
            start_time = time.time()
            # Fresh normalizer each run so the timestamp cache does not skew results
            ChunkedIngestor(TimestampNormalizer(), settings.window_lines).ingest(text)
            elapsed = (time.time() - start_time) * 1000
            times.append(elapsed)
            print(f"{elapsed:.2f} ms")
    except IngestionError as e:
        print(f"\nError during benchmarking: {e.message}")
        return 1

    print(f"\n{'='*70}")
    print("BENCHMARK RESULTS")
    print(f"{'='*70}")
    print(f"  Runs:            {runs}")
    print(f"  Window lines:    {settings.window_lines}")
    print(f"  Min:             {min(times):.2f} ms")
    print(f"  Max:             {max(times):.2f} ms")
    print(f"  Average:         {statistics.mean(times):.2f} ms")
    print(f"  Median:          {statistics.median(times):.2f} ms")
    if len(times) > 1:
        print(f"  Std Dev:         {statistics.stdev(times):.2f} ms")
    print(f"{'='*70}\n")
    return 0


def _format_epoch(ms: float) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


def report(session: ExplorerSession, args) -> int:
    """Print a summary of the loaded data and run the requested actions."""
    store = session.store
    print(f"Columns ({len(session.columns)}): {', '.join(session.columns)}")
    print(f"Rows: {store.row_count} in {store.chunk_count} chunks")
    if store.time_range.is_empty:
        print("Time range: (no parseable timestamps)")
    else:
        print(f"Time range: {_format_epoch(store.time_range.start)} -> {_format_epoch(store.time_range.end)}")
    print(session.timing_report)

    if args.channels:
        session.deselect_all_channels()
        for channel in args.channels.split(","):
            session.toggle_channel(channel.strip())
    print(f"Selected channels: {', '.join(session.selected_channels) or '(none)'}")

    if args.delta:
        start, end = (session.normalizer.normalize(value) for value in args.delta)
        if math.isnan(start) or math.isnan(end):
            print(f"Could not parse delta timestamps: {args.delta[0]!r}, {args.delta[1]!r}")
            return 1
        session.index.ensure_indexed(session.selected_channels)
        channel = session.selected_channels[0] if session.selected_channels else ""
        session.delta.select_point(SelectedPoint(channel, start, None))
        result = session.delta.select_point(SelectedPoint(channel, end, None))
        print(result.describe())

    if args.export:
        result = session.export(args.export)
        if result is None:
            print("Nothing to export (no selected channels or no rows)")
        else:
            suffix = " (truncated)" if result.truncated else ""
            print(f"Exported {result.rows_written} rows to {args.export}{suffix}")
    return 0


def main():
    """Application entry point"""
    parser = argparse.ArgumentParser(
        description=f"{APP_NAME} - Time-Series CSV Explorer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py data.csv                                  # Load and summarize
  python main.py data.csv --channels V1,V2 --export out.csv
  python main.py data.csv --delta "05-01-2024 10:00:00:000" "05-01-2024 10:00:05:250"
  python main.py data.csv --benchmark_load 10              # Benchmark ingestion 10 times
        """
    )
    parser.add_argument('file', help='Path or http(s) URL of the CSV file to load')
    parser.add_argument('--channels', help='Comma-separated channels to select (default: first two)')
    parser.add_argument('--export', metavar='OUT', help='Export the selected channels to OUT')
    parser.add_argument('--delta', nargs=2, metavar=('T1', 'T2'),
                        help='Measure deltas between two timestamps on the selected channels')
    parser.add_argument('--window_lines', type=int, help='Lines per ingestion window')
    parser.add_argument('--strategy', choices=NEAREST_STRATEGIES, help='Nearest-point scan strategy')
    parser.add_argument('--benchmark_load', type=int, metavar='RUNS',
                        help='Benchmark mode: ingest the file N times and report statistics')
    parser.add_argument('--log_level', default='INFO', help='Logging level (default: INFO)')

    args = parser.parse_args()
    setup_logging(args.log_level)

    try:
        env_settings = ExplorerSettings.from_env()
        settings = ExplorerSettings(
            window_lines=args.window_lines or env_settings.window_lines,
            nearest_strategy=args.strategy or env_settings.nearest_strategy,
            debounce_ms=env_settings.debounce_ms,
        )
    except ExplorerError as e:
        print(f"Error: {e}")
        sys.exit(2)

    if args.benchmark_load:
        sys.exit(benchmark_load(args.file, args.benchmark_load, settings))

    app = QCoreApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    session = ExplorerSession(settings)
    exit_code = {"value": 0}

    def on_completed(_result):
        try:
            exit_code["value"] = report(session, args)
        except ExplorerError as e:
            print(f"Error: {e}")
            exit_code["value"] = 1
        app.quit()

    def on_failed(message):
        print(f"Failed to load file: {message}")
        exit_code["value"] = 1
        app.quit()

    session.progress_changed.connect(lambda value: logger.debug("Progress %d%%", value))
    session.load_completed.connect(on_completed)
    session.load_failed.connect(on_failed)
    session.load(args.file)

    app.exec()
    sys.exit(exit_code["value"])


if __name__ == "__main__":
    main()
