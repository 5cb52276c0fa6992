"""Constants for SeriesScope"""


# Application
APP_NAME = "SeriesScope"

# Input / output format
TIMESTAMP_COLUMN = "TimeStamp"
EXPORT_DELIMITER = ","
EXPORT_FILENAME = "time_series_export.csv"
SOURCE_ENCODING = "utf-8"
READ_BLOCK_SIZE = 1024 * 1024  # Bytes per read while loading the source

# Ingestion settings
INGEST_WINDOW_LINES = 5000  # Number of body lines processed before yielding control
AUTO_SELECT_CHANNEL_COUNT = 2  # Channels selected after a load when nothing is selected

# Loader progress milestones (percent)
PROGRESS_READ_START = 0  # Progress % when starting to read the source
PROGRESS_READ_DONE = 50  # Progress % when the raw text is in memory
PROGRESS_PARSE_END = 100  # Progress % when the last ingestion window is done

# Nearest-point resolution
NEAREST_STRATEGY_LINEAR = "linear"
NEAREST_STRATEGY_INDEXED = "indexed"
NEAREST_STRATEGIES = (NEAREST_STRATEGY_LINEAR, NEAREST_STRATEGY_INDEXED)
DEFAULT_NEAREST_STRATEGY = NEAREST_STRATEGY_INDEXED

# Session
DATASET_CHANGED_DEBOUNCE_MS = 300  # Coalescing window for "dataset changed" bursts
SECOND_POINT_PROMPT = "Select second point"

# Export safety bound (not user facing)
EXPORT_ROW_CAP = 1_000_000

# Environment overrides read by ExplorerSettings.from_env()
ENV_WINDOW_LINES = "SERIESSCOPE_WINDOW_LINES"
ENV_NEAREST_STRATEGY = "SERIESSCOPE_NEAREST_STRATEGY"
ENV_DEBOUNCE_MS = "SERIESSCOPE_DEBOUNCE_MS"
