"""Runtime settings for SeriesScope"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    DATASET_CHANGED_DEBOUNCE_MS,
    DEFAULT_NEAREST_STRATEGY,
    ENV_DEBOUNCE_MS,
    ENV_NEAREST_STRATEGY,
    ENV_WINDOW_LINES,
    EXPORT_ROW_CAP,
    INGEST_WINDOW_LINES,
    NEAREST_STRATEGIES,
)
from .exceptions import InvalidSettings


@dataclass(frozen=True, slots=True)
class ExplorerSettings:
    """Recognized options: window size, scan strategy, debounce, export cap."""

    window_lines: int = INGEST_WINDOW_LINES
    nearest_strategy: str = DEFAULT_NEAREST_STRATEGY
    debounce_ms: int = DATASET_CHANGED_DEBOUNCE_MS
    export_row_cap: int = EXPORT_ROW_CAP

    def __post_init__(self) -> None:
        if not isinstance(self.window_lines, int) or isinstance(self.window_lines, bool):
            raise InvalidSettings("window_lines must be an integer.")
        if self.window_lines < 1:
            raise InvalidSettings(f"window_lines must be >= 1, got {self.window_lines}")

        if self.nearest_strategy not in NEAREST_STRATEGIES:
            raise InvalidSettings(
                f"nearest_strategy must be one of {', '.join(NEAREST_STRATEGIES)}, "
                f"got {self.nearest_strategy!r}"
            )

        if not isinstance(self.debounce_ms, int) or self.debounce_ms < 0:
            raise InvalidSettings("debounce_ms must be a non-negative integer.")

        if not isinstance(self.export_row_cap, int) or self.export_row_cap < 0:
            raise InvalidSettings("export_row_cap must be a non-negative integer.")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ExplorerSettings":
        """
        Build settings from environment overrides.

        The export cap is not read from the environment.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ExplorerSettings with any overrides applied
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        if env.get(ENV_WINDOW_LINES):
            kwargs["window_lines"] = _parse_int(ENV_WINDOW_LINES, env[ENV_WINDOW_LINES])
        if env.get(ENV_NEAREST_STRATEGY):
            kwargs["nearest_strategy"] = env[ENV_NEAREST_STRATEGY].strip().lower()
        if env.get(ENV_DEBOUNCE_MS):
            kwargs["debounce_ms"] = _parse_int(ENV_DEBOUNCE_MS, env[ENV_DEBOUNCE_MS])

        return cls(**kwargs)


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as e:
        raise InvalidSettings(f"{name} must be an integer, got {raw!r}") from e
