"""Immutable per-session game parameters."""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from regex_wars.constants import (
    FALL_INTERVAL_DECREMENT_MS,
    GRID_COLS,
    GRID_ROWS,
    INITIAL_FALL_INTERVAL_MS,
    LINES_PER_LEVEL,
    MAX_LEVEL,
    MAX_SPAWN_PER_WAVE,
    MIN_FALL_INTERVAL_MS,
    MIN_SPAWN_PER_WAVE,
    SCORE_PER_LINE,
    SCORE_PER_MATCH,
    SPAWN_INTERVAL_MS,
)


@dataclass(frozen=True, slots=True)
class GameConfig:
    """Session configuration supplied once at construction.

    Intervals are in milliseconds. ``fall_interval_decrement`` is subtracted
    from ``initial_fall_interval`` for every level above 1, never going below
    ``min_fall_interval``.
    """

    grid_width: int = GRID_COLS
    grid_height: int = GRID_ROWS
    initial_fall_interval: int = INITIAL_FALL_INTERVAL_MS
    fall_interval_decrement: int = FALL_INTERVAL_DECREMENT_MS
    min_fall_interval: int = MIN_FALL_INTERVAL_MS
    score_per_match: int = SCORE_PER_MATCH
    score_per_line: int = SCORE_PER_LINE
    max_level: int = MAX_LEVEL
    lines_per_level: int = LINES_PER_LEVEL
    spawn_interval: int = SPAWN_INTERVAL_MS
    min_spawn_per_wave: int = MIN_SPAWN_PER_WAVE
    max_spawn_per_wave: int = MAX_SPAWN_PER_WAVE

    def __post_init__(self) -> None:
        if self.grid_width < 1 or self.grid_height < 1:
            raise ValueError(
                f"grid dimensions must be positive, got {self.grid_width}x{self.grid_height}"
            )
        for name in ("initial_fall_interval", "min_fall_interval", "spawn_interval"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.fall_interval_decrement < 0:
            raise ValueError("fall_interval_decrement cannot be negative")
        if self.min_fall_interval > self.initial_fall_interval:
            raise ValueError("min_fall_interval cannot exceed initial_fall_interval")
        if self.max_level < 1 or self.lines_per_level < 1:
            raise ValueError("max_level and lines_per_level must be at least 1")
        if not 1 <= self.min_spawn_per_wave <= self.max_spawn_per_wave:
            raise ValueError("spawn wave bounds must satisfy 1 <= min <= max")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "GameConfig":
        """Build a config from defaults overridden by ``values``; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**dict(values))

    def with_overrides(self, **overrides: Any) -> "GameConfig":
        return replace(self, **overrides)

    def fall_interval_for_level(self, level: int) -> int:
        return max(
            self.min_fall_interval,
            self.initial_fall_interval - (level - 1) * self.fall_interval_decrement,
        )
