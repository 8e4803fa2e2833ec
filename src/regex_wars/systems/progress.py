"""Authoritative score, level and play/pause/game-over state for a session."""
from __future__ import annotations

import logging
import math

from esper import World

from regex_wars.components.progress_state import ProgressSnapshot, ProgressState
from regex_wars.config import GameConfig
from regex_wars.constants import EFFICIENCY_BONUS_FACTOR
from regex_wars.events.bus import (
    EVENT_LEVEL_UP,
    EVENT_PROGRESS_CHANGED,
    EVENT_PROGRESS_ENDED,
    EVENT_SCORE_UPDATED,
    EventBus,
)
from regex_wars.utils.clock import Clock, monotonic_ms
from regex_wars.world import get_progress_state

logger = logging.getLogger(__name__)


class ProgressSystem:
    """State machine Idle -> Playing <-> Paused -> GameOver plus scoring rules.

    Operations that do not apply in the current phase (pausing while idle,
    scoring after game over, ...) are ignored and return False where a result
    is meaningful. Every accepted change publishes ``EVENT_PROGRESS_CHANGED``
    with a fresh snapshot; entering GameOver additionally publishes
    ``EVENT_PROGRESS_ENDED``.
    """

    def __init__(self, world: World, event_bus: EventBus, *, clock: Clock | None = None):
        self.world = world
        self.event_bus = event_bus
        self.config: GameConfig = getattr(world, "config", None) or GameConfig()
        self._clock = clock or monotonic_ms

    @property
    def state(self) -> ProgressState:
        return get_progress_state(self.world)

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------

    def start(self) -> bool:
        state = self.state
        if state.is_playing or state.is_game_over:
            return False
        self._restore_initial(state)
        state.is_playing = True
        state.start_time = self._clock()
        logger.debug("session started")
        self._notify()
        return True

    def pause(self) -> bool:
        state = self.state
        if not state.is_playing or state.is_paused:
            return False
        state.is_paused = True
        state.paused_at = self._clock()
        self._notify()
        return True

    def resume(self) -> bool:
        state = self.state
        if not state.is_playing or not state.is_paused:
            return False
        state.is_paused = False
        state.start_time += self._clock() - state.paused_at
        self._notify()
        return True

    def end_game(self) -> bool:
        state = self.state
        if state.is_game_over:
            return False
        state.is_playing = False
        state.is_paused = False
        state.is_game_over = True
        logger.debug("session ended with score %d at level %d", state.score, state.current_level)
        self._notify()
        self.event_bus.emit(EVENT_PROGRESS_ENDED, state=self.get_state())
        return True

    def reset(self) -> None:
        self._restore_initial(self.state)
        self._notify()

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def update_score(self, points: int) -> bool:
        state = self.state
        if state.is_game_over or points == 0:
            return False
        state.score = max(0, state.score + points)
        self.event_bus.emit(EVENT_SCORE_UPDATED, score=state.score, delta=points)
        self._notify()
        return True

    def add_lines_cleared(self, lines: int) -> bool:
        state = self.state
        if state.is_game_over or lines <= 0:
            return False
        state.lines_cleared += lines
        gained = lines * self.config.score_per_line
        state.score += gained
        self.event_bus.emit(EVENT_SCORE_UPDATED, score=state.score, delta=gained)

        new_level = min(
            self.config.max_level,
            state.lines_cleared // self.config.lines_per_level + 1,
        )
        if new_level > state.current_level:
            previous = state.current_level
            state.current_level = new_level
            state.fall_interval = self.config.fall_interval_for_level(new_level)
            logger.debug("level %d -> %d, fall interval %dms", previous, new_level, state.fall_interval)
            self.event_bus.emit(
                EVENT_LEVEL_UP,
                previous_level=previous,
                new_level=new_level,
                fall_interval=state.fall_interval,
            )
        self._notify()
        return True

    def calculate_match_score(self, matched_cells: int, pattern_length: int) -> int:
        """Base points per cell plus a bonus when a short pattern matched many cells."""
        base = matched_cells * self.config.score_per_match
        if pattern_length <= 0 or matched_cells <= pattern_length:
            return base
        return base + math.floor(matched_cells / pattern_length * EFFICIENCY_BONUS_FACTOR)

    # ------------------------------------------------------------------
    # Pattern & time
    # ------------------------------------------------------------------

    def update_pattern(self, pattern: str) -> None:
        state = self.state
        if state.current_pattern == pattern:
            return
        state.current_pattern = pattern
        self._notify()

    def update_time_elapsed(self) -> None:
        state = self.state
        if not state.is_playing or state.is_paused:
            return
        elapsed = int(self._clock() - state.start_time)
        if elapsed != state.time_elapsed:
            state.time_elapsed = elapsed
            self._notify()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_state(self) -> ProgressSnapshot:
        return ProgressSnapshot.of(self.state)

    def get_config(self) -> GameConfig:
        return self.config

    def is_active(self) -> bool:
        state = self.state
        return state.is_playing and not state.is_paused and not state.is_game_over

    def _restore_initial(self, state: ProgressState) -> None:
        state.is_playing = False
        state.is_paused = False
        state.is_game_over = False
        state.current_level = 1
        state.score = 0
        state.lines_cleared = 0
        state.current_pattern = ""
        state.fall_interval = self.config.initial_fall_interval
        state.time_elapsed = 0
        state.start_time = 0.0
        state.paused_at = 0.0

    def _notify(self) -> None:
        self.event_bus.emit(EVENT_PROGRESS_CHANGED, state=self.get_state())
