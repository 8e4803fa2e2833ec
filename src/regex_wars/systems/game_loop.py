from __future__ import annotations

import logging
import random
from typing import Any, List

from esper import World

from regex_wars.components.match import Match, Position
from regex_wars.events.bus import (
    EVENT_GAME_OVER,
    EVENT_GRID_UPDATED,
    EVENT_LINES_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_PATTERN_CHANGED,
    EVENT_PATTERN_EXECUTED,
    EVENT_TICK,
    EventBus,
)
from regex_wars.factories.characters import CharacterGenerator
from regex_wars.systems.grid import Grid
from regex_wars.systems.pattern_matcher import PatternMatcher
from regex_wars.systems.progress import ProgressSystem
from regex_wars.utils.clock import Clock, monotonic_ms

logger = logging.getLogger(__name__)


class GameLoop:
    """Ties spawning, falling, matching and game-over detection to the tick.

    The loop is cooperative: it does work only when ``EVENT_TICK`` is emitted
    (by the window's frame callback or a test driver) and only while started.
    Intervals are measured against the injected clock on every tick, so a slow
    frame simply makes the next comparison succeed sooner.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        grid: Grid,
        matcher: PatternMatcher,
        generator: CharacterGenerator,
        progress: ProgressSystem,
        *,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.grid = grid
        self.matcher = matcher
        self.generator = generator
        self.progress = progress
        self.config = progress.get_config()
        self._clock = clock or monotonic_ms
        self._rng = rng or getattr(world, "random", None) or random.Random()
        self._running = False
        self._last_fall_time = 0.0
        self._last_spawn_time = 0.0
        self._match_results: List[Match] = []
        self._current_matches: List[Position] = []
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def current_matches(self) -> List[Position]:
        return list(self._current_matches)

    @property
    def match_results(self) -> List[Match]:
        return list(self._match_results)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def start(self) -> bool:
        if self._running:
            return False
        if not self.progress.start():
            return False
        self._rebase_timers()
        self._running = True
        self._update()
        return True

    def stop(self) -> None:
        self._running = False

    def pause(self) -> bool:
        return self.progress.pause()

    def resume(self) -> bool:
        if not self.progress.resume():
            return False
        self._rebase_timers()
        return True

    def on_tick(self, sender: Any, **payload: Any) -> None:
        if not self._running:
            return
        self._update()

    def _rebase_timers(self) -> None:
        now = self._clock()
        self._last_fall_time = now
        self._last_spawn_time = now

    def _update(self) -> None:
        if not self.progress.is_active():
            return
        now = self._clock()
        self.progress.update_time_elapsed()

        if now - self._last_spawn_time >= self.config.spawn_interval:
            self._spawn_characters()
            self._last_spawn_time = now

        if now - self._last_fall_time >= self.progress.state.fall_interval:
            if self.grid.cascade_down():
                self.event_bus.emit(EVENT_GRID_UPDATED, grid=self.grid.get_snapshot())
            self._last_fall_time = now

        self._process_matches()

        if self.grid.is_game_over():
            self.progress.end_game()
            state = self.progress.get_state()
            self.event_bus.emit(
                EVENT_GAME_OVER,
                score=state.score,
                level=state.current_level,
                lines_cleared=state.lines_cleared,
            )
            self.stop()

    # ------------------------------------------------------------------
    # Tick phases
    # ------------------------------------------------------------------

    def _spawn_characters(self) -> int:
        level = self.progress.state.current_level
        wanted = self._rng.randint(self.config.min_spawn_per_wave, self.config.max_spawn_per_wave)
        columns = self._rng.sample(range(self.grid.width), min(wanted, self.grid.width))
        spawned = 0
        for column in columns:
            character = self.generator.generate_character(level)
            if self.grid.add_character(column, character):
                spawned += 1
            else:
                logger.warning("column %d is full; skipped spawning %r", column, character)
        if spawned:
            self.event_bus.emit(EVENT_GRID_UPDATED, grid=self.grid.get_snapshot())
        return spawned

    def _process_matches(self) -> None:
        if not self.progress.state.current_pattern or not self.matcher.has_pattern:
            if self._current_matches:
                self._clear_matches()
                self.event_bus.emit(EVENT_MATCH_FOUND, positions=[], matches=[])
            return

        results = self.matcher.find_matches(self.grid.get_snapshot())
        self.grid.clear_matched_flags()
        positions: List[Position] = []
        seen: set[Position] = set()
        for result in results:
            for position in result.positions:
                if position in seen:
                    continue
                seen.add(position)
                positions.append(position)
                self.grid.mark_matched(*position)
        self._match_results = results
        self._current_matches = positions
        self.event_bus.emit(EVENT_MATCH_FOUND, positions=list(positions), matches=list(results))

    def _clear_matches(self) -> None:
        self._match_results = []
        self._current_matches = []
        self.grid.clear_matched_flags()

    def _clear_completed_lines(self) -> List[int]:
        rows = self.grid.completed_rows()
        if not rows:
            return rows
        self.grid.remove_matches((row, col) for row in rows for col in range(self.grid.width))
        self.progress.add_lines_cleared(len(rows))
        self.event_bus.emit(EVENT_LINES_CLEARED, rows=rows, count=len(rows))
        return rows

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def execute_pattern(self) -> bool:
        """Remove the currently matched cells and score them.

        Does nothing unless a match set exists and the session is actively playing.
        """
        if not self._current_matches or not self.progress.is_active():
            return False
        positions = list(self._current_matches)
        pattern = self.progress.state.current_pattern
        self.grid.remove_matches(positions)
        score = self.progress.calculate_match_score(len(positions), len(pattern))
        self.progress.update_score(score)
        self._clear_completed_lines()

        self._clear_matches()
        self.matcher.set_pattern("")
        self.progress.update_pattern("")
        self.event_bus.emit(
            EVENT_PATTERN_EXECUTED,
            match_count=len(positions),
            score=score,
            pattern=pattern,
        )
        self.event_bus.emit(EVENT_GRID_UPDATED, grid=self.grid.get_snapshot())
        return True

    def set_pattern(self, pattern: str) -> bool:
        if self.matcher.set_pattern(pattern):
            self.progress.update_pattern(pattern)
            self.event_bus.emit(EVENT_PATTERN_CHANGED, pattern=pattern, is_valid=True, error=None)
            return True
        # A rejected pattern leaves nothing active, not the previous pattern.
        self.progress.update_pattern("")
        self.event_bus.emit(
            EVENT_PATTERN_CHANGED,
            pattern=pattern,
            is_valid=False,
            error=self.matcher.get_last_error(),
        )
        return False

    def reset(self) -> None:
        self.stop()
        self.grid.clear()
        self.progress.reset()
        self._match_results = []
        self._current_matches = []
        self.matcher.set_pattern("")
        self.event_bus.emit(EVENT_GRID_UPDATED, grid=self.grid.get_snapshot())
