"""Session facade used by input and rendering collaborators."""
from __future__ import annotations

import random
from typing import Any, Callable

from regex_wars.components.progress_state import ProgressSnapshot
from regex_wars.config import GameConfig
from regex_wars.events.bus import EVENT_TICK, EventBus
from regex_wars.factories.characters import CharacterGenerator
from regex_wars.systems.game_loop import GameLoop
from regex_wars.systems.grid import Grid, Snapshot
from regex_wars.systems.pattern_matcher import PatternMatcher
from regex_wars.systems.progress import ProgressSystem
from regex_wars.utils.clock import Clock, monotonic_ms
from regex_wars.world import create_world


class GameEngine:
    """Owns one play session: its event bus, entity store and systems.

    Collaborators drive the session through ``start_game`` / ``pause_game`` /
    ``resume_game`` / ``reset_game``, ``set_pattern`` on every keystroke and
    ``execute_pattern`` on submit, and call ``tick`` once per frame. They read
    state through the snapshot accessors or by subscribing to the bus.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        *,
        rng: random.Random | None = None,
        clock: Clock | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rng = rng or random.Random()
        self.clock = clock or monotonic_ms
        self.event_bus = event_bus or EventBus()
        self.world = create_world(self.config, rng=self.rng)

        self.grid = Grid(self.world)
        self.matcher = PatternMatcher()
        self.generator = CharacterGenerator(rng=self.rng)
        self.progress = ProgressSystem(self.world, self.event_bus, clock=self.clock)
        self.loop = GameLoop(
            self.world,
            self.event_bus,
            self.grid,
            self.matcher,
            self.generator,
            self.progress,
            clock=self.clock,
            rng=self.rng,
        )

    def subscribe(self, name: str, fn: Callable[..., Any]) -> Callable[[], None]:
        return self.event_bus.subscribe(name, fn)

    def tick(self, dt: float = 0.0) -> None:
        self.event_bus.emit(EVENT_TICK, dt=dt)

    def start_game(self) -> bool:
        return self.loop.start()

    def pause_game(self) -> bool:
        return self.loop.pause()

    def resume_game(self) -> bool:
        return self.loop.resume()

    def toggle_pause(self) -> bool:
        state = self.progress.state
        if state.is_paused:
            return self.resume_game()
        return self.pause_game()

    def reset_game(self) -> None:
        self.loop.reset()

    def set_pattern(self, pattern: str) -> bool:
        return self.loop.set_pattern(pattern)

    def execute_pattern(self) -> bool:
        return self.loop.execute_pattern()

    def validate_pattern(self, pattern: str):
        return self.matcher.validate_pattern(pattern)

    def grid_snapshot(self) -> Snapshot:
        return self.grid.get_snapshot()

    def progress_snapshot(self) -> ProgressSnapshot:
        return self.progress.get_state()

    @property
    def pattern_error(self) -> str | None:
        return self.matcher.get_last_error()

    def close(self) -> None:
        """Stop the loop and drop every subscription; the session is unusable afterwards."""
        self.loop.stop()
        self.event_bus.clear()
        self.world.clear_database()
