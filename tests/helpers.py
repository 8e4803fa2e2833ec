from __future__ import annotations

import random
from typing import Iterable, Sequence

from regex_wars.components.cell import Cell
from regex_wars.config import GameConfig
from regex_wars.engine import GameEngine
from regex_wars.systems.grid import Grid


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.value = start

    def advance(self, amount: float) -> None:
        self.value += amount

    def __call__(self) -> float:
        return self.value


class ScriptedRandom(random.Random):
    """Random source whose wave sizes and column picks are fixed in advance.

    Anything not scripted (character draws) falls through to a seeded Random.
    """

    def __init__(self, counts: Sequence[int] = (), columns: Sequence[Sequence[int]] = (), seed: int = 0):
        super().__init__(seed)
        self._counts = list(counts)
        self._columns = [list(cols) for cols in columns]

    def randint(self, a, b):
        if self._counts:
            return self._counts.pop(0)
        return super().randint(a, b)

    def sample(self, population, k, **kwargs):
        if self._columns:
            return self._columns.pop(0)[:k]
        return super().sample(population, k, **kwargs)


def build_engine(clock: FakeClock | None = None, rng: random.Random | None = None, **overrides) -> GameEngine:
    config = GameConfig(**{"grid_width": 5, "grid_height": 5, **overrides})
    return GameEngine(config, rng=rng or random.Random(1), clock=clock or FakeClock())


def place(grid: Grid, rows: Iterable[str], *, falling: bool = False) -> None:
    """Fill the bottom of ``grid`` with the given text rows; spaces stay empty.

    The last string lands on the bottom row. Cells are created landed unless
    ``falling`` is set.
    """
    rows = list(rows)
    offset = grid.height - len(rows)
    for index, text in enumerate(rows):
        for col, ch in enumerate(text):
            if ch == " ":
                continue
            entity = grid.world.create_entity(Cell(character=ch, is_falling=falling))
            grid._slots[offset + index][col] = entity
