from __future__ import annotations

from typing import Iterable, List, Optional

from esper import World

from regex_wars.components.cell import Cell, CellView
from regex_wars.components.match import Position
from regex_wars.constants import EMPTY_SLOT
from regex_wars.world import get_board


Snapshot = List[List[Optional[CellView]]]


class Grid:
    """Cell occupancy, gravity and bulk removal for the play field.

    Slots hold esper entity ids; the Cell component on each entity carries the
    glyph and the falling/matched flags. Row 0 is the top (spawn) row.
    Out-of-range coordinates never raise: lookups return None and mutations are
    ignored, because positions handed in may be stale by the time they arrive.
    """

    def __init__(self, world: World):
        self.world = world
        board = get_board(world)
        self.height = board.rows
        self.width = board.cols
        self._slots: List[List[Optional[int]]] = self._empty_slots()

    def _empty_slots(self) -> List[List[Optional[int]]]:
        return [[None] * self.width for _ in range(self.height)]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def add_character(self, column: int, character: str) -> bool:
        # Scan lines map one glyph to one slot.
        if len(character) != 1:
            raise ValueError(f"cell character must be a single glyph, got {character!r}")
        if not 0 <= column < self.width:
            return False
        if self._slots[0][column] is not None:
            return False
        self._slots[0][column] = self.world.create_entity(Cell(character=character))
        return True

    def cascade_down(self) -> bool:
        """Advance gravity by one step and report whether anything changed.

        Pass one walks from the bottom row upward: a falling cell moves into an
        empty slot below it, otherwise it lands (the floor counts as support).
        Pass two wakes landed cells whose support moved away during pass one.
        """
        changed = False
        # The sweep includes the bottom row, so floor cells land instead of
        # staying flagged as falling; a 1-row grid is over after one spawn.
        for row in range(self.height - 1, -1, -1):
            for col in range(self.width):
                entity = self._slots[row][col]
                if entity is None:
                    continue
                cell = self._cell(entity)
                if not cell.is_falling:
                    continue
                if row + 1 < self.height and self._slots[row + 1][col] is None:
                    self._slots[row + 1][col] = entity
                    self._slots[row][col] = None
                    changed = True
                else:
                    cell.is_falling = False
                    changed = True

        for row in range(self.height - 2, -1, -1):
            for col in range(self.width):
                entity = self._slots[row][col]
                if entity is None:
                    continue
                cell = self._cell(entity)
                if not cell.is_falling and self._slots[row + 1][col] is None:
                    cell.is_falling = True
                    changed = True
        return changed

    def remove_matches(self, positions: Iterable[Position]) -> int:
        """Clear every named slot; returns how many cells were actually removed."""
        removed = 0
        for row, col in positions:
            if not self.in_bounds(row, col):
                continue
            entity = self._slots[row][col]
            if entity is None:
                continue
            self._slots[row][col] = None
            self.world.delete_entity(entity, immediate=True)
            removed += 1
        return removed

    def is_game_over(self) -> bool:
        for entity in self._slots[0]:
            if entity is not None and not self._cell(entity).is_falling:
                return True
        return False

    def get_snapshot(self) -> Snapshot:
        return [[self._view(entity) for entity in row] for row in self._slots]

    def get_cell(self, row: int, col: int) -> CellView | None:
        if not self.in_bounds(row, col):
            return None
        return self._view(self._slots[row][col])

    def mark_matched(self, row: int, col: int) -> bool:
        if not self.in_bounds(row, col):
            return False
        entity = self._slots[row][col]
        if entity is None:
            return False
        self._cell(entity).is_matched = True
        return True

    def clear_matched_flags(self) -> None:
        for _, cell in self.world.get_component(Cell):
            cell.is_matched = False

    def clear(self) -> None:
        for row in self._slots:
            for entity in row:
                if entity is not None:
                    self.world.delete_entity(entity, immediate=True)
        self._slots = self._empty_slots()

    def completed_rows(self) -> List[int]:
        return [
            row for row in range(self.height)
            if all(entity is not None for entity in self._slots[row])
        ]

    def cell_count(self) -> int:
        return sum(1 for row in self._slots for entity in row if entity is not None)

    def row_string(self, row: int) -> str:
        if not 0 <= row < self.height:
            return ""
        return "".join(self._glyph(entity) for entity in self._slots[row])

    def column_string(self, col: int) -> str:
        if not 0 <= col < self.width:
            return ""
        return "".join(self._glyph(self._slots[row][col]) for row in range(self.height))

    def _cell(self, entity: int) -> Cell:
        return self.world.component_for_entity(entity, Cell)

    def _glyph(self, entity: int | None) -> str:
        if entity is None:
            return EMPTY_SLOT
        return self._cell(entity).character

    def _view(self, entity: int | None) -> CellView | None:
        if entity is None:
            return None
        cell = self._cell(entity)
        return CellView(
            character=cell.character,
            identity=entity,
            is_falling=cell.is_falling,
            is_matched=cell.is_matched,
        )
