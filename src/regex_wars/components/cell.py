from dataclasses import dataclass


@dataclass(slots=True)
class Cell:
    """Occupant of one grid slot.

    The owning esper entity id is the cell's identity; it survives falls because
    cascades reassign the entity between slots instead of copying the glyph.
    """
    character: str
    is_falling: bool = True
    is_matched: bool = False


@dataclass(frozen=True, slots=True)
class CellView:
    """Read-only copy of a Cell handed to matchers and renderers."""
    character: str
    identity: int
    is_falling: bool
    is_matched: bool
