from dataclasses import dataclass
from typing import Tuple

Position = Tuple[int, int]


@dataclass(frozen=True, slots=True)
class Match:
    """Positions along one scan line that satisfied the active pattern."""
    positions: Tuple[Position, ...]
    matched_text: str
    pattern: str

    def key(self) -> Tuple[Position, ...]:
        return tuple(sorted(self.positions))


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None
