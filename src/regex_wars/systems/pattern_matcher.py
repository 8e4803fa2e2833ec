from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional, Pattern, Sequence, Tuple

from regex_wars.components.match import Match, Position, ValidationResult
from regex_wars.constants import EMPTY_SLOT

ScanLine = List[Position]

# re.compile also overflows on huge repeat counts and recurses on deep nesting.
PATTERN_ERRORS = (re.error, OverflowError, RecursionError)


def iter_scan_lines(height: int, width: int) -> Iterator[ScanLine]:
    """Yield every scan line of a ``height x width`` grid in matching order.

    Rows left to right, columns top to bottom, then both diagonal directions.
    Each diagonal sweep starts once per row down the edge column and once per
    remaining column along the top row, so every cell lies on exactly one line
    per direction.
    """
    for row in range(height):
        yield [(row, col) for col in range(width)]
    for col in range(width):
        yield [(row, col) for row in range(height)]
    for start_row in range(height):
        yield _diagonal(height, width, start_row, 0, 1)
    for start_col in range(1, width):
        yield _diagonal(height, width, 0, start_col, 1)
    for start_row in range(height):
        yield _diagonal(height, width, start_row, width - 1, -1)
    for start_col in range(width - 2, -1, -1):
        yield _diagonal(height, width, 0, start_col, -1)


def _diagonal(height: int, width: int, row: int, col: int, col_step: int) -> ScanLine:
    line: ScanLine = []
    while 0 <= row < height and 0 <= col < width:
        line.append((row, col))
        row += 1
        col += col_step
    return line


class PatternMatcher:
    """Compiles the player's pattern and finds its matches on a grid snapshot.

    The matcher never touches the Grid itself; it reads any row-major matrix
    whose occupied slots expose a ``character`` attribute and whose empty
    slots are None.
    """

    def __init__(self):
        self._compiled: Optional[Pattern[str]] = None
        self._pattern_text: str = ""
        self._last_error: Optional[str] = None

    def set_pattern(self, pattern: str) -> bool:
        self._last_error = None
        self._compiled = None
        self._pattern_text = ""
        if not pattern:
            return True
        try:
            compiled = re.compile(pattern)
        except PATTERN_ERRORS as exc:
            self._last_error = str(exc) or "Invalid pattern"
            return False
        self._compiled = compiled
        self._pattern_text = pattern
        return True

    def validate_pattern(self, pattern: str) -> ValidationResult:
        if not pattern:
            return ValidationResult(is_valid=True)
        try:
            re.compile(pattern)
        except PATTERN_ERRORS as exc:
            return ValidationResult(is_valid=False, error=str(exc) or "Invalid pattern")
        return ValidationResult(is_valid=True)

    def get_last_error(self) -> str | None:
        return self._last_error

    def get_current_pattern(self) -> str:
        return self._pattern_text

    @property
    def has_pattern(self) -> bool:
        return self._compiled is not None

    def find_matches(self, snapshot: Sequence[Sequence[object]]) -> List[Match]:
        if self._compiled is None:
            return []
        height = len(snapshot)
        width = len(snapshot[0]) if height else 0
        if not width:
            return []
        found: List[Match] = []
        for line in iter_scan_lines(height, width):
            text = "".join(_glyph(snapshot[row][col]) for row, col in line)
            found.extend(self._search_line(line, text))
        return deduplicate_matches(found)

    def _search_line(self, line: ScanLine, text: str) -> Iterator[Match]:
        assert self._compiled is not None
        pos = 0
        while pos <= len(text):
            hit = self._compiled.search(text, pos)
            if hit is None:
                return
            start, end = hit.span()
            if start == end:
                pos = end + 1
                continue
            pos = end
            matched = hit.group(0)
            if EMPTY_SLOT in matched:
                continue
            yield Match(positions=tuple(line[start:end]), matched_text=matched, pattern=self._pattern_text)


def deduplicate_matches(matches: Sequence[Match]) -> List[Match]:
    """Keep the first match seen for each distinct set of positions."""
    seen: Dict[Tuple[Position, ...], Match] = {}
    for match in matches:
        seen.setdefault(match.key(), match)
    return list(seen.values())


def _glyph(cell: object) -> str:
    if cell is None:
        return EMPTY_SLOT
    return getattr(cell, "character", EMPTY_SLOT) or EMPTY_SLOT
