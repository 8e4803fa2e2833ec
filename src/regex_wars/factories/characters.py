from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Dict, List

from regex_wars.constants import (
    CHARACTER_TIERS,
    COMMON_CONSONANTS,
    DIGITS,
    FALLBACK_CHARACTERS,
    SYMBOLS,
    UPPERCASE,
    VOWELS,
    WEIGHT_POOL_SCALE,
)

BASE_WEIGHTS: Dict[str, float] = {}
BASE_WEIGHTS.update({ch: 3.0 for ch in VOWELS})
BASE_WEIGHTS.update({ch: 2.0 for ch in COMMON_CONSONANTS})
BASE_WEIGHTS.update({ch: 0.5 for ch in DIGITS})
BASE_WEIGHTS.update({ch: 0.2 for ch in SYMBOLS})
DEFAULT_WEIGHT = 1.0


@dataclass(frozen=True, slots=True)
class CharacterPreview:
    characters: List[str]
    distribution: Dict[str, float]   # probability per character, sums to 1


def weights_for_level(level: int) -> Dict[str, float]:
    """Per-character weights after the level adjustments are applied.

    Past level 10 digits stop being rare, past 15 uppercase letters gain half
    again their weight, past 20 symbols become merely uncommon.
    """
    weights = dict(BASE_WEIGHTS)
    if level > 10:
        weights.update({ch: 1.0 for ch in DIGITS})
    if level > 15:
        for ch in UPPERCASE:
            weights[ch] = weights.get(ch, DEFAULT_WEIGHT) * 1.5
    if level > 20:
        weights.update({ch: 0.5 for ch in SYMBOLS})
    return weights


def get_character_set(level: int) -> List[str]:
    chosen = ""
    for min_level in sorted(CHARACTER_TIERS):
        if level >= min_level:
            chosen = CHARACTER_TIERS[min_level]
    return list(chosen or FALLBACK_CHARACTERS)


class CharacterGenerator:
    """Draws spawn characters from a level-dependent weighted pool."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self._pools: Dict[int, List[str]] = {}

    def generate_character(self, level: int) -> str:
        return self.rng.choice(self._pool(level))

    def generate_multiple(self, level: int, count: int) -> List[str]:
        return [self.generate_character(level) for _ in range(max(0, count))]

    def get_character_set(self, level: int) -> List[str]:
        return get_character_set(level)

    def get_character_preview(self, level: int) -> CharacterPreview:
        counts = self._counts(level)
        total = sum(counts.values())
        return CharacterPreview(
            characters=list(counts),
            distribution={ch: count / total for ch, count in counts.items()},
        )

    def _counts(self, level: int) -> Dict[str, int]:
        weights = weights_for_level(level)
        return {
            ch: math.ceil(weights.get(ch, DEFAULT_WEIGHT) * WEIGHT_POOL_SCALE)
            for ch in get_character_set(level)
        }

    def _pool(self, level: int) -> List[str]:
        pool = self._pools.get(level)
        if pool is None:
            pool = [ch for ch, count in self._counts(level).items() for _ in range(count)]
            self._pools[level] = pool
        return pool
