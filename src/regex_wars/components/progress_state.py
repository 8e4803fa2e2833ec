"""Progress resource describing the current play session."""
from dataclasses import dataclass
from enum import Enum, auto


class SessionPhase(Enum):
    """Lifecycle of a session: Idle -> Playing <-> Paused -> GameOver."""
    IDLE = auto()
    PLAYING = auto()
    PAUSED = auto()
    GAME_OVER = auto()


@dataclass(slots=True)
class ProgressState:
    """Singleton component holding score, level and play flags.

    Only ProgressSystem mutates it; everyone else reads ProgressSnapshot copies.
    """
    fall_interval: int
    is_playing: bool = False
    is_paused: bool = False
    is_game_over: bool = False
    current_level: int = 1
    score: int = 0
    lines_cleared: int = 0
    current_pattern: str = ""
    time_elapsed: int = 0
    # Clock readings in ms; start is shifted forward by every pause.
    start_time: float = 0.0
    paused_at: float = 0.0

    @property
    def phase(self) -> SessionPhase:
        if self.is_game_over:
            return SessionPhase.GAME_OVER
        if self.is_paused:
            return SessionPhase.PAUSED
        if self.is_playing:
            return SessionPhase.PLAYING
        return SessionPhase.IDLE


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    is_playing: bool
    is_paused: bool
    is_game_over: bool
    current_level: int
    score: int
    lines_cleared: int
    current_pattern: str
    fall_interval: int
    time_elapsed: int
    phase: SessionPhase

    @classmethod
    def of(cls, state: ProgressState) -> "ProgressSnapshot":
        return cls(
            is_playing=state.is_playing,
            is_paused=state.is_paused,
            is_game_over=state.is_game_over,
            current_level=state.current_level,
            score=state.score,
            lines_cleared=state.lines_cleared,
            current_pattern=state.current_pattern,
            fall_interval=state.fall_interval,
            time_elapsed=state.time_elapsed,
            phase=state.phase,
        )
