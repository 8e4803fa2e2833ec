import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, Tuple

from blinker import Signal

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class EventBus:
    """Session-scoped event channel built on blinker Signal objects.

    Emission is queued: an event emitted from inside a handler is delivered only
    after the event currently being dispatched has reached every subscriber, so
    subscribers always observe events in emission order. A handler that raises is
    logged and skipped; delivery to the remaining handlers continues.
    """

    def __init__(self):
        self._signals: Dict[str, Signal] = {}
        self._queue: Deque[Tuple[str, Dict[str, Any]]] = deque()
        self._draining = False

    def subscribe(self, name: str, fn: Handler) -> Callable[[], None]:
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of systems alive even when nothing else references them.
        sig.connect(fn, weak=False)
        return lambda: self.unsubscribe(name, fn)

    def unsubscribe(self, name: str, fn: Handler) -> None:
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        self._queue.append((name, payload))
        if self._draining:
            return
        self._drain()

    def emit_batch(self, events):
        """Queue several ``(name, payload)`` pairs and deliver them in order."""
        for name, payload in events:
            self.emit(name, **(payload or {}))

    def _drain(self) -> None:
        self._draining = True
        try:
            while self._queue:
                name, payload = self._queue.popleft()
                sig = self._signals.get(name)
                if not sig:
                    continue
                # receivers keeps subscription order and holds strong refs only (weak=False).
                for receiver in list(sig.receivers.values()):
                    try:
                        receiver(self, **payload)
                    except Exception:
                        logger.exception("Error in event handler for %s", name)
        finally:
            self._draining = False

    def clear(self) -> None:
        """Drop every subscription and any queued events."""
        self._signals.clear()
        self._queue.clear()

    def listener_counts(self) -> Dict[str, int]:
        return {name: len(sig.receivers) for name, sig in self._signals.items()}


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                              # payload: dt=float (seconds since previous frame)


# ============================================================================
# GRID & MATCHING
# ============================================================================
EVENT_GRID_UPDATED = "grid_updated"              # payload: grid=Snapshot
EVENT_MATCH_FOUND = "match_found"                # payload: positions=[(r,c),...], matches=[Match,...]
EVENT_PATTERN_CHANGED = "pattern_changed"        # payload: pattern=str, is_valid=bool, error=str|None
EVENT_PATTERN_EXECUTED = "pattern_executed"      # payload: match_count=int, score=int, pattern=str
EVENT_LINES_CLEARED = "lines_cleared"            # payload: rows=[int,...], count=int


# ============================================================================
# PROGRESS & GAME FLOW
# ============================================================================
EVENT_PROGRESS_CHANGED = "progress_changed"      # payload: state=ProgressSnapshot
EVENT_PROGRESS_ENDED = "progress_ended"          # payload: state=ProgressSnapshot
EVENT_SCORE_UPDATED = "score_updated"            # payload: score=int, delta=int
EVENT_LEVEL_UP = "level_up"                      # payload: previous_level=int, new_level=int, fall_interval=int
EVENT_GAME_OVER = "game_over"                    # payload: score=int, level=int, lines_cleared=int
