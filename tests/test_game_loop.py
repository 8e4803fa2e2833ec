import logging

from regex_wars.events.bus import (
    EVENT_GAME_OVER,
    EVENT_GRID_UPDATED,
    EVENT_LINES_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_PATTERN_CHANGED,
    EVENT_PATTERN_EXECUTED,
)
from tests.helpers import FakeClock, ScriptedRandom, build_engine, place


def record(engine, name):
    seen = []
    engine.subscribe(name, lambda sender, **payload: seen.append(payload))
    return seen


def started(clock=None, rng=None, **overrides):
    engine = build_engine(clock=clock or FakeClock(), rng=rng, **overrides)
    assert engine.start_game()
    return engine


def test_start_runs_loop_and_marks_session_playing():
    engine = started()
    assert engine.loop.is_running
    assert engine.progress_snapshot().is_playing
    assert not engine.start_game()


def test_no_spawn_before_spawn_interval():
    clock = FakeClock()
    engine = started(clock)
    clock.advance(1999)
    engine.tick()
    assert engine.grid.cell_count() == 0


def test_spawn_wave_uses_distinct_random_columns():
    clock = FakeClock()
    rng = ScriptedRandom(counts=[2], columns=[[0, 3]])
    engine = started(clock, rng, initial_fall_interval=10_000)
    updates = record(engine, EVENT_GRID_UPDATED)

    clock.advance(2000)
    engine.tick()

    assert engine.grid.get_cell(0, 0) is not None
    assert engine.grid.get_cell(0, 3) is not None
    assert engine.grid.cell_count() == 2
    assert len(updates) == 1


def test_spawn_wave_size_stays_within_bounds():
    clock = FakeClock()
    engine = started(clock, initial_fall_interval=100_000, grid_width=20, grid_height=40)
    previous = 0
    for _ in range(10):
        clock.advance(2000)
        engine.tick()
        count = engine.grid.cell_count()
        assert 1 <= count - previous <= 3
        previous = count
        engine.grid.cascade_down()


def test_full_column_spawn_is_skipped_and_logged(caplog):
    clock = FakeClock()
    rng = ScriptedRandom(counts=[1], columns=[[1]])
    engine = started(clock, rng, initial_fall_interval=10_000)
    engine.grid.add_character(1, "z")

    with caplog.at_level(logging.WARNING, logger="regex_wars.systems.game_loop"):
        clock.advance(2000)
        engine.tick()

    assert engine.grid.get_cell(0, 1).character == "z"
    assert engine.grid.cell_count() == 1
    assert "column 1 is full" in caplog.text
    assert engine.loop.is_running


def test_fall_interval_drives_cascade_and_grid_updates():
    clock = FakeClock()
    engine = started(clock)
    engine.grid.add_character(2, "a")
    updates = record(engine, EVENT_GRID_UPDATED)

    clock.advance(999)
    engine.tick()
    assert engine.grid.get_cell(0, 2) is not None
    assert updates == []

    clock.advance(1)
    engine.tick()
    assert engine.grid.get_cell(1, 2) is not None
    assert len(updates) == 1
    assert updates[0]["grid"][1][2].character == "a"


def test_matches_are_highlighted_and_published_each_tick():
    engine = started()
    place(engine.grid, ["xay"])
    found = record(engine, EVENT_MATCH_FOUND)

    assert engine.set_pattern("a")
    engine.tick()

    assert found[-1]["positions"] == [(4, 1)]
    assert len(found[-1]["matches"]) == 1
    assert engine.grid.get_cell(4, 1).is_matched
    assert engine.loop.current_matches == [(4, 1)]


def test_clearing_pattern_drops_highlights():
    engine = started()
    place(engine.grid, ["xay"])
    engine.set_pattern("a")
    engine.tick()
    found = record(engine, EVENT_MATCH_FOUND)

    engine.set_pattern("")
    engine.tick()
    engine.tick()

    assert found == [{"positions": [], "matches": []}]
    assert not engine.grid.get_cell(4, 1).is_matched
    assert engine.loop.current_matches == []


def test_overlapping_matches_count_each_cell_once():
    engine = started()
    place(engine.grid, ["aa"])
    engine.set_pattern("a")
    engine.tick()
    # The same cell is found by its row, column and diagonal scans.
    assert sorted(engine.loop.current_matches) == [(4, 0), (4, 1)]


def test_execute_pattern_removes_cells_and_scores():
    engine = started()
    place(engine.grid, ["bb", "aaaac"])
    executed = record(engine, EVENT_PATTERN_EXECUTED)

    engine.set_pattern("a+")
    engine.tick()
    assert engine.execute_pattern()

    state = engine.progress_snapshot()
    # Four cells removed with a two-character pattern: 40 + floor(4 / 2 * 10).
    assert state.score == 60
    assert state.current_pattern == ""
    assert engine.matcher.get_current_pattern() == ""
    assert engine.loop.current_matches == []
    assert [engine.grid.get_cell(4, col) for col in range(4)] == [None] * 4
    assert engine.grid.get_cell(4, 4).character == "c"
    assert executed == [{"match_count": 4, "score": 60, "pattern": "a+"}]


def test_execute_pattern_without_matches_is_noop():
    engine = started()
    place(engine.grid, ["xyz"])
    executed = record(engine, EVENT_PATTERN_EXECUTED)
    engine.set_pattern("q")
    engine.tick()
    assert not engine.execute_pattern()
    assert executed == []
    assert engine.grid.cell_count() == 3


def test_execute_pattern_requires_active_session():
    engine = started()
    place(engine.grid, ["a"])
    engine.set_pattern("a")
    engine.tick()
    engine.pause_game()
    assert not engine.execute_pattern()
    assert engine.grid.cell_count() == 1


def test_invalid_pattern_clears_active_pattern_and_reports_error():
    engine = started()
    place(engine.grid, ["a"])
    changes = record(engine, EVENT_PATTERN_CHANGED)

    engine.set_pattern("a")
    engine.tick()
    assert not engine.set_pattern("[")
    engine.tick()

    assert changes[0] == {"pattern": "a", "is_valid": True, "error": None}
    assert changes[1]["is_valid"] is False
    assert changes[1]["error"]
    assert engine.pattern_error
    assert engine.progress_snapshot().current_pattern == ""
    assert engine.loop.current_matches == []
    assert not engine.execute_pattern()
    assert engine.grid.cell_count() == 1


def test_oversized_quantifier_is_reported_through_pattern_changed():
    engine = started()
    place(engine.grid, ["a"])
    changes = record(engine, EVENT_PATTERN_CHANGED)

    engine.set_pattern("a")
    engine.tick()
    assert not engine.set_pattern("a{99999999999}")
    engine.tick()

    assert changes[-1]["pattern"] == "a{99999999999}"
    assert changes[-1]["is_valid"] is False
    assert changes[-1]["error"]
    assert engine.progress_snapshot().current_pattern == ""
    assert engine.matcher.get_current_pattern() == ""
    assert engine.loop.current_matches == []
    assert not engine.execute_pattern()


def test_completed_rows_are_cleared_after_execute():
    engine = started(grid_width=3, grid_height=3)
    place(engine.grid, ["a  ", "xyz"])
    cleared = record(engine, EVENT_LINES_CLEARED)

    engine.set_pattern("a")
    engine.tick()
    assert engine.execute_pattern()

    state = engine.progress_snapshot()
    assert cleared == [{"rows": [2], "count": 1}]
    assert state.lines_cleared == 1
    assert state.score == 10 + 100
    assert engine.grid.cell_count() == 0


def test_game_over_when_spawn_lands_in_top_row():
    clock = FakeClock()
    rng = ScriptedRandom(counts=[1], columns=[[0]])
    engine = started(clock, rng, grid_width=1, grid_height=2)
    place(engine.grid, ["q"])
    over = record(engine, EVENT_GAME_OVER)

    clock.advance(2000)
    engine.tick()

    assert over == [{"score": 0, "level": 1, "lines_cleared": 0}]
    state = engine.progress_snapshot()
    assert state.is_game_over and not state.is_playing
    assert not engine.loop.is_running

    cells = engine.grid.cell_count()
    clock.advance(10_000)
    engine.tick()
    assert engine.grid.cell_count() == cells
    assert len(over) == 1


def test_paused_session_does_not_advance():
    clock = FakeClock()
    engine = started(clock)
    engine.grid.add_character(0, "a")
    assert engine.pause_game()

    clock.advance(5000)
    engine.tick()
    assert engine.grid.get_cell(0, 0) is not None
    assert engine.grid.cell_count() == 1

    assert engine.resume_game()
    engine.tick()
    # Timers restart on resume, so nothing moves until a full interval passes.
    assert engine.grid.get_cell(0, 0) is not None
    clock.advance(1000)
    engine.tick()
    assert engine.grid.get_cell(0, 0) is None


def test_elapsed_time_excludes_pause():
    clock = FakeClock()
    engine = started(clock, initial_fall_interval=100_000, spawn_interval=100_000)
    clock.advance(400)
    engine.tick()
    engine.pause_game()
    clock.advance(3000)
    engine.tick()
    engine.resume_game()
    clock.advance(100)
    engine.tick()
    assert engine.progress_snapshot().time_elapsed == 500


def test_failing_subscriber_does_not_stop_loop():
    clock = FakeClock()
    engine = started(clock, spawn_interval=100_000)
    engine.grid.add_character(0, "a")

    def broken(sender, **payload):
        raise RuntimeError("renderer crashed")

    engine.subscribe(EVENT_GRID_UPDATED, broken)
    for _ in range(3):
        clock.advance(1000)
        engine.tick()
    assert engine.loop.is_running
    assert engine.grid.get_cell(3, 0) is not None


def test_reset_clears_everything_and_stops():
    clock = FakeClock()
    engine = started(clock)
    place(engine.grid, ["abc"])
    engine.set_pattern("a")
    engine.tick()

    engine.reset_game()

    assert not engine.loop.is_running
    assert engine.grid.cell_count() == 0
    assert engine.loop.current_matches == []
    assert engine.matcher.get_current_pattern() == ""
    state = engine.progress_snapshot()
    assert not state.is_playing and state.score == 0
    clock.advance(5000)
    engine.tick()
    assert engine.grid.cell_count() == 0
    assert engine.start_game()
