"""Entry point for the Regex Wars desktop prototype.

Sets up the game engine and an Arcade window that feeds it frame ticks and
keyboard input and draws whatever snapshots the engine publishes.
"""
import logging

import arcade
from arcade import Window, run, set_background_color, color

from regex_wars.constants import CELL_SIZE, COMMAND_LINE_HEIGHT, HUD_HEIGHT
from regex_wars.engine import GameEngine
from regex_wars.events.bus import EVENT_GRID_UPDATED, EVENT_PATTERN_CHANGED, EVENT_GAME_OVER

logger = logging.getLogger(__name__)

MATCH_COLOR = (255, 196, 0)
FALLING_COLOR = (120, 255, 120)
LANDED_COLOR = (40, 200, 80)
ERROR_COLOR = (255, 80, 80)


class RegexWarsWindow(Window):
    def __init__(self, engine: GameEngine | None = None):
        self.engine = engine or GameEngine()
        cfg = self.engine.config
        width = cfg.grid_width * CELL_SIZE
        height = cfg.grid_height * CELL_SIZE + HUD_HEIGHT + COMMAND_LINE_HEIGHT
        super().__init__(width, height, "Regex Wars")
        self.set_update_rate(1/60)
        self.pattern_text = ""
        self.pattern_error: str | None = None
        self.grid = self.engine.grid_snapshot()
        self.engine.subscribe(EVENT_GRID_UPDATED, self._on_grid_updated)
        self.engine.subscribe(EVENT_PATTERN_CHANGED, self._on_pattern_changed)
        self.engine.subscribe(EVENT_GAME_OVER, self._on_game_over)
        set_background_color(color.BLACK)

    def _on_grid_updated(self, sender, **payload):
        self.grid = payload.get("grid", self.grid)

    def _on_pattern_changed(self, sender, **payload):
        self.pattern_error = None if payload.get("is_valid") else payload.get("error")

    def _on_game_over(self, sender, **payload):
        logger.info("game over: score=%s level=%s", payload.get("score"), payload.get("level"))

    def on_update(self, delta_time: float):
        self.engine.tick(delta_time)

    def on_draw(self):
        self.clear()
        # Match highlights change every tick without a grid event, so read a fresh copy.
        self.grid = self.engine.grid_snapshot()
        rows = len(self.grid)
        for row, cells in enumerate(self.grid):
            for col, cell in enumerate(cells):
                if cell is None:
                    continue
                x = col * CELL_SIZE + CELL_SIZE / 2
                y = COMMAND_LINE_HEIGHT + (rows - row - 1) * CELL_SIZE + CELL_SIZE / 2
                if cell.is_matched:
                    glyph_color = MATCH_COLOR
                elif cell.is_falling:
                    glyph_color = FALLING_COLOR
                else:
                    glyph_color = LANDED_COLOR
                arcade.draw_text(cell.character, x, y, glyph_color, 14, anchor_x="center", anchor_y="center")
        self._draw_hud()
        self._draw_command_line()

    def _draw_hud(self):
        state = self.engine.progress_snapshot()
        seconds = state.time_elapsed // 1000
        line = (
            f"SCORE {state.score}   LEVEL {state.current_level}   "
            f"LINES {state.lines_cleared}   TIME {seconds // 60:02d}:{seconds % 60:02d}"
        )
        top = self.height - HUD_HEIGHT / 2
        arcade.draw_text(line, 8, top, color.WHITE, 12, anchor_y="center")
        if state.is_game_over:
            banner = "GAME OVER - press R to restart"
        elif state.is_paused:
            banner = "PAUSED - Esc to resume"
        elif not state.is_playing:
            banner = "Press Enter to start"
        else:
            return
        arcade.draw_text(banner, self.width / 2, self.height / 2, MATCH_COLOR, 16, anchor_x="center")

    def _draw_command_line(self):
        arcade.draw_lrbt_rectangle_filled(0, self.width, 0, COMMAND_LINE_HEIGHT, (20, 20, 20))
        prompt = f"> {self.pattern_text}"
        arcade.draw_text(prompt, 8, COMMAND_LINE_HEIGHT / 2, color.WHITE, 12, anchor_y="center")
        if self.pattern_error:
            arcade.draw_text(self.pattern_error, self.width - 8, COMMAND_LINE_HEIGHT / 2, ERROR_COLOR, 10,
                             anchor_x="right", anchor_y="center")

    def on_text(self, text: str):
        state = self.engine.progress_snapshot()
        if not state.is_playing or state.is_paused:
            return
        printable = "".join(ch for ch in text if ch.isprintable())
        if not printable:
            return
        self.pattern_text += printable
        self.engine.set_pattern(self.pattern_text)

    def on_key_press(self, symbol: int, modifiers: int):
        state = self.engine.progress_snapshot()
        if symbol == arcade.key.ESCAPE:
            self.engine.toggle_pause()
        elif symbol in (arcade.key.ENTER, arcade.key.RETURN):
            if not state.is_playing and not state.is_game_over:
                self.engine.start_game()
            elif self.engine.execute_pattern():
                self.pattern_text = ""
        elif symbol == arcade.key.BACKSPACE and state.is_playing and not state.is_paused:
            self.pattern_text = self.pattern_text[:-1]
            self.engine.set_pattern(self.pattern_text)
        elif symbol == arcade.key.R and state.is_game_over:
            self.pattern_text = ""
            self.pattern_error = None
            self.engine.reset_game()


def main():
    logging.basicConfig(level=logging.INFO)
    RegexWarsWindow()
    run()

if __name__ == "__main__":
    main()
