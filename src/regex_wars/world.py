import random

from esper import World

from regex_wars.components.board import Board
from regex_wars.components.progress_state import ProgressState
from regex_wars.config import GameConfig


def create_world(config: GameConfig | None = None, *, rng: random.Random | None = None) -> World:
    """Create the entity store for one session.

    Registers the Board dimensions and the ProgressState singleton; cells are
    added later by the Grid as characters spawn.
    """
    config = config or GameConfig()
    world = World()
    setattr(world, "random", rng or random.Random())
    setattr(world, "config", config)

    world.create_entity(Board(rows=config.grid_height, cols=config.grid_width))
    world.create_entity(ProgressState(fall_interval=config.initial_fall_interval))
    return world


def get_board(world: World) -> Board:
    for _, board in world.get_component(Board):
        return board
    raise RuntimeError("Board component not found")


def get_progress_state(world: World) -> ProgressState:
    for _, state in world.get_component(ProgressState):
        return state
    raise RuntimeError("ProgressState component not found")
