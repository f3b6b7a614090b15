"""
Shared fixtures: small boards, a fixed-value die and a helper to drop units onto cells.
"""

import pytest

from gridgetters.engine.definitions import BLUE, GREEN, City, GameConfig
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.state import GameState, Unit, UNIT_IDS
from gridgetters.engine.utils import initialize_game_state

BLUE_CITY = Coordinate(0, 0)
GREEN_CITY = Coordinate(3, 3)


class FixedDie:
    """Stands in for random.Random: randint returns the queued values in order, repeating the last."""

    def __init__(self, *values: int):
        self.values = list(values) or [1]
        self.calls = 0

    def randint(self, a: int, b: int) -> int:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        assert a <= value <= b
        return value


def add_unit(state: GameState, coord: Coordinate, player: str, **stats) -> Unit:
    """Create a unit from the state's template (overriding any stats) and put it on `coord`."""
    unit = Unit.from_template(state.next_id(UNIT_IDS), player, state.unit_template)
    for name, value in stats.items():
        setattr(unit, name, value)
    state.grid[coord].add_unit(unit)
    return unit


@pytest.fixture
def small_config() -> GameConfig:
    """5x4 all-plain board, BLUE city at (0,0), GREEN city at (3,3), BLUE starts."""
    return GameConfig(
        width=5,
        height=4,
        cities={BLUE_CITY: City("Miele", BLUE), GREEN_CITY: City("Putz", GREEN)},
        reinforcements_per_turn=2,
        starting_player=BLUE,
    )


@pytest.fixture
def small_state(small_config) -> GameState:
    return initialize_game_state(small_config)
