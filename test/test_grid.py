"""
Grid, Cell and Unit data model, plus setup loading.
"""

import pytest

from conftest import add_unit
from gridgetters.engine.definitions import (
    BLUE,
    FOREST,
    FORTIFICATION,
    GREEN,
    MOUNTAIN,
    PLAIN,
    City,
    GameConfig,
    config_from_dict,
    list_setups,
    load_setup,
)
from gridgetters.engine.errors import InvariantViolation
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.state import Attack, Cell, Defence, Grid, Unit
from gridgetters.engine.utils import get_unit_by_id


# ===== Setups =====

def test_default_setup_board_layout():
    config = load_setup("grid_getters")
    grid = Grid.from_config(config)
    assert len(grid) == 9 * 6
    assert config.starting_player == BLUE
    assert config.reinforcements_per_turn == 2
    for coord in [(4, 3), (5, 3), (4, 2), (5, 2), (3, 4)]:
        assert grid[Coordinate(*coord)].terrain is FOREST
    assert grid[Coordinate(1, 3)].terrain is MOUNTAIN
    assert grid[Coordinate(0, 1)].terrain is PLAIN
    assert grid[Coordinate(0, 0)].city == City("Miele", BLUE)
    assert grid[Coordinate(6, 5)].city == City("Putz", GREEN)


def test_load_setup_defaults_to_configured_setup():
    assert load_setup().width == 9


def test_skirmish_setup_has_fortifications():
    grid = Grid.from_config(load_setup("skirmish"))
    assert grid[Coordinate(0, 0)].fortification is FORTIFICATION["FORTRESS"]
    assert grid[Coordinate(3, 1)].fortification is FORTIFICATION["TRENCHES"]
    assert grid[Coordinate(1, 1)].fortification is FORTIFICATION["NONE"]


def test_list_setups():
    ids = {s["id"] for s in list_setups()}
    assert {"grid_getters", "skirmish"} <= ids


def test_unknown_setup():
    with pytest.raises(FileNotFoundError):
        load_setup("no_such_setup")


def test_invalid_configs_raise_value_error():
    with pytest.raises(ValueError):
        GameConfig(width=0).validate()
    with pytest.raises(ValueError):
        GameConfig(starting_player="RED").validate()
    with pytest.raises(ValueError):
        GameConfig(width=3, height=3, terrain={Coordinate(5, 0): FOREST}).validate()
    with pytest.raises(ValueError):
        GameConfig(cities={Coordinate(0, 0): City("Nowhere", "RED")}).validate()
    with pytest.raises(ValueError):
        config_from_dict({"terrain": [{"q": 0, "r": 0, "terrain": "SWAMP"}]})


# ===== Grid =====

def test_in_bounds_follows_generated_shape():
    grid = Grid.from_config(GameConfig(width=9, height=6))
    assert grid.in_bounds(Coordinate(0, 0))
    assert grid.in_bounds(Coordinate(-1, 2))
    assert not grid.in_bounds(Coordinate(-1, 0))
    assert not grid.in_bounds(Coordinate(8, 2))
    assert grid.get(Coordinate(8, 2)) is None


def test_find_unit(small_state):
    unit = add_unit(small_state, Coordinate(2, 1), BLUE)
    assert get_unit_by_id(small_state, unit.id) == (unit, Coordinate(2, 1))
    assert get_unit_by_id(small_state, 999) == (None, None)


# ===== Cell =====

def _unit(unit_id: int, player: str = BLUE) -> Unit:
    return Unit(id=unit_id, player=player, attack=1, defence=1, base_movement=4, base_attack_range=1)


def test_units_accessor_is_a_snapshot():
    cell = Cell(Coordinate(0, 0))
    cell.add_unit(_unit(1))
    snapshot = cell.units
    assert isinstance(snapshot, tuple)
    cell.add_unit(_unit(2))
    assert len(snapshot) == 1
    assert [u.id for u in cell.units] == [1, 2]


def test_remove_unit_by_id_is_idempotent():
    cell = Cell(Coordinate(0, 0))
    cell.add_unit(_unit(1))
    assert cell.remove_unit_by_id(1).id == 1
    assert cell.remove_unit_by_id(1) is None
    assert cell.is_empty()
    assert cell.player is None


def test_mixed_ownership_is_refused():
    cell = Cell(Coordinate(0, 0))
    cell.add_unit(_unit(1, BLUE))
    with pytest.raises(InvariantViolation):
        cell.add_unit(_unit(2, GREEN))
    assert cell.player == BLUE
    assert len(cell.units) == 1


def test_kill_occupants():
    cell = Cell(Coordinate(0, 0))
    cell.add_unit(_unit(1))
    cell.add_unit(_unit(2))
    assert [u.id for u in cell.kill_occupants()] == [1, 2]
    assert cell.units == ()


def test_cell_attack_is_modifiers_only():
    assert Cell(Coordinate(0, 0)).get_attack() == Attack(0, 0)
    mountain = Cell(Coordinate(0, 0), terrain=MOUNTAIN)
    mountain.add_unit(_unit(1))
    assert mountain.get_attack() == Attack(0, -1)


def test_cell_defence_sums_units_and_modifiers():
    cell = Cell(Coordinate(0, 0), terrain=FOREST, fortification=FORTIFICATION["TRENCHES"])
    cell.add_unit(_unit(1))
    strong = _unit(2)
    strong.defence = 3
    strong.defence_roll_modifier = 1
    cell.add_unit(strong)
    assert cell.get_defence() == Defence(4, 3)


def test_empty_cell_defence():
    assert Cell(Coordinate(0, 0), fortification=FORTIFICATION["FORTRESS"]).get_defence() == Defence(0, 2)


def test_can_place_reinforcement():
    own_city = Cell(Coordinate(0, 0), city=City("Miele", BLUE))
    enemy_city = Cell(Coordinate(1, 0), city=City("Putz", GREEN))
    no_city = Cell(Coordinate(2, 0))
    assert own_city.can_place_reinforcement(_unit(1, BLUE))
    assert not enemy_city.can_place_reinforcement(_unit(1, BLUE))
    assert not no_city.can_place_reinforcement(_unit(1, BLUE))

    own_city.add_unit(_unit(5, BLUE))
    assert own_city.can_place_reinforcement(_unit(1, BLUE))

    occupied = Cell(Coordinate(0, 0), city=City("Miele", BLUE))
    occupied.add_unit(_unit(6, GREEN))
    assert not occupied.can_place_reinforcement(_unit(1, BLUE))


# ===== Unit =====

def test_effective_movement_and_range_follow_turn_flags():
    unit = _unit(1)
    assert (unit.movement, unit.attack_range) == (4, 1)
    unit.has_moved_this_turn = True
    assert (unit.movement, unit.attack_range) == (0, 1)
    unit.has_attacked_this_turn = True
    assert unit.attack_range == 0
    unit.reset_turn_flags()
    assert (unit.movement, unit.attack_range) == (4, 1)


def test_unit_ids_come_from_each_games_own_counter(small_config):
    from gridgetters.engine.utils import initialize_game_state

    first = initialize_game_state(small_config)
    second = initialize_game_state(small_config)
    a = add_unit(first, Coordinate(1, 1), BLUE)
    b = add_unit(first, Coordinate(1, 1), BLUE)
    c = add_unit(second, Coordinate(1, 1), BLUE)
    assert b.id == a.id + 1
    assert c.id == a.id
