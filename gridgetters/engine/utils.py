"""
Utility functions for the game engine.
"""

from collections import Counter

from gridgetters.engine.definitions import GameConfig, load_setup
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.state import GameState, Grid, PLACE_REINFORCEMENTS, Unit


def initialize_game_state(config: GameConfig | None = None) -> GameState:
    """
    Create the initial game state from a GameConfig.

    Args:
        config: Board and turn parameters. Defaults to the configured setup (load_setup()).

    Returns:
        GameState in PLACE_REINFORCEMENTS for the starting player, with a full reinforcement budget
    """
    if config is None:
        config = load_setup()
    config.validate()

    state = GameState(
        phase=PLACE_REINFORCEMENTS,
        current_player=config.starting_player,
        players=tuple(config.players),
        starting_player=config.starting_player,
        grid=Grid.from_config(config),
        reinforcements_per_turn=config.reinforcements_per_turn,
        remaining_reinforcements=config.reinforcements_per_turn,
        unit_template=config.unit_template,
    )
    state.log.append(
        f"It is {state.current_player} turn to place {state.remaining_reinforcements} reinforcement(s)."
    )
    return state


def get_unit_by_id(state: GameState, unit_id: int) -> tuple[Unit | None, Coordinate | None]:
    """
    Find a unit anywhere on the board.
    Returns (unit, coordinate) or (None, None) if not found.
    """
    found = state.grid.find_unit(unit_id)
    if found is None:
        return None, None
    coord, unit = found
    return unit, coord


def print_game_state(state: GameState, verbose: bool = False):
    """
    Pretty-print the current game state.

    Args:
        state: Current game state
        verbose: If True, show individual unit details (id, movement, flags)
    """
    print(f"\n{'='*60}")
    print(
        f"Turn {state.turn_number} | Player: {state.current_player} | Phase: {state.phase} "
        f"| Reinforcements: {state.remaining_reinforcements}")
    print(f"{'='*60}")

    for cell in state.grid:
        if cell.is_empty() and cell.city is None:
            continue
        label = f"{cell.coordinate} {cell.terrain.name}"
        if cell.city:
            label += f" city {cell.city.name} ({cell.city.player})"
        print(f"\n{label}")

        if cell.is_empty():
            print("  - No units")
        elif verbose:
            for unit in cell.units:
                print(f"  - #{unit.id} {unit.player}: atk={unit.attack} def={unit.defence} "
                      f"mv={unit.movement}/{unit.base_movement} moved={unit.has_moved_this_turn} "
                      f"attacked={unit.has_attacked_this_turn}")
        else:
            counts = Counter(unit.player for unit in cell.units)
            for player, count in sorted(counts.items()):
                print(f"  - {player}: {count}")

    print(f"\n{'Log':.<40}")
    for line in state.log[-10:]:
        print(f"  {line}")
    print()
