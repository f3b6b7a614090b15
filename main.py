"""
Main entry point for the Grid Getters rules engine.
Demonstrates one scripted round on a small board: reinforcements, a move and an invasion.
"""

import logging
import random

from gridgetters.engine.actions import advance_phase, place_reinforcement, select_cell, select_unit
from gridgetters.engine.definitions import BLUE, City, FOREST, GameConfig, GREEN
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.reducer import apply_action
from gridgetters.engine.utils import initialize_game_state, print_game_state


def run(state, action, rng):
    """Apply one action and report it; returns the new state."""
    new_state, events = apply_action(state, action, rng)
    marker = "✗" if events and events[0].type == "action_rejected" else "✓"
    print(f"{marker} {action.player} {action.type} {action.payload} -> {[e.type for e in events]}")
    if marker == "✗":
        print(f"  Reason: {events[0].payload['reason']}")
    return new_state


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("Grid Getters - rules engine demo")
    print("=" * 60)

    blue_city = Coordinate(0, 0)
    green_city = Coordinate(1, 0)
    config = GameConfig(
        width=4,
        height=3,
        terrain={Coordinate(1, 1): FOREST},
        cities={blue_city: City("Miele", BLUE), green_city: City("Putz", GREEN)},
        reinforcements_per_turn=2,
        starting_player=BLUE,
    )
    rng = random.Random(7)
    state = initialize_game_state(config)

    print("\n[INITIAL STATE]")
    print_game_state(state)

    print("\n[BLUE: reinforcements only]")
    state = run(state, place_reinforcement(BLUE, blue_city), rng)
    state = run(state, place_reinforcement(BLUE, green_city), rng)  # Rejected: GREEN city
    state = run(state, place_reinforcement(BLUE, blue_city), rng)
    for _ in range(3):
        state = run(state, advance_phase(BLUE), rng)

    print("\n[GREEN: reinforce, move one soldier, attack with the other]")
    state = run(state, place_reinforcement(GREEN, green_city), rng)
    state = run(state, place_reinforcement(GREEN, green_city), rng)
    state = run(state, advance_phase(GREEN), rng)

    first, second = [u.id for u in state.grid[green_city].units]
    state = run(state, select_cell(GREEN, green_city), rng)
    state = run(state, select_unit(GREEN, first), rng)
    print(f"  Legal moves: {[str(c) for c in state.legal_destinations]}")
    destination = next((c for c in state.legal_destinations if c != green_city), green_city)
    state = run(state, select_cell(GREEN, destination), rng)
    state = run(state, advance_phase(GREEN), rng)

    state = run(state, select_cell(GREEN, green_city), rng)
    state = run(state, select_unit(GREEN, second), rng)
    print(f"  Legal targets: {[str(c) for c in state.legal_destinations]}")
    if state.legal_destinations:
        state = run(state, select_cell(GREEN, state.legal_destinations[0]), rng)
    else:
        state = run(state, select_cell(GREEN, green_city), rng)
    state = run(state, advance_phase(GREEN), rng)

    print("\n[AFTER ONE ROUND]")
    print_game_state(state, verbose=True)


if __name__ == "__main__":
    main()
