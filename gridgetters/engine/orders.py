"""
Order aggregation.
At most one Move and at most one Invasion may target a given coordinate per phase;
further units bound for the same target are appended to the existing aggregate.
"""

import logging

from gridgetters.engine.errors import InvariantViolation
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.state import (
    GameState,
    Invasion,
    INVASION_IDS,
    Move,
    MOVE_IDS,
    Order,
    OrderGroup,
)

logger = logging.getLogger(__name__)


def _find(groups: list, target: Coordinate, label: str):
    matches = [g for g in groups if g.target == target]
    if len(matches) > 1:
        raise InvariantViolation(f"{len(matches)} {label}s target {target}; there must be at most one")
    return matches[0] if matches else None


def find_move(state: GameState, target: Coordinate) -> Move | None:
    return _find(state.moves, target, "move")


def find_invasion(state: GameState, target: Coordinate) -> Invasion | None:
    return _find(state.invasions, target, "invasion")


def open_move(state: GameState, source: Coordinate, target: Coordinate, unit_id: int) -> Move:
    """Create the Move for `target`. Raises InvariantViolation if one already exists."""
    if find_move(state, target) is not None:
        raise InvariantViolation(f"Duplicate move for destination {target}")
    move = Move(id=state.next_id(MOVE_IDS), target=target, orders=[Order(source, unit_id)])
    state.moves.append(move)
    state.grid[source].moves.add(move.id)
    state.grid[target].moves.add(move.id)
    return move


def open_invasion(state: GameState, source: Coordinate, target: Coordinate, unit_id: int) -> Invasion:
    """Create the Invasion for `target`. Raises InvariantViolation if one already exists."""
    if find_invasion(state, target) is not None:
        raise InvariantViolation(f"Duplicate invasion for target {target}")
    invasion = Invasion(id=state.next_id(INVASION_IDS), target=target, orders=[Order(source, unit_id)])
    state.invasions.append(invasion)
    state.grid[source].invasions.add(invasion.id)
    state.grid[target].invasions.add(invasion.id)
    return invasion


def queue_move(state: GameState, source: Coordinate, target: Coordinate, unit_id: int) -> tuple[Move, bool]:
    """
    Add a unit's order to the Move for `target`, opening it if needed.
    Returns (move, created).
    """
    move = find_move(state, target)
    if move is None:
        return open_move(state, source, target, unit_id), True
    move.orders.append(Order(source, unit_id))
    state.grid[source].moves.add(move.id)
    return move, False


def queue_invasion(state: GameState, source: Coordinate, target: Coordinate, unit_id: int) -> tuple[Invasion, bool]:
    invasion = find_invasion(state, target)
    if invasion is None:
        return open_invasion(state, source, target, unit_id), True
    invasion.orders.append(Order(source, unit_id))
    state.grid[source].invasions.add(invasion.id)
    return invasion, False


def relocate_orders(state: GameState, group: OrderGroup) -> list[int]:
    """
    Move every ordered unit from its source cell into the group's target cell.
    Units no longer present in their source cell are skipped. Returns the ids moved.
    """
    target_cell = state.grid[group.target]
    moved = []
    for order in group.orders:
        unit = state.grid[order.source].remove_unit_by_id(order.unit_id)
        if unit is None:
            logger.debug("Unit %s no longer in %s, skipping relocation", order.unit_id, order.source)
            continue
        target_cell.add_unit(unit)
        moved.append(unit.id)
    return moved


def commit_moves(state: GameState) -> list[tuple[Move, list[int]]]:
    """
    Apply all pending Moves in the order they were opened, one log line per Move,
    then clear the pending list and the per-cell move ids.
    """
    committed = []
    for move in state.moves:
        moved = relocate_orders(state, move)
        state.log.append(f"{state.current_player} moved to: {move.target}")
        committed.append((move, moved))
    state.moves = []
    for cell in state.grid:
        cell.moves.clear()
    return committed


def clear_invasions(state: GameState) -> None:
    state.invasions = []
    for cell in state.grid:
        cell.invasions.clear()
