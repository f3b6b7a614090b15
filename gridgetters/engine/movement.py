"""
Movement and targeting.
Both are built on one cost-limited reachability primitive: movement spends the unit's
movement budget, targeting spends its attack range.
"""

from collections import deque

from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.state import Grid, Unit


def reachable(grid: Grid, start: Coordinate, budget: int) -> set[Coordinate]:
    """
    Coordinates where some path from `start` spends the budget exactly.

    Entering a neighbour costs that neighbour's terrain movement cost. A path ends
    where the budget reaches 0; a path that would overdraw it is dropped. So:
    - budget < 0  -> empty set
    - budget == 0 -> {start}
    - otherwise   -> union over in-bounds neighbours n of reachable(n, budget - cost(n))

    Explores (coordinate, remaining budget) pairs breadth-first with a visited set,
    which yields the same set as enumerating every path but visits each pair once.
    """
    if budget < 0 or not grid.in_bounds(start):
        return set()

    result: set[Coordinate] = set()
    visited: set[tuple[Coordinate, int]] = {(start, budget)}
    queue: deque[tuple[Coordinate, int]] = deque([(start, budget)])

    while queue:
        coord, remaining = queue.popleft()
        if remaining == 0:
            result.add(coord)
            continue

        for neighbor in coord.neighbors():
            cell = grid.get(neighbor)
            if cell is None:
                continue
            left = remaining - cell.terrain.movement_cost
            if left < 0 or (neighbor, left) in visited:
                continue
            visited.add((neighbor, left))
            queue.append((neighbor, left))

    return result


def get_moves(grid: Grid, unit: Unit, start: Coordinate) -> set[Coordinate]:
    return reachable(grid, start, unit.movement)


def get_targets(grid: Grid, unit: Unit, start: Coordinate) -> set[Coordinate]:
    return reachable(grid, start, unit.attack_range)


def legal_moves(grid: Grid, unit: Unit, start: Coordinate) -> list[Coordinate]:
    """Reachable destinations that are empty or held by the unit's own player. Sorted."""
    out = []
    for coord in get_moves(grid, unit, start):
        occupant = grid[coord].player
        if occupant is None or occupant == unit.player:
            out.append(coord)
    return sorted(out)


def legal_targets(grid: Grid, unit: Unit, start: Coordinate) -> list[Coordinate]:
    """Cells in attack range that are occupied by the enemy. Sorted."""
    out = []
    for coord in get_targets(grid, unit, start):
        occupant = grid[coord].player
        if occupant is not None and occupant != unit.player:
            out.append(coord)
    return sorted(out)
