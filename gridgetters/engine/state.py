"""
Game state representation.
Mutations happen only inside the reducer, which works on a deep copy of the incoming state.
Includes to_dict() snapshots for the query surface (there is no save/load).
"""

from dataclasses import dataclass, field
from copy import deepcopy
from typing import Any, Iterator

from gridgetters.engine.definitions import (
    City,
    Fortification,
    GameConfig,
    NO_FORTIFICATION,
    PLAIN,
    REINFORCEMENT,
    Terrain,
    UnitTemplate,
)
from gridgetters.engine.errors import InvariantViolation
from gridgetters.engine.hexes import Coordinate, generate_board_index

# ===== Turn states =====

PLACE_REINFORCEMENTS = "PLACE_REINFORCEMENTS"

# Movement phase
MOVEMENT_SELECTING_CELL = "MOVEMENT_SELECTING_CELL"
MOVEMENT_SELECTING_SOLDIER = "MOVEMENT_SELECTING_SOLDIER"
SELECTING_MOVE = "SELECTING_MOVE"

# Combat phase
COMBAT_SELECTING_CELL = "COMBAT_SELECTING_CELL"
COMBAT_SELECTING_SOLDIER = "COMBAT_SELECTING_SOLDIER"
SELECTING_COMBAT = "SELECTING_COMBAT"

MOVEMENT_PHASES = (MOVEMENT_SELECTING_CELL, MOVEMENT_SELECTING_SOLDIER, SELECTING_MOVE)
COMBAT_PHASES = (COMBAT_SELECTING_CELL, COMBAT_SELECTING_SOLDIER, SELECTING_COMBAT)
# Phase cannot be advanced from these; the selection must be finished or cancelled first
MID_SELECTION_PHASES = (
    MOVEMENT_SELECTING_SOLDIER,
    SELECTING_MOVE,
    COMBAT_SELECTING_SOLDIER,
    SELECTING_COMBAT,
)

# Keys for GameState.id_counters
UNIT_IDS = "unit"
MOVE_IDS = "move"
INVASION_IDS = "invasion"


@dataclass(frozen=True)
class Attack:
    """Aggregated attack strength plus the sum of attack-roll modifiers."""
    value: int = 0
    modifier: int = 0

    def __add__(self, other: "Attack") -> "Attack":
        return Attack(self.value + other.value, self.modifier + other.modifier)

    def to_dict(self) -> dict[str, int]:
        return {"value": self.value, "modifier": self.modifier}


@dataclass(frozen=True)
class Defence:
    value: int = 0
    modifier: int = 0

    def __add__(self, other: "Defence") -> "Defence":
        return Defence(self.value + other.value, self.modifier + other.modifier)

    def to_dict(self) -> dict[str, int]:
        return {"value": self.value, "modifier": self.modifier}


@dataclass
class Unit:
    """A soldier on the board. Owned by exactly one Cell at any time."""
    id: int
    player: str
    attack: int
    defence: int
    base_movement: int
    base_attack_range: int
    attack_roll_modifier: int = 0
    defence_roll_modifier: int = 0
    has_moved_this_turn: bool = False
    has_attacked_this_turn: bool = False

    @classmethod
    def from_template(cls, unit_id: int, player: str, template: UnitTemplate = REINFORCEMENT) -> "Unit":
        return cls(
            id=unit_id,
            player=player,
            attack=template.attack,
            defence=template.defence,
            base_movement=template.movement,
            base_attack_range=template.attack_range,
            attack_roll_modifier=template.attack_roll_modifier,
            defence_roll_modifier=template.defence_roll_modifier,
        )

    @property
    def movement(self) -> int:
        """Movement budget left this turn: the base value until the unit has moved, then 0."""
        return 0 if self.has_moved_this_turn else self.base_movement

    @property
    def attack_range(self) -> int:
        return 0 if self.has_attacked_this_turn else self.base_attack_range

    def get_attack(self) -> Attack:
        return Attack(self.attack, self.attack_roll_modifier)

    def get_defence(self) -> Defence:
        return Defence(self.defence, self.defence_roll_modifier)

    def reset_turn_flags(self) -> None:
        self.has_moved_this_turn = False
        self.has_attacked_this_turn = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "player": self.player,
            "attack": self.attack,
            "defence": self.defence,
            "movement": self.movement,
            "attack_range": self.attack_range,
            "base_movement": self.base_movement,
            "base_attack_range": self.base_attack_range,
            "attack_roll_modifier": self.attack_roll_modifier,
            "defence_roll_modifier": self.defence_roll_modifier,
            "has_moved_this_turn": self.has_moved_this_turn,
            "has_attacked_this_turn": self.has_attacked_this_turn,
        }


@dataclass
class Cell:
    """
    One hex of the board: terrain, fortification, optional city and its occupants.

    Occupants are kept in a private mapping keyed by unit id; callers read them through
    `units` (a tuple snapshot) and change them through add_unit / remove_unit_by_id /
    kill_occupants. All occupants of a cell belong to the same player.
    """
    coordinate: Coordinate
    terrain: Terrain = PLAIN
    fortification: Fortification = NO_FORTIFICATION
    city: City | None = None
    _units: dict[int, Unit] = field(default_factory=dict, init=False, repr=False)
    # Per-phase selection state, cleared at phase boundaries
    is_legal_move: bool = False
    is_legal_invasion: bool = False
    moves: set[int] = field(default_factory=set)
    invasions: set[int] = field(default_factory=set)

    @property
    def units(self) -> tuple[Unit, ...]:
        return tuple(self._units.values())

    @property
    def player(self) -> str | None:
        """Occupying player, or None for an empty cell."""
        for unit in self._units.values():
            return unit.player
        return None

    def is_empty(self) -> bool:
        return not self._units

    def get_unit(self, unit_id: int) -> Unit | None:
        return self._units.get(unit_id)

    def add_unit(self, unit: Unit) -> None:
        occupant = self.player
        if occupant is not None and occupant != unit.player:
            raise InvariantViolation(
                f"Cannot add {unit.player} unit {unit.id} to {self.coordinate}: occupied by {occupant}"
            )
        self._units[unit.id] = unit

    def remove_unit_by_id(self, unit_id: int) -> Unit | None:
        """Remove and return the unit; a missing id is a no-op returning None."""
        return self._units.pop(unit_id, None)

    def kill_occupants(self) -> list[Unit]:
        killed = list(self._units.values())
        self._units.clear()
        return killed

    def can_place_reinforcement(self, unit: Unit) -> bool:
        if self.city is None or self.city.player != unit.player:
            return False
        occupant = self.player
        return occupant is None or occupant == unit.player

    def get_attack(self) -> Attack:
        """A cell adds no base attack, only its terrain and fortification roll modifiers."""
        return Attack(0, self.terrain.attack_roll_modifier + self.fortification.attack_roll_modifier)

    def get_defence(self) -> Defence:
        total = Defence()
        for unit in self._units.values():
            total = total + unit.get_defence()
        return Defence(
            total.value,
            total.modifier + self.terrain.defence_roll_modifier + self.fortification.defence_roll_modifier,
        )

    def reset_legal_flags(self) -> None:
        self.is_legal_move = False
        self.is_legal_invasion = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "q": self.coordinate.q,
            "r": self.coordinate.r,
            "s": self.coordinate.s,
            "terrain": self.terrain.name,
            "fortification": self.fortification.name,
            "city": {"name": self.city.name, "player": self.city.player} if self.city else None,
            "player": self.player,
            "units": [u.to_dict() for u in self._units.values()],
            "attack": self.get_attack().to_dict(),
            "defence": self.get_defence().to_dict(),
            "is_legal_move": self.is_legal_move,
            "is_legal_invasion": self.is_legal_invasion,
            "moves": sorted(self.moves),
            "invasions": sorted(self.invasions),
        }


class Grid:
    """Sparse mapping from Coordinate to Cell. Iterates in board-generation order."""

    def __init__(self, cells: dict[Coordinate, Cell] | None = None):
        self._cells: dict[Coordinate, Cell] = dict(cells or {})

    @classmethod
    def from_config(cls, config: GameConfig) -> "Grid":
        cells = {}
        for row in generate_board_index(config.height, config.width):
            for coord in row:
                cells[coord] = Cell(
                    coordinate=coord,
                    terrain=config.terrain.get(coord, PLAIN),
                    fortification=config.fortifications.get(coord, NO_FORTIFICATION),
                    city=config.cities.get(coord),
                )
        return cls(cells)

    def in_bounds(self, coord: Coordinate) -> bool:
        return coord in self._cells

    def get(self, coord: Coordinate) -> Cell | None:
        return self._cells.get(coord)

    def __getitem__(self, coord: Coordinate) -> Cell:
        return self._cells[coord]

    def __contains__(self, coord: object) -> bool:
        return coord in self._cells

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells.values())

    def __len__(self) -> int:
        return len(self._cells)

    def coordinates(self) -> list[Coordinate]:
        return list(self._cells)

    def find_unit(self, unit_id: int) -> tuple[Coordinate, Unit] | None:
        for coord, cell in self._cells.items():
            unit = cell.get_unit(unit_id)
            if unit is not None:
                return coord, unit
        return None

    def to_dict(self) -> list[dict[str, Any]]:
        return [cell.to_dict() for cell in self._cells.values()]


@dataclass
class Order:
    """One unit's contribution to a Move or Invasion."""
    source: Coordinate
    unit_id: int

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source.to_dict(), "unit_id": self.unit_id}


@dataclass
class OrderGroup:
    """All orders converging on one target coordinate this phase."""
    id: int
    target: Coordinate
    orders: list[Order] = field(default_factory=list)

    @property
    def source_coordinates(self) -> list[Coordinate]:
        """Distinct source coordinates, in order of first appearance."""
        seen: list[Coordinate] = []
        for order in self.orders:
            if order.source not in seen:
                seen.append(order.source)
        return seen

    @property
    def unit_ids(self) -> list[int]:
        return [order.unit_id for order in self.orders]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "target": self.target.to_dict(),
            "orders": [o.to_dict() for o in self.orders],
        }


@dataclass
class Move(OrderGroup):
    """Units relocating to one destination in the movement phase."""


@dataclass
class Invasion(OrderGroup):
    """Units attacking one enemy-occupied destination in the combat phase."""


@dataclass
class GameState:
    """Complete game state, created once from a GameConfig and then only changed by the reducer."""
    phase: str
    current_player: str
    players: tuple[str, str]
    starting_player: str
    grid: Grid
    reinforcements_per_turn: int
    remaining_reinforcements: int
    turn_number: int = 1
    moves: list[Move] = field(default_factory=list)
    invasions: list[Invasion] = field(default_factory=list)
    log: list[str] = field(default_factory=list)  # Oldest first
    id_counters: dict[str, int] = field(default_factory=dict)
    unit_template: UnitTemplate = REINFORCEMENT
    # Transient selection context
    selected_coordinate: Coordinate | None = None
    selected_unit_id: int | None = None
    legal_destinations: list[Coordinate] = field(default_factory=list)

    def copy(self) -> "GameState":
        """Return a deep copy of this game state."""
        return deepcopy(self)

    def next_id(self, kind: str) -> int:
        """Allocate the next id from one of the per-game counters (unit, move, invasion)."""
        value = self.id_counters.get(kind, 0)
        self.id_counters[kind] = value + 1
        return value

    def other_player(self, player: str | None = None) -> str:
        player = player or self.current_player
        first, second = self.players
        return second if player == first else first

    def selected_cell(self) -> Cell | None:
        if self.selected_coordinate is None:
            return None
        return self.grid.get(self.selected_coordinate)

    def selected_unit(self) -> Unit | None:
        cell = self.selected_cell()
        if cell is None or self.selected_unit_id is None:
            return None
        return cell.get_unit(self.selected_unit_id)

    def clear_selection(self) -> None:
        """Drop the selection context and the highlighted legal cells."""
        self.selected_coordinate = None
        self.selected_unit_id = None
        self.legal_destinations = []
        for cell in self.grid:
            cell.reset_legal_flags()

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready snapshot of the whole state."""
        return {
            "phase": self.phase,
            "current_player": self.current_player,
            "players": list(self.players),
            "starting_player": self.starting_player,
            "turn_number": self.turn_number,
            "reinforcements_per_turn": self.reinforcements_per_turn,
            "remaining_reinforcements": self.remaining_reinforcements,
            "cells": self.grid.to_dict(),
            "moves": [m.to_dict() for m in self.moves],
            "invasions": [i.to_dict() for i in self.invasions],
            "log": list(self.log),
            "id_counters": dict(self.id_counters),
            "selected_coordinate": self.selected_coordinate.to_dict() if self.selected_coordinate else None,
            "selected_unit_id": self.selected_unit_id,
            "legal_destinations": [c.to_dict() for c in self.legal_destinations],
        }
