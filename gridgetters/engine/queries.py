"""
Query functions for UI integration.
These functions help the UI understand what to draw and which actions are available
without mutating game state.
"""

import random
from dataclasses import dataclass
from typing import Any

from gridgetters.engine.actions import Action
from gridgetters.engine.events import ACTION_REJECTED
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.reducer import PHASE_ALLOWED_ACTIONS, apply_action
from gridgetters.engine.state import (
    COMBAT_PHASES,
    GameState,
    MOVEMENT_PHASES,
    PLACE_REINFORCEMENTS,
    Unit,
)


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error}


# ===== Action Validation =====

def validate_action(state: GameState, action: Action) -> ValidationResult:
    """
    Validate an action without applying it.
    Dry-runs the reducer on a copy (with a throwaway die), so the checks are exactly the reducer's.
    """
    _, events = apply_action(state, action, random.Random(0))
    if len(events) == 1 and events[0].type == ACTION_REJECTED:
        return ValidationResult(False, events[0].payload["reason"])
    return ValidationResult(True)


def get_available_action_types(state: GameState) -> list[str]:
    return list(PHASE_ALLOWED_ACTIONS.get(state.phase, []))


# ===== Board =====

def get_board_snapshot(state: GameState) -> list[dict[str, Any]]:
    """
    Read-only view of every cell, in board order: coordinate, terrain, fortification, city,
    occupying player, unit summaries, aggregated attack/defence, highlight flags and pending order ids.
    """
    return state.grid.to_dict()


def get_highlighted_coordinates(state: GameState) -> dict[str, list[dict[str, int]]]:
    """Coordinates currently flagged as legal moves / legal invasions."""
    moves = []
    invasions = []
    for cell in state.grid:
        if cell.is_legal_move:
            moves.append(cell.coordinate.to_dict())
        if cell.is_legal_invasion:
            invasions.append(cell.coordinate.to_dict())
    return {"legal_moves": moves, "legal_invasions": invasions}


def get_placeable_cells(state: GameState) -> list[Coordinate]:
    """City cells where the current player could place a reinforcement right now."""
    if state.phase != PLACE_REINFORCEMENTS or state.remaining_reinforcements < 1:
        return []
    probe = Unit.from_template(-1, state.current_player, state.unit_template)
    return [cell.coordinate for cell in state.grid if cell.can_place_reinforcement(probe)]


def get_selectable_units(state: GameState) -> list[Unit]:
    """Units in the selected cell that may still act in the current phase."""
    cell = state.selected_cell()
    if cell is None or cell.player != state.current_player:
        return []
    if state.phase in MOVEMENT_PHASES:
        return [u for u in cell.units if not u.has_moved_this_turn]
    if state.phase in COMBAT_PHASES:
        return [u for u in cell.units if not u.has_attacked_this_turn]
    return []


# ===== Orders and log =====

def get_pending_orders(state: GameState) -> dict[str, list[dict[str, Any]]]:
    return {
        "moves": [m.to_dict() for m in state.moves],
        "invasions": [i.to_dict() for i in state.invasions],
    }


def get_event_log(state: GameState, limit: int | None = None) -> list[str]:
    """Human-readable log, oldest first. limit keeps only the newest lines."""
    if limit is None:
        return list(state.log)
    return list(state.log[-limit:]) if limit > 0 else []


def get_game_summary(state: GameState) -> dict[str, Any]:
    """Phase, player, turn and per-player unit counts."""
    unit_counts = {player: 0 for player in state.players}
    cells_held = {player: 0 for player in state.players}
    for cell in state.grid:
        occupant = cell.player
        if occupant is None:
            continue
        unit_counts[occupant] = unit_counts.get(occupant, 0) + len(cell.units)
        cells_held[occupant] = cells_held.get(occupant, 0) + 1

    return {
        "turn_number": state.turn_number,
        "current_player": state.current_player,
        "phase": state.phase,
        "remaining_reinforcements": state.remaining_reinforcements,
        "reinforcements_per_turn": state.reinforcements_per_turn,
        "players": list(state.players),
        "unit_counts": unit_counts,
        "cells_held": cells_held,
        "pending_moves": len(state.moves),
        "pending_invasions": len(state.invasions),
        "selected_coordinate": state.selected_coordinate.to_dict() if state.selected_coordinate else None,
        "selected_unit_id": state.selected_unit_id,
        "available_actions": get_available_action_types(state),
    }
