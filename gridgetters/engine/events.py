"""
Game events for UI hooks and logging.
Events describe what happened during action processing.
"""

from dataclasses import dataclass
from typing import Any

from gridgetters.engine.hexes import Coordinate


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameEvent":
        return cls(type=data["type"], payload=data["payload"])


# ===== Event Type Constants =====

# Phase/Turn events
PHASE_CHANGED = "phase_changed"
TURN_STARTED = "turn_started"
TURN_ENDED = "turn_ended"

# Reinforcement events
REINFORCEMENT_PLACED = "reinforcement_placed"

# Selection events
CELL_SELECTED = "cell_selected"
UNIT_SELECTED = "unit_selected"
SELECTION_CANCELLED = "selection_cancelled"

# Order events
MOVE_ORDERED = "move_ordered"
INVASION_ORDERED = "invasion_ordered"

# Resolution events
UNITS_MOVED = "units_moved"
COMBAT_RESOLVED = "combat_resolved"

# Rejection
ACTION_REJECTED = "action_rejected"


# ===== Event Factory Functions =====

def phase_changed(old_phase: str, new_phase: str, player: str) -> GameEvent:
    return GameEvent(PHASE_CHANGED, {
        "old_phase": old_phase,
        "new_phase": new_phase,
        "player": player,
    })


def turn_started(turn_number: int, player: str, reinforcements: int) -> GameEvent:
    return GameEvent(TURN_STARTED, {
        "turn_number": turn_number,
        "player": player,
        "reinforcements": reinforcements,
    })


def turn_ended(turn_number: int, player: str) -> GameEvent:
    return GameEvent(TURN_ENDED, {
        "turn_number": turn_number,
        "player": player,
    })


def reinforcement_placed(player: str, coord: Coordinate, unit_id: int, remaining: int) -> GameEvent:
    return GameEvent(REINFORCEMENT_PLACED, {
        "player": player,
        "coordinate": coord.to_dict(),
        "unit_id": unit_id,
        "remaining_reinforcements": remaining,
    })


def cell_selected(player: str, coord: Coordinate, owned: bool) -> GameEvent:
    """owned is False when the cell was only selected for inspection."""
    return GameEvent(CELL_SELECTED, {
        "player": player,
        "coordinate": coord.to_dict(),
        "owned": owned,
    })


def unit_selected(player: str, coord: Coordinate, unit_id: int, legal: list[Coordinate]) -> GameEvent:
    return GameEvent(UNIT_SELECTED, {
        "player": player,
        "coordinate": coord.to_dict(),
        "unit_id": unit_id,
        "legal_destinations": [c.to_dict() for c in legal],
    })


def selection_cancelled(player: str, coord: Coordinate | None) -> GameEvent:
    return GameEvent(SELECTION_CANCELLED, {
        "player": player,
        "coordinate": coord.to_dict() if coord else None,
    })


def move_ordered(player: str, move_id: int, source: Coordinate, target: Coordinate, unit_id: int, created: bool) -> GameEvent:
    return GameEvent(MOVE_ORDERED, {
        "player": player,
        "move_id": move_id,
        "source": source.to_dict(),
        "target": target.to_dict(),
        "unit_id": unit_id,
        "created": created,
    })


def invasion_ordered(player: str, invasion_id: int, source: Coordinate, target: Coordinate, unit_id: int, created: bool) -> GameEvent:
    return GameEvent(INVASION_ORDERED, {
        "player": player,
        "invasion_id": invasion_id,
        "source": source.to_dict(),
        "target": target.to_dict(),
        "unit_id": unit_id,
        "created": created,
    })


def units_moved(player: str, move_id: int, target: Coordinate, unit_ids: list[int]) -> GameEvent:
    return GameEvent(UNITS_MOVED, {
        "player": player,
        "move_id": move_id,
        "target": target.to_dict(),
        "unit_ids": unit_ids,
    })


def combat_resolved(result: dict[str, Any]) -> GameEvent:
    """result is CombatResult.to_dict()."""
    return GameEvent(COMBAT_RESOLVED, result)


def action_rejected(action_type: str, player: str, reason: str) -> GameEvent:
    return GameEvent(ACTION_REJECTED, {
        "action_type": action_type,
        "player": player,
        "reason": reason,
    })
