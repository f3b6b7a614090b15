"""
Action definitions for the game.
Actions are immutable, deterministic instructions: the four commands an input layer can issue.
"""

from dataclasses import dataclass, field
from typing import Any

from gridgetters.engine.hexes import Coordinate

PLACE_REINFORCEMENT = "place_reinforcement"
SELECT_CELL = "select_cell"
SELECT_UNIT = "select_unit"
ADVANCE_PHASE = "advance_phase"

ACTION_TYPES = (PLACE_REINFORCEMENT, SELECT_CELL, SELECT_UNIT, ADVANCE_PHASE)


@dataclass(frozen=True)
class Action:
    """Base action class. All actions have a type, player, and payload."""
    type: str  # One of ACTION_TYPES
    player: str  # Player issuing the action
    payload: dict[str, Any] = field(default_factory=dict)

    def coordinate(self) -> Coordinate:
        """The payload's coordinate, for cell-targeting actions."""
        return Coordinate(int(self.payload["q"]), int(self.payload["r"]))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "player": self.player, "payload": dict(self.payload)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Action":
        return cls(type=data["type"], player=data["player"], payload=dict(data.get("payload") or {}))


def place_reinforcement(player: str, coord: Coordinate) -> Action:
    """
    Place one new soldier on a city cell owned by `player`.
    Only in PLACE_REINFORCEMENTS, and only while reinforcements remain.
    """
    return Action(type=PLACE_REINFORCEMENT, player=player, payload={"q": coord.q, "r": coord.r})


def select_cell(player: str, coord: Coordinate) -> Action:
    """
    Click a cell. Meaning depends on the phase: choose a source cell, re-target or
    cancel a selection, or pick the destination/target for the selected unit.
    """
    return Action(type=SELECT_CELL, player=player, payload={"q": coord.q, "r": coord.r})


def select_unit(player: str, unit_id: int) -> Action:
    """Choose a unit in the selected source cell and compute its legal destinations or targets."""
    return Action(type=SELECT_UNIT, player=player, payload={"unit_id": unit_id})


def advance_phase(player: str) -> Action:
    """
    Reinforcements -> movement -> combat -> next player's reinforcements.
    Commits pending moves when leaving movement and resolves invasions when leaving combat.
    """
    return Action(type=ADVANCE_PHASE, player=player, payload={})
