"""
Combat resolution.
One die roll per Invasion: aggregated attack against the target cell's aggregated defence
gives the odds (row); die plus roll modifiers gives the column; the outcome table does the rest.

Outcomes collapse to three effects: the attackers are eliminated, nothing happens (bounce),
or the defenders are eliminated and the attackers take the cell.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from gridgetters.engine import DIE_SIDES, MAX_ODDS_COLUMN, MAX_ROLL_COLUMN
from gridgetters.engine.errors import InvariantViolation
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.orders import relocate_orders
from gridgetters.engine.state import Attack, Defence, GameState, Invasion

logger = logging.getLogger(__name__)


class CombatOutcome(str, Enum):
    # All attacking units are eliminated
    ATTACKER_ELIMINATED = "ATTACKER_ELIMINATED"
    # Attacker loses attack strength at least equal to the defence (not applied: bounce)
    ATTACKER_ATTRITION = "ATTACKER_ATTRITION"
    # Attacker retreats one hex or loses its strongest unit (not applied: bounce)
    ATTACKER_DEMORALIZED = "ATTACKER_DEMORALIZED"
    # Both sides demoralized, defender first (not applied: bounce)
    BOTH_DEMORALIZED = "BOTH_DEMORALIZED"
    DEFENDER_DEMORALIZED = "DEFENDER_DEMORALIZED"
    DEFENDER_EXCHANGE = "DEFENDER_EXCHANGE"
    # All defending units are eliminated
    DEFENDER_ELIMINATED = "DEFENDER_ELIMINATED"


_AE = CombatOutcome.ATTACKER_ELIMINATED
_AA = CombatOutcome.ATTACKER_ATTRITION
_AD = CombatOutcome.ATTACKER_DEMORALIZED
_BD = CombatOutcome.BOTH_DEMORALIZED
_DD = CombatOutcome.DEFENDER_DEMORALIZED
_DX = CombatOutcome.DEFENDER_EXCHANGE
_DE = CombatOutcome.DEFENDER_ELIMINATED

# Rows: odds 0..6. Columns: final roll 0..6.
COMBAT_RESULTS_BY_ODDS: dict[int, tuple[CombatOutcome, ...]] = {
    0: (_AE, _AE, _AA, _AD, _BD, _BD, _DD),
    1: (_AE, _AA, _AD, _BD, _BD, _DD, _DX),
    2: (_AA, _AA, _AD, _BD, _BD, _DD, _DX),
    3: (_AA, _AD, _BD, _BD, _DD, _DX, _DE),
    4: (_AD, _BD, _BD, _DD, _DX, _DE, _DE),
    5: (_BD, _BD, _DD, _DX, _DE, _DE, _DE),
    6: (_BD, _DD, _DX, _DE, _DE, _DE, _DE),
}

ATTACKER_LOSES = frozenset({_AE})
BOUNCE = frozenset({_AA, _AD, _BD})
DEFENDER_LOSES = frozenset({_DD, _DX, _DE})


@dataclass
class CombatResult:
    """What happened when one Invasion was resolved."""
    invasion_id: int
    target: Coordinate
    attacker: str
    defender: str | None
    attack: Attack
    defence: Defence
    odds: int
    die_roll: int
    roll: int
    outcome: CombatOutcome
    message: str
    killed_unit_ids: list[int] = field(default_factory=list)
    moved_unit_ids: list[int] = field(default_factory=list)

    @property
    def captured(self) -> bool:
        return self.outcome in DEFENDER_LOSES

    def to_dict(self) -> dict[str, Any]:
        return {
            "invasion_id": self.invasion_id,
            "target": self.target.to_dict(),
            "attacker": self.attacker,
            "defender": self.defender,
            "attack": self.attack.to_dict(),
            "defence": self.defence.to_dict(),
            "odds": self.odds,
            "die_roll": self.die_roll,
            "roll": self.roll,
            "outcome": self.outcome.value,
            "message": self.message,
            "killed_unit_ids": self.killed_unit_ids,
            "moved_unit_ids": self.moved_unit_ids,
        }


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(low, value), high)


def compute_odds(attack: Attack, defence: Defence) -> int:
    """Floor of attack / defence. Zero defence goes straight to the highest column."""
    if defence.value <= 0:
        return MAX_ODDS_COLUMN
    return attack.value // defence.value


def compute_roll(die_roll: int, attack: Attack, defence: Defence, odds: int) -> int:
    """Die plus attack modifier minus defence modifier; odds past the table become a bonus."""
    return die_roll + attack.modifier - defence.modifier + max(0, odds - MAX_ODDS_COLUMN)


def lookup_outcome(odds: int, roll: int) -> CombatOutcome:
    """Clamp both indices into the table and return the outcome."""
    return COMBAT_RESULTS_BY_ODDS[_clamp(odds, 0, MAX_ODDS_COLUMN)][_clamp(roll, 0, MAX_ROLL_COLUMN)]


def invasion_attack(state: GameState, invasion: Invasion) -> Attack:
    """
    Sum of the ordered units' attack plus the source cell's attack modifiers, once per order:
    two soldiers leaving one mountain cell carry its modifier twice.
    """
    total = Attack()
    for order in invasion.orders:
        source = state.grid[order.source]
        unit = source.get_unit(order.unit_id)
        if unit is not None:
            total = total + unit.get_attack()
        total = total + source.get_attack()
    return total


def apply_outcome(state: GameState, invasion: Invasion, outcome: CombatOutcome) -> tuple[list[int], list[int]]:
    """
    Apply an outcome to the grid. Returns (killed_unit_ids, moved_unit_ids).
    Raises InvariantViolation for an outcome with no defined effect.
    """
    if outcome in ATTACKER_LOSES:
        killed = []
        for order in invasion.orders:
            unit = state.grid[order.source].remove_unit_by_id(order.unit_id)
            if unit is not None:
                killed.append(unit.id)
        return killed, []
    if outcome in BOUNCE:
        return [], []
    if outcome in DEFENDER_LOSES:
        killed = [u.id for u in state.grid[invasion.target].kill_occupants()]
        moved = relocate_orders(state, invasion)
        return killed, moved
    raise InvariantViolation(f"No effect defined for combat outcome {outcome!r}")


def _message(outcome: CombatOutcome, attacker: str, defender: str | None, target: Coordinate) -> str:
    if outcome in ATTACKER_LOSES:
        return f"{defender} repelled the attack, Soldiers in attacking cells eliminated."
    if outcome in DEFENDER_LOSES:
        return f"{attacker} won the attack, Soldier in {target} eliminated."
    return "Bounce! Both soldiers live."


def resolve_invasion(state: GameState, invasion: Invasion, rng: random.Random) -> CombatResult:
    """
    Resolve one Invasion against its target cell and apply the outcome to state.grid.
    The log line is returned in the result; the caller appends it.
    """
    target_cell = state.grid[invasion.target]
    attacker = state.current_player
    defender = target_cell.player or state.other_player(attacker)

    attack = invasion_attack(state, invasion)
    defence = target_cell.get_defence()
    odds = compute_odds(attack, defence)
    die_roll = rng.randint(1, DIE_SIDES)
    roll = compute_roll(die_roll, attack, defence, odds)
    outcome = lookup_outcome(odds, roll)

    logger.debug(
        "Attack from %s: %s; defence at %s: %s; odds=%d die=%d roll=%d outcome=%s",
        [str(c) for c in invasion.source_coordinates],
        attack,
        invasion.target,
        defence,
        odds,
        die_roll,
        roll,
        outcome.value,
    )

    killed, moved = apply_outcome(state, invasion, outcome)
    return CombatResult(
        invasion_id=invasion.id,
        target=invasion.target,
        attacker=attacker,
        defender=defender,
        attack=attack,
        defence=defence,
        odds=odds,
        die_roll=die_roll,
        roll=roll,
        outcome=outcome,
        message=_message(outcome, attacker, defender, invasion.target),
        killed_unit_ids=killed,
        moved_unit_ids=moved,
    )
