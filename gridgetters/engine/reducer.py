"""
Main game reducer: the turn controller.
Applies actions to state, enforcing rules and producing new state.
Returns (new_state, events) where events describe what happened.

Turn states:
    PLACE_REINFORCEMENTS
      -> MOVEMENT_SELECTING_CELL <-> MOVEMENT_SELECTING_SOLDIER <-> SELECTING_MOVE
      -> COMBAT_SELECTING_CELL <-> COMBAT_SELECTING_SOLDIER <-> SELECTING_COMBAT
      -> PLACE_REINFORCEMENTS (other player)
"""

import logging
import random

from gridgetters.engine.actions import (
    Action,
    ADVANCE_PHASE,
    PLACE_REINFORCEMENT,
    SELECT_CELL,
    SELECT_UNIT,
)
from gridgetters.engine.combat import resolve_invasion
from gridgetters.engine.errors import ActionRejected
from gridgetters.engine.events import (
    GameEvent,
    action_rejected,
    cell_selected,
    combat_resolved,
    invasion_ordered,
    move_ordered,
    phase_changed,
    reinforcement_placed,
    selection_cancelled,
    turn_ended,
    turn_started,
    unit_selected,
    units_moved,
)
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.movement import legal_moves, legal_targets
from gridgetters.engine.orders import clear_invasions, commit_moves, queue_invasion, queue_move
from gridgetters.engine.state import (
    COMBAT_SELECTING_CELL,
    COMBAT_SELECTING_SOLDIER,
    GameState,
    MID_SELECTION_PHASES,
    MOVEMENT_PHASES,
    MOVEMENT_SELECTING_CELL,
    MOVEMENT_SELECTING_SOLDIER,
    PLACE_REINFORCEMENTS,
    SELECTING_COMBAT,
    SELECTING_MOVE,
    Unit,
    UNIT_IDS,
)

logger = logging.getLogger(__name__)


# Phase rules: which action types are allowed in which turn state.
# Mid-selection states have no ADVANCE_PHASE: the selection must be finished or cancelled first.
PHASE_ALLOWED_ACTIONS = {
    PLACE_REINFORCEMENTS: [PLACE_REINFORCEMENT, ADVANCE_PHASE],
    MOVEMENT_SELECTING_CELL: [SELECT_CELL, ADVANCE_PHASE],
    MOVEMENT_SELECTING_SOLDIER: [SELECT_CELL, SELECT_UNIT],
    SELECTING_MOVE: [SELECT_CELL, SELECT_UNIT],
    COMBAT_SELECTING_CELL: [SELECT_CELL, ADVANCE_PHASE],
    COMBAT_SELECTING_SOLDIER: [SELECT_CELL, SELECT_UNIT],
    SELECTING_COMBAT: [SELECT_CELL, SELECT_UNIT],
}


def _validate_action_for_phase(action: Action, state: GameState) -> None:
    """Raise ActionRejected unless the action's player and type fit the current turn state."""
    if action.player != state.current_player:
        raise ActionRejected(
            f"Action player {action.player} does not match current player {state.current_player}"
        )
    allowed_actions = PHASE_ALLOWED_ACTIONS.get(state.phase, [])
    if action.type not in allowed_actions:
        raise ActionRejected(
            f"Action '{action.type}' is not allowed in phase '{state.phase}'. "
            f"Allowed actions: {', '.join(allowed_actions)}"
        )


def apply_action(
    state: GameState,
    action: Action,
    rng: random.Random | None = None,
) -> tuple[GameState, list[GameEvent]]:
    """
    Apply a single action to the current state, returning new state and events.

    The incoming state is never modified. A soft rejection returns the incoming state
    itself with a single action_rejected event; InvariantViolation propagates.

    Args:
        state: Current game state
        action: Action to apply
        rng: Die source (anything with randint(a, b)); only used when invasions resolve

    Returns:
        Tuple of (new_state, events) where events describe what happened
    """
    try:
        _validate_action_for_phase(action, state)

        new_state = state.copy()
        events: list[GameEvent] = []

        if action.type == PLACE_REINFORCEMENT:
            new_state, evts = _handle_place_reinforcement(new_state, action)
            events.extend(evts)

        elif action.type == SELECT_CELL:
            new_state, evts = _handle_select_cell(new_state, action)
            events.extend(evts)

        elif action.type == SELECT_UNIT:
            new_state, evts = _handle_select_unit(new_state, action)
            events.extend(evts)

        elif action.type == ADVANCE_PHASE:
            new_state, evts = _handle_advance_phase(new_state, rng or random.Random())
            events.extend(evts)

        else:
            raise ActionRejected(f"Unknown action type: {action.type}")

    except ActionRejected as e:
        return _reject(state, action, str(e))

    return new_state, events


def _reject(state: GameState, action: Action, reason: str) -> tuple[GameState, list[GameEvent]]:
    """Shared rejection path for every turn state: state unchanged, one event, nothing logged to the game log."""
    logger.warning("Rejected %s from %s in %s: %s", action.type, action.player, state.phase, reason)
    return state, [action_rejected(action.type, action.player, reason)]


def _coordinate(action: Action) -> Coordinate:
    try:
        return action.coordinate()
    except (KeyError, TypeError, ValueError) as e:
        raise ActionRejected(f"Invalid coordinate in payload: {action.payload}") from e


def _set_phase(state: GameState, new_phase: str) -> list[GameEvent]:
    old_phase = state.phase
    if old_phase == new_phase:
        return []
    state.phase = new_phase
    logger.debug("%s: %s -> %s", state.current_player, old_phase, new_phase)
    return [phase_changed(old_phase, new_phase, state.current_player)]


def _handle_place_reinforcement(state: GameState, action: Action) -> tuple[GameState, list[GameEvent]]:
    """
    Create a soldier from the reinforcement template on one of the player's city cells.
    Validates:
    - Reinforcements remain this turn
    - Coordinate is on the board
    - Cell holds a city owned by the player and no enemy units
    """
    if state.remaining_reinforcements < 1:
        raise ActionRejected("No more reinforcements, advance to the movement phase")

    coord = _coordinate(action)
    cell = state.grid.get(coord)
    if cell is None:
        raise ActionRejected(f"{coord} is not on the board")

    unit = Unit.from_template(state.next_id(UNIT_IDS), state.current_player, state.unit_template)
    if not cell.can_place_reinforcement(unit):
        raise ActionRejected(f"Can't place a reinforcement at {coord}: not a {state.current_player} city")

    cell.add_unit(unit)
    state.remaining_reinforcements -= 1
    state.log.append(f"{state.current_player} placed a soldier at {coord}")
    return state, [reinforcement_placed(state.current_player, coord, unit.id, state.remaining_reinforcements)]


def _handle_select_cell(state: GameState, action: Action) -> tuple[GameState, list[GameEvent]]:
    coord = _coordinate(action)
    cell = state.grid.get(coord)
    if cell is None:
        raise ActionRejected(f"{coord} is not on the board")

    player = state.current_player
    owned = cell.player == player
    in_movement = state.phase in MOVEMENT_PHASES
    cell_phase = MOVEMENT_SELECTING_CELL if in_movement else COMBAT_SELECTING_CELL
    soldier_phase = MOVEMENT_SELECTING_SOLDIER if in_movement else COMBAT_SELECTING_SOLDIER

    if state.phase in (MOVEMENT_SELECTING_CELL, COMBAT_SELECTING_CELL):
        state.selected_coordinate = coord
        events = [cell_selected(player, coord, owned)]
        if owned:
            events.extend(_set_phase(state, soldier_phase))
        return state, events

    if state.phase in (MOVEMENT_SELECTING_SOLDIER, COMBAT_SELECTING_SOLDIER):
        if owned and coord != state.selected_coordinate:
            state.selected_coordinate = coord
            return state, [cell_selected(player, coord, owned)]
        # Same source again, or a cell the player does not hold: back out of the selection
        previous = state.selected_coordinate
        state.clear_selection()
        if not owned:
            state.selected_coordinate = coord
        return state, [selection_cancelled(player, previous)] + _set_phase(state, cell_phase)

    # SELECTING_MOVE / SELECTING_COMBAT: coord is the destination, or the source to cancel
    source = state.selected_coordinate
    if coord == source:
        state.clear_selection()
        return state, [selection_cancelled(player, source)] + _set_phase(state, cell_phase)

    if coord not in state.legal_destinations:
        kind = "move to" if in_movement else "invade"
        raise ActionRejected(f"Cannot {kind} {coord}: not a legal destination for unit {state.selected_unit_id}")

    unit = state.selected_unit()
    if source is None or unit is None:
        raise ActionRejected("No unit selected")

    if in_movement:
        move, created = queue_move(state, source, coord, unit.id)
        unit.has_moved_this_turn = True
        event = move_ordered(player, move.id, source, coord, unit.id, created)
    else:
        invasion, created = queue_invasion(state, source, coord, unit.id)
        unit.has_attacked_this_turn = True
        event = invasion_ordered(player, invasion.id, source, coord, unit.id, created)

    state.clear_selection()
    return state, [event] + _set_phase(state, cell_phase)


def _handle_select_unit(state: GameState, action: Action) -> tuple[GameState, list[GameEvent]]:
    """
    Select a unit in the chosen source cell and highlight its legal destinations (movement)
    or targets (combat). Also switches the selected unit while one is already selected.
    """
    try:
        unit_id = int(action.payload["unit_id"])
    except (KeyError, TypeError, ValueError) as e:
        raise ActionRejected(f"Invalid unit_id in payload: {action.payload}") from e

    source = state.selected_coordinate
    cell = state.selected_cell()
    unit = cell.get_unit(unit_id) if cell is not None else None
    if source is None or unit is None:
        raise ActionRejected(f"Unit {unit_id} is not in the selected cell {source}")
    if unit.player != state.current_player:
        raise ActionRejected(f"Unit {unit_id} belongs to {unit.player}")

    if state.phase in (MOVEMENT_SELECTING_SOLDIER, SELECTING_MOVE):
        if unit.has_moved_this_turn:
            raise ActionRejected(f"Unit {unit_id} already moved this turn, choose another one")
        legal = legal_moves(state.grid, unit, source)
        next_phase = SELECTING_MOVE
    else:
        if unit.has_attacked_this_turn:
            raise ActionRejected(f"Unit {unit_id} already attacked this turn, choose another one")
        legal = legal_targets(state.grid, unit, source)
        if not legal:
            raise ActionRejected(f"Unit {unit_id} has no targets")
        next_phase = SELECTING_COMBAT

    for grid_cell in state.grid:
        grid_cell.reset_legal_flags()
    for coord in legal:
        if next_phase == SELECTING_MOVE:
            state.grid[coord].is_legal_move = True
        else:
            state.grid[coord].is_legal_invasion = True

    state.selected_unit_id = unit.id
    state.legal_destinations = legal
    events = [unit_selected(state.current_player, source, unit.id, legal)]
    events.extend(_set_phase(state, next_phase))
    return state, events


def _handle_advance_phase(state: GameState, rng: random.Random) -> tuple[GameState, list[GameEvent]]:
    """
    Advance to the next phase.
    - PLACE_REINFORCEMENTS -> MOVEMENT_SELECTING_CELL
    - MOVEMENT_SELECTING_CELL -> COMBAT_SELECTING_CELL, committing every pending Move
    - COMBAT_SELECTING_CELL -> resolve every pending Invasion, then end the turn
    Mid-selection states are rejected.
    """
    player = state.current_player
    events: list[GameEvent] = []

    if state.phase in MID_SELECTION_PHASES:
        raise ActionRejected(f"Finish or cancel the current selection before advancing ({state.phase})")

    if state.phase == PLACE_REINFORCEMENTS:
        state.log.append(f"{player} ended placing reinforcements, moving on to Movement Phase.")
        state.clear_selection()
        events.extend(_set_phase(state, MOVEMENT_SELECTING_CELL))

    elif state.phase == MOVEMENT_SELECTING_CELL:
        for move, unit_ids in commit_moves(state):
            events.append(units_moved(player, move.id, move.target, unit_ids))
        state.log.append(f"{player} is entering Combat Phase")
        state.clear_selection()
        events.extend(_set_phase(state, COMBAT_SELECTING_CELL))

    elif state.phase == COMBAT_SELECTING_CELL:
        for invasion in state.invasions:
            result = resolve_invasion(state, invasion, rng)
            state.log.append(result.message)
            events.append(combat_resolved(result.to_dict()))
        clear_invasions(state)
        events.extend(end_turn(state))

    return state, events


def end_turn(state: GameState) -> list[GameEvent]:
    """
    Hand the turn to the other player, mutating `state` in place.

    Refills reinforcements, clears pending orders and selection, and resets the
    per-turn flags of the incoming player's units only.
    """
    outgoing = state.current_player
    events = [turn_ended(state.turn_number, outgoing)]

    state.current_player = state.other_player(outgoing)
    if state.current_player == state.starting_player:
        state.turn_number += 1
    state.remaining_reinforcements = state.reinforcements_per_turn
    state.moves = []
    clear_invasions(state)
    state.clear_selection()
    events.extend(_set_phase(state, PLACE_REINFORCEMENTS))

    for cell in state.grid:
        if cell.player == state.current_player:
            for unit in cell.units:
                unit.reset_turn_flags()

    state.log.append(
        f"It is {state.current_player} turn to place {state.remaining_reinforcements} reinforcement(s)."
    )
    logger.info("Turn %d: %s to play", state.turn_number, state.current_player)
    events.append(turn_started(state.turn_number, state.current_player, state.remaining_reinforcements))
    return events


def replay_from_actions(
    initial_state: GameState,
    actions: list[Action],
    rng: random.Random | None = None,
) -> tuple[GameState, list[GameEvent]]:
    """
    Replay a game from an initial state and a list of actions.
    Use the same seeded rng as the recorded run to reproduce combat results.
    Returns the final state and every event emitted along the way.
    """
    rng = rng or random.Random()
    state = initial_state
    all_events: list[GameEvent] = []
    for action in actions:
        state, events = apply_action(state, action, rng)
        all_events.extend(events)
    return state, all_events
