"""
Order aggregation: one Move / one Invasion per destination, commit of pending moves.
"""

import pytest

from conftest import add_unit
from gridgetters.engine.definitions import BLUE, GREEN
from gridgetters.engine.errors import InvariantViolation
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.orders import (
    commit_moves,
    find_move,
    open_invasion,
    open_move,
    queue_invasion,
    queue_move,
)
from gridgetters.engine.state import Move

A = Coordinate(1, 1)
B = Coordinate(2, 1)
TARGET = Coordinate(2, 2)


def test_second_unit_to_same_destination_joins_existing_move(small_state):
    u1 = add_unit(small_state, A, BLUE)
    u2 = add_unit(small_state, B, BLUE)

    move, created = queue_move(small_state, A, TARGET, u1.id)
    same, created_again = queue_move(small_state, B, TARGET, u2.id)

    assert created and not created_again
    assert same is move
    assert len(small_state.moves) == 1
    assert move.unit_ids == [u1.id, u2.id]
    assert move.source_coordinates == [A, B]
    assert move.id in small_state.grid[A].moves
    assert move.id in small_state.grid[B].moves
    assert move.id in small_state.grid[TARGET].moves


def test_different_destinations_get_different_moves(small_state):
    u1 = add_unit(small_state, A, BLUE)
    u2 = add_unit(small_state, A, BLUE)
    m1, _ = queue_move(small_state, A, TARGET, u1.id)
    m2, _ = queue_move(small_state, A, B, u2.id)
    assert m1.id != m2.id
    assert small_state.grid[A].moves == {m1.id, m2.id}


def test_opening_a_duplicate_move_is_fatal(small_state):
    unit = add_unit(small_state, A, BLUE)
    open_move(small_state, A, TARGET, unit.id)
    with pytest.raises(InvariantViolation):
        open_move(small_state, B, TARGET, unit.id)


def test_opening_a_duplicate_invasion_is_fatal(small_state):
    unit = add_unit(small_state, A, BLUE)
    add_unit(small_state, TARGET, GREEN)
    open_invasion(small_state, A, TARGET, unit.id)
    with pytest.raises(InvariantViolation):
        open_invasion(small_state, B, TARGET, unit.id)


def test_two_existing_moves_for_one_destination_are_detected(small_state):
    small_state.moves = [Move(id=0, target=TARGET), Move(id=1, target=TARGET)]
    with pytest.raises(InvariantViolation):
        find_move(small_state, TARGET)


def test_moves_and_invasions_have_separate_id_spaces(small_state):
    unit = add_unit(small_state, A, BLUE)
    add_unit(small_state, TARGET, GREEN)
    move, _ = queue_move(small_state, A, B, unit.id)
    invasion, _ = queue_invasion(small_state, A, TARGET, unit.id)
    assert move.id == 0
    assert invasion.id == 0


def test_commit_moves_relocates_units_and_logs_once_per_move(small_state):
    u1 = add_unit(small_state, A, BLUE)
    u2 = add_unit(small_state, B, BLUE)
    queue_move(small_state, A, TARGET, u1.id)
    queue_move(small_state, B, TARGET, u2.id)
    log_before = len(small_state.log)

    committed = commit_moves(small_state)

    assert [moved for _, moved in committed] == [[u1.id, u2.id]]
    assert small_state.grid[A].is_empty()
    assert small_state.grid[B].is_empty()
    assert {u.id for u in small_state.grid[TARGET].units} == {u1.id, u2.id}
    assert small_state.log[log_before:] == ["BLUE moved to: [2, 2]"]
    assert small_state.moves == []
    assert all(not cell.moves for cell in small_state.grid)


def test_commit_skips_units_no_longer_in_their_source(small_state):
    u1 = add_unit(small_state, A, BLUE)
    u2 = add_unit(small_state, A, BLUE)
    queue_move(small_state, A, TARGET, u1.id)
    queue_move(small_state, A, TARGET, u2.id)
    small_state.grid[A].remove_unit_by_id(u1.id)

    committed = commit_moves(small_state)

    assert committed[0][1] == [u2.id]
    assert [u.id for u in small_state.grid[TARGET].units] == [u2.id]
