"""Unit tests for the match state machine and move application."""

from __future__ import annotations

import dataclasses

import pytest

from conftest import A_FIRST, B_FIRST
from seabattle.coord_utils import coord_key, ship_cells
from seabattle.errors import GameError, GameLogicError
from seabattle.fleet import create_default_fleet
from seabattle.game import apply_move, create_match, get_public_state, place_fleet
from seabattle.models import (
    CellMark,
    Coord,
    HitResult,
    MatchStatus,
    MissResult,
    MoveResultKind,
    PlayerRole,
    Rules,
    SunkResult,
    WinResult,
    result_payload,
)

A, B = PlayerRole.A, PlayerRole.B


def _fire(match, ia, ib, attacker, x, y):
    return apply_move(attacker, Coord(x, y), match, ia, ib)


def _error_code(fn, *args):
    with pytest.raises(GameLogicError) as exc:
        fn(*args)
    return exc.value.code


# ---------------------------------------------------------------------------
# Creation and placement
# ---------------------------------------------------------------------------


def test_create_match_defaults() -> None:
    match = create_match("m1")
    assert match.id == "m1"
    assert match.status is MatchStatus.PLACING
    assert match.current_turn is None
    assert match.winner is None
    assert match.turn_no == 0
    assert match.rules == Rules()
    assert match.rules.allow_touching is False
    assert match.rules.repeat_turn_on_hit is True
    assert match.board_a.is_empty() and match.board_b.is_empty()
    assert all(mark is CellMark.UNKNOWN for row in match.fog_for_a for mark in row)


def test_create_match_rule_overrides() -> None:
    match = create_match("m2", {"allow_touching": True, "turn_seconds": 30})
    assert match.rules.allow_touching is True
    assert match.rules.turn_seconds == 30
    assert match.rules.placement_seconds == 60


@pytest.mark.parametrize("overrides", [{"fog": False}, {"board_size": 5}, {"turn_seconds": 30, "speed": 2}])
def test_create_match_rejects_unknown_rule(overrides) -> None:
    with pytest.raises(GameLogicError) as exc:
        create_match("m3", overrides)
    assert exc.value.code is GameError.INVALID_RULES
    assert set(exc.value.details["keys"]) == set(overrides) - {"turn_seconds"}


def test_rules_snapshot_has_no_board_size() -> None:
    assert set(create_match("m4").rules.as_dict()) == {
        "allow_touching",
        "repeat_turn_on_hit",
        "turn_seconds",
        "placement_seconds",
    }


def test_match_starts_after_both_fleets() -> None:
    match = create_match("m")
    place_fleet(match, A, create_default_fleet(), rng=B_FIRST)
    assert match.status is MatchStatus.PLACING
    assert match.current_turn is None

    place_fleet(match, "B", create_default_fleet(), rng=B_FIRST)
    assert match.status is MatchStatus.IN_PROGRESS
    assert match.current_turn is B
    assert match.turn_no == 1


def test_replacing_fleet_before_start_keeps_latest() -> None:
    match = create_match("m")
    place_fleet(match, A, create_default_fleet())
    moved = create_default_fleet()
    moved[9] = dataclasses.replace(moved[9], bow=Coord(9, 9))
    place_fleet(match, A, moved)
    assert match.board_a.ships == moved
    assert match.status is MatchStatus.PLACING


def test_invalid_layout_carries_reason() -> None:
    match = create_match("m")
    fleet = create_default_fleet()
    fleet[1] = dataclasses.replace(fleet[1], bow=Coord(1, 0))
    with pytest.raises(GameLogicError) as exc:
        place_fleet(match, A, fleet)
    assert exc.value.code is GameError.INVALID_LAYOUT
    assert exc.value.details["reason"] is GameError.TOUCHING
    assert match.board_a.is_empty()


def test_touching_layout_accepted_when_rules_allow() -> None:
    match = create_match("m", {"allow_touching": True})
    fleet = create_default_fleet()
    fleet[1] = dataclasses.replace(fleet[1], bow=Coord(1, 0))
    place_fleet(match, A, fleet)
    assert not match.board_a.is_empty()


def test_cannot_place_after_start(match_factory) -> None:
    match, _, _ = match_factory()
    code = _error_code(place_fleet, match, A, create_default_fleet())
    assert code is GameError.MATCH_NOT_IN_PROGRESS


# ---------------------------------------------------------------------------
# Move application
# ---------------------------------------------------------------------------


def test_miss_passes_turn(match_factory) -> None:
    match, ia, ib = match_factory()
    result = _fire(match, ia, ib, A, 9, 9)
    assert result == MissResult(Coord(9, 9))
    assert result.kind is MoveResultKind.MISS
    assert match.current_turn is B
    assert match.turn_no == 2
    assert "9,9" in match.board_b.misses
    assert match.fog_for_a[9][9] is CellMark.MISS
    assert match.fog_for_b[9][9] is CellMark.UNKNOWN


def test_hit_keeps_turn(match_factory) -> None:
    match, ia, ib = match_factory()
    result = _fire(match, ia, ib, A, 1, 1)
    assert isinstance(result, HitResult)
    assert match.current_turn is A
    assert match.turn_no == 1
    assert match.fog_for_a[1][1] is CellMark.HIT


def test_hit_passes_turn_without_repeat_rule(match_factory) -> None:
    match, ia, ib = match_factory(repeat_turn_on_hit=False)
    assert isinstance(_fire(match, ia, ib, A, 1, 1), HitResult)
    assert match.current_turn is B
    assert match.turn_no == 2


def test_sinking_single_decker_reveals_surroundings(match_factory) -> None:
    match, ia, ib = match_factory()
    result = _fire(match, ia, ib, A, 1, 7)

    assert isinstance(result, SunkResult)
    assert result.ship_id == "ship-1-1"
    assert result.sunk_coords == [Coord(1, 7)]
    expected = {Coord(x, y) for x in range(0, 3) for y in range(6, 9)} - {Coord(1, 7)}
    assert set(result.revealed_cells) == expected
    assert len(result.revealed_cells) == 8
    for c in result.revealed_cells:
        assert match.fog_for_a[c.y][c.x] is CellMark.MISS
        assert coord_key(c) in match.board_b.misses
    assert match.fog_for_a[7][1] is CellMark.SUNK
    assert "ship-1-1" in match.board_b.sunk_ship_ids
    assert match.current_turn is A


def test_sinking_multi_decker_marks_every_cell(match_factory) -> None:
    match, ia, ib = match_factory()
    assert isinstance(_fire(match, ia, ib, A, 8, 1), HitResult)
    result = _fire(match, ia, ib, A, 8, 2)
    assert isinstance(result, SunkResult)
    assert result.ship_id == "ship-2-3"
    assert match.fog_for_a[1][8] is CellMark.SUNK
    assert match.fog_for_a[2][8] is CellMark.SUNK
    # (7,1) belongs to no ship but (6,1) does
    assert Coord(7, 1) in result.revealed_cells
    assert Coord(6, 1) not in result.revealed_cells


def test_sunk_passes_turn_without_repeat_rule(match_factory) -> None:
    match, ia, ib = match_factory(repeat_turn_on_hit=False)
    assert isinstance(_fire(match, ia, ib, A, 1, 7), SunkResult)
    assert match.current_turn is B
    assert match.turn_no == 2


def test_sinking_last_ship_wins(match_factory) -> None:
    match, ia, ib = match_factory()
    targets = [c for ship in create_default_fleet() for c in ship_cells(ship)]
    results = [_fire(match, ia, ib, A, c.x, c.y) for c in targets]

    assert isinstance(results[-1], WinResult)
    assert all(not isinstance(r, WinResult) for r in results[:-1])
    assert match.status is MatchStatus.FINISHED
    assert match.winner is A
    assert match.turn_no == 1
    assert match.board_b.all_ships_sunk()

    code = _error_code(apply_move, A, Coord(9, 9), match, ia, ib)
    assert code is GameError.MATCH_NOT_IN_PROGRESS


def test_move_before_start_rejected() -> None:
    match = create_match("m")
    code = _error_code(apply_move, A, Coord(0, 0), match, {}, {})
    assert code is GameError.MATCH_NOT_IN_PROGRESS


def test_not_your_turn(match_factory) -> None:
    match, ia, ib = match_factory()
    assert _error_code(apply_move, B, Coord(0, 0), match, ia, ib) is GameError.NOT_YOUR_TURN
    # turn check comes before the bounds check
    assert _error_code(apply_move, B, Coord(10, 0), match, ia, ib) is GameError.NOT_YOUR_TURN


@pytest.mark.parametrize("coord", [Coord(10, 0), Coord(0, 10), Coord(-1, 3)])
def test_out_of_bounds(match_factory, coord) -> None:
    match, ia, ib = match_factory()
    assert _error_code(apply_move, A, coord, match, ia, ib) is GameError.OUT_OF_BOUNDS


def test_already_fired_leaves_state_untouched(match_factory) -> None:
    match, ia, ib = match_factory()
    _fire(match, ia, ib, A, 1, 1)
    before = (set(match.board_b.hits), set(match.board_b.misses), match.current_turn, match.turn_no)

    assert _error_code(apply_move, A, Coord(1, 1), match, ia, ib) is GameError.ALREADY_FIRED
    after = (set(match.board_b.hits), set(match.board_b.misses), match.current_turn, match.turn_no)
    assert before == after


def test_revealed_cells_count_as_fired(match_factory) -> None:
    match, ia, ib = match_factory()
    _fire(match, ia, ib, A, 1, 7)
    assert _error_code(apply_move, A, Coord(0, 6), match, ia, ib) is GameError.ALREADY_FIRED


def test_each_player_fires_at_the_other_board(match_factory) -> None:
    match, ia, ib = match_factory()
    _fire(match, ia, ib, A, 9, 9)
    # B may shoot the same coordinate on A's board
    assert isinstance(_fire(match, ia, ib, B, 9, 9), MissResult)
    assert match.current_turn is A
    assert match.turn_no == 3
    assert "9,9" in match.board_a.misses


def test_fog_never_reverts_to_unknown(match_factory) -> None:
    match, ia, ib = match_factory(repeat_turn_on_hit=False)
    seen = set()
    for y in range(10):
        for x in range(10):
            for attacker in (A, B):
                if match.status is not MatchStatus.IN_PROGRESS:
                    break
                if match.current_turn is not attacker:
                    continue
                board = match.board_of(attacker.opponent)
                if coord_key(Coord(x, y)) in board.hits | board.misses:
                    continue
                _fire(match, ia, ib, attacker, x, y)
            fog = match.fog_for_a
            for key in list(seen):
                cx, cy = map(int, key.split(","))
                assert fog[cy][cx] is not CellMark.UNKNOWN
            seen |= {f"{cx},{cy}" for cy, row in enumerate(fog) for cx, m in enumerate(row) if m is not CellMark.UNKNOWN}
    assert seen


# ---------------------------------------------------------------------------
# Public view
# ---------------------------------------------------------------------------


def test_public_state_shows_own_fog_only(match_factory) -> None:
    match, ia, ib = match_factory()
    _fire(match, ia, ib, A, 9, 9)
    view_a = get_public_state(match, A)
    view_b = get_public_state(match, "B")
    assert view_a.fog[9][9] is CellMark.MISS
    assert view_b.fog[9][9] is CellMark.UNKNOWN
    assert view_a.current_turn is B
    assert view_a.turn_no == 2
    assert not hasattr(view_a, "board_a")


def test_public_fog_is_a_snapshot(match_factory) -> None:
    match, ia, ib = match_factory()
    view = get_public_state(match, A)
    view.fog[0][0] = CellMark.SUNK
    assert match.fog_for_a[0][0] is CellMark.UNKNOWN

    _fire(match, ia, ib, A, 9, 9)
    assert view.fog[9][9] is CellMark.UNKNOWN
    assert get_public_state(match, A).fog[9][9] is CellMark.MISS


def test_public_payload_is_plain_data(match_factory) -> None:
    match, ia, ib = match_factory()
    _fire(match, ia, ib, A, 9, 9)
    payload = get_public_state(match, A).to_payload()
    assert payload["status"] == "in_progress"
    assert payload["current_turn"] == "B"
    assert payload["winner"] is None
    assert payload["fog"][9] == "UUUUUUUUUM"
    assert payload["rules"]["allow_touching"] is False
    assert set(payload) == {"id", "status", "current_turn", "winner", "fog", "rules", "turn_no"}


def test_result_payload_shapes(match_factory) -> None:
    match, ia, ib = match_factory()
    assert result_payload(_fire(match, ia, ib, A, 1, 1)) == {"kind": "hit", "coord": {"x": 1, "y": 1}}
    sunk = result_payload(_fire(match, ia, ib, A, 1, 7))
    assert sunk["kind"] == "sunk"
    assert sunk["ship_id"] == "ship-1-1"
    assert sunk["sunk_coords"] == [{"x": 1, "y": 7}]
    assert len(sunk["revealed_cells"]) == 8


def test_first_turn_follows_rng() -> None:
    for rng, expected in ((A_FIRST, A), (B_FIRST, B)):
        match = create_match("m")
        place_fleet(match, A, create_default_fleet())
        place_fleet(match, B, create_default_fleet(), rng=rng)
        assert match.current_turn is expected
