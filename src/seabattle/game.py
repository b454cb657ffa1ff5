"""Match state machine: placement, move application and the public read model.

Lifecycle::

    PLACING --(both fleets placed)--> IN_PROGRESS --(a fleet fully sunk)--> FINISHED

All functions mutate the given :class:`~seabattle.models.MatchState` in place
and assume the caller serialises access per match (see
:class:`seabattle.service.MatchService`).  Failures are raised as
:class:`~seabattle.errors.GameLogicError`; nothing here retries or swallows.
"""

from __future__ import annotations

import dataclasses
import logging
import random
from typing import Any, Mapping, Optional, Union, cast

from .board import build_ship_index, is_ship_sunk, make_board, make_empty_fog, reveal_adjacent_cells
from .coord_utils import coord_key, in_bounds, ship_cells, to_human
from .errors import GameError, GameLogicError
from .fleet import validate_fleet
from .models import (
    CellMark,
    Coord,
    Fleet,
    HitResult,
    MatchState,
    MatchStatus,
    MissResult,
    MoveResult,
    PlayerRole,
    PublicMatchView,
    Rules,
    ShipIndex,
    SunkResult,
    WinResult,
)

logger = logging.getLogger(__name__)

RoleLike = Union[PlayerRole, str]

_RULE_FIELDS = frozenset(f.name for f in dataclasses.fields(Rules))


def create_match(match_id: str, rules_overrides: Optional[Mapping[str, Any]] = None) -> MatchState:
    """
    New match in PLACING with empty boards and fog.

    *rules_overrides* may set any :class:`~seabattle.models.Rules` field
    (``allow_touching``, ``repeat_turn_on_hit``, ``turn_seconds``,
    ``placement_seconds``); unset fields keep the configured defaults and
    any other key raises INVALID_RULES.
    """
    overrides = dict(rules_overrides or {})
    unknown = sorted(set(overrides) - _RULE_FIELDS)
    if unknown:
        raise GameLogicError(
            GameError.INVALID_RULES, f"Unknown rule override(s): {', '.join(unknown)}", details={"keys": unknown}
        )
    rules = dataclasses.replace(Rules(), **overrides)
    return MatchState(
        id=match_id,
        rules=rules,
        board_a=make_board([]),
        board_b=make_board([]),
        fog_for_a=make_empty_fog(),
        fog_for_b=make_empty_fog(),
    )


def place_fleet(state: MatchState, player: RoleLike, fleet: Fleet, rng: Optional[random.Random] = None) -> None:
    """
    Validate and store *player*'s fleet.

    Placing again before the opponent is ready overwrites the earlier fleet.
    Once both boards hold ships the match starts: the first turn is drawn
    from *rng* (default: the ``random`` module) and ``turn_no`` becomes 1.
    """
    player = PlayerRole(player)
    if state.status is not MatchStatus.PLACING:
        raise GameLogicError(
            GameError.MATCH_NOT_IN_PROGRESS, "Cannot place fleet: match not in placing phase"
        )

    result = validate_fleet(fleet, state.rules.allow_touching)
    if not result.ok:
        reason = cast(GameError, result.reason)
        raise GameLogicError(
            GameError.INVALID_LAYOUT,
            f"Invalid fleet layout: {reason.value}",
            details={"reason": reason},
        )

    board = make_board(list(fleet))
    if player is PlayerRole.A:
        state.board_a = board
    else:
        state.board_b = board
    logger.debug("match %s: player %s placed %d ships", state.id, player.value, len(fleet))

    if not state.board_a.is_empty() and not state.board_b.is_empty():
        src = rng or random
        state.status = MatchStatus.IN_PROGRESS
        state.current_turn = PlayerRole.A if src.random() < 0.5 else PlayerRole.B
        state.turn_no = 1
        logger.debug("match %s: started, %s moves first", state.id, state.current_turn.value)


def _pass_turn(state: MatchState, attacker: PlayerRole) -> None:
    state.current_turn = attacker.opponent
    state.turn_no += 1


def apply_move(
    attacker: RoleLike,
    coord: Coord,
    state: MatchState,
    ship_index_a: ShipIndex,
    ship_index_b: ShipIndex,
) -> MoveResult:
    """
    Fire *attacker*'s shot at *coord* on the opponent's board.

    Preconditions are checked in order and each raises its own code:
    MATCH_NOT_IN_PROGRESS, NOT_YOUR_TURN, OUT_OF_BOUNDS, ALREADY_FIRED.
    ``turn_no`` only moves when the turn actually passes.
    """
    attacker = PlayerRole(attacker)
    if state.status is not MatchStatus.IN_PROGRESS:
        raise GameLogicError(GameError.MATCH_NOT_IN_PROGRESS, "Match is not in progress")
    if state.current_turn is not attacker:
        raise GameLogicError(GameError.NOT_YOUR_TURN, "Not your turn")
    if not in_bounds(coord):
        raise GameLogicError(GameError.OUT_OF_BOUNDS, "Coordinate out of bounds")

    defender = attacker.opponent
    target = state.board_of(defender)
    fog = state.fog_of(attacker)
    ship_index = ship_index_b if attacker is PlayerRole.A else ship_index_a
    key = coord_key(coord)

    if key in target.hits or key in target.misses:
        raise GameLogicError(GameError.ALREADY_FIRED, "Already fired at this coordinate")

    ship_id = ship_index.get(key)
    if ship_id is None:
        target.misses.add(key)
        fog[coord.y][coord.x] = CellMark.MISS
        _pass_turn(state, attacker)
        logger.debug("match %s: %s missed at %s", state.id, attacker.value, to_human(coord))
        return MissResult(coord)

    target.hits.add(key)
    fog[coord.y][coord.x] = CellMark.HIT
    ship = target.ship_by_id(ship_id)

    if not is_ship_sunk(ship, target.hits):
        if not state.rules.repeat_turn_on_hit:
            _pass_turn(state, attacker)
        logger.debug("match %s: %s hit at %s", state.id, attacker.value, to_human(coord))
        return HitResult(coord)

    target.sunk_ship_ids.add(ship_id)
    sunk_coords = ship_cells(ship)
    for c in sunk_coords:
        fog[c.y][c.x] = CellMark.SUNK
    # Computed from the post-sink hit set so the ship's own cells are excluded
    revealed = reveal_adjacent_cells(ship, target, fog, ship_index)
    logger.debug("match %s: %s sank %s (%d cells revealed)", state.id, attacker.value, ship_id, len(revealed))

    if target.all_ships_sunk():
        state.status = MatchStatus.FINISHED
        state.winner = attacker
        logger.debug("match %s: finished, winner %s on turn %d", state.id, attacker.value, state.turn_no)
        return WinResult(coord, ship_id, sunk_coords, revealed)

    if not state.rules.repeat_turn_on_hit:
        _pass_turn(state, attacker)
    return SunkResult(coord, ship_id, sunk_coords, revealed)


def ship_indexes(state: MatchState) -> tuple[ShipIndex, ShipIndex]:
    """Fresh ``(index_a, index_b)`` for *state*'s current fleets."""
    return build_ship_index(state.board_a.ships), build_ship_index(state.board_b.ships)


def get_public_state(state: MatchState, player: RoleLike) -> PublicMatchView:
    """Client-safe view: a snapshot of *player*'s own fog, never the opponent's board."""
    player = PlayerRole(player)
    return PublicMatchView(
        id=state.id,
        status=state.status,
        current_turn=state.current_turn,
        winner=state.winner,
        fog=[list(row) for row in state.fog_of(player)],
        rules=state.rules,
        turn_no=state.turn_no,
    )
