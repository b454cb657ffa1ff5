from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

from . import config as _cfg
from .coord_utils import get_adjacent_coords, get_orthogonal_coords, in_bounds
from .errors import GameError, GameLogicError
from .models import CellMark, Coord, FogOfWar, MoveResultKind


class AILevel(str, Enum):
    EASY = "easy"  # uniform random shots
    MEDIUM = "medium"  # try the four neighbours of every hit
    HARD = "hard"  # density map + line extrapolation


@dataclass
class AIState:
    """
    Per-opponent scratch state.  Independent of the match; kept consistent
    only through :func:`update_ai_state` after every shot the AI takes.

    ``probabilities`` is indexed ``[y][x]`` and exists for HARD only.
    """

    level: AILevel
    target_queue: List[Coord] = field(default_factory=list)
    hunt_mode: bool = False
    hit_sequence: List[Coord] = field(default_factory=list)
    last_hit: Optional[Coord] = None
    probabilities: Optional[np.ndarray] = field(default=None, compare=False)
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)


# ------------------------------------------------------------------ #
# Construction
# ------------------------------------------------------------------ #
def initial_probabilities() -> np.ndarray:
    """Centre-biased prior: ``max(0.1, 2 - manhattan_to_centre / 5)``."""
    centre = (_cfg.BOARD_SIZE - 1) / 2
    ys, xs = np.indices((_cfg.BOARD_SIZE, _cfg.BOARD_SIZE), dtype=float)
    distance = np.abs(xs - centre) + np.abs(ys - centre)
    return np.maximum(0.1, 2 - distance / 5)


def create_ai_state(level: AILevel, seed: Optional[int] = None) -> AIState:
    level = AILevel(level)
    return AIState(
        level=level,
        probabilities=initial_probabilities() if level is AILevel.HARD else None,
        rng=random.Random(seed),
    )


# ------------------------------------------------------------------ #
# Helper utilities
# ------------------------------------------------------------------ #
def get_line_targets(hit_sequence: List[Coord]) -> List[Coord]:
    """
    The two cells just beyond the ends of a straight run of hits.

    The axis comes from the first two hits (same y => horizontal); the run's
    extent is the min/max over the whole sequence.  Off-board ends are dropped.
    """
    if len(hit_sequence) < 2:
        return []
    first, second = hit_sequence[0], hit_sequence[1]
    if first.y == second.y:
        xs = [h.x for h in hit_sequence]
        ends = [Coord(min(xs) - 1, first.y), Coord(max(xs) + 1, first.y)]
    else:
        ys = [h.y for h in hit_sequence]
        ends = [Coord(first.x, min(ys) - 1), Coord(first.x, max(ys) + 1)]
    return [c for c in ends if in_bounds(c)]


def _unknown_cells(fog: FogOfWar) -> List[Coord]:
    return [
        Coord(x, y)
        for y in range(_cfg.BOARD_SIZE)
        for x in range(_cfg.BOARD_SIZE)
        if fog[y][x] is CellMark.UNKNOWN
    ]


def _pop_live_target(fog: FogOfWar, ai_state: AIState) -> Optional[Coord]:
    """Dequeue until an UNKNOWN cell turns up; stale entries are discarded."""
    while ai_state.target_queue:
        target = ai_state.target_queue.pop(0)
        if fog[target.y][target.x] is CellMark.UNKNOWN:
            return target
    return None


# ------------------------------------------------------------------ #
# Shot selection
# ------------------------------------------------------------------ #
def get_random_move(fog: FogOfWar, rng: Optional[random.Random] = None) -> Coord:
    cells = _unknown_cells(fog)
    if not cells:
        raise GameLogicError(GameError.BOARD_EXHAUSTED, "No available cells for AI move")
    return (rng or random).choice(cells)


def _medium_move(fog: FogOfWar, ai_state: AIState) -> Coord:
    target = _pop_live_target(fog, ai_state)
    return target if target is not None else get_random_move(fog, ai_state.rng)


def _hard_move(fog: FogOfWar, ai_state: AIState) -> Coord:
    target = _pop_live_target(fog, ai_state)
    if target is not None:
        return target
    if ai_state.probabilities is None:
        return get_random_move(fog, ai_state.rng)

    unknown = np.array([[mark is CellMark.UNKNOWN for mark in row] for row in fog], dtype=bool)
    if not unknown.any():
        return get_random_move(fog, ai_state.rng)
    # argmax breaks ties on the first cell in row-major order
    masked = np.where(unknown, ai_state.probabilities, -1.0)
    y, x = np.unravel_index(int(np.argmax(masked)), masked.shape)
    return Coord(int(x), int(y))


def get_ai_move(fog: FogOfWar, ai_state: AIState) -> Coord:
    """
    Pick the next shot from the AI's own fog.

    1. EASY: uniform random UNKNOWN cell.
    2. MEDIUM: target queue first, then random.
    3. HARD: target queue, then the most probable UNKNOWN cell.

    Raises BOARD_EXHAUSTED when no UNKNOWN cell is left.
    """
    if ai_state.level is AILevel.MEDIUM:
        return _medium_move(fog, ai_state)
    if ai_state.level is AILevel.HARD:
        return _hard_move(fog, ai_state)
    return get_random_move(fog, ai_state.rng)


# ------------------------------------------------------------------ #
# Result handling
# ------------------------------------------------------------------ #
def _reset_hunt(ai_state: AIState) -> None:
    ai_state.hunt_mode = False
    ai_state.target_queue = []
    ai_state.hit_sequence = []


def _suppress_around(probs: np.ndarray, sunk_coords: List[Coord]) -> None:
    sunk = set(sunk_coords)
    around = {nbr for c in sunk for nbr in get_adjacent_coords(c)} - sunk
    for c in around:
        probs[c.y, c.x] *= 0.1


def update_ai_state(
    ai_state: AIState,
    coord: Coord,
    result_kind: MoveResultKind,
    sunk_coords: Optional[List[Coord]] = None,
) -> None:
    """Feed back the real outcome of the shot the AI just fired at *coord*."""
    result_kind = MoveResultKind(result_kind)
    probs = ai_state.probabilities if ai_state.level is AILevel.HARD else None

    if result_kind is MoveResultKind.HIT:
        ai_state.last_hit = coord
        ai_state.hunt_mode = True
        ai_state.hit_sequence.append(coord)
        if ai_state.level is not AILevel.EASY:
            for nbr in get_orthogonal_coords(coord):
                if nbr not in ai_state.target_queue:
                    ai_state.target_queue.append(nbr)

    elif result_kind is MoveResultKind.SUNK:
        ai_state.last_hit = coord
        _reset_hunt(ai_state)
        if probs is not None and sunk_coords:
            _suppress_around(probs, sunk_coords)

    elif result_kind is MoveResultKind.MISS:
        if probs is not None:
            probs[coord.y, coord.x] = 0.0
            if ai_state.hunt_mode and len(ai_state.hit_sequence) >= 2:
                ai_state.target_queue = get_line_targets(ai_state.hit_sequence)

    else:  # WIN
        _reset_hunt(ai_state)

    # Reinforce the likely ship axis while hunting
    if probs is not None and ai_state.hunt_mode and len(ai_state.hit_sequence) >= 2:
        for c in get_line_targets(ai_state.hit_sequence):
            probs[c.y, c.x] *= 3


def get_ai_state_debug_info(ai_state: AIState) -> str:
    return (
        f"AI Level: {ai_state.level.value}, "
        f"Hunt Mode: {str(ai_state.hunt_mode).lower()}, "
        f"Targets in Queue: {len(ai_state.target_queue)}, "
        f"Hit Sequence: {len(ai_state.hit_sequence)}"
    )
