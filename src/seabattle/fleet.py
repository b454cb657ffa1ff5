"""Fleet validation and construction.

Validation reports the *first* rule a fleet breaks, in a fixed precedence:
fleet size, per-ship structure (length, bounds, orientation), overlap,
composition and finally touching.  Structural problems therefore always win
over the geometric ones, which gives a caller the most actionable reason.
"""

from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from . import config as _cfg
from .coord_utils import get_adjacent_coords, in_bounds, ship_cells
from .errors import GameError, GameLogicError
from .models import Coord, Fleet, Ship

Grid = List[List[Optional[int]]]


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[GameError] = None

    def __bool__(self) -> bool:
        return self.ok


VALID = ValidationResult(True)


def _fail(reason: GameError) -> ValidationResult:
    return ValidationResult(False, reason)


def _empty_grid() -> Grid:
    return [[None for _ in range(_cfg.BOARD_SIZE)] for _ in range(_cfg.BOARD_SIZE)]


def _structural_error(ship: Ship) -> Optional[GameError]:
    """Length, bounds and orientation problems of a single ship."""
    if not isinstance(ship.length, int) or not _cfg.MIN_SHIP_LENGTH <= ship.length <= _cfg.MAX_SHIP_LENGTH:
        return GameError.BAD_LENGTH
    if not all(in_bounds(c) for c in ship_cells(ship)):
        return GameError.OUT_OF_BOUNDS
    if not isinstance(ship.horizontal, bool):
        return GameError.ORIENTATION
    return None


def _touches(cells: Iterable[Coord], grid: Grid, owner: Optional[int] = None) -> bool:
    """True if any 8-neighbour of *cells* is occupied by a ship other than *owner*."""
    for cell in cells:
        for nbr in get_adjacent_coords(cell):
            other = grid[nbr.y][nbr.x]
            if other is not None and other != owner:
                return True
    return False


def validate_fleet(fleet: Fleet, allow_touching: bool = False) -> ValidationResult:
    """Check *fleet* against size, structure, overlap, composition and touching rules."""
    if len(fleet) != _cfg.FLEET_SIZE:
        return _fail(GameError.FLEET_SIZE)

    for ship in fleet:
        err = _structural_error(ship)
        if err is not None:
            return _fail(err)

    # Occupancy grid holds the fleet index of the owning ship
    grid = _empty_grid()
    for idx, ship in enumerate(fleet):
        for c in ship_cells(ship):
            if grid[c.y][c.x] is not None:
                return _fail(GameError.OVERLAP)
            grid[c.y][c.x] = idx

    by_len = Counter(ship.length for ship in fleet)
    for length, expected in _cfg.FLEET_COMPOSITION.items():
        if by_len.get(length, 0) != expected:
            return _fail(GameError.WRONG_COMPOSITION)

    if not allow_touching:
        for idx, ship in enumerate(fleet):
            if _touches(ship_cells(ship), grid, owner=idx):
                return _fail(GameError.TOUCHING)

    return VALID


def validate_placement_against_fleet(
    existing: Fleet,
    candidate: Ship,
    allow_touching: bool = False,
    exclude_ship_id: Optional[str] = None,
) -> ValidationResult:
    """Check a single *candidate* ship against already-placed ships.

    Intended for live placement previews; *exclude_ship_id* lets a ship that
    is being moved be checked against the rest of the fleet.
    """
    if not isinstance(candidate.length, int) or not _cfg.MIN_SHIP_LENGTH <= candidate.length <= _cfg.MAX_SHIP_LENGTH:
        return _fail(GameError.BAD_LENGTH)
    if not isinstance(candidate.horizontal, bool):
        return _fail(GameError.ORIENTATION)

    grid = _empty_grid()
    for idx, ship in enumerate(existing):
        if exclude_ship_id is not None and ship.id == exclude_ship_id:
            continue
        for c in ship_cells(ship):
            if not in_bounds(c):
                return _fail(GameError.OUT_OF_BOUNDS)
            if grid[c.y][c.x] is not None:
                return _fail(GameError.OVERLAP)
            grid[c.y][c.x] = idx

    cells = ship_cells(candidate)
    for c in cells:
        if not in_bounds(c):
            return _fail(GameError.OUT_OF_BOUNDS)
        if grid[c.y][c.x] is not None:
            return _fail(GameError.OVERLAP)

    if not allow_touching and _touches(cells, grid):
        return _fail(GameError.TOUCHING)
    return VALID


# ---------------------------------------------------------------------------
# Fleet construction
# ---------------------------------------------------------------------------


def create_default_fleet() -> Fleet:
    """A fixed, valid, non-touching layout used by tests and demos."""
    return [
        Ship("ship-4-1", Coord(1, 1), 4, True),
        Ship("ship-3-1", Coord(1, 3), 3, True),
        Ship("ship-3-2", Coord(6, 1), 3, False),
        Ship("ship-2-1", Coord(1, 5), 2, True),
        Ship("ship-2-2", Coord(4, 5), 2, True),
        Ship("ship-2-3", Coord(8, 1), 2, False),
        Ship("ship-1-1", Coord(1, 7), 1, True),
        Ship("ship-1-2", Coord(3, 7), 1, True),
        Ship("ship-1-3", Coord(5, 7), 1, True),
        Ship("ship-1-4", Coord(7, 7), 1, True),
    ]


def _try_place_fleet(rng: random.Random, allow_touching: bool) -> Optional[Fleet]:
    """One attempt at placing every ship; None if some ship could not fit."""
    grid = _empty_grid()
    ships: Fleet = []
    counters: Counter[int] = Counter()

    for length in _cfg.FLEET_LENGTHS:
        placed = False
        for _ in range(_cfg.SHIP_PLACEMENT_ATTEMPTS):
            horizontal = rng.random() < 0.5
            max_x = _cfg.BOARD_SIZE - length if horizontal else _cfg.BOARD_SIZE - 1
            max_y = _cfg.BOARD_SIZE - 1 if horizontal else _cfg.BOARD_SIZE - length
            bow = Coord(rng.randint(0, max_x), rng.randint(0, max_y))
            candidate = Ship(f"ship-{length}-{counters[length] + 1}", bow, length, horizontal)
            cells = ship_cells(candidate)
            if any(grid[c.y][c.x] is not None for c in cells):
                continue
            if not allow_touching and _touches(cells, grid):
                continue

            for c in cells:
                grid[c.y][c.x] = len(ships)
            ships.append(candidate)
            counters[length] += 1
            placed = True
            break
        if not placed:
            return None
    return ships


def random_fleet(
    seed: Union[int, str, None] = None,
    allow_touching: bool = False,
    *,
    rng: Optional[random.Random] = None,
) -> Fleet:
    """
    Generate a random valid fleet.

    Pass *seed* (or a ready-made *rng*) for a reproducible layout.  Raises
    RANDOM_PLACEMENT_FAILED after ``RANDOM_PLACEMENT_ATTEMPTS`` whole-fleet
    attempts.
    """
    rng = rng or random.Random(seed)
    for _ in range(_cfg.RANDOM_PLACEMENT_ATTEMPTS):
        fleet = _try_place_fleet(rng, allow_touching)
        if fleet is not None:
            return fleet
    raise GameLogicError(
        GameError.RANDOM_PLACEMENT_FAILED,
        f"Failed to generate random fleet after {_cfg.RANDOM_PLACEMENT_ATTEMPTS} attempts",
    )
