"""Coordinate helpers: bounds, set keys, ship cells, neighbours and A1 notation."""

from __future__ import annotations

import re
import uuid
from typing import List, Optional, Tuple

from . import config as _cfg
from .errors import GameError, GameLogicError
from .models import Coord, Ship

# Valid human coordinates A1..J10 (column letter, 1-based row)
COORD_RE = re.compile(r"^([A-J])(10|[1-9])$", re.IGNORECASE)

_NEIGHBOUR_DELTAS: Tuple[Tuple[int, int], ...] = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
)
# up, right, down, left
_ORTHOGONAL_DELTAS: Tuple[Tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))


def in_bounds(coord: Coord) -> bool:
    return 0 <= coord.x < _cfg.BOARD_SIZE and 0 <= coord.y < _cfg.BOARD_SIZE


def coord_key(coord: Coord) -> str:
    """Canonical ``"x,y"`` key used for every coordinate set and map."""
    return f"{coord.x},{coord.y}"


def key_to_coord(key: str) -> Coord:
    x, y = key.split(",")
    return Coord(int(x), int(y))


def ship_cells(ship: Ship) -> List[Coord]:
    """Cells covered by *ship*, bow first.  No bounds checking."""
    if ship.horizontal:
        return [Coord(ship.bow.x + i, ship.bow.y) for i in range(ship.length)]
    return [Coord(ship.bow.x, ship.bow.y + i) for i in range(ship.length)]


def get_adjacent_coords(coord: Coord) -> List[Coord]:
    """In-bounds 8-directional neighbours of *coord*."""
    out = []
    for dx, dy in _NEIGHBOUR_DELTAS:
        nbr = Coord(coord.x + dx, coord.y + dy)
        if in_bounds(nbr):
            out.append(nbr)
    return out


def get_orthogonal_coords(coord: Coord) -> List[Coord]:
    """In-bounds 4-directional neighbours in up, right, down, left order."""
    out = []
    for dx, dy in _ORTHOGONAL_DELTAS:
        nbr = Coord(coord.x + dx, coord.y + dy)
        if in_bounds(nbr):
            out.append(nbr)
    return out


def get_coords_in_radius(center: Coord, radius: int) -> List[Coord]:
    """In-bounds square neighbourhood of *center* (centre included)."""
    return [
        Coord(center.x + dx, center.y + dy)
        for dy in range(-radius, radius + 1)
        for dx in range(-radius, radius + 1)
        if in_bounds(Coord(center.x + dx, center.y + dy))
    ]


def is_on_same_line(a: Coord, b: Coord) -> bool:
    return a.x == b.x or a.y == b.y


def get_direction(start: Coord, end: Coord) -> Optional[Tuple[int, int]]:
    """Unit step ``(dx, dy)`` from *start* towards *end*, or None if equal."""
    dx = end.x - start.x
    dy = end.y - start.y
    if dx == 0 and dy == 0:
        return None
    return ((dx > 0) - (dx < 0), (dy > 0) - (dy < 0))


def ship_from_coords(bow: Coord, stern: Coord, ship_id: Optional[str] = None) -> Ship:
    """
    Build a ship spanning *bow*..*stern* (either order).

    Raises BAD_LENGTH for a zero-span or over-long ship and ORIENTATION when
    the two ends do not share a row or column.
    """
    direction = get_direction(bow, stern)
    if direction is None:
        raise GameLogicError(GameError.BAD_LENGTH, "Invalid ship coordinates: bow and stern are the same")
    dx, dy = direction
    if dx != 0 and dy != 0:
        raise GameLogicError(GameError.ORIENTATION, "Ship must be horizontal or vertical")

    horizontal = dy == 0
    length = abs(stern.x - bow.x) + 1 if horizontal else abs(stern.y - bow.y) + 1
    if not _cfg.MIN_SHIP_LENGTH <= length <= _cfg.MAX_SHIP_LENGTH:
        raise GameLogicError(GameError.BAD_LENGTH, f"Invalid ship length: {length}")

    start = min(bow, stern, key=lambda c: (c.x, c.y))
    return Ship(id=ship_id or uuid.uuid4().hex, bow=start, length=length, horizontal=horizontal)


# ---------------------------------------------------------------------------
# Human notation
# ---------------------------------------------------------------------------


def to_human(coord: Coord) -> str:
    """``Coord(0, 0)`` -> ``'A1'``; ``Coord(9, 9)`` -> ``'J10'``.  Raises OUT_OF_BOUNDS off the board."""
    if not in_bounds(coord):
        raise GameLogicError(GameError.OUT_OF_BOUNDS, f"Coordinate out of bounds: ({coord.x}, {coord.y})")
    return f"{_cfg.COLUMN_LETTERS[coord.x]}{coord.y + 1}"


def from_human(text: str) -> Coord:
    """Parse ``'A1'``..``'J10'`` (any case, no surrounding whitespace); raises BAD_COORD otherwise."""
    m = COORD_RE.fullmatch(text) if isinstance(text, str) else None
    if not m:
        raise GameLogicError(GameError.BAD_COORD, f"Invalid coordinate format: {text!r}")
    return Coord(_cfg.COLUMN_LETTERS.index(m.group(1).upper()), int(m.group(2)) - 1)
