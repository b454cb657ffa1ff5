"""Per-player board and fog-of-war helpers.

A :class:`~seabattle.models.Board` holds the true layout of one player's fleet
and must never be sent to the opponent.  The fog is what the *other* player
has learned about it, one :class:`~seabattle.models.CellMark` per cell.
"""

from __future__ import annotations

from typing import List

from . import config as _cfg
from .coord_utils import coord_key, get_adjacent_coords, key_to_coord, ship_cells
from .models import Board, CellMark, Coord, Fleet, FogOfWar, Ship, ShipIndex


def make_board(fleet: Fleet) -> Board:
    return Board(ships=fleet)


def make_empty_fog() -> FogOfWar:
    return [[CellMark.UNKNOWN for _ in range(_cfg.BOARD_SIZE)] for _ in range(_cfg.BOARD_SIZE)]


def build_ship_index(fleet: Fleet) -> ShipIndex:
    """Map every occupied cell key to its ship id.  Rebuild after each placement."""
    return {coord_key(c): ship.id for ship in fleet for c in ship_cells(ship)}


def is_ship_sunk(ship: Ship, hits: set[str]) -> bool:
    return all(coord_key(c) in hits for c in ship_cells(ship))


def get_ship_adjacent_cells(ship: Ship) -> List[Coord]:
    """In-bounds cells touching *ship* (diagonals included), minus its own cells."""
    own = set(ship_cells(ship))
    seen: set[Coord] = set()
    out: List[Coord] = []
    for cell in ship_cells(ship):
        for nbr in get_adjacent_coords(cell):
            if nbr in own or nbr in seen:
                continue
            seen.add(nbr)
            out.append(nbr)
    return out


def reveal_adjacent_cells(ship: Ship, board: Board, fog: FogOfWar, ship_index: ShipIndex) -> List[Coord]:
    """
    Mark the untouched water around a sunk *ship* as misses.

    Cells already shot at and cells owned by any ship are left alone.  Updates
    both ``board.misses`` and the attacker's *fog*, and returns the newly
    revealed coordinates.
    """
    revealed: List[Coord] = []
    for cell in get_ship_adjacent_cells(ship):
        key = coord_key(cell)
        if key in ship_index or key in board.hits or key in board.misses:
            continue
        board.misses.add(key)
        fog[cell.y][cell.x] = CellMark.MISS
        revealed.append(cell)
    return revealed


# ---------------------------------------------------------------------------
# ASCII rendering (diagnostics only)
# ---------------------------------------------------------------------------

_FOG_SYMBOLS = {
    CellMark.UNKNOWN: ".",
    CellMark.MISS: "o",
    CellMark.HIT: "X",
    CellMark.SUNK: "#",
}


def _with_header(rows: List[str]) -> List[str]:
    header = "   " + " ".join(_cfg.COLUMN_LETTERS[: _cfg.BOARD_SIZE])
    return [header] + [f"{y + 1:>2} {row}" for y, row in enumerate(rows)]


def fog_rows(fog: FogOfWar) -> List[str]:
    """Fog -> ``[header, " 1 . . o X ...", ...]``."""
    return _with_header([" ".join(_FOG_SYMBOLS[mark] for mark in row) for row in fog])


def board_rows(board: Board) -> List[str]:
    """Full board with ships revealed: ``S`` ship, ``X`` hit, ``#`` sunk, ``o`` miss."""
    grid = [["." for _ in range(board.size)] for _ in range(board.size)]
    for ship in board.ships:
        sunk = ship.id in board.sunk_ship_ids
        for c in ship_cells(ship):
            if sunk:
                grid[c.y][c.x] = "#"
            elif coord_key(c) in board.hits:
                grid[c.y][c.x] = "X"
            else:
                grid[c.y][c.x] = "S"
    for key in board.misses:
        c = key_to_coord(key)
        grid[c.y][c.x] = "o"
    return _with_header([" ".join(row) for row in grid])
