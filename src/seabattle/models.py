"""Data model shared by every part of the game core.

Coordinates, ships and move results are immutable value objects; boards and
match state are plain mutable containers that :mod:`seabattle.game` mutates in
place.  Nothing in here enforces game rules: fleet invariants are checked by
:mod:`seabattle.fleet` at placement time.
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Set, Union

from . import config as _cfg


class CellMark(str, enum.Enum):
    """What a player knows about one cell of the opponent's board."""

    UNKNOWN = "U"
    MISS = "M"
    HIT = "H"
    SUNK = "S"


class MoveResultKind(str, enum.Enum):
    MISS = "miss"
    HIT = "hit"
    SUNK = "sunk"
    WIN = "win"


class MatchStatus(str, enum.Enum):
    PLACING = "placing"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class PlayerRole(str, enum.Enum):
    A = "A"
    B = "B"

    @property
    def opponent(self) -> "PlayerRole":
        return PlayerRole.B if self is PlayerRole.A else PlayerRole.A


@dataclass(frozen=True)
class Coord:
    """Zero-based grid position; x is the column, y the row."""

    x: int
    y: int


@dataclass(frozen=True)
class Ship:
    """A ship anchored at its minimum-coordinate cell (*bow*)."""

    id: str
    bow: Coord
    length: int
    horizontal: bool


Fleet = List[Ship]
FogOfWar = List[List[CellMark]]
ShipIndex = Dict[str, str]  # coord key -> ship id


@dataclass
class Board:
    """One player's secret layout plus the shots it has received."""

    ships: Fleet = field(default_factory=list)
    hits: Set[str] = field(default_factory=set)
    misses: Set[str] = field(default_factory=set)
    sunk_ship_ids: Set[str] = field(default_factory=set)
    size: int = _cfg.BOARD_SIZE

    def is_empty(self) -> bool:
        return not self.ships

    def ship_by_id(self, ship_id: str) -> Ship:
        for ship in self.ships:
            if ship.id == ship_id:
                return ship
        raise KeyError(ship_id)

    def all_ships_sunk(self) -> bool:
        """True once every ship id on this board is in ``sunk_ship_ids``."""
        return bool(self.ships) and all(ship.id in self.sunk_ship_ids for ship in self.ships)


@dataclass(frozen=True)
class Rules:
    """Immutable rules snapshot captured when a match is created."""

    allow_touching: bool = _cfg.ALLOW_TOUCHING
    repeat_turn_on_hit: bool = _cfg.REPEAT_TURN_ON_HIT
    turn_seconds: int = _cfg.TURN_SECONDS
    placement_seconds: int = _cfg.PLACEMENT_SECONDS

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MatchState:
    """Aggregate root for a single match."""

    id: str
    rules: Rules
    board_a: Board
    board_b: Board
    fog_for_a: FogOfWar
    fog_for_b: FogOfWar
    status: MatchStatus = MatchStatus.PLACING
    current_turn: Optional[PlayerRole] = None
    winner: Optional[PlayerRole] = None
    turn_no: int = 0

    def board_of(self, player: PlayerRole) -> Board:
        """*player*'s own (secret) board."""
        return self.board_a if player is PlayerRole.A else self.board_b

    def fog_of(self, player: PlayerRole) -> FogOfWar:
        """What *player* has learned about the opponent's board."""
        return self.fog_for_a if player is PlayerRole.A else self.fog_for_b


# ---------------------------------------------------------------------------
# Move results: one frozen shape per outcome, discriminated by ``kind``.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MissResult:
    kind: ClassVar[MoveResultKind] = MoveResultKind.MISS
    coord: Coord


@dataclass(frozen=True)
class HitResult:
    kind: ClassVar[MoveResultKind] = MoveResultKind.HIT
    coord: Coord


@dataclass(frozen=True)
class SunkResult:
    kind: ClassVar[MoveResultKind] = MoveResultKind.SUNK
    coord: Coord
    ship_id: str
    sunk_coords: List[Coord]
    revealed_cells: List[Coord]


@dataclass(frozen=True)
class WinResult:
    kind: ClassVar[MoveResultKind] = MoveResultKind.WIN
    coord: Coord
    ship_id: str
    sunk_coords: List[Coord]
    revealed_cells: List[Coord]


MoveResult = Union[MissResult, HitResult, SunkResult, WinResult]


def result_payload(result: MoveResult) -> Dict[str, Any]:
    """JSON-ready dict for a move result (coords as ``{"x", "y"}`` dicts)."""
    payload: Dict[str, Any] = {"kind": result.kind.value, "coord": asdict(result.coord)}
    if isinstance(result, (SunkResult, WinResult)):
        payload["ship_id"] = result.ship_id
        payload["sunk_coords"] = [asdict(c) for c in result.sunk_coords]
        payload["revealed_cells"] = [asdict(c) for c in result.revealed_cells]
    return payload


@dataclass(frozen=True)
class PublicMatchView:
    """The only match shape that may be handed to a client-facing layer."""

    id: str
    status: MatchStatus
    current_turn: Optional[PlayerRole]
    winner: Optional[PlayerRole]
    fog: FogOfWar
    rules: Rules
    turn_no: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "current_turn": self.current_turn.value if self.current_turn else None,
            "winner": self.winner.value if self.winner else None,
            "fog": ["".join(mark.value for mark in row) for row in self.fog],
            "rules": self.rules.as_dict(),
            "turn_no": self.turn_no,
        }
