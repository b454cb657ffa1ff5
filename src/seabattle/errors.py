"""Error codes and the single exception type raised by the game core.

Every domain failure surfaces as :class:`GameLogicError` carrying a
:class:`GameError` code, so callers can branch on ``exc.code`` to pick an
HTTP status or a user message instead of parsing free text.
"""

from __future__ import annotations

import enum
from typing import Any, Dict, Optional


class GameError(str, enum.Enum):
    """Closed set of error codes."""

    # placement / layout
    INVALID_LAYOUT = "INVALID_LAYOUT"
    OVERLAP = "OVERLAP"
    WRONG_COMPOSITION = "WRONG_COMPOSITION"
    TOUCHING = "TOUCHING"

    # structural input
    OUT_OF_BOUNDS = "OUT_OF_BOUNDS"
    BAD_LENGTH = "BAD_LENGTH"
    ORIENTATION = "ORIENTATION"
    FLEET_SIZE = "FLEET_SIZE"
    BAD_COORD = "BAD_COORD"
    INVALID_RULES = "INVALID_RULES"

    # turn / state protocol
    ALREADY_FIRED = "ALREADY_FIRED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    MATCH_NOT_IN_PROGRESS = "MATCH_NOT_IN_PROGRESS"

    # resource exhaustion
    RANDOM_PLACEMENT_FAILED = "RANDOM_PLACEMENT_FAILED"
    BOARD_EXHAUSTED = "BOARD_EXHAUSTED"

    # reserved for collaborators (never raised by the core)
    INVITE_CONSUMED = "INVITE_CONSUMED"
    INVITE_EXPIRED = "INVITE_EXPIRED"
    RATE_LIMIT = "RATE_LIMIT"
    IDEMPOTENT_REPLAY = "IDEMPOTENT_REPLAY"


class GameLogicError(Exception):
    """Raised for any rule, input or protocol violation."""

    def __init__(self, code: GameError, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return f"GameLogicError({self.code.value}, {self.message!r})"


_HTTP_STATUS: Dict[GameError, int] = {
    GameError.INVALID_LAYOUT: 400,
    GameError.ALREADY_FIRED: 400,
    GameError.OUT_OF_BOUNDS: 400,
    GameError.BAD_LENGTH: 400,
    GameError.ORIENTATION: 400,
    GameError.OVERLAP: 400,
    GameError.WRONG_COMPOSITION: 400,
    GameError.TOUCHING: 400,
    GameError.FLEET_SIZE: 400,
    GameError.BAD_COORD: 400,
    GameError.INVALID_RULES: 400,
    GameError.NOT_YOUR_TURN: 403,
    GameError.MATCH_NOT_IN_PROGRESS: 409,
    GameError.IDEMPOTENT_REPLAY: 409,
    GameError.INVITE_CONSUMED: 410,
    GameError.INVITE_EXPIRED: 410,
    GameError.RATE_LIMIT: 429,
}


def http_status_for(code: GameError) -> int:
    """Suggested HTTP status for *code* (500 for anything unmapped)."""
    return _HTTP_STATUS.get(code, 500)
