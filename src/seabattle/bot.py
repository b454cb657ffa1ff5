"""Computer opponent driver: drives a :class:`~seabattle.bot_logic.AIState` through MatchService."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .bot_logic import AILevel, AIState, create_ai_state, get_ai_move, get_ai_state_debug_info, update_ai_state
from .coord_utils import to_human
from .models import MatchStatus, MoveResult, PlayerRole, SunkResult, WinResult
from .service import MatchService

logger = logging.getLogger(__name__)


@dataclass
class AIPlayer:
    """An AI seated in one role of a match."""

    role: PlayerRole
    state: AIState

    @classmethod
    def create(cls, role: PlayerRole, level: AILevel, seed: Optional[int] = None) -> "AIPlayer":
        return cls(PlayerRole(role), create_ai_state(level, seed))

    def play_turn(self, service: MatchService, match_id: str) -> List[MoveResult]:
        return play_ai_turn(service, match_id, self.role, self.state)


def play_ai_turn(service: MatchService, match_id: str, role: PlayerRole, ai_state: AIState) -> List[MoveResult]:
    """
    Keep firing for *role* while it holds the turn.

    Each shot is chosen from the AI's own fog, applied through the service
    exactly like a human move, and fed back via ``update_ai_state``.  With
    repeat-turn-on-hit this fires several times in one call.  Returns the
    results in order (empty if it is not *role*'s turn).
    """
    role = PlayerRole(role)
    results: List[MoveResult] = []
    # Locked snapshot of status, turn and fog
    view = service.get_public_state(match_id, role)

    while view.status is MatchStatus.IN_PROGRESS and view.current_turn is role:
        coord = get_ai_move(view.fog, ai_state)
        result = service.make_move(match_id, role, coord)
        sunk = result.sunk_coords if isinstance(result, (SunkResult, WinResult)) else None
        update_ai_state(ai_state, coord, result.kind, sunk)
        logger.debug("%s fired %s -> %s [%s]", role.value, to_human(coord), result.kind.value, get_ai_state_debug_info(ai_state))
        results.append(result)
        view = service.get_public_state(match_id, role)
    return results
