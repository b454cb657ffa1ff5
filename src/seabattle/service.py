"""Multi-match service layer sitting between an API/transport and the game core.

The core in :mod:`seabattle.game` is single-writer and stateless about
retries.  This module supplies what callers are expected to add on top:

• an explicit :class:`MatchStore` instead of a process-wide registry,
• a per-match lock so two requests never mutate one match concurrently,
• ship indexes rebuilt once per placement and reused for every move,
• idempotent move submission keyed by ``<match>:<player>:<client key>``,
• lifecycle events for push channels (see :mod:`seabattle.events`).
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .board import build_ship_index
from .errors import GameError, GameLogicError
from .events import Category, Event, EventRouter, Subscriber
from .game import RoleLike, apply_move, create_match, get_public_state, place_fleet, ship_indexes
from .models import (
    Coord,
    Fleet,
    MatchState,
    MatchStatus,
    MoveResult,
    PlayerRole,
    PublicMatchView,
    ShipIndex,
    result_payload,
)

logger = logging.getLogger(__name__)


class MatchStore:
    """In-memory keyed collection of matches.  Pass it to whoever needs it."""

    def __init__(self) -> None:
        self._matches: Dict[str, MatchState] = {}

    def add(self, match: MatchState) -> None:
        if match.id in self._matches:
            raise GameLogicError(GameError.MATCH_NOT_IN_PROGRESS, f"Match already exists: {match.id}")
        self._matches[match.id] = match

    def get(self, match_id: str) -> MatchState:
        try:
            return self._matches[match_id]
        except KeyError:
            raise GameLogicError(GameError.MATCH_NOT_IN_PROGRESS, "Match not found", {"match_id": match_id}) from None

    def delete(self, match_id: str) -> bool:
        return self._matches.pop(match_id, None) is not None

    def finished_ids(self) -> List[str]:
        return [mid for mid, m in self._matches.items() if m.status is MatchStatus.FINISHED]

    def __contains__(self, match_id: object) -> bool:
        return match_id in self._matches

    def __len__(self) -> int:
        return len(self._matches)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._matches))


class MatchService:
    """Thread-safe facade over the game core for many concurrent matches."""

    def __init__(self, store: Optional[MatchStore] = None, *, rng: Optional[random.Random] = None) -> None:
        self.store = store if store is not None else MatchStore()
        self._rng = rng
        self._events = EventRouter()
        self._registry_lock = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._indexes: Dict[str, Dict[PlayerRole, ShipIndex]] = {}
        self._results: Dict[str, MoveResult] = {}

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def subscribe(self, callback: Subscriber) -> None:
        """Allow external components (API layer/logger) to receive match events."""
        self._events.subscribe(callback)

    def _emit(self, category: Category, type_: str, match_id: str, **payload: Any) -> None:
        self._events.route_event(Event(category, type_, match_id, payload))

    # ------------------------------------------------------------------
    # Locking helpers
    # ------------------------------------------------------------------
    def _lock_for(self, match_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(match_id)
            if lock is None:
                lock = self._locks[match_id] = threading.Lock()
            return lock

    def _indexes_for(self, match: MatchState) -> Dict[PlayerRole, ShipIndex]:
        """Cached ship indexes, rebuilt for matches added to the store directly.  Hold the match lock."""
        indexes = self._indexes.get(match.id)
        if indexes is None:
            indexes = self._indexes[match.id] = dict(zip(PlayerRole, ship_indexes(match)))
        return indexes

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def create_match(self, match_id: str, rules: Optional[Mapping[str, Any]] = None) -> MatchState:
        match = create_match(match_id, rules)
        with self._registry_lock:
            self.store.add(match)
            self._indexes[match_id] = {PlayerRole.A: {}, PlayerRole.B: {}}
        logger.info("Match %s created", match_id)
        self._emit(Category.MATCH, "created", match_id, rules=match.rules.as_dict())
        return match

    def place_fleet(self, match_id: str, player: RoleLike, fleet: Fleet) -> None:
        player = PlayerRole(player)
        with self._lock_for(match_id):
            match = self.store.get(match_id)
            place_fleet(match, player, fleet, rng=self._rng)
            self._indexes_for(match)[player] = build_ship_index(match.board_of(player).ships)
            started = match.status is MatchStatus.IN_PROGRESS
            first = match.current_turn

        self._emit(Category.MATCH, "placed", match_id, player=player.value)
        if started and first is not None:
            logger.info("Match %s started, player %s moves first", match_id, first.value)
            self._emit(Category.MATCH, "started", match_id, current_turn=first.value, turn_no=1)

    def make_move(
        self,
        match_id: str,
        player: RoleLike,
        coord: Coord,
        idempotency_key: Optional[str] = None,
    ) -> MoveResult:
        """
        Apply *player*'s shot.  A repeated *idempotency_key* returns the cached
        result without touching the match again.
        """
        player = PlayerRole(player)
        cache_key = f"{match_id}:{player.value}:{idempotency_key}" if idempotency_key else None

        with self._lock_for(match_id):
            if cache_key is not None and cache_key in self._results:
                logger.debug("Idempotent replay for %s", cache_key)
                return self._results[cache_key]

            match = self.store.get(match_id)
            indexes = self._indexes_for(match)
            result = apply_move(player, coord, match, indexes[PlayerRole.A], indexes[PlayerRole.B])
            if cache_key is not None:
                self._results[cache_key] = result
            turn, turn_no, status, winner = match.current_turn, match.turn_no, match.status, match.winner

        self._emit(
            Category.TURN,
            "shot",
            match_id,
            attacker=player.value,
            result=result_payload(result),
            current_turn=turn.value if turn else None,
            turn_no=turn_no,
        )
        if status is MatchStatus.FINISHED and winner is not None:
            logger.info("Match %s finished, winner %s", match_id, winner.value)
            self._emit(Category.MATCH, "finished", match_id, winner=winner.value, turn_no=turn_no)
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_public_state(self, match_id: str, player: RoleLike) -> PublicMatchView:
        with self._lock_for(match_id):
            return get_public_state(self.store.get(match_id), player)

    def get_match_state(self, match_id: str) -> Optional[MatchState]:
        """Full private state (admin/debug use only); None if unknown."""
        if match_id not in self.store:
            return None
        return self.store.get(match_id)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------
    def delete_match(self, match_id: str) -> bool:
        with self._lock_for(match_id):
            removed = self.store.delete(match_id)
        with self._registry_lock:
            self._locks.pop(match_id, None)
            self._indexes.pop(match_id, None)
            prefix = f"{match_id}:"
            for key in [k for k in self._results if k.startswith(prefix)]:
                del self._results[key]
        if removed:
            self._emit(Category.MATCH, "removed", match_id)
        return removed

    def cleanup_finished_matches(self) -> List[str]:
        """Drop every finished match; returns the removed ids."""
        removed = [mid for mid in self.store.finished_ids() if self.delete_match(mid)]
        if removed:
            logger.info("Cleaned up %d finished match(es)", len(removed))
        return removed
