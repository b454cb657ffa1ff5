"""Lightweight event model used by MatchService to decouple game logic from transport.

The goal is to emit strongly-typed events that an API layer can translate into
WebSocket/SSE messages and other subscribers (e.g. logging or persistence) can
consume without inspecting match internals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class Category(Enum):
    """High-level event categories."""

    MATCH = auto()  # lifecycle: created, placed, started, finished, removed
    TURN = auto()  # per-shot outcomes


@dataclass(slots=True, frozen=True)
class Event:
    """Immutable event emitted by MatchService."""

    category: Category
    type: str  # finer-grained identifier, e.g. "started", "shot"
    match_id: str
    payload: Dict[str, Any]


Subscriber = Callable[[Event], None]


class EventRouter:
    """Fan events out to every subscriber plus any handler registered for the event type."""

    def __init__(self) -> None:
        self.subscribers: List[Subscriber] = []
        self.handlers: Dict[str, Subscriber] = {}

    def subscribe(self, callback: Subscriber) -> None:
        self.subscribers.append(callback)

    def register_handler(self, event_type: str, handler: Subscriber) -> None:
        self.handlers[event_type] = handler

    def route_event(self, event: Event) -> None:
        for callback in self.subscribers:
            callback(event)
        handler = self.handlers.get(event.type)
        if handler is not None:
            handler(event)
        elif not self.subscribers:
            logger.debug("No handler for event type: %s", event.type)
