"""
Typed game event bus.

Every state change the UI layer may want to render is emitted through a
single EventEmitter. The catalog of event kinds is the EventType enum.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Catalog of game events."""

    GAME_START = "game_start"
    TURN_START = "turn_start"
    TURN_END = "turn_end"
    DICE_ROLL = "dice_roll"
    ROLL_AGAIN = "roll_again"
    MOVE = "move"

    CARD_DRAW = "card_draw"
    MARKET_OFFER = "market_offer"
    EXPENSE = "expense"

    PAYDAY = "payday"
    CHARITY = "charity"
    BANKRUPTCY = "bankruptcy"

    DEAL_OFFERED = "deal_offered"
    DEAL_RESOLVED = "deal_resolved"
    ASSET_TRANSFERRED = "asset_transferred"

    TRANSFER_COMPLETED = "transfer_completed"
    CREDIT_TAKEN = "credit_taken"
    CREDIT_REPAID = "credit_repaid"

    BABY = "baby"
    LOSS = "loss"


@dataclass
class GameEvent:
    """A logged event in the game."""

    event_type: EventType
    player_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "player_id": self.player_id,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameEvent":
        return cls(
            event_type=EventType(data["event_type"]),
            player_id=data.get("player_id"),
            details=data.get("details", {}),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )

    def __repr__(self) -> str:
        player_str = self.player_id if self.player_id is not None else "System"
        return f"[{player_str}] {self.event_type.value}: {self.details}"


EventListener = Callable[[GameEvent], None]


class EventEmitter:
    """Append-only event log with synchronous subscribers."""

    def __init__(self, events: Optional[List[GameEvent]] = None):
        self.events: List[GameEvent] = events or []
        self._listeners: List[EventListener] = []

    def log(self, event_type: EventType, player_id: Optional[str] = None, **details: Any) -> GameEvent:
        """Record an event and notify every subscriber."""
        event = GameEvent(event_type, player_id, details)
        self.events.append(event)
        logger.debug(f"Event {event!r}")
        for listener in list(self._listeners):
            listener(event)
        return event

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get_events(self) -> List[GameEvent]:
        """Get all logged events."""
        return self.events.copy()

    def get_events_since(self, index: int) -> List[GameEvent]:
        """Get events with a log index >= index."""
        return self.events[max(0, index):]

    def get_recent_events(self, count: int = 10) -> List[GameEvent]:
        """Get the most recent N events."""
        return self.events[-count:]

    def of_type(self, event_type: EventType) -> List[GameEvent]:
        return [e for e in self.events if e.event_type == event_type]
