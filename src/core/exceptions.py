"""
Custom exception hierarchy for the Energy Money engine and services.

Provides typed errors that can be handled consistently across
the core engine, services, and API layer. Every error carries a
``kind`` used by the API layer to build structured failures.
"""


class GameError(Exception):
    """Base exception for all game-related errors."""

    kind = "game_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(GameError):
    """Input validation failed (bad amount, insufficient funds, not your turn)."""

    kind = "validation"


class NotFoundError(GameError):
    """Player, card, asset or room does not exist."""

    kind = "not_found"


class ConcurrencyError(GameError):
    """A stale write was detected by the room versioning discipline."""

    kind = "concurrency"


class StateError(GameError):
    """Operation is not legal in the current phase."""

    kind = "state"


class PendingDealMissingError(NotFoundError, StateError):
    """A deal resolution was requested but no deal is pending for the player."""


class DatabaseError(GameError):
    """Database operation failed."""

    kind = "database"
