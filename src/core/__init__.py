"""
Core domain layer for Energy Money.

Exposes game engine primitives and the error taxonomy.
"""

from core.game import Board, GameConfig, GameState, Player, PlayerState, create_game
from core.exceptions import (
    ConcurrencyError,
    GameError,
    NotFoundError,
    PendingDealMissingError,
    StateError,
    ValidationError,
)

__all__ = [
    "Board",
    "GameConfig",
    "GameState",
    "Player",
    "PlayerState",
    "create_game",
    "ConcurrencyError",
    "GameError",
    "NotFoundError",
    "PendingDealMissingError",
    "StateError",
    "ValidationError",
]
