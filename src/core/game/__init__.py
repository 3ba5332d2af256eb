from core.game.game import GameState, create_game
from core.game.player import OwnedAsset, Player, PlayerState
from core.game.board import Board, CellType
from core.game.cards import Card, CardType
from core.game.config import CreditFormula, GameConfig
from core.game.decks import CardDeckManager
from core.game.ledger import BANK_INDEX, LedgerService, Transaction
from core.game.deals import DealResolver
from core.game.processor import EventProcessor, PaydayResult
from core.game.turns import TurnPhase, TurnState, TurnStateMachine

__all__ = [
    "GameState",
    "create_game",
    "OwnedAsset",
    "Player",
    "PlayerState",
    "Board",
    "CellType",
    "Card",
    "CardType",
    "CreditFormula",
    "GameConfig",
    "CardDeckManager",
    "BANK_INDEX",
    "LedgerService",
    "Transaction",
    "DealResolver",
    "EventProcessor",
    "PaydayResult",
    "TurnPhase",
    "TurnState",
    "TurnStateMachine",
]
