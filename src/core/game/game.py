"""
Room aggregate: wires the ledger, decks, deals, processor and turn machine
together and exposes the operations a seated player can perform.
"""

import logging
import random
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional

from core.events.emitter import EventEmitter, EventType, GameEvent
from core.exceptions import ValidationError
from core.game.board import Board
from core.game.cards import Card, CardType, default_card_templates
from core.game.config import CreditFormula, GameConfig
from core.game.deals import DealResolver
from core.game.decks import CardDeckManager
from core.game.ledger import LedgerService, Transaction
from core.game.player import Player, PlayerState
from core.game.processor import EventProcessor, PaydayResult
from core.game.turns import TurnState, TurnStateMachine

logger = logging.getLogger(__name__)


def _config_to_dict(config: GameConfig) -> Dict[str, Any]:
    data = asdict(config)
    data["credit_formula"] = CreditFormula(config.credit_formula).value
    return data


def _config_from_dict(data: Mapping[str, Any]) -> GameConfig:
    data = dict(data)
    if "credit_formula" in data:
        data["credit_formula"] = CreditFormula(data["credit_formula"])
    return GameConfig(**data)


class GameState:
    """
    Represents the complete state of an Energy Money room.
    This is the main interface for the game engine.
    """

    def __init__(
        self,
        config: GameConfig,
        players: List[Player],
        templates: Optional[Mapping[CardType, List[Card]]] = None,
    ):
        self.config = config
        self.board = Board()
        self.emitter = EventEmitter()
        self.version = 0

        # Initialize RNG
        self.rng = random.Random(config.seed)

        self.seat_order: List[str] = [p.player_id for p in players]
        self.players: Dict[str, PlayerState] = {}
        for player in players:
            self.players[player.player_id] = PlayerState(
                player.player_id,
                player.name,
                config.starting_cash if player.starting_cash is None else player.starting_cash,
                config.monthly_income if player.monthly_income is None else player.monthly_income,
                config.monthly_expenses if player.monthly_expenses is None else player.monthly_expenses,
            )

        self.decks = CardDeckManager(templates or default_card_templates(), self.rng)
        self._wire(transactions=[], pending={}, turn_state=None)

        self.emitter.log(
            EventType.GAME_START,
            players=[p.name for p in players],
            starting_cash=config.starting_cash,
            seed=config.seed,
        )
        self.turns.start()

    def _wire(
        self,
        transactions: List[Transaction],
        pending: Dict[str, Card],
        turn_state: Optional[TurnState],
    ) -> None:
        self.ledger = LedgerService(self.players, self.seat_order, self.config, self.emitter, transactions)
        self.deals = DealResolver(self.ledger, self.decks, self.emitter)
        self.deals.pending = pending
        self.processor = EventProcessor(self.ledger, self.decks, self.deals, self.emitter)
        self.turns = TurnStateMachine(
            self.board,
            self.ledger,
            self.decks,
            self.deals,
            self.processor,
            self.emitter,
            self.rng,
            self.config,
            self.seat_order,
            turn_state,
        )

    # Queries

    @property
    def turn_state(self) -> TurnState:
        return self.turns.state

    def get_player(self, player_id: str) -> PlayerState:
        return self.ledger.get_player(player_id)

    def turn_history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.turns.history(limit)

    def turn_stats(self) -> Dict[str, Any]:
        return self.turns.stats()

    def check_conservation(self) -> None:
        """Raise StateError if any card has been created or lost."""
        self.decks.check_conservation(self.deals.owned_counts())

    # Player operations

    def roll(self, player_id: str, dice_count: Optional[int] = None) -> Dict[str, Any]:
        return self.turns.roll(player_id, dice_count)

    def choose_deal(self, player_id: str, size: str) -> Optional[Card]:
        return self.turns.choose_deal(player_id, size)

    def resolve_deal(self, player_id: str, action: str, quantity: Optional[int] = None) -> Dict[str, Any]:
        return self.turns.resolve_deal(player_id, action, quantity)

    def transfer_asset(self, player_id: str, asset_id: str, target_id: str) -> Dict[str, Any]:
        return self.turns.transfer_asset(player_id, asset_id, target_id)

    def sell_asset(self, player_id: str, asset_id: str) -> Dict[str, Any]:
        return self.turns.sell_asset(player_id, asset_id)

    def take_credit(self, player_id: str, amount: int) -> Transaction:
        self.turns.require_active(player_id)
        return self.ledger.request_credit(player_id, amount)

    def payoff_credit(self, player_id: str, amount: Optional[int] = None) -> Transaction:
        self.turns.require_active(player_id)
        return self.ledger.payoff_credit(player_id, amount)

    def transfer(self, player_id: str, recipient_id: str, amount: int, description: str = "") -> Transaction:
        self.turns.require_active(player_id)
        return self.ledger.transfer(player_id, recipient_id, amount, description)

    def donate_charity(self, player_id: str) -> int:
        return self.turns.donate_charity(player_id)

    def end_turn(self, player_id: str) -> str:
        return self.turns.end_turn(player_id)

    def process_payday(self, player_id: str) -> PaydayResult:
        return self.processor.process_payday(player_id)

    # Persistence

    def to_dict(self) -> Dict[str, Any]:
        """Full state, including deck order and RNG state, for storage."""
        version, internal, gauss = self.rng.getstate()
        return {
            "version": self.version,
            "config": _config_to_dict(self.config),
            "rng_state": [version, list(internal), gauss],
            "seat_order": list(self.seat_order),
            "players": [self.players[pid].to_dict() for pid in self.seat_order],
            "decks": self.decks.to_dict(),
            "pending_deals": {pid: card.to_dict() for pid, card in self.deals.pending.items()},
            "transactions": [tx.to_dict() for tx in self.ledger.transactions],
            "turn": self.turns.state.to_dict(),
            "events": [e.to_dict() for e in self.emitter.events],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameState":
        """Rebuild a room from to_dict() output."""
        game = cls.__new__(cls)
        game.config = _config_from_dict(data["config"])
        game.board = Board()
        game.emitter = EventEmitter([GameEvent.from_dict(e) for e in data.get("events", [])])
        game.version = data.get("version", 0)

        game.rng = random.Random()
        rng_state = data.get("rng_state")
        if rng_state:
            game.rng.setstate((rng_state[0], tuple(rng_state[1]), rng_state[2]))

        game.seat_order = list(data["seat_order"])
        game.players = {}
        for pdata in data["players"]:
            player = PlayerState.from_dict(pdata)
            game.players[player.player_id] = player

        pending = {pid: Card.from_dict(c) for pid, c in data.get("pending_deals", {}).items()}
        held = {t: 0 for t in CardType}
        for player in game.players.values():
            for asset in player.assets:
                held[asset.card.card_type] += 1
        for card in pending.values():
            held[card.card_type] += 1
        game.decks = CardDeckManager.from_dict(data["decks"], rng=game.rng, held_outside=held)

        game._wire(
            transactions=[Transaction.from_dict(t) for t in data.get("transactions", [])],
            pending=pending,
            turn_state=TurnState.from_dict(data["turn"]),
        )
        return game


def create_game(
    config: GameConfig,
    players: List[Player],
    templates: Optional[Mapping[CardType, List[Card]]] = None,
) -> GameState:
    """
    Create a new room with the specified configuration and seated players.

    Args:
        config: Game configuration
        players: Seated players in turn order
        templates: Card templates per deck (defaults to the standard decks)

    Returns:
        Initialized GameState
    """
    if not config.min_players <= len(players) <= config.max_players:
        raise ValidationError(
            f"Room requires {config.min_players}-{config.max_players} players, got {len(players)}"
        )
    ids = [p.player_id for p in players]
    if len(set(ids)) != len(ids):
        raise ValidationError("Player ids must be unique")

    logger.info(f"Creating room with players {ids} (seed={config.seed})")
    return GameState(config, players, templates)
