"""Shared test fixtures for Energy Money tests."""

import random

import pytest

from core import GameConfig, Player, create_game
from core.events import EventEmitter
from core.game import (
    CardDeckManager,
    DealResolver,
    EventProcessor,
    LedgerService,
    PlayerState,
)
from core.game.cards import default_card_templates


class FixedDice:
    """Stand-in RNG whose dice always show the same face."""

    def __init__(self, face: int):
        self.face = face

    def randint(self, a: int, b: int) -> int:
        return self.face


@pytest.fixture
def game_config():
    """Default game configuration with fixed seed for reproducibility."""
    return GameConfig(seed=42)


@pytest.fixture
def two_players():
    """Two test players."""
    return [Player("alice", "Alice"), Player("bob", "Bob")]


@pytest.fixture
def three_players():
    return [Player("alice", "Alice"), Player("bob", "Bob"), Player("carol", "Carol")]


@pytest.fixture
def basic_game(game_config, two_players):
    """Basic room with two players and fixed seed."""
    return create_game(game_config, two_players)


@pytest.fixture
def emitter():
    return EventEmitter()


@pytest.fixture
def bank(emitter):
    """
    Factory for a wired ledger/decks/deals/processor stack.

    Usage:
        ledger, decks, deals, processor = bank(
            PlayerState("a", "A", starting_cash=5000, monthly_income=500),
        )
    """

    def build(*players: PlayerState, config: GameConfig = None, templates=None):
        config = config or GameConfig(seed=7)
        by_id = {p.player_id: p for p in players}
        ledger = LedgerService(by_id, [p.player_id for p in players], config, emitter)
        decks = CardDeckManager(templates or default_card_templates(), random.Random(config.seed))
        deals = DealResolver(ledger, decks, emitter)
        processor = EventProcessor(ledger, decks, deals, emitter)
        return ledger, decks, deals, processor

    return build


@pytest.fixture
def fixed_dice():
    return FixedDice


@pytest.fixture
def land():
    """Roll for the active player with every die showing `face`."""

    def roll(game, player_id: str, face: int, dice_count: int = None):
        game.turns.rng = FixedDice(face)
        return game.roll(player_id, dice_count)

    return roll
