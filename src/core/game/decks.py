"""
Card deck lifecycle: draw, discard, shuffle and reshuffle for the four typed decks.
"""

import logging
import random
from typing import Dict, Iterable, List, Mapping, Optional

from core.exceptions import NotFoundError, StateError
from core.game.cards import Card, CardType

logger = logging.getLogger(__name__)


class Deck:
    """A single typed deck with its discard pile."""

    def __init__(self, card_type: CardType, cards: Iterable[Card], rng: random.Random):
        self.card_type = card_type
        self.cards: List[Card] = list(cards)
        self.discard_pile: List[Card] = []
        self.rng = rng

    def shuffle(self) -> None:
        """Uniform in-place permutation (random.shuffle is Fisher-Yates)."""
        self.rng.shuffle(self.cards)

    def reshuffle(self) -> int:
        """Move the discard pile into the deck and shuffle. Returns cards moved."""
        moved = len(self.discard_pile)
        if not moved:
            return 0
        self.cards.extend(self.discard_pile)
        self.discard_pile.clear()
        self.shuffle()
        return moved

    def draw(self) -> Optional[Card]:
        """
        Draw the top card.
        If the deck is empty, shuffle the discard pile back in first.
        Returns None when both deck and discard pile are empty.
        """
        if not self.cards:
            self.reshuffle()
        if not self.cards:
            return None
        return self.cards.pop(0)

    def discard(self, card: Card) -> None:
        """Put a card on the discard pile."""
        self.discard_pile.append(card)

    def __len__(self) -> int:
        return len(self.cards)


class CardDeckManager:
    """
    Owns the big deal, small deal, market and expense decks of a room.

    Cards are neither created nor destroyed after initialization; they only
    move between a deck, its discard pile and the places that hold them
    outside the manager (pending deals and player assets).
    """

    def __init__(
        self,
        templates: Mapping[CardType, Iterable[Card]],
        rng: Optional[random.Random] = None,
        shuffle: bool = True,
    ):
        self.rng = rng or random.Random()
        self.decks: Dict[CardType, Deck] = {}
        for card_type in CardType:
            self.decks[card_type] = Deck(card_type, templates.get(card_type, []), self.rng)
            if shuffle:
                self.decks[card_type].shuffle()
        self._initial_totals = {t: self.total_cards(t) for t in CardType}

    def _deck(self, deck_type: CardType) -> Deck:
        try:
            deck = self.decks.get(CardType(deck_type))
        except ValueError:
            raise NotFoundError(f"Unknown deck type: {deck_type}") from None
        if deck is None:
            raise NotFoundError(f"Unknown deck type: {deck_type}")
        return deck

    def draw(self, deck_type: CardType) -> Optional[Card]:
        """Draw the top card of a deck, reshuffling its discard pile if needed."""
        deck = self._deck(deck_type)
        if not deck.cards and deck.discard_pile:
            logger.info(f"Deck {deck.card_type.value} empty, reshuffling {len(deck.discard_pile)} discarded cards")
        card = deck.draw()
        if card is None:
            logger.info(f"No card available in {deck.card_type.value} deck")
        return card

    def discard(self, card: Optional[Card], deck_type: Optional[CardType] = None) -> None:
        """Put a card on the discard pile of its deck. A None card is ignored."""
        if card is None:
            logger.warning("Discard called without a card, ignoring")
            return
        self._deck(deck_type or card.card_type).discard(card)

    def shuffle(self, deck_type: CardType) -> None:
        self._deck(deck_type).shuffle()

    def reshuffle(self, deck_type: CardType) -> int:
        return self._deck(deck_type).reshuffle()

    def total_cards(self, deck_type: CardType) -> int:
        deck = self._deck(deck_type)
        return len(deck.cards) + len(deck.discard_pile)

    def counts(self) -> Dict[str, Dict[str, int]]:
        """Public deck sizes (no order information)."""
        return {
            t.value: {
                "cards_remaining": len(d.cards),
                "discard_count": len(d.discard_pile),
            }
            for t, d in self.decks.items()
        }

    def check_conservation(self, held_outside: Mapping[CardType, int]) -> None:
        """
        Verify that no card was created or lost.

        Args:
            held_outside: cards of each type currently held outside the decks
                (owned assets and pending deals)

        Raises:
            StateError: if any deck total differs from its initial size
        """
        for card_type, expected in self._initial_totals.items():
            actual = self.total_cards(card_type) + held_outside.get(card_type, 0)
            if actual != expected:
                raise StateError(
                    f"Card conservation violated for {card_type.value}: expected {expected}, found {actual}"
                )

    def to_dict(self) -> Dict[str, Dict[str, list]]:
        return {
            t.value: {
                "cards": [c.to_dict() for c in d.cards],
                "discard": [c.to_dict() for c in d.discard_pile],
            }
            for t, d in self.decks.items()
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Mapping[str, list]],
        rng: Optional[random.Random] = None,
        held_outside: Optional[Mapping[CardType, int]] = None,
    ) -> "CardDeckManager":
        """Rebuild decks in their persisted order."""
        manager = cls({}, rng=rng, shuffle=False)
        for type_value, piles in data.items():
            deck = manager.decks[CardType(type_value)]
            deck.cards = [Card.from_dict(c) for c in piles.get("cards", [])]
            deck.discard_pile = [Card.from_dict(c) for c in piles.get("discard", [])]
        held_outside = held_outside or {}
        manager._initial_totals = {
            t: manager.total_cards(t) + held_outside.get(t, 0) for t in CardType
        }
        return manager
