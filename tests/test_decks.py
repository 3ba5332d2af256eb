"""
Tests for the card deck lifecycle.
"""

import random

import pytest

from core.exceptions import NotFoundError, StateError
from core.game.cards import Card, CardType, create_big_deal_cards, default_card_templates
from core.game.decks import CardDeckManager


def _manager(seed=1):
    return CardDeckManager(default_card_templates(), random.Random(seed))


def test_initial_counts_match_templates():
    decks = _manager()
    counts = decks.counts()
    assert counts["big_deal"] == {"cards_remaining": 5, "discard_count": 0}
    assert counts["small_deal"]["cards_remaining"] == 5
    assert counts["market"]["cards_remaining"] == 5
    assert counts["expense"]["cards_remaining"] == 8


def test_draw_five_big_deals_then_none():
    """Five big deals, discard empty: the sixth draw reports no card."""
    decks = _manager()
    drawn = [decks.draw(CardType.BIG_DEAL) for _ in range(5)]

    assert all(isinstance(c, Card) for c in drawn)
    assert len({c.id for c in drawn}) == 5
    assert decks.decks[CardType.BIG_DEAL].cards == []
    assert decks.draw(CardType.BIG_DEAL) is None


def test_draw_reshuffles_discard_when_deck_empty():
    decks = _manager()
    drawn = [decks.draw(CardType.BIG_DEAL) for _ in range(5)]
    decks.discard(drawn[0])
    decks.discard(drawn[1])

    card = decks.draw(CardType.BIG_DEAL)

    assert card is not None
    assert card.id in {drawn[0].id, drawn[1].id}
    deck = decks.decks[CardType.BIG_DEAL]
    assert deck.discard_pile == []
    assert len(deck.cards) == 1


def test_non_empty_discard_never_yields_no_card():
    decks = _manager(seed=3)
    for _ in range(50):
        card = decks.draw(CardType.SMALL_DEAL)
        assert card is not None
        decks.discard(card)


def test_discard_none_is_noop():
    decks = _manager()
    decks.discard(None, CardType.MARKET)
    assert decks.counts()["market"]["discard_count"] == 0


def test_explicit_reshuffle_moves_discard():
    decks = _manager()
    for _ in range(3):
        decks.discard(decks.draw(CardType.EXPENSE))

    moved = decks.reshuffle(CardType.EXPENSE)

    assert moved == 3
    assert decks.counts()["expense"] == {"cards_remaining": 8, "discard_count": 0}


def test_shuffle_is_seeded():
    a = CardDeckManager(default_card_templates(), random.Random(99))
    b = CardDeckManager(default_card_templates(), random.Random(99))
    order_a = [c.id for c in a.decks[CardType.EXPENSE].cards]
    order_b = [c.id for c in b.decks[CardType.EXPENSE].cards]
    assert order_a == order_b


def test_shuffle_keeps_all_cards():
    decks = CardDeckManager({CardType.BIG_DEAL: create_big_deal_cards()}, random.Random(5))
    ids = sorted(c.id for c in decks.decks[CardType.BIG_DEAL].cards)
    assert ids == ["big_1", "big_2", "big_3", "big_4", "big_5"]


def test_conservation_detects_lost_card():
    decks = _manager()
    card = decks.draw(CardType.BIG_DEAL)
    assert card is not None

    # Card held by someone outside the decks
    decks.check_conservation({CardType.BIG_DEAL: 1})

    with pytest.raises(StateError):
        decks.check_conservation({})


def test_round_trip_preserves_order():
    decks = _manager()
    decks.discard(decks.draw(CardType.MARKET))
    restored = CardDeckManager.from_dict(decks.to_dict())

    for card_type in CardType:
        assert [c.id for c in restored.decks[card_type].cards] == [c.id for c in decks.decks[card_type].cards]
    restored.check_conservation({})


def test_unknown_deck_name_is_not_found():
    decks = _manager()
    with pytest.raises(NotFoundError):
        decks.draw("jokers")
    with pytest.raises(NotFoundError):
        decks.reshuffle("jokers")
