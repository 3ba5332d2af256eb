"""
Tests for deal offers, purchases, transfers and market sales.
"""

import pytest

from core.events import EventType
from core.exceptions import (
    NotFoundError,
    PendingDealMissingError,
    StateError,
    ValidationError,
)
from core.game import PlayerState
from core.game.cards import Card, CardType, create_market_cards, create_small_deal_cards


def _player(pid, cash=50000, income=10000):
    return PlayerState(pid, pid.upper(), starting_cash=cash, monthly_income=income, monthly_expenses=0)


def _small(card_id):
    return next(c for c in create_small_deal_cards() if c.id == card_id)


def _market(category):
    return next(c for c in create_market_cards() if c.category == category)


def _one_card_templates(card: Card):
    """Small deal deck holding a single known card."""
    return {
        CardType.BIG_DEAL: [],
        CardType.SMALL_DEAL: [card],
        CardType.MARKET: create_market_cards(),
        CardType.EXPENSE: [],
    }


def test_offer_deal_sets_pending(bank, emitter):
    ledger, decks, deals, _ = bank(_player("a"))

    card = deals.offer_deal("a", "big")

    assert card is not None
    assert card.card_type == CardType.BIG_DEAL
    assert deals.get_pending("a") is card
    assert emitter.of_type(EventType.DEAL_OFFERED)[-1].details["card"]["id"] == card.id


def test_second_offer_while_pending_fails(bank):
    _, _, deals, _ = bank(_player("a"))
    deals.offer_deal("a", "small")
    with pytest.raises(ValidationError):
        deals.offer_deal("a", "big")


def test_unknown_size(bank):
    _, _, deals, _ = bank(_player("a"))
    with pytest.raises(ValidationError):
        deals.offer_deal("a", "medium")


def test_offer_on_empty_decks_returns_none(bank):
    templates = {t: [] for t in CardType}
    _, _, deals, _ = bank(_player("a"), templates=templates)
    assert deals.offer_deal("a", "big") is None
    assert deals.get_pending("a") is None


class TestBuy:
    def test_buy_moves_card_into_assets(self, bank):
        ledger, decks, deals, _ = bank(_player("a", cash=50000))
        card = deals.offer_deal("a", "big")

        deals.resolve("a", "buy")

        player = ledger.get_player("a")
        assert player.cash == 50000 - card.down_payment
        assert [a.asset_id for a in player.assets] == [card.id]
        assert player.passive_income == card.cash_flow
        assert deals.get_pending("a") is None
        assert ledger.transactions[-1].description == f"purchase: {card.name}"
        decks.check_conservation(deals.owned_counts())

    def test_buy_divisible_by_quantity(self, bank):
        apple = _small("small_1")
        ledger, decks, deals, _ = bank(_player("a", cash=10000), templates=_one_card_templates(apple))
        deals.offer_deal("a", "small")

        result = deals.resolve("a", "buy", quantity=5)

        player = ledger.get_player("a")
        assert result["price"] == 5000
        assert player.cash == 5000
        assert player.assets[0].quantity == 5
        assert player.passive_income == 250

    def test_buy_without_funds_keeps_state(self, bank):
        ledger, decks, deals, _ = bank(_player("a", cash=100))
        card = deals.offer_deal("a", "big")

        with pytest.raises(ValidationError):
            deals.resolve("a", "buy")

        assert ledger.get_player("a").cash == 100
        assert deals.get_pending("a") is card
        assert ledger.transactions == []

    def test_buy_without_pending(self, bank):
        _, _, deals, _ = bank(_player("a"))
        with pytest.raises(PendingDealMissingError) as excinfo:
            deals.resolve("a", "buy")
        assert isinstance(excinfo.value, NotFoundError)
        assert isinstance(excinfo.value, StateError)


def test_pass_discards_card(bank, emitter):
    ledger, decks, deals, _ = bank(_player("a"))
    card = deals.offer_deal("a", "small")

    deals.resolve("a", "pass")

    assert deals.get_pending("a") is None
    assert decks.decks[CardType.SMALL_DEAL].discard_pile == [card]
    assert ledger.get_player("a").cash == 50000
    assert emitter.of_type(EventType.DEAL_RESOLVED)[-1].details["action"] == "pass"
    decks.check_conservation(deals.owned_counts())


class TestTransfer:
    def test_transfer_moves_asset_and_income(self, bank):
        ledger, decks, deals, _ = bank(_player("a"), _player("b"))
        card = deals.offer_deal("a", "big")
        deals.resolve("a", "buy")
        cash_a, cash_b = ledger.get_player("a").cash, ledger.get_player("b").cash

        deals.resolve("a", "transfer", asset_id=card.id, target_id="b")

        a, b = ledger.get_player("a"), ledger.get_player("b")
        assert a.assets == []
        assert a.passive_income == 0
        assert [x.asset_id for x in b.assets] == [card.id]
        assert b.assets[0].owner == "b"
        assert b.passive_income == card.cash_flow
        assert (a.cash, b.cash) == (cash_a, cash_b)
        decks.check_conservation(deals.owned_counts())

    def test_transfer_leaves_pending_slot(self, bank):
        ledger, _, deals, _ = bank(_player("a"), _player("b"))
        first = deals.offer_deal("a", "big")
        deals.resolve("a", "buy")
        pending = deals.offer_deal("a", "small")

        deals.resolve("a", "transfer", asset_id=first.id, target_id="b")

        assert deals.get_pending("a") is pending

    def test_transfer_missing_asset(self, bank):
        _, _, deals, _ = bank(_player("a"), _player("b"))
        with pytest.raises(NotFoundError):
            deals.resolve("a", "transfer", asset_id="big_1", target_id="b")

    def test_transfer_to_unknown_player(self, bank):
        _, _, deals, _ = bank(_player("a"))
        card = deals.offer_deal("a", "big")
        deals.resolve("a", "buy")
        with pytest.raises(NotFoundError):
            deals.resolve("a", "transfer", asset_id=card.id, target_id="zed")


class TestSell:
    def test_sell_against_matching_market_card(self, bank):
        gold = _small("small_3")
        ledger, decks, deals, _ = bank(_player("a", cash=10000), templates=_one_card_templates(gold))
        deals.offer_deal("a", "small")
        deals.resolve("a", "buy")

        result = deals.resolve("a", "sell", asset_id="small_3", market_card=_market("precious_metals"))

        player = ledger.get_player("a")
        assert result["proceeds"] == 3500
        assert player.cash == 10000 - 3000 + 3500
        assert player.assets == []
        assert player.passive_income == 0
        assert decks.decks[CardType.SMALL_DEAL].discard_pile == [gold]
        decks.check_conservation(deals.owned_counts())

    def test_sell_divisible_uses_quantity(self, bank):
        apple = _small("small_1")
        ledger, _, deals, _ = bank(_player("a", cash=10000), templates=_one_card_templates(apple))
        deals.offer_deal("a", "small")
        deals.resolve("a", "buy", quantity=3)

        result = deals.resolve("a", "sell", asset_id="small_1", market_card=_market("stocks"))

        assert result["proceeds"] == 3600
        assert ledger.get_player("a").cash == 10000 - 3000 + 3600

    def test_sell_category_mismatch(self, bank):
        gold = _small("small_3")
        ledger, _, deals, _ = bank(_player("a"), templates=_one_card_templates(gold))
        deals.offer_deal("a", "small")
        deals.resolve("a", "buy")
        with pytest.raises(ValidationError):
            deals.resolve("a", "sell", asset_id="small_3", market_card=_market("crypto"))
        assert len(ledger.get_player("a").assets) == 1

    def test_sell_without_market_offer(self, bank):
        gold = _small("small_3")
        _, _, deals, _ = bank(_player("a"), templates=_one_card_templates(gold))
        deals.offer_deal("a", "small")
        deals.resolve("a", "buy")
        with pytest.raises(StateError):
            deals.resolve("a", "sell", asset_id="small_3")


def test_unknown_action(bank):
    _, _, deals, _ = bank(_player("a"))
    with pytest.raises(ValidationError):
        deals.resolve("a", "steal")


def test_conservation_over_mixed_sequence(bank):
    ledger, decks, deals, processor = bank(_player("a", cash=10**6), _player("b", cash=10**6))
    for round_ in range(12):
        pid = "a" if round_ % 2 == 0 else "b"
        card = deals.offer_deal(pid, "small" if round_ % 3 else "big")
        if card is None:
            continue
        if round_ % 4 == 0:
            deals.resolve(pid, "pass")
        else:
            deals.resolve(pid, "buy")
        decks.check_conservation(deals.owned_counts())

    processor.process_bankruptcy("a", "test")
    decks.check_conservation(deals.owned_counts())
