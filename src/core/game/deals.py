"""
Deal offers and their resolution: buy, pass, transfer and sell.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from core.events.emitter import EventEmitter, EventType
from core.exceptions import NotFoundError, PendingDealMissingError, StateError, ValidationError
from core.game.cards import DEAL_SIZES, Card, CardType
from core.game.decks import CardDeckManager
from core.game.ledger import LedgerService
from core.game.player import OwnedAsset, PlayerState

logger = logging.getLogger(__name__)

DEAL_ACTIONS = ("buy", "pass", "transfer", "sell")


class DealResolver:
    """
    Draws deal cards for players and applies their decisions.

    A drawn card is held in the pending slot of the player until it is
    bought (moves into the asset list) or passed (goes to the discard pile).
    """

    def __init__(self, ledger: LedgerService, decks: CardDeckManager, emitter: EventEmitter):
        self.ledger = ledger
        self.decks = decks
        self.emitter = emitter
        self.pending: Dict[str, Card] = {}

    def get_pending(self, player_id: str) -> Optional[Card]:
        return self.pending.get(player_id)

    def offer_deal(self, player_id: str, size: str) -> Optional[Card]:
        """
        Draw a deal card of the given size for a player.

        Returns:
            The drawn card, or None if both the deck and its discard pile are empty
        """
        self.ledger.get_player(player_id)
        deck_type = DEAL_SIZES.get(size)
        if deck_type is None:
            raise ValidationError(f"Unknown deal size: {size}")
        if player_id in self.pending:
            raise ValidationError("A deal is already pending for this player")

        card = self.decks.draw(deck_type)
        if card is None:
            logger.info(f"No {size} deal available for {player_id}")
            return None

        self.pending[player_id] = card
        self.emitter.log(EventType.DEAL_OFFERED, player_id, size=size, card=card.to_dict())
        return card

    def resolve(
        self,
        player_id: str,
        action: str,
        quantity: Optional[int] = None,
        asset_id: Optional[str] = None,
        target_id: Optional[str] = None,
        market_card: Optional[Card] = None,
    ) -> Dict:
        """Apply a deal decision. Returns a summary dict of what happened."""
        if action == "buy":
            return self._buy(player_id, quantity)
        if action == "pass":
            return self._pass(player_id)
        if action == "transfer":
            return self._transfer(player_id, asset_id, target_id)
        if action == "sell":
            return self._sell(player_id, asset_id, market_card)
        raise ValidationError(f"Unknown deal action: {action}")

    def _require_pending(self, player_id: str) -> Card:
        self.ledger.get_player(player_id)
        card = self.pending.get(player_id)
        if card is None:
            raise PendingDealMissingError(f"No pending deal for player {player_id}")
        return card

    def _require_asset(self, player: PlayerState, asset_id: Optional[str]) -> OwnedAsset:
        if not asset_id:
            raise ValidationError("asset_id is required")
        asset = player.find_asset(asset_id)
        if asset is None:
            raise NotFoundError(f"Asset {asset_id} not owned by player {player.player_id}")
        return asset

    def _buy(self, player_id: str, quantity: Optional[int]) -> Dict:
        card = self._require_pending(player_id)
        player = self.ledger.get_player(player_id)

        if card.divisible:
            quantity = 1 if quantity is None else quantity
            if not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError("Quantity must be a positive integer")
        else:
            quantity = 1
        price = card.purchase_price(quantity)
        if player.cash < price:
            raise ValidationError(f"Insufficient funds: {player.cash} < {price}")

        self.ledger.update_balance(player_id, -price, f"purchase: {card.name}", kind="purchase")
        asset = OwnedAsset(card=card, owner=player_id, quantity=quantity, purchase_price=price)
        player.assets.append(asset)
        player.passive_income += asset.passive_income
        del self.pending[player_id]

        self.emitter.log(
            EventType.DEAL_RESOLVED,
            player_id,
            action="buy",
            card_id=card.id,
            quantity=quantity,
            price=price,
            passive_income=player.passive_income,
        )
        logger.info(f"Player {player_id} bought {card.name} x{quantity} for {price}")
        return {"action": "buy", "card_id": card.id, "quantity": quantity, "price": price}

    def _pass(self, player_id: str) -> Dict:
        card = self._require_pending(player_id)
        del self.pending[player_id]
        self.decks.discard(card)
        self.emitter.log(EventType.DEAL_RESOLVED, player_id, action="pass", card_id=card.id)
        return {"action": "pass", "card_id": card.id}

    def _transfer(self, player_id: str, asset_id: Optional[str], target_id: Optional[str]) -> Dict:
        owner = self.ledger.get_player(player_id)
        asset = self._require_asset(owner, asset_id)
        if not target_id:
            raise ValidationError("target_id is required")
        target = self.ledger.get_player(target_id)
        if target_id == player_id:
            raise ValidationError("Cannot transfer an asset to yourself")

        owner.assets.remove(asset)
        owner.passive_income -= asset.passive_income
        asset.owner = target_id
        asset.transfer_date = datetime.now(timezone.utc)
        target.assets.append(asset)
        target.passive_income += asset.passive_income

        self.emitter.log(
            EventType.ASSET_TRANSFERRED,
            player_id,
            asset_id=asset.asset_id,
            target_id=target_id,
        )
        logger.info(f"Asset {asset.asset_id} transferred from {player_id} to {target_id}")
        return {"action": "transfer", "asset_id": asset.asset_id, "target_id": target_id}

    def _sell(self, player_id: str, asset_id: Optional[str], market_card: Optional[Card]) -> Dict:
        player = self.ledger.get_player(player_id)
        if market_card is None:
            raise StateError("No active market offer")
        asset = self._require_asset(player, asset_id)
        if market_card.category != asset.card.category:
            raise ValidationError(
                f"Market offer is for {market_card.category}, asset is {asset.card.category}"
            )

        proceeds = market_card.sell_price * (asset.quantity if asset.card.divisible else 1)
        player.assets.remove(asset)
        player.passive_income -= asset.passive_income
        self.ledger.update_balance(player_id, proceeds, f"sale: {asset.card.name}", kind="sale")
        self.decks.discard(asset.card)

        self.emitter.log(
            EventType.DEAL_RESOLVED,
            player_id,
            action="sell",
            card_id=asset.asset_id,
            market_card_id=market_card.id,
            proceeds=proceeds,
        )
        logger.info(f"Player {player_id} sold {asset.card.name} for {proceeds}")
        return {"action": "sell", "asset_id": asset.asset_id, "proceeds": proceeds}

    def discard_pending(self, player_id: str) -> Optional[Card]:
        """Drop an unresolved pending deal back to its discard pile."""
        card = self.pending.pop(player_id, None)
        if card is not None:
            self.decks.discard(card)
        return card

    def owned_counts(self) -> Dict[CardType, int]:
        """Cards held outside the decks: owned assets plus pending deals."""
        counts = {t: 0 for t in CardType}
        for player in self.ledger.players.values():
            for asset in player.assets:
                counts[asset.card.card_type] += 1
        for card in self.pending.values():
            counts[card.card_type] += 1
        return counts
