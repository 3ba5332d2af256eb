"""
Payday, charity, expense and bankruptcy rules.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from core.events.emitter import EventEmitter, EventType
from core.exceptions import ValidationError
from core.game.cards import Card, CardType
from core.game.deals import DealResolver
from core.game.decks import CardDeckManager
from core.game.ledger import LedgerService

logger = logging.getLogger(__name__)

CREDIT_PAYMENT_SHORTFALL = "insufficient_funds_after_credit_payment"
EXPENSES_SHORTFALL = "insufficient_funds_after_expenses"
EXPENSE_CARD_SHORTFALL = "insufficient_funds_for_expense"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class PaydayResult:
    """What a payday did to a player's cash."""

    income: int = 0
    interest: int = 0
    expenses: int = 0
    net_change: int = 0
    bankruptcy_triggers: List[str] = field(default_factory=list)
    bankrupt: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "income": self.income,
            "interest": self.interest,
            "expenses": self.expenses,
            "net_change": self.net_change,
            "bankruptcy_triggers": list(self.bankruptcy_triggers),
            "bankrupt": self.bankrupt,
        }


class EventProcessor:
    """Applies cell events that move money outside of deals."""

    def __init__(
        self,
        ledger: LedgerService,
        decks: CardDeckManager,
        deals: DealResolver,
        emitter: EventEmitter,
    ):
        self.ledger = ledger
        self.decks = decks
        self.deals = deals
        self.emitter = emitter

    @property
    def config(self):
        return self.ledger.config

    def process_payday(self, player_id: str) -> PaydayResult:
        """
        Credit income and passive income, then charge credit interest and expenses.

        Every shortfall is recorded as a trigger, but the player goes bankrupt
        at most once, after the whole payday has been applied.
        """
        player = self.ledger.get_player(player_id)
        result = PaydayResult()
        cash_before = player.cash

        result.income = player.monthly_income + player.passive_income
        if result.income:
            self.ledger.update_balance(player_id, result.income, "payday: income", kind="payday")

        if player.credit_amount > 0:
            result.interest = round_half_up(player.credit_amount * self.config.credit_interest_rate)
            self.ledger.update_balance(player_id, -result.interest, "payday: credit interest", kind="interest")
            if player.cash < 0:
                result.bankruptcy_triggers.append(CREDIT_PAYMENT_SHORTFALL)

        if player.monthly_expenses > 0:
            result.expenses = player.monthly_expenses
            self.ledger.update_balance(player_id, -result.expenses, "payday: expenses", kind="expenses")
            if player.cash < 0:
                result.bankruptcy_triggers.append(EXPENSES_SHORTFALL)

        result.net_change = player.cash - cash_before
        player.last_payday = datetime.now(timezone.utc)
        self.emitter.log(EventType.PAYDAY, player_id, **result.to_dict())
        logger.info(f"Payday for {player_id}: net {result.net_change:+d}, cash {player.cash}")

        if result.bankruptcy_triggers:
            self.process_bankruptcy(player_id, result.bankruptcy_triggers[0])
            result.bankrupt = True
        return result

    def charity_amount(self, player_id: str) -> int:
        player = self.ledger.get_player(player_id)
        return round_half_up(player.monthly_income * self.config.charity_rate)

    def process_charity(self, player_id: str) -> int:
        """Donate a share of income in exchange for extra dice turns."""
        player = self.ledger.get_player(player_id)
        amount = self.charity_amount(player_id)
        if amount <= 0:
            raise ValidationError("No income to donate from")
        if player.cash < amount:
            raise ValidationError(f"Insufficient funds for charity: {player.cash} < {amount}")

        self.ledger.update_balance(player_id, -amount, "charity", kind="charity")
        player.last_charity = datetime.now(timezone.utc)
        player.charity_turns_left = self.config.charity_dice_turns
        self.emitter.log(
            EventType.CHARITY,
            player_id,
            amount=amount,
            charity_turns_left=player.charity_turns_left,
        )
        logger.info(f"Player {player_id} donated {amount}")
        return amount

    def process_expense_card(self, player_id: str, card: Card) -> bool:
        """
        Charge an expense card and put it on the expense discard pile.

        Returns:
            True if the expense made the player bankrupt
        """
        self.ledger.update_balance(player_id, -card.cost, f"expense: {card.name}", kind="expense")
        self.decks.discard(card, CardType.EXPENSE)
        player = self.ledger.get_player(player_id)
        self.emitter.log(EventType.EXPENSE, player_id, card=card.to_dict(), amount=card.cost, cash=player.cash)

        if player.cash < 0:
            self.process_bankruptcy(player_id, EXPENSE_CARD_SHORTFALL)
            return True
        return False

    def process_bankruptcy(self, player_id: str, reason: str) -> None:
        """
        Reset a player's finances and position.

        Owned assets and any pending deal go back to their discard piles.
        """
        player = self.ledger.get_player(player_id)
        for asset in player.assets:
            self.decks.discard(asset.card)
        self.deals.discard_pending(player_id)

        if player.cash != 0:
            self.ledger.update_balance(player_id, -player.cash, f"bankruptcy: {reason}", kind="bankruptcy")
        player.credit_amount = 0
        player.assets = []
        player.passive_income = 0
        player.position = 0
        player.track = "inner"
        player.is_bankrupt = True
        player.bankruptcy_count += 1

        self.emitter.log(
            EventType.BANKRUPTCY,
            player_id,
            reason=reason,
            bankruptcy_count=player.bankruptcy_count,
        )
        logger.warning(f"Player {player_id} is bankrupt ({reason}), count {player.bankruptcy_count}")

