"""
Bank ledger: balances, credit lines and transaction history.

The ledger is the only component that mutates player cash. Every mutation
appends an immutable Transaction; the bank appears as seat index BANK_INDEX.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, MutableMapping, Optional, Sequence

from core.events.emitter import EventEmitter, EventType
from core.exceptions import NotFoundError, ValidationError
from core.game.config import CreditFormula, GameConfig
from core.game.player import PlayerState

logger = logging.getLogger(__name__)

BANK_INDEX = -1


@dataclass(frozen=True)
class Transaction:
    """A single append-only ledger entry."""

    id: int
    sender_index: int
    recipient_index: int
    amount: int
    description: str
    kind: str = "balance"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def involves(self, seat: int) -> bool:
        return seat in (self.sender_index, self.recipient_index)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sender_index": self.sender_index,
            "recipient_index": self.recipient_index,
            "amount": self.amount,
            "description": self.description,
            "kind": self.kind,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        return cls(
            id=data["id"],
            sender_index=data["sender_index"],
            recipient_index=data["recipient_index"],
            amount=data["amount"],
            description=data["description"],
            kind=data.get("kind", "balance"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


class LedgerService:
    """
    Per-room bank.

    Args:
        players: player states keyed by id (shared with the room)
        seat_order: player ids in seat order, used for transaction indices
        config: game rules
        emitter: event bus
    """

    def __init__(
        self,
        players: MutableMapping[str, PlayerState],
        seat_order: Sequence[str],
        config: GameConfig,
        emitter: EventEmitter,
        transactions: Optional[List[Transaction]] = None,
    ):
        self.players = players
        self.seat_order = list(seat_order)
        self.config = config
        self.emitter = emitter
        self.transactions: List[Transaction] = transactions or []

    def get_player(self, player_id: str) -> PlayerState:
        player = self.players.get(player_id)
        if player is None:
            raise NotFoundError(f"Player {player_id} not found")
        return player

    def seat_of(self, player_id: str) -> int:
        try:
            return self.seat_order.index(player_id)
        except ValueError:
            raise NotFoundError(f"Player {player_id} not seated") from None

    def _record(self, sender: int, recipient: int, amount: int, description: str, kind: str) -> Transaction:
        tx = Transaction(
            id=len(self.transactions) + 1,
            sender_index=sender,
            recipient_index=recipient,
            amount=amount,
            description=description,
            kind=kind,
        )
        self.transactions.append(tx)
        return tx

    # Balance

    def update_balance(self, player_id: str, delta: int, reason: str, kind: str = "balance") -> Transaction:
        """
        Adjust a player's cash against the bank.

        No non-negativity check is made here; callers decide whether a
        negative balance triggers bankruptcy.
        """
        player = self.get_player(player_id)
        seat = self.seat_of(player_id)
        player.cash += delta
        if delta >= 0:
            tx = self._record(BANK_INDEX, seat, delta, reason, kind)
        else:
            tx = self._record(seat, BANK_INDEX, -delta, reason, kind)
        logger.debug(f"Balance {player_id} {delta:+d} ({reason}) -> {player.cash}")
        return tx

    # Credit

    def max_credit(self, player_id: str) -> int:
        player = self.get_player(player_id)
        if self.config.credit_formula == CreditFormula.CASHFLOW_HUNDREDS:
            return max(0, player.cash_flow // 100) * self.config.credit_step
        return player.monthly_income * self.config.credit_multiplier

    def monthly_credit_payment(self, player_id: str) -> int:
        player = self.get_player(player_id)
        return (player.credit_amount // self.config.credit_step) * self.config.credit_payment_per_step

    def _check_step(self, amount: int) -> None:
        step = self.config.credit_step
        if not isinstance(amount, int) or amount <= 0 or amount % step != 0:
            raise ValidationError(f"Amount must be a positive multiple of {step}")

    def request_credit(self, player_id: str, amount: int) -> Transaction:
        player = self.get_player(player_id)
        self._check_step(amount)
        if player.is_bankrupt:
            raise ValidationError("Bankrupt players cannot take credit")
        limit = self.max_credit(player_id)
        if player.credit_amount + amount > limit:
            raise ValidationError(
                f"Credit limit exceeded: {player.credit_amount} + {amount} > {limit}"
            )

        player.credit_amount += amount
        tx = self.update_balance(player_id, amount, f"credit: {amount}", kind="credit")
        self.emitter.log(
            EventType.CREDIT_TAKEN,
            player_id,
            amount=amount,
            credit_amount=player.credit_amount,
            cash=player.cash,
        )
        logger.info(f"Player {player_id} took credit {amount}, total {player.credit_amount}")
        return tx

    def payoff_credit(self, player_id: str, amount: Optional[int] = None) -> Transaction:
        player = self.get_player(player_id)
        if amount is None:
            amount = player.credit_amount
        if player.credit_amount <= 0:
            raise ValidationError("No credit to pay off")
        self._check_step(amount)
        if amount > player.credit_amount:
            raise ValidationError(f"Payoff {amount} exceeds outstanding credit {player.credit_amount}")
        if amount > player.cash:
            raise ValidationError(f"Insufficient cash to pay off {amount}")

        player.credit_amount -= amount
        tx = self.update_balance(player_id, -amount, f"credit payoff: {amount}", kind="credit_payoff")
        self.emitter.log(
            EventType.CREDIT_REPAID,
            player_id,
            amount=amount,
            credit_amount=player.credit_amount,
            cash=player.cash,
        )
        logger.info(f"Player {player_id} repaid credit {amount}, remaining {player.credit_amount}")
        return tx

    # Transfers

    def transfer(self, from_id: str, to_id: str, amount: int, description: str = "") -> Transaction:
        """Move cash between two players. Money is conserved."""
        sender = self.get_player(from_id)
        recipient = self.get_player(to_id)
        if from_id == to_id:
            raise ValidationError("Cannot transfer to yourself")
        if not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Transfer amount must be positive")
        if amount > sender.cash:
            raise ValidationError(f"Insufficient funds: {sender.cash} < {amount}")

        sender.cash -= amount
        recipient.cash += amount
        tx = self._record(
            self.seat_of(from_id),
            self.seat_of(to_id),
            amount,
            description or f"transfer to {recipient.name}",
            "transfer",
        )
        self.emitter.log(
            EventType.TRANSFER_COMPLETED,
            from_id,
            recipient=to_id,
            amount=amount,
            transaction_id=tx.id,
        )
        logger.info(f"Transfer {amount} from {from_id} to {to_id}")
        return tx

    def history(self, player_id: Optional[str] = None) -> List[Transaction]:
        if player_id is None:
            return list(self.transactions)
        seat = self.seat_of(player_id)
        return [tx for tx in self.transactions if tx.involves(seat)]
