"""
Turn phases: whose turn it is, what they may do, and what a landed cell triggers.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from core.events.emitter import EventEmitter, EventType
from core.exceptions import PendingDealMissingError, StateError, ValidationError
from core.game.board import Board, CellType
from core.game.cards import Card, CardType
from core.game.config import GameConfig
from core.game.deals import DealResolver
from core.game.decks import CardDeckManager
from core.game.ledger import LedgerService
from core.game.player import PlayerState
from core.game.processor import EventProcessor

logger = logging.getLogger(__name__)


class TurnPhase(Enum):
    AWAITING_ROLL = "awaiting_roll"
    AWAITING_DEAL_CHOICE = "awaiting_deal_choice"
    AWAITING_DEAL_RESOLUTION = "awaiting_deal_resolution"
    AWAITING_END = "awaiting_end"


@dataclass
class TurnState:
    """Mutable turn bookkeeping of a room."""

    active_player_id: str
    phase: TurnPhase = TurnPhase.AWAITING_ROLL
    turn_number: int = 1
    last_roll: Optional[Dict[str, Any]] = None
    turn_started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    pending_charity: bool = False
    market_card: Optional[Card] = None
    rolls_this_turn: int = 0
    consecutive_doubles: int = 0
    roll_again: bool = False  # granted by a double, used once the landed cell settles
    turn_history: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_player_id": self.active_player_id,
            "phase": self.phase.value,
            "turn_number": self.turn_number,
            "last_roll": self.last_roll,
            "turn_started_at": self.turn_started_at.isoformat(),
            "pending_charity": self.pending_charity,
            "market_card": self.market_card.to_dict() if self.market_card else None,
            "rolls_this_turn": self.rolls_this_turn,
            "consecutive_doubles": self.consecutive_doubles,
            "roll_again": self.roll_again,
            "turn_history": [dict(entry) for entry in self.turn_history],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TurnState":
        market = data.get("market_card")
        return cls(
            active_player_id=data["active_player_id"],
            phase=TurnPhase(data.get("phase", TurnPhase.AWAITING_ROLL.value)),
            turn_number=data.get("turn_number", 1),
            last_roll=data.get("last_roll"),
            turn_started_at=datetime.fromisoformat(data["turn_started_at"]),
            pending_charity=data.get("pending_charity", False),
            market_card=Card.from_dict(market) if market else None,
            rolls_this_turn=data.get("rolls_this_turn", 0),
            consecutive_doubles=data.get("consecutive_doubles", 0),
            roll_again=data.get("roll_again", False),
            turn_history=[dict(entry) for entry in data.get("turn_history", [])],
        )


class TurnStateMachine:
    """
    Drives the phases of a turn and dispatches cell outcomes.

    Every mutating operation goes through require_active() first, so only the
    active player can act.
    """

    def __init__(
        self,
        board: Board,
        ledger: LedgerService,
        decks: CardDeckManager,
        deals: DealResolver,
        processor: EventProcessor,
        emitter: EventEmitter,
        rng: random.Random,
        config: GameConfig,
        seat_order: Sequence[str],
        state: Optional[TurnState] = None,
    ):
        if not seat_order:
            raise ValidationError("A room needs at least one seated player")
        self.board = board
        self.ledger = ledger
        self.decks = decks
        self.deals = deals
        self.processor = processor
        self.emitter = emitter
        self.rng = rng
        self.config = config
        self.seat_order: List[str] = list(seat_order)
        self.state = state or TurnState(active_player_id=self.seat_order[0])

    @property
    def phase(self) -> TurnPhase:
        return self.state.phase

    def require_active(self, player_id: str) -> PlayerState:
        player = self.ledger.get_player(player_id)
        if player_id != self.state.active_player_id:
            raise ValidationError(f"Not your turn: active player is {self.state.active_player_id}")
        return player

    def _require_phase(self, *phases: TurnPhase) -> None:
        if self.state.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise StateError(f"Operation not allowed in phase {self.state.phase.value} (expected {allowed})")

    # Dice and movement

    def _dice_for(self, player: PlayerState, dice_count: Optional[int]) -> int:
        if dice_count is None:
            return self.config.default_dice
        if dice_count not in range(1, self.config.max_dice + 1):
            raise ValidationError(f"dice_count must be between 1 and {self.config.max_dice}")
        # A charity turn lasts through its doubles rerolls
        charity_turn = player.charity_turns_left > 0 or self.state.consecutive_doubles > 0
        if dice_count > self.config.default_dice and not charity_turn:
            raise ValidationError("Extra dice are only available after a charity donation")
        return dice_count

    def roll(self, player_id: str, dice_count: Optional[int] = None) -> Dict[str, Any]:
        """
        Roll the dice, move the active player and resolve the landed cell.

        A double on two or more dice grants another roll once the landed cell
        is settled, up to config.max_consecutive_rolls times per turn.

        Returns:
            Dict with dice values, total, new position, cell type, outcome
            and whether another roll was granted
        """
        player = self.require_active(player_id)
        self._require_phase(TurnPhase.AWAITING_ROLL)
        count = self._dice_for(player, dice_count)

        if self.state.rolls_this_turn == 0 and player.charity_turns_left > 0:
            player.charity_turns_left -= 1

        values = [self.rng.randint(1, self.config.dice_sides) for _ in range(count)]
        total = sum(values)
        self.state.rolls_this_turn += 1
        self.state.last_roll = {"values": values, "total": total}
        is_double = len(values) > 1 and len(set(values)) == 1
        self.emitter.log(EventType.DICE_ROLL, player_id, values=values, total=total, doubles=is_double)

        self.state.roll_again = is_double and self.state.consecutive_doubles < self.config.max_consecutive_rolls
        if self.state.roll_again:
            self.state.consecutive_doubles += 1
            self.emitter.log(
                EventType.ROLL_AGAIN,
                player_id,
                consecutive_rolls=self.state.consecutive_doubles,
                max_consecutive_rolls=self.config.max_consecutive_rolls,
            )
        roll_again = self.state.roll_again

        old_position = player.position
        player.position = self.board.advance(old_position, total)
        cell = self.board.get_cell(player.position)
        self.emitter.log(
            EventType.MOVE,
            player_id,
            from_position=old_position,
            to_position=player.position,
            cell_type=cell.cell_type.value,
        )

        outcome = self._resolve_cell(player, cell.cell_type)
        return {
            "values": values,
            "total": total,
            "position": player.position,
            "cell": cell.cell_type.value,
            "outcome": outcome,
            "roll_again": roll_again,
            "phase": self.state.phase.value,
        }

    def _settle(self) -> None:
        """Close the current roll: back to awaiting_roll after a granted double, else awaiting_end."""
        if self.state.roll_again:
            self.state.roll_again = False
            self.state.phase = TurnPhase.AWAITING_ROLL
        else:
            self.state.phase = TurnPhase.AWAITING_END

    def _resolve_cell(self, player: PlayerState, cell_type: CellType) -> Dict[str, Any]:
        player_id = player.player_id

        if cell_type == CellType.DEAL:
            self.state.phase = TurnPhase.AWAITING_DEAL_CHOICE
            return {}

        self._settle()

        if cell_type == CellType.MARKET:
            card = self.decks.draw(CardType.MARKET)
            if card is None:
                return {"market_card": None}
            self.decks.discard(card, CardType.MARKET)
            self.state.market_card = card
            self.emitter.log(EventType.MARKET_OFFER, player_id, card=card.to_dict())
            return {"market_card": card.to_dict()}

        if cell_type == CellType.EXPENSE:
            card = self.decks.draw(CardType.EXPENSE)
            if card is None:
                return {"expense_card": None, "bankrupt": False}
            self.emitter.log(EventType.CARD_DRAW, player_id, deck=CardType.EXPENSE.value, card_id=card.id)
            bankrupt = self.processor.process_expense_card(player_id, card)
            return {"expense_card": card.to_dict(), "bankrupt": bankrupt}

        if cell_type == CellType.PAYDAY:
            return {"payday": self.processor.process_payday(player_id).to_dict()}

        if cell_type == CellType.CHARITY:
            self.state.pending_charity = True
            return {"charity_amount": self.processor.charity_amount(player_id)}

        if cell_type == CellType.BABY:
            player.children += 1
            self.emitter.log(EventType.BABY, player_id, children=player.children)
            return {"children": player.children}

        if cell_type == CellType.LOSS:
            self.emitter.log(EventType.LOSS, player_id)
            return {}

        raise StateError(f"Unhandled cell type: {cell_type}")

    # Deals

    def choose_deal(self, player_id: str, size: str) -> Optional[Card]:
        self.require_active(player_id)
        self._require_phase(TurnPhase.AWAITING_DEAL_CHOICE)
        card = self.deals.offer_deal(player_id, size)
        if card is None:
            self._settle()
        else:
            self.state.phase = TurnPhase.AWAITING_DEAL_RESOLUTION
        return card

    def resolve_deal(self, player_id: str, action: str, quantity: Optional[int] = None) -> Dict[str, Any]:
        self.require_active(player_id)
        if action not in ("buy", "pass"):
            raise ValidationError(f"Unknown deal action: {action}")
        if player_id not in self.deals.pending:
            raise PendingDealMissingError(f"No pending deal for player {player_id}")
        self._require_phase(TurnPhase.AWAITING_DEAL_RESOLUTION)
        result = self.deals.resolve(player_id, action, quantity=quantity)
        self._settle()
        return result

    def transfer_asset(self, player_id: str, asset_id: str, target_id: str) -> Dict[str, Any]:
        self.require_active(player_id)
        return self.deals.resolve(player_id, "transfer", asset_id=asset_id, target_id=target_id)

    def sell_asset(self, player_id: str, asset_id: str) -> Dict[str, Any]:
        self.require_active(player_id)
        return self.deals.resolve(player_id, "sell", asset_id=asset_id, market_card=self.state.market_card)

    # Charity

    def donate_charity(self, player_id: str) -> int:
        self.require_active(player_id)
        if not self.state.pending_charity:
            raise StateError("No charity offer pending")
        amount = self.processor.process_charity(player_id)
        self.state.pending_charity = False
        return amount

    # Turn handover

    def start(self) -> None:
        self.state.turn_started_at = datetime.now(timezone.utc)
        self.emitter.log(EventType.TURN_START, self.state.active_player_id, turn=self.state.turn_number)

    def end_turn(self, player_id: str) -> str:
        """
        Finish the active player's turn and hand over to the next seat.

        Returns:
            The id of the new active player
        """
        self.require_active(player_id)
        self._require_phase(TurnPhase.AWAITING_END, TurnPhase.AWAITING_ROLL)

        self._record_turn(player_id)
        self.deals.discard_pending(player_id)
        self.state.market_card = None
        self.state.pending_charity = False
        self.state.last_roll = None
        self.state.rolls_this_turn = 0
        self.state.consecutive_doubles = 0
        self.state.roll_again = False
        self.emitter.log(EventType.TURN_END, player_id, turn=self.state.turn_number)

        index = self.seat_order.index(player_id)
        self.state.active_player_id = self.seat_order[(index + 1) % len(self.seat_order)]
        self.state.phase = TurnPhase.AWAITING_ROLL
        self.state.turn_number += 1
        self.start()
        logger.info(f"Turn {self.state.turn_number}: {self.state.active_player_id} to play")
        return self.state.active_player_id

    def _record_turn(self, player_id: str) -> None:
        ended_at = datetime.now(timezone.utc)
        self.state.turn_history.append(
            {
                "turn_number": self.state.turn_number,
                "player_id": player_id,
                "rolls": self.state.rolls_this_turn,
                "doubles": self.state.consecutive_doubles,
                "last_roll": self.state.last_roll,
                "position": self.ledger.get_player(player_id).position,
                "started_at": self.state.turn_started_at.isoformat(),
                "ended_at": ended_at.isoformat(),
                "duration_seconds": round((ended_at - self.state.turn_started_at).total_seconds(), 3),
            }
        )
        overflow = len(self.state.turn_history) - self.config.turn_history_limit
        if overflow > 0:
            del self.state.turn_history[:overflow]

    def history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Completed turns, oldest first; the last `limit` when given."""
        entries = self.state.turn_history
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return [dict(entry) for entry in entries]

    def stats(self) -> Dict[str, Any]:
        history = self.state.turn_history
        durations = [entry["duration_seconds"] for entry in history]
        return {
            "turn_number": self.state.turn_number,
            "active_player_id": self.state.active_player_id,
            "phase": self.state.phase.value,
            "consecutive_doubles": self.state.consecutive_doubles,
            "max_consecutive_rolls": self.config.max_consecutive_rolls,
            "recorded_turns": len(history),
            "average_turn_seconds": round(sum(durations) / len(durations), 3) if durations else 0.0,
            "seat_order": list(self.seat_order),
        }
