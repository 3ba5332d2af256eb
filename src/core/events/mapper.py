"""
Mapping from internal GameEvent objects to canonical public JSON events.

The engine emits GameEvent objects whose details are whatever keyword
arguments the emitting component passed. This module produces stable,
UI-friendly dicts with consistent event_type strings and payload keys.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from core.events.emitter import EventType, GameEvent
from core.game.board import Board


def _cell_type(board: Optional[Board], position: Optional[int]) -> Optional[str]:
    if board is None or position is None:
        return None
    return board.get_cell(position).cell_type.value


def _card_ref(card: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Public subset of a serialized card."""
    if not card:
        return None
    return {
        "id": card.get("id"),
        "card_type": card.get("card_type"),
        "name": card.get("name"),
        "cost": card.get("cost"),
        "down_payment": card.get("down_payment"),
        "cash_flow": card.get("cash_flow"),
        "category": card.get("category"),
        "sell_price": card.get("sell_price"),
    }


def map_event(event: GameEvent, *, board: Optional[Board] = None, index: Optional[int] = None) -> Dict[str, Any]:
    """
    Map a single GameEvent to a canonical JSON dict.

    Args:
        event: internal event object
        board: optional Board, used to name the landed cell of move events
        index: optional position of the event in the room's log

    Returns:
        dict with keys: event_type (str), ts, player_id (optional), index
        (optional) and event-specific fields
    """
    d = event.details
    base: Dict[str, Any] = {
        "event_type": event.event_type.value,
        "ts": event.timestamp.isoformat(),
    }
    if index is not None:
        base["index"] = index
    if event.player_id is not None:
        base["player_id"] = event.player_id

    et = event.event_type

    if et == EventType.DICE_ROLL:
        base.update(values=d.get("values"), total=d.get("total"), doubles=d.get("doubles", False))
        return base

    if et == EventType.ROLL_AGAIN:
        base.update(
            consecutive_rolls=d.get("consecutive_rolls"),
            max_consecutive_rolls=d.get("max_consecutive_rolls"),
        )
        return base

    if et == EventType.MOVE:
        to_pos = d.get("to_position")
        base.update(
            from_position=d.get("from_position"),
            to_position=to_pos,
            cell_type=d.get("cell_type") or _cell_type(board, to_pos),
        )
        return base

    if et == EventType.CARD_DRAW:
        base.update(deck=d.get("deck"), card_id=d.get("card_id"))
        return base

    if et in (EventType.MARKET_OFFER, EventType.DEAL_OFFERED):
        base.update(card=_card_ref(d.get("card")))
        if "size" in d:
            base["size"] = d["size"]
        return base

    if et == EventType.EXPENSE:
        base.update(card=_card_ref(d.get("card")), amount=d.get("amount"), cash_after=d.get("cash"))
        return base

    if et == EventType.PAYDAY:
        base.update(
            income=d.get("income"),
            interest=d.get("interest"),
            expenses=d.get("expenses"),
            net_change=d.get("net_change"),
            bankruptcy_triggers=d.get("bankruptcy_triggers", []),
        )
        return base

    if et == EventType.CHARITY:
        base.update(amount=d.get("amount"), charity_turns_left=d.get("charity_turns_left"))
        return base

    if et == EventType.BANKRUPTCY:
        base.update(reason=d.get("reason"), bankruptcy_count=d.get("bankruptcy_count"))
        return base

    if et == EventType.DEAL_RESOLVED:
        base.update(action=d.get("action"), card_id=d.get("card_id"))
        for key in ("quantity", "price", "proceeds", "market_card_id"):
            if key in d:
                base[key] = d[key]
        return base

    if et == EventType.ASSET_TRANSFERRED:
        base.update(asset_id=d.get("asset_id"), target_id=d.get("target_id"))
        return base

    if et == EventType.TRANSFER_COMPLETED:
        base.update(
            recipient_id=d.get("recipient"),
            amount=d.get("amount"),
            transaction_id=d.get("transaction_id"),
        )
        return base

    if et in (EventType.CREDIT_TAKEN, EventType.CREDIT_REPAID):
        base.update(amount=d.get("amount"), credit_amount=d.get("credit_amount"), cash_after=d.get("cash"))
        return base

    if et in (EventType.TURN_START, EventType.TURN_END):
        base.update(turn=d.get("turn"))
        return base

    # game_start, baby, loss and anything else: pass details through
    base.update(d)
    return base


def map_events(
    events: Iterable[GameEvent],
    *,
    board: Optional[Board] = None,
    start_index: int = 0,
) -> List[Dict[str, Any]]:
    """Map a sequence of events, numbering them from start_index."""
    return [map_event(e, board=board, index=start_index + i) for i, e in enumerate(events)]
