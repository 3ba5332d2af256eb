"""
Public snapshot serialization of GameState.

Produces a sanitized, UI-friendly view of the current room without
exposing hidden information (e.g., deck order or other players' pending deals).
"""

from __future__ import annotations

from typing import Any, Dict, List

from core.game.game import GameState


def serialize_snapshot(game: GameState) -> Dict[str, Any]:
    """Serialize a GameState into a public, stable JSON dict.

    The snapshot includes:
    - version, turn number, phase and active player
    - players with public financial info and owned assets
    - the active market offer and the active player's pending deal
    - deck counts (remaining / discard) only
    """
    players: List[Dict[str, Any]] = []
    for pid in game.seat_order:
        pstate = game.players[pid]
        assets: List[Dict[str, Any]] = []
        for asset in pstate.assets:
            assets.append(
                {
                    "asset_id": asset.asset_id,
                    "name": asset.card.name,
                    "card_type": asset.card.card_type.value,
                    "category": asset.card.category,
                    "quantity": asset.quantity,
                    "purchase_price": asset.purchase_price,
                    "cash_flow": asset.passive_income,
                    "purchase_date": asset.purchase_date.isoformat(),
                }
            )

        players.append(
            {
                "player_id": pid,
                "name": pstate.name,
                "cash": pstate.cash,
                "credit_amount": pstate.credit_amount,
                "max_credit": game.ledger.max_credit(pid),
                "monthly_income": pstate.monthly_income,
                "monthly_expenses": pstate.monthly_expenses,
                "passive_income": pstate.passive_income,
                "cash_flow": pstate.cash_flow,
                "position": pstate.position,
                "track": pstate.track,
                "is_bankrupt": pstate.is_bankrupt,
                "bankruptcy_count": pstate.bankruptcy_count,
                "charity_turns_left": pstate.charity_turns_left,
                "children": pstate.children,
                "assets": assets,
            }
        )

    turn = game.turn_state
    pending = game.deals.get_pending(turn.active_player_id)

    snapshot: Dict[str, Any] = {
        "version": game.version,
        "turn_number": turn.turn_number,
        "phase": turn.phase.value,
        "active_player_id": turn.active_player_id,
        "turn_started_at": turn.turn_started_at.isoformat(),
        "last_roll": turn.last_roll,
        "consecutive_doubles": turn.consecutive_doubles,
        "pending_charity": turn.pending_charity,
        "market_card": turn.market_card.to_dict() if turn.market_card else None,
        "pending_deal": pending.to_dict() if pending else None,
        "players": players,
        "decks": game.decks.counts(),
        "event_count": len(game.emitter.events),
    }
    return snapshot
