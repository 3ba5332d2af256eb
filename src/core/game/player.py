"""
Player state and management.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.game.cards import Card


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class OwnedAsset:
    """A card owned by a player, with purchase metadata."""

    card: Card
    owner: str
    purchase_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    quantity: int = 1
    purchase_price: int = 0
    transfer_date: Optional[datetime] = None

    @property
    def asset_id(self) -> str:
        return self.card.id

    @property
    def passive_income(self) -> int:
        """Monthly cash flow this asset contributes."""
        if self.card.divisible:
            return self.card.cash_flow * self.quantity
        return self.card.cash_flow

    def to_dict(self) -> Dict[str, Any]:
        return {
            "card": self.card.to_dict(),
            "owner": self.owner,
            "purchase_date": _iso(self.purchase_date),
            "quantity": self.quantity,
            "purchase_price": self.purchase_price,
            "transfer_date": _iso(self.transfer_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OwnedAsset":
        return cls(
            card=Card.from_dict(data["card"]),
            owner=data["owner"],
            purchase_date=_parse(data.get("purchase_date")) or datetime.now(timezone.utc),
            quantity=data.get("quantity", 1),
            purchase_price=data.get("purchase_price", 0),
            transfer_date=_parse(data.get("transfer_date")),
        )


class PlayerState:
    """Represents the complete financial and board state of a player."""

    def __init__(
        self,
        player_id: str,
        name: str,
        starting_cash: int,
        monthly_income: int = 0,
        monthly_expenses: int = 0,
    ):
        self.player_id = player_id
        self.name = name
        self.cash = starting_cash
        self.credit_amount = 0
        self.monthly_income = monthly_income
        self.monthly_expenses = monthly_expenses
        self.passive_income = 0
        self.assets: List[OwnedAsset] = []
        self.position = 0
        self.track = "inner"
        self.is_bankrupt = False
        self.bankruptcy_count = 0
        self.last_payday: Optional[datetime] = None
        self.last_charity: Optional[datetime] = None
        self.charity_turns_left = 0
        self.children = 0

    @property
    def cash_flow(self) -> int:
        """Monthly cash flow: salary plus passive income minus expenses."""
        return self.monthly_income + self.passive_income - self.monthly_expenses

    def find_asset(self, asset_id: str) -> Optional[OwnedAsset]:
        for asset in self.assets:
            if asset.asset_id == asset_id:
                return asset
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "cash": self.cash,
            "credit_amount": self.credit_amount,
            "monthly_income": self.monthly_income,
            "monthly_expenses": self.monthly_expenses,
            "passive_income": self.passive_income,
            "assets": [a.to_dict() for a in self.assets],
            "position": self.position,
            "track": self.track,
            "is_bankrupt": self.is_bankrupt,
            "bankruptcy_count": self.bankruptcy_count,
            "last_payday": _iso(self.last_payday),
            "last_charity": _iso(self.last_charity),
            "charity_turns_left": self.charity_turns_left,
            "children": self.children,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerState":
        player = cls(
            data["player_id"],
            data["name"],
            data["cash"],
            data.get("monthly_income", 0),
            data.get("monthly_expenses", 0),
        )
        player.credit_amount = data.get("credit_amount", 0)
        player.passive_income = data.get("passive_income", 0)
        player.assets = [OwnedAsset.from_dict(a) for a in data.get("assets", [])]
        player.position = data.get("position", 0)
        player.track = data.get("track", "inner")
        player.is_bankrupt = data.get("is_bankrupt", False)
        player.bankruptcy_count = data.get("bankruptcy_count", 0)
        player.last_payday = _parse(data.get("last_payday"))
        player.last_charity = _parse(data.get("last_charity"))
        player.charity_turns_left = data.get("charity_turns_left", 0)
        player.children = data.get("children", 0)
        return player

    def __repr__(self) -> str:
        return (
            f"PlayerState(id='{self.player_id}', name='{self.name}', "
            f"cash={self.cash}, credit={self.credit_amount}, bankrupt={self.is_bankrupt})"
        )


class Player:
    """
    Convenience wrapper for seating a player.
    This is primarily for the external API.
    """

    def __init__(
        self,
        player_id: str,
        name: str,
        monthly_income: Optional[int] = None,
        monthly_expenses: Optional[int] = None,
        starting_cash: Optional[int] = None,
    ):
        self.player_id = player_id
        self.name = name
        self.monthly_income = monthly_income
        self.monthly_expenses = monthly_expenses
        self.starting_cash = starting_cash

    def __repr__(self) -> str:
        return f"Player(id='{self.player_id}', name='{self.name}')"
