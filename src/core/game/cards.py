"""
Deal, market and expense card templates.

Cards are immutable templates. A card is never copied: it only moves
between a deck, its discard pile, a pending deal slot and a player's
asset list.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List


class CardType(Enum):
    """The four typed decks of a room."""

    BIG_DEAL = "big_deal"
    SMALL_DEAL = "small_deal"
    MARKET = "market"
    EXPENSE = "expense"


DEAL_SIZES = {
    "big": CardType.BIG_DEAL,
    "small": CardType.SMALL_DEAL,
}


@dataclass(frozen=True)
class Card:
    """A single card template."""

    id: str
    card_type: CardType
    name: str
    description: str = ""
    cost: int = 0
    down_payment: int = 0
    cash_flow: int = 0
    category: str = ""
    divisible: bool = False  # stock-like: bought by quantity at `cost` per unit
    sell_price: int = 0  # market cards: price offered per asset (per unit if divisible)
    icon: str = ""
    color: str = ""

    def purchase_price(self, quantity: int = 1) -> int:
        """Cash needed to buy this card."""
        if self.divisible:
            return self.cost * quantity
        return self.down_payment

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["card_type"] = self.card_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        data = dict(data)
        data["card_type"] = CardType(data["card_type"])
        return cls(**data)

    def __repr__(self) -> str:
        return f"Card('{self.id}', '{self.name}')"


def create_big_deal_cards() -> List[Card]:
    """Create the standard big deal deck."""
    return [
        Card("big_1", CardType.BIG_DEAL, "Office building", "Office building downtown",
             cost=50000, down_payment=10000, cash_flow=2000, category="real_estate",
             icon="🏢", color="#2196F3"),
        Card("big_2", CardType.BIG_DEAL, "Pharmacy", "Pharmacy with a running business",
             cost=80000, down_payment=15000, cash_flow=3000, category="business",
             icon="💊", color="#4CAF50"),
        Card("big_3", CardType.BIG_DEAL, "Car wash", "Car wash with equipment",
             cost=120000, down_payment=20000, cash_flow=4000, category="business",
             icon="🚗", color="#FF9800"),
        Card("big_4", CardType.BIG_DEAL, "Warehouse", "Storage warehouse",
             cost=200000, down_payment=30000, cash_flow=6000, category="real_estate",
             icon="🏭", color="#9C27B0"),
        Card("big_5", CardType.BIG_DEAL, "Restaurant", "Restaurant in the city center",
             cost=150000, down_payment=25000, cash_flow=5000, category="business",
             icon="🍽️", color="#F44336"),
    ]


def create_small_deal_cards() -> List[Card]:
    """Create the standard small deal deck."""
    return [
        Card("small_1", CardType.SMALL_DEAL, "Apple shares", "Buy Apple shares",
             cost=1000, down_payment=1000, cash_flow=50, category="stocks",
             divisible=True, icon="📈", color="#4CAF50"),
        Card("small_2", CardType.SMALL_DEAL, "Bonds", "Government bonds",
             cost=5000, down_payment=5000, cash_flow=200, category="bonds",
             icon="📊", color="#2196F3"),
        Card("small_3", CardType.SMALL_DEAL, "Gold", "Gold bullion",
             cost=3000, down_payment=3000, cash_flow=100, category="precious_metals",
             icon="🥇", color="#FFD700"),
        Card("small_4", CardType.SMALL_DEAL, "Bitcoin", "Buy Bitcoin",
             cost=2000, down_payment=2000, cash_flow=80, category="crypto",
             divisible=True, icon="₿", color="#FF9800"),
        Card("small_5", CardType.SMALL_DEAL, "Mutual funds", "Mutual fund units",
             cost=4000, down_payment=4000, cash_flow=150, category="funds",
             icon="📋", color="#9C27B0"),
    ]


def create_market_cards() -> List[Card]:
    """Create the standard market deck."""
    return [
        Card("market_1", CardType.MARKET, "Stock buyer", "Shares sell at a good price",
             category="stocks", sell_price=1200, icon="💰", color="#4CAF50"),
        Card("market_2", CardType.MARKET, "Gold peak", "Gold sells at its peak price",
             category="precious_metals", sell_price=3500, icon="🥇", color="#FFD700"),
        Card("market_3", CardType.MARKET, "Crypto rally", "Bitcoin sells high",
             category="crypto", sell_price=2500, icon="₿", color="#FF9800"),
        Card("market_4", CardType.MARKET, "Property buyer", "Offer for real estate",
             category="real_estate", sell_price=70000, icon="🏠", color="#10b981"),
        Card("market_5", CardType.MARKET, "Business buyer", "Offer for a business",
             category="business", sell_price=100000, icon="🤝", color="#3b82f6"),
    ]


def create_expense_cards() -> List[Card]:
    """Create the standard expense deck."""
    return [
        Card("expense_1", CardType.EXPENSE, "Home repair", "Necessary home repair",
             cost=5000, category="home", icon="🔨", color="#F44336"),
        Card("expense_2", CardType.EXPENSE, "Dental care", "Dental treatment",
             cost=3000, category="health", icon="🦷", color="#E91E63"),
        Card("expense_3", CardType.EXPENSE, "New car", "Buying a new car",
             cost=25000, category="transport", icon="🚗", color="#2196F3"),
        Card("expense_4", CardType.EXPENSE, "Education", "University tuition",
             cost=15000, category="education", icon="🎓", color="#9C27B0"),
        Card("expense_5", CardType.EXPENSE, "New smartphone", "Mandatory purchase",
             cost=800, category="electronics", icon="📱", color="#f59e0b"),
        Card("expense_6", CardType.EXPENSE, "Car service", "Mandatory expense",
             cost=800, category="transport", icon="🔧", color="#f59e0b"),
        Card("expense_7", CardType.EXPENSE, "Plane ticket", "Mandatory expense",
             cost=400, category="travel", icon="✈️", color="#f59e0b"),
        Card("expense_8", CardType.EXPENSE, "Restaurant dinner", "Mandatory expense",
             cost=120, category="food", icon="🍽️", color="#f59e0b"),
    ]


def default_card_templates() -> Dict[CardType, List[Card]]:
    """All four decks, keyed by type."""
    return {
        CardType.BIG_DEAL: create_big_deal_cards(),
        CardType.SMALL_DEAL: create_small_deal_cards(),
        CardType.MARKET: create_market_cards(),
        CardType.EXPENSE: create_expense_cards(),
    }
