"""
Game configuration settings.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CreditFormula(str, Enum):
    """How the maximum credit line of a player is computed."""

    INCOME_MULTIPLE = "income_multiple"  # monthly_income * 10
    CASHFLOW_HUNDREDS = "cashflow_hundreds"  # floor(cash_flow / 100) * 1000


@dataclass
class GameConfig:
    """Configuration for an Energy Money room."""

    starting_cash: int = 10000
    monthly_income: int = 10000
    monthly_expenses: int = 6200

    credit_step: int = 1000
    credit_multiplier: int = 10
    credit_interest_rate: float = 0.10
    credit_payment_per_step: int = 100
    credit_formula: CreditFormula = CreditFormula.INCOME_MULTIPLE

    charity_rate: float = 0.10
    charity_dice_turns: int = 3

    dice_sides: int = 6
    default_dice: int = 1
    max_dice: int = 2
    max_consecutive_rolls: int = 3  # doubles rerolls per turn
    turn_history_limit: int = 100

    min_players: int = 1
    max_players: int = 8

    seed: Optional[int] = None
