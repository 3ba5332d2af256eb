"""
Inner track of the board: 24 cells, each with an outcome type.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class CellType(Enum):
    """What landing on a cell triggers."""

    DEAL = "deal"
    EXPENSE = "expense"
    CHARITY = "charity"
    PAYDAY = "payday"
    MARKET = "market"
    BABY = "baby"
    LOSS = "loss"


@dataclass(frozen=True)
class Cell:
    """A single board cell. Ids are 1-based, positions 0-based."""

    position: int
    cell_type: CellType
    name: str

    @property
    def cell_id(self) -> int:
        return self.position + 1

    def __repr__(self) -> str:
        return f"Cell(id={self.cell_id}, type='{self.cell_type.value}')"


INNER_TRACK_LAYOUT: List[CellType] = [
    CellType.DEAL, CellType.EXPENSE, CellType.DEAL, CellType.CHARITY,
    CellType.DEAL, CellType.PAYDAY, CellType.DEAL, CellType.MARKET,
    CellType.DEAL, CellType.EXPENSE, CellType.DEAL, CellType.BABY,
    CellType.DEAL, CellType.PAYDAY, CellType.DEAL, CellType.MARKET,
    CellType.DEAL, CellType.EXPENSE, CellType.DEAL, CellType.LOSS,
    CellType.DEAL, CellType.PAYDAY, CellType.DEAL, CellType.MARKET,
]

CELL_NAMES: Dict[CellType, str] = {
    CellType.DEAL: "Deal",
    CellType.EXPENSE: "Expense",
    CellType.CHARITY: "Charity",
    CellType.PAYDAY: "PayDay",
    CellType.MARKET: "Market",
    CellType.BABY: "Baby",
    CellType.LOSS: "Loss",
}


class Board:
    """The 24-cell inner track."""

    def __init__(self, layout: Optional[List[CellType]] = None):
        layout = layout or INNER_TRACK_LAYOUT
        self.cells: List[Cell] = [
            Cell(position, cell_type, CELL_NAMES[cell_type])
            for position, cell_type in enumerate(layout)
        ]

    @property
    def size(self) -> int:
        return len(self.cells)

    def get_cell(self, position: int) -> Cell:
        """Get the cell at the given position."""
        return self.cells[position % self.size]

    def advance(self, position: int, steps: int) -> int:
        """Position after moving forward, wrapping around the track."""
        return (position + steps) % self.size

    def positions_of(self, cell_type: CellType) -> List[int]:
        return [c.position for c in self.cells if c.cell_type == cell_type]
