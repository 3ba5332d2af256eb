"""
Tests for the inner track layout and movement.
"""

import pytest

from core.game import Board, CellType


def test_inner_track_has_24_cells():
    board = Board()
    assert board.size == 24
    assert board.get_cell(0).cell_type == CellType.DEAL


def test_key_cells():
    board = Board()
    assert board.positions_of(CellType.PAYDAY) == [5, 13, 21]
    assert board.positions_of(CellType.CHARITY) == [3]
    assert board.positions_of(CellType.MARKET) == [7, 15, 23]
    assert board.positions_of(CellType.BABY) == [11]
    assert board.positions_of(CellType.LOSS) == [19]


@pytest.mark.parametrize(
    "position, steps, expected",
    [(0, 3, 3), (22, 2, 0), (23, 12, 11), (5, 0, 5)],
)
def test_advance_wraps(position, steps, expected):
    assert Board().advance(position, steps) == expected


def test_custom_layout():
    board = Board([CellType.DEAL, CellType.PAYDAY])
    assert board.size == 2
    assert board.advance(1, 1) == 0
    assert board.get_cell(1).cell_type == CellType.PAYDAY


def test_no_layout_means_inner_track():
    board = Board(layout=None)
    assert [c.cell_type for c in board.cells] == [c.cell_type for c in Board().cells]
    assert board.size == 24
