from __future__ import annotations

import random
from typing import Dict, List

import pytest

from puyo_ai.game import Board


def stack_columns(board: Board, columns: Dict[int, List[int]]) -> Board:
    """Fill columns bottom-up: ``{0: [1, 1, 2]}`` puts 1, 1, 2 in column 0 from the floor."""
    for x, colors in columns.items():
        for i, color in enumerate(colors):
            board.set_cell(x, board.rows - 1 - i, color)
    return board


@pytest.fixture
def empty_board() -> Board:
    return Board(6, 12, 2)


@pytest.fixture
def build_board():
    def _build(columns: Dict[int, List[int]], width: int = 6, height: int = 12) -> Board:
        return stack_columns(Board(width, height, 2), columns)

    return _build


@pytest.fixture
def random_boards():
    """Boards with random (possibly floating) cells; seeded for repeatability."""

    def _make(count: int = 25, seed: int = 7, fill: float = 0.4, colors: int = 4) -> List[Board]:
        rng = random.Random(seed)
        boards = []
        for _ in range(count):
            board = Board(6, 12, 2)
            for y in range(board.rows):
                for x in range(board.width):
                    if rng.random() < fill:
                        board.set_cell(x, y, rng.randint(1, colors))
            boards.append(board)
        return boards

    return _make
