from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from .grid import Board, Coordinate


class Orientation(IntEnum):
    """Where the satellite sits relative to the pivot."""

    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    def rotated(self, delta: int) -> "Orientation":
        return Orientation((int(self) + delta) % 4)


SATELLITE_OFFSETS: Dict[Orientation, Coordinate] = {
    Orientation.UP: (0, -1),
    Orientation.RIGHT: (1, 0),
    Orientation.DOWN: (0, 1),
    Orientation.LEFT: (-1, 0),
}

# Nudges tried after the in-place rotation, keyed by the orientation being
# rotated into. A wall pushes a sideways piece away from it; the floor (or a
# stack) pushes a downward satellite up.
ROTATION_KICKS: Dict[Orientation, Tuple[Coordinate, ...]] = {
    Orientation.UP: (),
    Orientation.RIGHT: ((-1, 0),),
    Orientation.DOWN: ((0, -1),),
    Orientation.LEFT: ((1, 0),),
}


def satellite_position(x: int, y: int, orientation: Orientation) -> Coordinate:
    dx, dy = SATELLITE_OFFSETS[Orientation(orientation)]
    return x + dx, y + dy


def check_collision(board: Board, x: int, y: int) -> bool:
    """True if a single cell cannot occupy (x, y)."""
    if x < 0 or x >= board.width or y >= board.rows:
        return True
    if y < 0:
        return False
    return board.is_occupied(x, y)


def is_position_valid(board: Board, x: int, y: int, orientation: Orientation) -> bool:
    if check_collision(board, x, y):
        return False
    sx, sy = satellite_position(x, y, orientation)
    return not check_collision(board, sx, sy)


@dataclass(frozen=True)
class Move:
    """Target of a drop: final orientation and pivot column."""

    orientation: Orientation
    column: int

    def satellite_column(self) -> int:
        return satellite_position(self.column, 0, self.orientation)[0]


@dataclass
class ActivePiece:
    x: int
    y: int
    orientation: Orientation
    pivot_color: int
    satellite_color: int

    def satellite(self) -> Coordinate:
        return satellite_position(self.x, self.y, self.orientation)

    def cells(self) -> List[Tuple[int, int, int]]:
        """(x, y, color) for pivot then satellite."""
        sx, sy = self.satellite()
        return [(self.x, self.y, self.pivot_color), (sx, sy, self.satellite_color)]

    def is_valid_on(self, board: Board) -> bool:
        return is_position_valid(board, self.x, self.y, self.orientation)

    def can_advance(self, board: Board) -> bool:
        return is_position_valid(board, self.x, self.y + 1, self.orientation)

    def try_move(self, board: Board, dx: int) -> bool:
        if not is_position_valid(board, self.x + dx, self.y, self.orientation):
            return False
        self.x += dx
        return True

    def try_rotate(self, board: Board, delta: int) -> bool:
        """Rotate by ``delta`` quarter turns, applying the first kick that fits.

        Leaves the piece untouched and returns False when nothing fits.
        """
        target = self.orientation.rotated(delta)
        for dx, dy in ((0, 0),) + ROTATION_KICKS[target]:
            if is_position_valid(board, self.x + dx, self.y + dy, target):
                self.x += dx
                self.y += dy
                self.orientation = target
                return True
        return False

    def try_fall(self, board: Board) -> bool:
        if not self.can_advance(board):
            return False
        self.y += 1
        return True


def landing_row(board: Board, x: int, orientation: Orientation, start_y: int = 1) -> Optional[int]:
    """Row the pivot comes to rest on when dropped from ``start_y``.

    None when the piece does not fit at ``start_y`` in the first place.
    """
    if not is_position_valid(board, x, start_y, orientation):
        return None
    y = start_y
    while is_position_valid(board, x, y + 1, orientation):
        y += 1
    return y


def write_piece(board: Board, cells: List[Tuple[int, int, int]]) -> int:
    """Write (x, y, color) cells into the board, dropping any above the grid.

    Returns the number of cells written.
    """
    written = 0
    for x, y, color in cells:
        if y < 0:
            continue
        board.set_cell(x, y, color)
        written += 1
    return written
