from __future__ import annotations

from typing import Iterable, List, Tuple

import numpy as np

from .errors import ContractViolation


Coordinate = Tuple[int, int]

EMPTY = 0


class Board:
    """Cell matrix of ``height + margin`` rows by ``width`` columns.

    Row 0 is the top. The first ``margin`` rows are hidden above the visible
    field and give pieces room to spawn and rotate. Cells hold 0 for empty and
    1..K for a colour id.

    Coordinates above the grid (y < 0) read as empty so a piece may poke out
    of the top while rotating; every other out-of-range access is a
    ``ContractViolation``.
    """

    def __init__(self, width: int, height: int, margin: int = 2) -> None:
        self.width = int(width)
        self.height = int(height)
        self.margin = int(margin)
        self.cells = np.zeros((self.height + self.margin, self.width), dtype=np.int8)

    @property
    def rows(self) -> int:
        return self.height + self.margin

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[int]], margin: int = 2) -> "Board":
        """Build a board from a top-to-bottom list of rows (margin included)."""
        data = np.array([list(r) for r in rows], dtype=np.int8)
        board = cls(data.shape[1], data.shape[0] - margin, margin)
        board.cells[:, :] = data
        return board

    def reset(self) -> None:
        self.cells.fill(EMPTY)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.rows

    def cell_at(self, x: int, y: int) -> int:
        if y < 0 and 0 <= x < self.width:
            return EMPTY
        if not self.in_bounds(x, y):
            raise ContractViolation(f"cell ({x}, {y}) is outside a {self.width}x{self.rows} board")
        return int(self.cells[y, x])

    def set_cell(self, x: int, y: int, color: int) -> None:
        if not self.in_bounds(x, y):
            raise ContractViolation(f"cannot write cell ({x}, {y}) on a {self.width}x{self.rows} board")
        self.cells[y, x] = color

    def is_occupied(self, x: int, y: int) -> bool:
        return self.cell_at(x, y) != EMPTY

    def _require_column(self, x: int) -> None:
        if not 0 <= x < self.width:
            raise ContractViolation(f"column {x} is outside a {self.width}-wide board")

    def column_height(self, x: int) -> int:
        """Number of rows from the floor up to and including the topmost filled cell."""
        self._require_column(x)
        filled = np.flatnonzero(self.cells[:, x])
        if filled.size == 0:
            return 0
        return self.rows - int(filled[0])

    def visible_column_height(self, x: int) -> int:
        """Like ``column_height`` but ignoring cells in the hidden margin."""
        self._require_column(x)
        filled = np.flatnonzero(self.cells[self.margin :, x])
        if filled.size == 0:
            return 0
        return self.height - int(filled[0])

    def max_visible_height(self) -> int:
        return max(self.visible_column_height(x) for x in range(self.width))

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.cells))

    def needs_settling(self) -> bool:
        """True if any filled cell has an empty cell somewhere below it."""
        for x in range(self.width):
            column = self.cells[:, x]
            filled = np.flatnonzero(column)
            if filled.size and filled.size != self.rows - int(filled[0]):
                return True
        return False

    def apply_gravity(self) -> bool:
        """Compact every column downward, keeping the order of cells.

        Returns whether any cell moved. Applying it to a settled board is a
        no-op.
        """
        moved = False
        for x in range(self.width):
            column = self.cells[:, x]
            stack = column[column != EMPTY]
            settled = np.zeros_like(column)
            if stack.size:
                settled[-stack.size :] = stack
            if not np.array_equal(settled, column):
                self.cells[:, x] = settled
                moved = True
        return moved

    def clear_cells(self, cells: Iterable[Coordinate]) -> int:
        count = 0
        for x, y in cells:
            self.set_cell(x, y, EMPTY)
            count += 1
        return count

    def clone(self) -> "Board":
        new_board = Board.__new__(Board)
        new_board.width = self.width
        new_board.height = self.height
        new_board.margin = self.margin
        new_board.cells = self.cells.copy()
        return new_board

    def clone_state(self) -> np.ndarray:
        return self.cells.copy()

    def render_text(self) -> str:
        lines: List[str] = []
        for y in range(self.rows):
            row = "".join("." if v == EMPTY else str(int(v)) for v in self.cells[y])
            lines.append(row + ("  (hidden)" if y < self.margin else ""))
        return "\n".join(lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.margin == other.margin and np.array_equal(self.cells, other.cells)

    def __repr__(self) -> str:
        return f"Board(width={self.width}, height={self.height}, margin={self.margin})"
