from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .grid import EMPTY, Board, Coordinate


NEIGHBORS = ((0, -1), (0, 1), (-1, 0), (1, 0))

DEFAULT_CLEAR_THRESHOLD = 4


@dataclass
class Group:
    color: int
    cells: List[Coordinate]

    @property
    def size(self) -> int:
        return len(self.cells)


@dataclass
class StepResult:
    """Outcome of a single clear step."""

    groups: List[Group] = field(default_factory=list)

    @property
    def cleared(self) -> int:
        return sum(g.size for g in self.groups)

    @property
    def colors(self) -> int:
        return len({g.color for g in self.groups})

    def __bool__(self) -> bool:
        return bool(self.groups)


@dataclass
class ChainResult:
    chain_count: int = 0
    cleared_count: int = 0

    def add_step(self, step: StepResult) -> None:
        self.chain_count += 1
        self.cleared_count += step.cleared


def find_connected_group(board: Board, x: int, y: int, visited: Optional[Set[Coordinate]] = None) -> List[Coordinate]:
    """Flood fill the 4-neighbourhood of (x, y) over cells of the same colour.

    Cells reached are added to ``visited`` when one is given, and cells already
    in it are not entered again.
    """
    color = board.cell_at(x, y)
    if color == EMPTY:
        return []
    if visited is None:
        visited = set()
    visited.add((x, y))
    connected: List[Coordinate] = []
    queue = deque([(x, y)])
    while queue:
        cx, cy = queue.popleft()
        connected.append((cx, cy))
        for dx, dy in NEIGHBORS:
            nx, ny = cx + dx, cy + dy
            if not board.in_bounds(nx, ny) or (nx, ny) in visited:
                continue
            if board.cells[ny, nx] != color:
                continue
            visited.add((nx, ny))
            queue.append((nx, ny))
    return connected


def find_clearable_groups(board: Board, threshold: int = DEFAULT_CLEAR_THRESHOLD) -> List[Group]:
    """Every same-colour group of at least ``threshold`` cells, in row-major order."""
    checked: Set[Coordinate] = set()
    groups: List[Group] = []
    for y in range(board.rows):
        for x in range(board.width):
            if board.cells[y, x] == EMPTY or (x, y) in checked:
                continue
            connected = find_connected_group(board, x, y, checked)
            if len(connected) >= threshold:
                groups.append(Group(color=int(board.cells[y, x]), cells=connected))
    return groups


def resolve_step(board: Board, threshold: int = DEFAULT_CLEAR_THRESHOLD) -> StepResult:
    """Settle the board, then clear every group that meets the threshold.

    Cleared cells are left empty; the next step (or ``Board.apply_gravity``)
    drops what was above them.
    """
    board.apply_gravity()
    step = StepResult(groups=find_clearable_groups(board, threshold))
    for group in step.groups:
        board.clear_cells(group.cells)
    return step


def resolve_to_fixpoint(board: Board, threshold: int = DEFAULT_CLEAR_THRESHOLD) -> ChainResult:
    result = ChainResult()
    while True:
        step = resolve_step(board, threshold)
        if not step:
            return result
        result.add_step(step)

