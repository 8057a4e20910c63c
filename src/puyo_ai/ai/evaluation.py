"""
Board evaluation for the move search.

A placement that fires a chain is scored by the chain alone. Otherwise the
score is shape potential (colour interleaving, low three-cell groups) minus
risk (stack height, buried empty cells). The GTR evaluator replaces the
left-hand part of the shape scan with a fixed pattern check around the
trigger column.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple, Type

from puyo_ai.game import Board, ChainResult, EMPTY, find_connected_group
from puyo_ai.game.grid import Coordinate


@dataclass
class EvaluationWeights:
    """Every constant the evaluators use"""

    chain_scale: float = 100.0
    chain_exponent: float = 3.0
    per_cleared: float = 20.0
    color_interleave: float = 20.0
    height_threshold: int = 3
    height_exponent: float = 2.8
    danger_height: int = 8
    danger_penalty: float = 350.0
    buried_cell_penalty: float = 40.0
    game_over_penalty: float = 1_000_000.0
    # GTR pattern
    gtr_reserved_columns: int = 3
    gtr_match_bonus: float = 150.0
    gtr_mismatch_penalty: float = 150.0
    gtr_separation_bonus: float = 100.0
    gtr_trigger_open_bonus: float = 1000.0
    gtr_trigger_blocked_penalty: float = 5000.0


# GTR frame as (column, row counted up from the floor).
#
#   r2  T . .
#   r1  B A A
#   r0  B B A
#
# Dropping a B on T clears the B group; the A cells then settle into an
# L that a fourth A on column 2 fires as the second link.
GTR_GROUP_A: Tuple[Coordinate, ...] = ((1, 1), (2, 1), (2, 0))
GTR_GROUP_B: Tuple[Coordinate, ...] = ((0, 0), (1, 0), (0, 1))
GTR_TRIGGER: Coordinate = (0, 2)
GTR_SAME_PAIRS: Tuple[Tuple[Coordinate, Coordinate], ...] = (
    ((2, 0), (2, 1)),
    ((2, 1), (1, 1)),
    ((0, 0), (1, 0)),
    ((0, 0), (0, 1)),
)
GTR_SEPARATED_PAIRS: Tuple[Tuple[Coordinate, Coordinate], ...] = (
    ((1, 0), (2, 0)),
    ((1, 0), (1, 1)),
    ((0, 1), (1, 1)),
)


def chain_reward(chain: ChainResult, weights: EvaluationWeights) -> float:
    return (
        weights.chain_scale * chain.chain_count ** weights.chain_exponent
        + weights.per_cleared * chain.cleared_count
    )


def shape_potential(board: Board, weights: EvaluationWeights, skip_columns: int = 0) -> float:
    """Reward colour interleaving and three-cell groups sitting low.

    Margin rows are ignored, as are the leftmost ``skip_columns`` columns.
    """
    score = 0.0
    visited: Set[Coordinate] = set()
    for y in range(board.margin, board.rows):
        for x in range(skip_columns, board.width):
            color = board.cells[y, x]
            if color == EMPTY:
                continue
            if y < board.rows - 1:
                below = board.cells[y + 1, x]
                if below != EMPTY and below != color:
                    score += weights.color_interleave
            if (x, y) in visited:
                continue
            group = find_connected_group(board, x, y, visited)
            if len(group) == 3:
                center_y = sum(gy for _, gy in group) / 3.0
                score += (board.rows - center_y) ** 2
    return score


def buried_empty_cells(board: Board) -> int:
    """Empty visible cells with a filled cell somewhere above them in the same column."""
    buried = 0
    for x in range(board.width):
        seen_block = False
        for y in range(board.margin, board.rows):
            if board.cells[y, x] != EMPTY:
                seen_block = True
            elif seen_block:
                buried += 1
    return buried


def risk_penalty(board: Board, weights: EvaluationWeights) -> float:
    max_height = board.max_visible_height()
    penalty = 0.0
    if max_height > weights.height_threshold:
        penalty += max_height ** weights.height_exponent
    if max_height > weights.danger_height:
        penalty += weights.danger_penalty
    penalty += weights.buried_cell_penalty * buried_empty_cells(board)
    return penalty


def _gtr_cell(board: Board, cell: Coordinate) -> int:
    column, from_floor = cell
    return int(board.cells[board.rows - 1 - from_floor, column])


def gtr_pattern_score(board: Board, weights: EvaluationWeights) -> float:
    """Score progress toward the GTR frame in the bottom-left corner."""
    score = 0.0
    for a, b in GTR_SAME_PAIRS:
        ca, cb = _gtr_cell(board, a), _gtr_cell(board, b)
        if ca == EMPTY or cb == EMPTY:
            continue
        score += weights.gtr_match_bonus if ca == cb else -weights.gtr_mismatch_penalty
    for a, b in GTR_SEPARATED_PAIRS:
        ca, cb = _gtr_cell(board, a), _gtr_cell(board, b)
        if ca == EMPTY or cb == EMPTY:
            continue
        score += weights.gtr_separation_bonus if ca != cb else -weights.gtr_mismatch_penalty

    trigger = _gtr_cell(board, GTR_TRIGGER)
    if trigger == EMPTY:
        score += weights.gtr_trigger_open_bonus
    else:
        # Only the colour of the B column below may sit on the trigger.
        expected = _gtr_cell(board, (GTR_TRIGGER[0], GTR_TRIGGER[1] - 1))
        if trigger != expected:
            score -= weights.gtr_trigger_blocked_penalty
    return score


def board_features(board: Board) -> dict:
    return {
        "max_height": float(board.max_visible_height()),
        "buried": float(buried_empty_cells(board)),
        "occupied": float(board.occupied_count()),
        "column_heights": [board.visible_column_height(x) for x in range(board.width)],
    }


class Evaluator:
    """Scores a board after a simulated placement and its chain.

    Evaluators are pure: neither argument is modified.
    """

    name = "base"

    def __init__(self, weights: Optional[EvaluationWeights] = None) -> None:
        self.weights = weights or EvaluationWeights()

    def evaluate(self, board: Board, chain: ChainResult) -> float:
        raise NotImplementedError

    def __call__(self, board: Board, chain: ChainResult) -> float:
        return self.evaluate(board, chain)


class GeneralEvaluator(Evaluator):
    name = "general"

    def evaluate(self, board: Board, chain: ChainResult) -> float:
        if chain.chain_count > 0:
            return chain_reward(chain, self.weights)
        return shape_potential(board, self.weights) - risk_penalty(board, self.weights)


class GtrEvaluator(Evaluator):
    """Builds the GTR frame on the left and free-builds on the rest.

    The frame coordinates assume a standard six-column field; narrower boards
    are rejected.
    """

    name = "gtr"

    def evaluate(self, board: Board, chain: ChainResult) -> float:
        if board.width < self.weights.gtr_reserved_columns or board.height < 3:
            raise ValueError("GTR evaluation needs at least a 3x3 visible field")
        if chain.chain_count > 0:
            return chain_reward(chain, self.weights)
        return (
            gtr_pattern_score(board, self.weights)
            + shape_potential(board, self.weights, skip_columns=self.weights.gtr_reserved_columns)
            - risk_penalty(board, self.weights)
        )


EVALUATORS: Dict[str, Type[Evaluator]] = {
    GeneralEvaluator.name: GeneralEvaluator,
    GtrEvaluator.name: GtrEvaluator,
}


def make_evaluator(name: str, weights: Optional[EvaluationWeights] = None) -> Evaluator:
    try:
        cls = EVALUATORS[name]
    except KeyError:
        raise ValueError(f"unknown evaluator {name!r}; expected one of {sorted(EVALUATORS)}") from None
    return cls(weights)
