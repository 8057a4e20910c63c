"""Look-ahead placement AI.

- Evaluator / GeneralEvaluator / GtrEvaluator: Board scoring strategies
- think_next_move: Two-ply beam search over the current and next pair
"""

from .evaluation import (
    EvaluationWeights,
    Evaluator,
    GeneralEvaluator,
    GtrEvaluator,
    board_features,
    make_evaluator,
)
from .search import (
    Candidate,
    best_single_move,
    enumerate_moves,
    simulate_placement,
    think_next_move,
    think_two_ply,
    top_candidates,
)

__all__ = [
    "EvaluationWeights",
    "Evaluator",
    "GeneralEvaluator",
    "GtrEvaluator",
    "board_features",
    "make_evaluator",
    "Candidate",
    "best_single_move",
    "enumerate_moves",
    "simulate_placement",
    "think_next_move",
    "think_two_ply",
    "top_candidates",
]
