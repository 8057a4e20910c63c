"""Move search: enumerate drops, simulate them, and look one pair ahead.

Each candidate placement is played out on a private copy of the board
(drop, settle, chain to fixpoint) and scored by an ``Evaluator``. The
decision entry point keeps the best ``beam_width`` placements of the current
pair and extends each with the best reply for the next pair.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from puyo_ai.game import Board, ChainResult, Move, Orientation, PuyoGame, Tsumo, landing_row, resolve_to_fixpoint
from puyo_ai.game.chain import DEFAULT_CLEAR_THRESHOLD
from puyo_ai.game.grid import Coordinate
from puyo_ai.game.pieces import ActivePiece, write_piece

from .evaluation import Evaluator, GeneralEvaluator, make_evaluator


logger = logging.getLogger(__name__)

DEFAULT_BEAM_WIDTH = 4
DEFAULT_SPAWN_Y = 1


@dataclass
class Candidate:
    """A placement with the board it leaves behind and its score."""

    move: Move
    board: Board
    score: float
    chain: ChainResult


def enumerate_moves(board: Board) -> List[Move]:
    """Every (orientation, column) whose satellite stays inside the walls."""
    moves: List[Move] = []
    for orientation in Orientation:
        for column in range(board.width):
            move = Move(orientation, column)
            if 0 <= move.satellite_column() < board.width:
                moves.append(move)
    return moves


def simulate_placement(
    board: Board,
    tsumo: Tsumo,
    move: Move,
    evaluator: Evaluator,
    dead_cells: Sequence[Coordinate] = (),
    spawn_y: int = DEFAULT_SPAWN_Y,
    clear_threshold: int = DEFAULT_CLEAR_THRESHOLD,
) -> Optional[Candidate]:
    """Drop ``tsumo`` per ``move`` on a copy of ``board`` and score the result.

    Returns None when the pair does not fit at the spawn row of that column.
    """
    y = landing_row(board, move.column, move.orientation, spawn_y)
    if y is None:
        return None
    sim = board.clone()
    piece = ActivePiece(move.column, y, move.orientation, tsumo.pivot_color, tsumo.satellite_color)
    write_piece(sim, piece.cells())
    chain = resolve_to_fixpoint(sim, clear_threshold)
    score = evaluator.evaluate(sim, chain)
    if any(sim.cells[dy, dx] != 0 for dx, dy in dead_cells):
        score -= evaluator.weights.game_over_penalty
    return Candidate(move=move, board=sim, score=score, chain=chain)


def _evaluate_all(
    board: Board,
    tsumo: Tsumo,
    evaluator: Evaluator,
    dead_cells: Sequence[Coordinate],
) -> List[Candidate]:
    candidates: List[Candidate] = []
    for move in enumerate_moves(board):
        candidate = simulate_placement(board, tsumo, move, evaluator, dead_cells)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def best_single_move(
    board: Board,
    tsumo: Tsumo,
    evaluator: Optional[Evaluator] = None,
    dead_cells: Sequence[Coordinate] = (),
) -> Optional[Candidate]:
    """Highest-scoring placement; the first one wins ties."""
    evaluator = evaluator or GeneralEvaluator()
    best: Optional[Candidate] = None
    for candidate in _evaluate_all(board, tsumo, evaluator, dead_cells):
        if best is None or candidate.score > best.score:
            best = candidate
    return best


def top_candidates(
    board: Board,
    tsumo: Tsumo,
    beam_width: int = DEFAULT_BEAM_WIDTH,
    evaluator: Optional[Evaluator] = None,
    dead_cells: Sequence[Coordinate] = (),
) -> List[Candidate]:
    """The ``beam_width`` best placements, best first (stable on ties)."""
    evaluator = evaluator or GeneralEvaluator()
    candidates = _evaluate_all(board, tsumo, evaluator, dead_cells)
    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates[:beam_width]


def think_two_ply(
    board: Board,
    current: Tsumo,
    upcoming: Optional[Tsumo],
    evaluator: Optional[Evaluator] = None,
    beam_width: int = DEFAULT_BEAM_WIDTH,
    dead_cells: Sequence[Coordinate] = (),
) -> Optional[Candidate]:
    """Best first placement by its own score plus the best reply's score.

    The returned candidate carries the combined score. With no upcoming pair
    this is ``best_single_move``.
    """
    evaluator = evaluator or GeneralEvaluator()
    if upcoming is None:
        return best_single_move(board, current, evaluator, dead_cells)

    candidates = top_candidates(board, current, beam_width, evaluator, dead_cells)
    if not candidates:
        return None

    best = candidates[0]
    best_total = float("-inf")
    for candidate in candidates:
        reply = best_single_move(candidate.board, upcoming, evaluator, dead_cells)
        total = candidate.score + (reply.score if reply is not None else float("-inf"))
        logger.debug("%s: %.1f then %.1f", candidate.move, candidate.score, total - candidate.score)
        if total > best_total:
            best_total = total
            best = Candidate(candidate.move, candidate.board, total, candidate.chain)
    return best


def default_move(game: PuyoGame) -> Move:
    return Move(Orientation.UP, game.config.spawn_x)


def think_next_move(
    game: PuyoGame,
    evaluator: Optional[Evaluator] = None,
    beam_width: Optional[int] = None,
) -> Move:
    """Pick a placement for the pair in play, looking at the next pair.

    Reads the session without changing it. Falls back to a single-pair search
    when the queue holds no next pair, and to the spawn column when nothing
    fits at all.
    """
    evaluator = evaluator or make_evaluator(game.config.evaluator)
    width = beam_width if beam_width is not None else game.config.beam_width
    queue = game.queue_contents()
    upcoming = queue[-2] if len(queue) >= 2 else None
    best = think_two_ply(
        game.board,
        game.current_tsumo(),
        upcoming,
        evaluator=evaluator,
        beam_width=width,
        dead_cells=game.dead_cells,
    )
    if best is None:
        logger.info("No placement fits; falling back to the spawn column")
        return default_move(game)
    return best.move
