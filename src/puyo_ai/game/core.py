from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .chain import ChainResult, StepResult, find_clearable_groups, resolve_step
from .errors import ContractViolation
from .grid import Board, Coordinate
from .pieces import ActivePiece, Move, Orientation, write_piece
from .rules import ScoringRules
from .tsumo import ColorBag, Tsumo, TsumoQueue


logger = logging.getLogger(__name__)


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    SOFT_DROP = 4
    HARD_DROP = 5
    NONE = 6


class LockResult(Enum):
    LOCKED = "locked"
    CHAINS_PENDING = "chains_pending"
    GAME_OVER = "game_over"


@dataclass
class GameConfig:
    width: int = 6
    height: int = 12
    margin: int = 2
    num_colors: int = 4
    # (x, y) in board rows, margin included. Defaults to column 2 on the top visible row.
    dead_cells: Optional[Tuple[Coordinate, ...]] = None
    queue_depth: int = 3
    opening_pairs: int = 2
    opening_colors: int = 3
    random_seed: Optional[int] = None
    spawn_x: int = 2
    spawn_y: int = 1
    evaluator: str = "general"
    beam_width: int = 4

    def __post_init__(self) -> None:
        if self.width < 2 or self.height < 2 or self.margin < 1:
            raise ValueError("board needs at least 2 columns, 2 rows and 1 margin row")
        if self.num_colors < 2:
            raise ValueError("at least two colours are required")
        if self.queue_depth < 1:
            raise ValueError("queue_depth must be at least 1")
        if not 0 <= self.spawn_x < self.width or not 1 <= self.spawn_y < self.margin + self.height:
            raise ValueError("spawn position must leave room for the satellite inside the grid")
        if self.dead_cells is None:
            self.dead_cells = ((self.spawn_x, self.margin),)
        self.dead_cells = tuple((int(x), int(y)) for x, y in self.dead_cells)
        for x, y in self.dead_cells:
            if not (0 <= x < self.width and 0 <= y < self.height + self.margin):
                raise ValueError(f"dead cell ({x}, {y}) is outside the board")


class PuyoGame:
    """Session engine: one board, one falling pair, one queue.

    Every command applies atomically and returns immediately; timing, lock
    delay and animation are left to the caller, which polls ``can_advance``
    and the chain commands as it sees fit.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[ScoringRules] = None,
        preset: Optional[Sequence[Tsumo]] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self.rng = random.Random(self.config.random_seed)
        self.board = Board(self.config.width, self.config.height, self.config.margin)
        # Built by reset()
        self.bag: ColorBag
        self.queue: TsumoQueue
        self.active: Optional[ActivePiece]
        self.last_chain: ChainResult
        self.reset(preset=preset)

    def reset(self, seed: Optional[int] = None, preset: Optional[Sequence[Tsumo]] = None) -> None:
        if seed is not None:
            self.rng.seed(seed)
        self.bag = ColorBag(
            self.config.num_colors,
            self.rng,
            opening_pairs=self.config.opening_pairs,
            opening_colors=self.config.opening_colors,
        )
        self.queue = TsumoQueue(self.bag, self.config.queue_depth, list(preset) if preset else None)
        self.board.reset()
        self.active = None
        self.score = 0
        self.game_over = False
        self.last_chain = ChainResult()
        self.pieces_placed = 0
        self.total_chains = 0
        self.best_chain = 0
        self.total_cleared = 0
        # Set between a lock (or a clearing step) and the end of its chain
        self._chains_pending = False
        self.spawn_next()

    # ---------- Snapshot access ----------
    @property
    def dead_cells(self) -> Tuple[Coordinate, ...]:
        return self.config.dead_cells or ()

    def current_tsumo(self) -> Tsumo:
        if self.active is not None:
            return Tsumo(self.active.pivot_color, self.active.satellite_color)
        return self.queue.current()

    def next_tsumo(self) -> Optional[Tsumo]:
        return self.queue.peek_next()

    def queue_contents(self) -> List[Tsumo]:
        return self.queue.items()

    def is_game_over(self) -> bool:
        """Terminal state; dead cells are only judged once chains have settled."""
        if self.game_over:
            return True
        if self._chains_pending:
            return False
        return self._dead_cell_occupied()

    def _dead_cell_occupied(self) -> bool:
        return any(self.board.cells[y, x] != 0 for x, y in self.dead_cells)

    # ---------- Piece lifetime ----------
    def spawn_next(self) -> bool:
        """Put the pair at the tail of the queue into play.

        Returns False when the game is over, including when the new pair has
        no room to appear.
        """
        if self.active is not None:
            raise ContractViolation("a piece is already in play")
        if self.is_game_over():
            self.game_over = True
            return False
        tsumo = self.queue.current()
        piece = ActivePiece(
            x=self.config.spawn_x,
            y=self.config.spawn_y,
            orientation=Orientation.UP,
            pivot_color=tsumo.pivot_color,
            satellite_color=tsumo.satellite_color,
        )
        if not piece.is_valid_on(self.board):
            logger.info("Spawn blocked at (%d, %d); game over", piece.x, piece.y)
            self.game_over = True
            return False
        self.active = piece
        return True

    def _require_active(self) -> ActivePiece:
        if self.active is None:
            raise ContractViolation("no piece in play")
        return self.active

    def move(self, dx: int) -> bool:
        if self.active is None:
            return False
        return self.active.try_move(self.board, dx)

    def move_left(self) -> bool:
        return self.move(-1)

    def move_right(self) -> bool:
        return self.move(1)

    def rotate(self, delta: int) -> bool:
        if self.active is None:
            return False
        return self.active.try_rotate(self.board, delta)

    def rotate_clockwise(self) -> bool:
        return self.rotate(1)

    def rotate_counter_clockwise(self) -> bool:
        return self.rotate(-1)

    def can_advance(self) -> bool:
        return self.active is not None and self.active.can_advance(self.board)

    def fall_one_step(self) -> bool:
        if self.active is None:
            return False
        return self.active.try_fall(self.board)

    def lock(self) -> LockResult:
        """Write the falling pair into the board where it stands.

        The pair leaves play and its queue entry is consumed. The result tells
        the caller whether chains (or split-pair settling) remain to be played
        out before the next spawn.
        """
        piece = self._require_active()
        write_piece(self.board, piece.cells())
        self.active = None
        self.queue.consume()
        self.pieces_placed += 1
        self.last_chain = ChainResult()
        if self.board.needs_settling() or self._has_clearable():
            self._chains_pending = True
            return LockResult.CHAINS_PENDING
        if self.is_game_over():
            self.game_over = True
            logger.info("Game over after %d pieces, score %d", self.pieces_placed, self.score)
            return LockResult.GAME_OVER
        return LockResult.LOCKED

    def _has_clearable(self) -> bool:
        return bool(find_clearable_groups(self.board, self.rules.clear_threshold))

    # ---------- Chains ----------
    def apply_gravity_once(self) -> bool:
        return self.board.apply_gravity()

    def resolve_chain_step(self) -> StepResult:
        """Settle, then clear one wave of groups; empty result when done."""
        step = resolve_step(self.board, self.rules.clear_threshold)
        if step:
            self._chains_pending = True
            self.last_chain.add_step(step)
            chain_number = self.last_chain.chain_count
            gained = self.rules.score_for_step(chain_number, step)
            self.score += gained
            self.total_cleared += step.cleared
            logger.debug("Chain %d cleared %d cells (+%d)", chain_number, step.cleared, gained)
        elif self._chains_pending:
            self._finish_chain()
        return step

    def resolve_chains_to_fixpoint(self) -> ChainResult:
        while self.resolve_chain_step():
            pass
        return self.last_chain

    def _finish_chain(self) -> None:
        self._chains_pending = False
        count = self.last_chain.chain_count
        if count:
            self.total_chains += count
            self.best_chain = max(self.best_chain, count)
            logger.info("%d-chain, %d cells cleared", count, self.last_chain.cleared_count)
        if self.is_game_over() and not self.game_over:
            self.game_over = True
            logger.info("Game over after %d pieces, score %d", self.pieces_placed, self.score)

    def settle_and_spawn(self) -> bool:
        """Play out chains from the last lock, then spawn the next pair."""
        self.resolve_chains_to_fixpoint()
        return self.spawn_next()

    # ---------- Headless driving ----------
    def hard_drop(self) -> LockResult:
        self._require_active()
        while self.fall_one_step():
            pass
        result = self.lock()
        if result is not LockResult.GAME_OVER:
            self.settle_and_spawn()
        return LockResult.GAME_OVER if self.game_over else result

    def place(self, move: Move) -> bool:
        """Steer the falling pair to ``move`` with discrete intents and hard-drop it.

        Returns whether the pair reached the requested orientation and column;
        it is dropped wherever it ended up either way.
        """
        reached = steer(self._require_active(), self.board, move)
        self.hard_drop()
        return reached

    def can_reach(self, move: Move) -> bool:
        """Whether ``place(move)`` would arrive at ``move``; the session is untouched."""
        if self.active is None or self.game_over:
            return False
        return steer(replace(self.active), self.board, move)

    def step(self, action: Action) -> Tuple[np.ndarray, int, bool, dict]:
        if self.game_over:
            return self.get_state(), 0, True, {}

        score_before = self.score
        if action == Action.LEFT:
            self.move_left()
        elif action == Action.RIGHT:
            self.move_right()
        elif action == Action.ROTATE_CW:
            self.rotate_clockwise()
        elif action == Action.ROTATE_CCW:
            self.rotate_counter_clockwise()
        elif action == Action.SOFT_DROP:
            if self.active is not None and not self.fall_one_step():
                if self.lock() is not LockResult.GAME_OVER:
                    self.settle_and_spawn()
        elif action == Action.HARD_DROP:
            if self.active is not None:
                self.hard_drop()
        elif action == Action.NONE:
            pass

        info = {
            "score": self.score,
            "chain": self.last_chain.chain_count,
            "pieces_placed": self.pieces_placed,
        }
        return self.get_state(), self.score - score_before, self.game_over, info

    def get_state(self) -> np.ndarray:
        # Falling pair is overlaid with negative colour ids
        state = self.board.clone_state()
        if self.active is not None and not self.game_over:
            for x, y, color in self.active.cells():
                if self.board.in_bounds(x, y):
                    state[y, x] = -color
        return state

    def get_stats(self) -> dict:
        return {
            "score": self.score,
            "pieces_placed": self.pieces_placed,
            "total_chains": self.total_chains,
            "best_chain": self.best_chain,
            "total_cleared": self.total_cleared,
            "game_over": self.is_game_over(),
        }


def rotation_intents(current: Orientation, target: Orientation) -> List[Action]:
    turns = (int(target) - int(current)) % 4
    if turns == 3:
        return [Action.ROTATE_CCW]
    return [Action.ROTATE_CW] * turns


def intents_for_move(piece: ActivePiece, move: Move) -> List[Action]:
    """Rotations first, then horizontal steps, from the piece's current pose.

    A kick during rotation can shift the pivot, so drivers replaying this list
    should re-plan the horizontal part if the piece did not rotate in place.
    """
    actions = rotation_intents(piece.orientation, move.orientation)
    dx = move.column - piece.x
    actions.extend([Action.RIGHT if dx > 0 else Action.LEFT] * abs(dx))
    return actions


def steer(piece: ActivePiece, board: Board, move: Move) -> bool:
    """Rotate, then slide ``piece`` toward ``move`` as far as the board allows.

    Returns whether it ended in the requested orientation and column.
    """
    for action in rotation_intents(piece.orientation, move.orientation):
        piece.try_rotate(board, 1 if action == Action.ROTATE_CW else -1)
    dx = 1 if move.column > piece.x else -1
    while piece.x != move.column and piece.try_move(board, dx):
        pass
    return piece.orientation == move.orientation and piece.x == move.column
