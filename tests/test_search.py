from __future__ import annotations

from puyo_ai.ai import (
    Evaluator,
    GeneralEvaluator,
    best_single_move,
    enumerate_moves,
    simulate_placement,
    think_next_move,
    think_two_ply,
    top_candidates,
)
from puyo_ai.game import Board, ChainResult, GameConfig, Move, Orientation, PuyoGame, Tsumo

from conftest import stack_columns


class ChainOnlyEvaluator(Evaluator):
    """Ignores shape so that only chains separate the candidates."""

    name = "chain-only"

    def evaluate(self, board: Board, chain: ChainResult) -> float:
        return 1000.0 * chain.chain_count ** 3 + chain.cleared_count


def _two_ply_game(**config) -> PuyoGame:
    # Ones sit three-deep in the corner; twos are split so that firing the
    # ones can only become a 2-chain if column 2 holds a two.
    game = PuyoGame(GameConfig(queue_depth=2, **config), preset=[Tsumo(2, 3), Tsumo(1, 2)])
    stack_columns(game.board, {5: [1, 1, 2], 4: [1, 2]})
    return game


def test_enumerates_every_in_bounds_move(empty_board):
    moves = enumerate_moves(empty_board)
    assert len(moves) == 6 + 5 + 6 + 5
    assert Move(Orientation.RIGHT, 5) not in moves
    assert Move(Orientation.LEFT, 0) not in moves
    assert moves[0] == Move(Orientation.UP, 0)


def test_simulation_leaves_the_input_alone(empty_board):
    snapshot = empty_board.clone()
    candidate = simulate_placement(empty_board, Tsumo(1, 2), Move(Orientation.RIGHT, 4), GeneralEvaluator())
    assert empty_board == snapshot
    assert candidate.board.cell_at(4, 13) == 1
    assert candidate.board.cell_at(5, 13) == 2


def test_simulation_returns_none_when_column_is_full(empty_board):
    stack_columns(empty_board, {0: [1, 2] * 7})
    assert simulate_placement(empty_board, Tsumo(1, 2), Move(Orientation.UP, 0), GeneralEvaluator()) is None


def test_dead_cell_placements_are_penalised(build_board):
    board = build_board({2: [1, 2] * 5 + [3]})
    candidate = simulate_placement(
        board, Tsumo(3, 4), Move(Orientation.UP, 2), GeneralEvaluator(), dead_cells=((2, 2),)
    )
    assert candidate.score < -500_000


def test_single_move_takes_the_clear(build_board):
    board = build_board({0: [1, 1, 1]})
    best = best_single_move(board, Tsumo(1, 2))
    assert best.move == Move(Orientation.UP, 0)
    assert best.score == 180
    assert best.chain.chain_count == 1


def test_single_move_is_always_legal(random_boards):
    for board in random_boards(count=20, fill=0.3):
        board.apply_gravity()
        board.cells[:3, :] = 0
        best = best_single_move(board, Tsumo(1, 3))
        assert best is not None
        assert best.move in enumerate_moves(board)


def test_top_candidates_are_sorted(build_board):
    board = build_board({0: [1, 2, 3], 3: [4, 4], 5: [2]})
    beam = top_candidates(board, Tsumo(4, 1), beam_width=4)
    assert len(beam) == 4
    scores = [c.score for c in beam]
    assert scores == sorted(scores, reverse=True)
    assert beam[0].score == best_single_move(board, Tsumo(4, 1)).score


def test_lookahead_sets_up_the_second_link():
    game = _two_ply_game()
    evaluator = ChainOnlyEvaluator()
    greedy = best_single_move(game.board, game.current_tsumo(), evaluator)
    assert greedy.move == Move(Orientation.UP, 0)

    move = think_next_move(game, evaluator=evaluator)
    assert move == Move(Orientation.UP, 2)


def test_full_beam_agrees_with_narrow_beam():
    game = _two_ply_game()
    evaluator = ChainOnlyEvaluator()
    wide = think_two_ply(game.board, Tsumo(2, 3), Tsumo(1, 2), evaluator, beam_width=22)
    assert wide.move == Move(Orientation.UP, 2)
    assert wide.score == 8008


def test_search_does_not_touch_the_session():
    game = _two_ply_game()
    board = game.board.clone()
    piece = (game.active.x, game.active.y, game.active.orientation)
    queue = game.queue_contents()
    think_next_move(game)
    assert game.board == board
    assert (game.active.x, game.active.y, game.active.orientation) == piece
    assert game.queue_contents() == queue
    assert game.score == 0


def test_without_next_pair_falls_back_to_single_move():
    game = PuyoGame(GameConfig(queue_depth=1), preset=[Tsumo(2, 3)])
    stack_columns(game.board, {0: [2, 2, 2], 3: [1, 3]})
    expected = best_single_move(game.board, Tsumo(2, 3), GeneralEvaluator(), game.dead_cells)
    assert think_next_move(game) == expected.move


def test_no_fit_returns_spawn_column():
    game = PuyoGame(GameConfig(random_seed=4))
    for y in range(game.board.rows):
        for x in range(game.board.width):
            game.board.set_cell(x, y, (x + y) % 2 + 1)
    assert think_next_move(game) == Move(Orientation.UP, 2)


def test_general_two_ply_score_by_hand():
    # Every clearing first move wipes the board (five ones, 100 + 5 * 20),
    # and the best reply on an empty board is a stacked pair worth one
    # interleave bonus. The first of those clears in move order is UP 0.
    game = PuyoGame(GameConfig(queue_depth=2), preset=[Tsumo(1, 1), Tsumo(2, 3)])
    stack_columns(game.board, {0: [1, 1, 1]})
    best = think_two_ply(game.board, Tsumo(1, 1), Tsumo(2, 3), GeneralEvaluator())
    assert best.move == Move(Orientation.UP, 0)
    assert best.chain.cleared_count == 5
    assert best.score == 200 + 20
    assert think_next_move(game) == Move(Orientation.UP, 0)
