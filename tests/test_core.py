from __future__ import annotations

import pytest

from puyo_ai.game import (
    Action,
    ContractViolation,
    GameConfig,
    LockResult,
    Move,
    Orientation,
    PuyoGame,
    Tsumo,
    intents_for_move,
)

from conftest import stack_columns


PRESET = [Tsumo(1, 2), Tsumo(3, 4), Tsumo(2, 3), Tsumo(4, 1)]


@pytest.fixture
def game() -> PuyoGame:
    return PuyoGame(GameConfig(random_seed=1), preset=PRESET)


def test_spawn_position_and_colors(game):
    piece = game.active
    assert (piece.x, piece.y, piece.orientation) == (2, 1, Orientation.UP)
    assert (piece.pivot_color, piece.satellite_color) == (1, 2)
    assert game.next_tsumo() == Tsumo(3, 4)
    assert len(game.queue_contents()) == 3


def test_moves_report_success(game):
    assert game.move_left()
    assert game.move_left()
    assert not game.move_left()
    assert game.active.x == 0
    assert game.move_right()


def test_hard_drop_lands_on_the_floor(game):
    while game.fall_one_step():
        pass
    assert game.active.y == 13
    assert not game.can_advance()
    assert game.lock() is LockResult.LOCKED
    assert game.board.cell_at(2, 13) == 1
    assert game.board.cell_at(2, 12) == 2
    assert game.active is None
    assert game.spawn_next()
    assert (game.active.pivot_color, game.active.satellite_color) == (3, 4)


def test_can_advance_has_no_side_effects(game):
    before = (game.active.x, game.active.y, game.active.orientation)
    for _ in range(5):
        assert game.can_advance()
    assert (game.active.x, game.active.y, game.active.orientation) == before


def test_contract_violations(game):
    with pytest.raises(ContractViolation):
        game.spawn_next()
    game.hard_drop()
    game.active = None
    with pytest.raises(ContractViolation):
        game.lock()


def test_split_pair_reports_pending_settle(game):
    stack_columns(game.board, {3: [4, 4, 1]})
    game.rotate_clockwise()
    while game.fall_one_step():
        pass
    # Satellite rests on column 3; pivot hangs over an empty column
    assert (game.active.x, game.active.y) == (2, 10)
    assert game.lock() is LockResult.CHAINS_PENDING
    result = game.resolve_chains_to_fixpoint()
    assert result.chain_count == 0
    assert game.board.cell_at(2, 13) == 1
    assert game.board.cell_at(3, 10) == 2


def test_chain_steps_can_be_played_one_at_a_time(game):
    stack_columns(game.board, {0: [1, 1, 1, 2], 1: [1, 2], 2: [2, 2]})
    game.active = None
    first = game.resolve_chain_step()
    assert first.cleared == 4
    second = game.resolve_chain_step()
    assert second.cleared == 4
    assert not game.resolve_chain_step()
    assert game.last_chain.chain_count == 2
    assert game.best_chain == 2
    assert game.score == 40 + 320


def test_polling_after_the_chain_does_not_recount_it(game):
    stack_columns(game.board, {0: [1, 1, 1, 2], 1: [1, 2], 2: [2, 2]})
    game.active = None
    assert game.resolve_chains_to_fixpoint().chain_count == 2
    for _ in range(3):
        assert not game.resolve_chain_step()
    stats = game.get_stats()
    assert stats["total_chains"] == 2
    assert stats["best_chain"] == 2
    assert stats["total_cleared"] == 8


def _land_on_dead_cell(top):
    # Column 2 reaches row 3; a RIGHT pair shifted left rests its satellite
    # on the dead cell (2, 2) with the pivot hanging over empty column 1.
    game = PuyoGame(GameConfig(), preset=[Tsumo(4, 1), Tsumo(3, 4), Tsumo(2, 3)])
    stack_columns(game.board, {2: [2, 3, 2, 3, 2, 3, 2, 3] + top})
    assert game.rotate_clockwise()
    assert game.move_left()
    while game.fall_one_step():
        pass
    assert game.active.satellite() == (2, 2)
    return game


def test_dead_cell_is_judged_after_the_chain():
    game = _land_on_dead_cell([1, 1, 1])
    assert game.lock() is LockResult.CHAINS_PENDING
    assert not game.is_game_over()
    assert game.resolve_chains_to_fixpoint().chain_count == 1
    assert game.board.cell_at(2, 2) == 0
    assert not game.is_game_over()
    assert game.spawn_next()


def test_dead_cell_still_occupied_after_settling_ends_the_game():
    game = _land_on_dead_cell([3, 1, 1])
    assert game.lock() is LockResult.CHAINS_PENDING
    assert not game.is_game_over()
    assert game.resolve_chains_to_fixpoint().chain_count == 0
    assert game.is_game_over()
    assert not game.spawn_next()


def test_can_reach_is_side_effect_free(game):
    stack_columns(game.board, {3: [1, 2] * 6 + [1]})
    before = (game.active.x, game.active.y, game.active.orientation)
    assert game.can_reach(Move(Orientation.UP, 0))
    assert not game.can_reach(Move(Orientation.UP, 4))
    assert not game.can_reach(Move(Orientation.RIGHT, 2))
    assert (game.active.x, game.active.y, game.active.orientation) == before
    assert not game.place(Move(Orientation.UP, 5))
    assert game.board.cell_at(2, 13) == 1


def test_dead_cell_occupied_ends_the_game():
    game = PuyoGame(GameConfig(dead_cells=((2, 13),)), preset=PRESET)
    while game.fall_one_step():
        pass
    assert game.lock() is LockResult.GAME_OVER
    assert game.is_game_over()
    assert not game.spawn_next()
    assert game.active is None


def test_default_dead_cell_is_top_visible_row_of_spawn_column():
    config = GameConfig()
    assert config.dead_cells == ((2, 2),)


def test_stacking_the_spawn_column_ends_the_game():
    game = PuyoGame(GameConfig(random_seed=3, num_colors=4))
    colors = [(1, 2), (3, 4)]
    drops = 0
    while not game.is_game_over():
        pivot, satellite = colors[drops % 2]
        game.active.pivot_color, game.active.satellite_color = pivot, satellite
        game.hard_drop()
        drops += 1
    assert drops == 6
    assert game.active is None
    _, reward, done, _ = game.step(Action.LEFT)
    assert done and reward == 0


def test_soft_drop_locks_and_spawns(game):
    for _ in range(12):
        game.step(Action.SOFT_DROP)
    assert game.pieces_placed == 0
    game.step(Action.SOFT_DROP)
    assert game.pieces_placed == 1
    assert game.active is not None
    assert game.current_tsumo() == Tsumo(3, 4)


def test_place_follows_intents(game):
    assert intents_for_move(game.active, Move(Orientation.LEFT, 0)) == [Action.ROTATE_CCW, Action.LEFT, Action.LEFT]
    assert game.place(Move(Orientation.LEFT, 1))
    assert game.board.cell_at(1, 13) == 1
    assert game.board.cell_at(0, 13) == 2


def test_state_overlays_active_piece(game):
    state = game.get_state()
    assert state[1, 2] == -1
    assert state[0, 2] == -2


def test_invalid_config_is_rejected():
    with pytest.raises(ValueError):
        GameConfig(num_colors=1)
    with pytest.raises(ValueError):
        GameConfig(dead_cells=((9, 9),))
    with pytest.raises(ValueError):
        GameConfig(queue_depth=0)
