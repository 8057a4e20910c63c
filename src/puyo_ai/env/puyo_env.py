from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from puyo_ai.ai import board_features, enumerate_moves
from puyo_ai.game import GameConfig, Move, Orientation, PuyoGame


def _compute_action_mask(game: PuyoGame) -> np.ndarray:
    width = game.board.width
    mask = np.zeros((4 * width,), dtype=np.bool_)
    if game.active is None or game.is_game_over():
        return mask
    for move in enumerate_moves(game.board):
        if game.can_reach(move):
            mask[int(move.orientation) * width + move.column] = True
    return mask


def action_to_move(action: int, width: int) -> Move:
    return Move(Orientation(action // width), action % width)


class PuyoEnv(gym.Env):
    """One step places one pair: action = orientation * width + column."""

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    PALETTE = {
        0: (30, 30, 36),
        1: (230, 60, 60),
        2: (70, 200, 90),
        3: (60, 110, 230),
        4: (230, 210, 60),
        5: (170, 80, 210),
    }

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 reward_weights: Optional[Dict[str, float]] = None,
                 invalid_action_penalty: float = -1.0,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = -10.0,
                 max_episode_steps: int = 2000) -> None:
        super().__init__()
        self.game = PuyoGame(config)
        self.render_mode = render_mode

        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.max_episode_steps = int(max_episode_steps)
        self.reward_weights: Dict[str, float] = {
            "chain": 1.0,      # per chain link, cubed
            "cleared": 0.1,    # per cell cleared
            "survive": 0.01,   # per pair placed
            "height": 0.05,    # penalize max height increase
            "buried": 0.1,     # penalize buried empty cells created
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        cfg = self.game.config
        rows = cfg.height + cfg.margin
        upcoming = max(1, cfg.queue_depth - 1)
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=0, high=cfg.num_colors, shape=(rows, cfg.width), dtype=np.int8),
                "current": spaces.Box(low=0, high=cfg.num_colors, shape=(2,), dtype=np.int8),
                "next": spaces.Box(low=0, high=cfg.num_colors, shape=(upcoming, 2), dtype=np.int8),
            }
        )
        self.action_space = spaces.Discrete(4 * cfg.width)

        self._last_obs: Optional[Dict[str, Any]] = None
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        upcoming_shape = self.observation_space["next"].shape
        current = self.game.current_tsumo()
        # Queue tail is the pair in play; earlier entries come later.
        pending = self.game.queue_contents()[:-1][::-1]
        upcoming = np.zeros(upcoming_shape, dtype=np.int8)
        for i, tsumo in enumerate(pending[: upcoming_shape[0]]):
            upcoming[i] = (tsumo.pivot_color, tsumo.satellite_color)
        return {
            "board": self.game.board.clone_state(),
            "current": np.array([current.pivot_color, current.satellite_color], dtype=np.int8),
            "next": upcoming,
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": _compute_action_mask(self.game),
            "score": self.game.score,
            "pieces_placed": self.game.pieces_placed,
            "best_chain": self.game.best_chain,
        }

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.game)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self.game.reset(seed)
        self._steps = 0
        obs = self._get_obs()
        self._last_obs = obs
        return obs, self._get_info()

    def step(self, action: int):
        action = int(action)
        mask = _compute_action_mask(self.game)
        reward_components: Dict[str, float] = {}
        reached = False

        if 0 <= action < mask.shape[0] and mask[action]:
            before = board_features(self.game.board)
            reached = self.game.place(action_to_move(action, self.game.board.width))
            chain = self.game.last_chain
            after = board_features(self.game.board)
            reward_components["chain"] = self.reward_weights["chain"] * float(chain.chain_count ** 3)
            reward_components["cleared"] = self.reward_weights["cleared"] * float(chain.cleared_count)
            reward_components["survive"] = self.reward_weights["survive"]
            reward_components["height"] = -self.reward_weights["height"] * float(
                max(0.0, after["max_height"] - before["max_height"]))
            reward_components["buried"] = -self.reward_weights["buried"] * float(
                max(0.0, after["buried"] - before["buried"]))
        else:
            reward_components["invalid"] = self.invalid_action_penalty

        reward_components["step"] = self.step_penalty
        terminated = bool(self.game.is_game_over())
        self._steps += 1
        truncated = self._steps >= self.max_episode_steps and not terminated
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        reward = float(sum(reward_components.values()))
        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        info["reached"] = reached
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        board = self._last_obs["board"] if self._last_obs is not None else self.game.board.cells
        cell = 12
        h, w = board.shape
        img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
        for y in range(h):
            for x in range(w):
                color = self.PALETTE.get(int(board[y, x]), (200, 200, 200))
                img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
        return img

    def close(self) -> None:
        pass
