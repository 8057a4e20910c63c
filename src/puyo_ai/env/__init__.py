"""Gymnasium environments for Puyo AI."""

from __future__ import annotations

from gymnasium.envs.registration import register

from .puyo_env import PuyoEnv, action_to_move
from .wrappers import ResampleInvalidActionWrapper

# One action places one pair: Discrete(4 * width)
register(
    id="Puyo-6x12-v0",
    entry_point="puyo_ai.env.puyo_env:PuyoEnv",
)

__all__ = ["PuyoEnv", "ResampleInvalidActionWrapper", "action_to_move"]
