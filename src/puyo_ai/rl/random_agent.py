from __future__ import annotations

import logging

import gymnasium as gym
import numpy as np

import puyo_ai.env  # noqa: F401  ensure registration


logger = logging.getLogger(__name__)


def run_random(steps: int = 200, seed: int = 0) -> float:
    env = gym.make("Puyo-6x12-v0")
    rng = np.random.default_rng(seed)
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    for _ in range(steps):
        # Prefer valid placements if available
        valid = np.flatnonzero(info.get("action_mask", []))
        if valid.size:
            action = int(rng.choice(valid))
        else:
            action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        if terminated or truncated:
            obs, info = env.reset()
    env.close()
    logger.info("Random agent total reward: %.2f", total_reward)
    return total_reward


if __name__ == "__main__":  # pragma: no cover
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")
    run_random()
