from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional

import numpy as np

from puyo_ai.ai import make_evaluator, think_next_move
from puyo_ai.game import GameConfig, PuyoGame


logger = logging.getLogger("eval_agent")


def play_game(game: PuyoGame, evaluator_name: str, max_pieces: int, beam_width: Optional[int] = None) -> Dict[str, object]:
    """Let the search AI play one game through the discrete command surface."""
    evaluator = make_evaluator(evaluator_name)
    while not game.is_game_over() and game.pieces_placed < max_pieces:
        move = think_next_move(game, evaluator=evaluator, beam_width=beam_width)
        if not game.place(move):
            logger.debug("Could not steer to %s; dropped where the pair stood", move)
    return game.get_stats()


def play_model_game(model_path: str, algo: str, seed: int, max_pieces: int) -> Dict[str, object]:
    import gymnasium as gym

    import puyo_ai.env  # noqa: F401  ensure registration

    if algo == "maskable":
        from sb3_contrib import MaskablePPO as Algo
    else:
        from stable_baselines3 import PPO as Algo

    env = gym.make("Puyo-6x12-v0", max_episode_steps=max_pieces)
    model = Algo.load(model_path, device="auto")
    obs, info = env.reset(seed=seed)
    done = False
    while not done:
        if algo == "maskable":
            action, _ = model.predict(obs, deterministic=True, action_masks=info["action_mask"])
        else:
            action, _ = model.predict(obs, deterministic=True)
        obs, _, terminated, truncated, info = env.step(action)
        done = terminated or truncated
    stats = env.unwrapped.game.get_stats()
    env.close()
    return stats


def summarize(results: List[Dict[str, object]]) -> Dict[str, float]:
    scores = np.array([r["score"] for r in results], dtype=np.float64)
    pieces = np.array([r["pieces_placed"] for r in results], dtype=np.float64)
    best = np.array([r["best_chain"] for r in results], dtype=np.float64)
    return {
        "games": float(len(results)),
        "mean_score": float(scores.mean()) if scores.size else 0.0,
        "mean_pieces": float(pieces.mean()) if pieces.size else 0.0,
        "max_chain": float(best.max()) if best.size else 0.0,
        "mean_best_chain": float(best.mean()) if best.size else 0.0,
    }


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play headless games and report chain statistics")
    p.add_argument("--agent", choices=["search", "ppo", "maskable"], default="search")
    p.add_argument("--evaluator", choices=["general", "gtr"], default="general")
    p.add_argument("--beam-width", type=int, default=4)
    p.add_argument("--model", type=str, default=None, help="Path to a trained model (ppo/maskable agents)")
    p.add_argument("--games", type=int, default=5)
    p.add_argument("--max-pieces", type=int, default=200)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--verbose", action="store_true")
    return p


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(message)s")
    if args.agent != "search" and not args.model:
        raise SystemExit("--model is required for the ppo and maskable agents")

    results: List[Dict[str, object]] = []
    for i in range(args.games):
        seed = args.seed + i
        if args.agent == "search":
            game = PuyoGame(GameConfig(random_seed=seed, evaluator=args.evaluator, beam_width=args.beam_width))
            stats = play_game(game, args.evaluator, args.max_pieces, args.beam_width)
        else:
            stats = play_model_game(args.model, args.agent, seed, args.max_pieces)
        logger.info("Game %d: score=%d pieces=%d best_chain=%d", i + 1, stats["score"],
                    stats["pieces_placed"], stats["best_chain"])
        results.append(stats)

    summary = summarize(results)
    logger.info("=" * 60)
    for key, value in summary.items():
        logger.info("%s: %.2f", key, value)


if __name__ == "__main__":  # pragma: no cover
    main()
