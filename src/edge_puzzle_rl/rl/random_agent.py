from __future__ import annotations

import argparse
import logging
import random

import gymnasium as gym

import edge_puzzle_rl.env  # noqa: F401


def run_random(env_id: str = "EdgePuzzle-4x4-v0", steps: int = 200, seed: int | None = None) -> float:
    env = gym.make(env_id)
    rng = random.Random(seed)
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    solved = 0
    for _ in range(steps):
        # Prefer valid actions if available
        valid = env.unwrapped.valid_actions()
        if valid:
            action = rng.choice(valid)
        else:
            action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        if terminated:
            solved += 1
        if terminated or truncated:
            obs, info = env.reset()
    env.close()
    print(f"Random agent total reward: {total_reward:.2f} (boards solved: {solved})")
    return total_reward


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--env", type=str, default="EdgePuzzle-4x4-v0")
    p.add_argument("--steps", type=int, default=200)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--log-level", type=str, default="WARNING")
    return p


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    run_random(args.env, args.steps, args.seed)


if __name__ == "__main__":  # pragma: no cover
    main()
