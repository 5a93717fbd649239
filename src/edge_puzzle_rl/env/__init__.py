"""Gymnasium environments for Edge Puzzle RL."""

from __future__ import annotations

from gymnasium.envs.registration import register

from edge_puzzle_rl.game import GameConfig

# Small board for quick experiments
register(
    id="EdgePuzzle-4x4-v0",
    entry_point="edge_puzzle_rl.env.edge_puzzle_env:EdgePuzzleEnv",
    kwargs={"config": GameConfig.mini()},
)

# Full 144-piece board
register(
    id="EdgePuzzle-12x12-v0",
    entry_point="edge_puzzle_rl.env.edge_puzzle_env:EdgePuzzleEnv",
    kwargs={"config": GameConfig.classic()},
)

__all__ = ["EdgePuzzle-4x4-v0", "EdgePuzzle-12x12-v0"]
