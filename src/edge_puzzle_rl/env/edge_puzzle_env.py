from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from edge_puzzle_rl.game import EdgePuzzleGame, GameConfig
from edge_puzzle_rl.game import rules


def _compute_action_mask(game: EdgePuzzleGame) -> np.ndarray:
    """(pieces, rows, cols, rotations) mask of placements the rules accept right now."""
    size = game.grid.size
    total = len(game.pieces)
    mask = np.zeros((total, size, size, 4), dtype=np.bool_)
    for piece in game.bank:
        if game.rotation_enabled:
            for r in range(4):
                for row, col in rules.valid_targets(piece, r, game.grid):
                    mask[piece.id, row, col, r] = True
        else:
            # Every requested rotation is played as 0
            for row, col in rules.valid_targets(piece, 0, game.grid):
                mask[piece.id, row, col, :] = True
    return mask


class EdgePuzzleEnv(gym.Env):
    """Place bank pieces one per step until the board is full.

    Observation:
      board_edges: (N, N, 4) edges of placed pieces at their rotation, 0 where empty
      occupied: (N, N) 1 where a piece sits
      bank_edges: (P, 4) canonical edges of every piece, indexed by piece id
      in_bank: (P,) 1 for pieces still in the bank
    Action: (piece_id, row, col, rotation)
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        render_mode: Optional[str] = None,
        locked_pieces: int = 0,
        placement_reward: float = 1.0,
        invalid_action_penalty: float = -0.1,
        step_penalty: float = 0.0,
        completion_bonus: float = 10.0,
        max_episode_steps: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.game = EdgePuzzleGame(config or GameConfig.mini())
        self.render_mode = render_mode
        self.locked_pieces = int(locked_pieces)

        self.placement_reward = float(placement_reward)
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.completion_bonus = float(completion_bonus)

        size = self.game.grid.size
        total = len(self.game.pieces)
        self.max_episode_steps = max_episode_steps or total * 4

        self.observation_space = spaces.Dict(
            {
                "board_edges": spaces.Box(low=-1, high=1, shape=(size, size, 4), dtype=np.int8),
                "occupied": spaces.Box(low=0, high=1, shape=(size, size), dtype=np.int8),
                "bank_edges": spaces.Box(low=-1, high=1, shape=(total, 4), dtype=np.int8),
                "in_bank": spaces.Box(low=0, high=1, shape=(total,), dtype=np.int8),
            }
        )
        self.action_space = spaces.MultiDiscrete((total, size, size, 4))
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        total = len(self.game.pieces)
        bank_edges = np.zeros((total, 4), dtype=np.int8)
        for piece in self.game.pieces.values():
            bank_edges[piece.id, :] = [int(e) for e in piece.edges]
        in_bank = np.zeros((total,), dtype=np.int8)
        for piece in self.game.bank:
            in_bank[piece.id] = 1
        return {
            "board_edges": self.game.grid.edge_state(),
            "occupied": self.game.grid.occupancy_mask().astype(np.int8),
            "bank_edges": bank_edges,
            "in_bank": in_bank,
        }

    def _get_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "action_mask": _compute_action_mask(self.game),
            "steps": self._steps,
        }
        info.update(self.game.counters())
        return info

    def valid_actions(self) -> list:
        return [tuple(int(v) for v in idx) for idx in np.argwhere(_compute_action_mask(self.game))]

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        if seed is not None:
            self.game.rng.seed(seed)
        self.game.new_game()
        locked = (options or {}).get("locked_pieces", self.locked_pieces)
        if locked:
            self.game.lock_random_subset(int(locked))
        self._steps = 0
        return self._get_obs(), self._get_info()

    def step(self, action):
        piece_id, row, col, r = map(int, action)
        self._steps += 1

        if 0 <= row < self.game.grid.size and 0 <= col < self.game.grid.size:
            outcome = self.game.try_place(piece_id, row, col, r)
        else:
            outcome = None

        reward = self.step_penalty
        if outcome is not None and outcome.ok:
            reward += self.placement_reward
        else:
            reward += self.invalid_action_penalty

        terminated = self.game.is_solved()
        if terminated:
            reward += self.completion_bonus
        truncated = not terminated and self._steps >= self.max_episode_steps

        info = self._get_info()
        info["placed"] = bool(outcome is not None and outcome.ok)
        if outcome is not None and outcome.reason:
            info["reason"] = outcome.reason
        return self._get_obs(), float(reward), terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        occupied = self.game.grid.occupancy_mask()
        locked = self.game.grid.locked
        cell = 12
        size = self.game.grid.size
        img = np.zeros((size * cell, size * cell, 3), dtype=np.uint8)
        for row in range(size):
            for col in range(size):
                if locked[row, col]:
                    color = (200, 70, 70)
                elif occupied[row, col]:
                    color = (70, 200, 120)
                else:
                    color = (30, 30, 36)
                img[row * cell : (row + 1) * cell, col * cell : (col + 1) * cell, :] = color
        return img

    def close(self) -> None:
        pass
