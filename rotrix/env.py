# Rotrix - A gravity-flipping falling-block puzzle
# env.py - Gymnasium environment wrapping the game controller

import random

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from .config import GameConfig
from .controls import Intent
from .game import GameController

# Action 0 is a no-op; action n maps to ACTION_INTENTS[n - 1]
ACTION_INTENTS = [intent for intent in Intent
                  if intent not in (Intent.CONFIRM, Intent.TOGGLE_PAUSE)]


class RotrixEnv(gym.Env):
    """
    Rotrix as a Gymnasium environment.

    Action Space (Discrete(7)):
    - 0: Do nothing (the piece still falls one row by gravity)
    - 1: Move Left
    - 2: Move Right
    - 3: Soft Drop
    - 4: Rotate
    - 5: Hard Drop
    - 6: Force Gravity Flip

    Every step applies the action, then one gravity tick, then runs any line
    clear or gravity flip to completion.

    Observation:
    - board: colour grid (H x W, 0-7)
    - active_piece: mask of the falling piece (H x W, 0/1)
    - gravity_down: 1 while pieces fall toward the bottom row
    - spawns_until_flip: pieces left before the next forced flip

    Reward is the score gained during the step.
    """
    metadata = {"render_modes": ["ansi"]}

    NO_OP = 0
    HARD_DROP = ACTION_INTENTS.index(Intent.HARD_DROP) + 1

    def __init__(self, config: GameConfig = None, render_mode: str = None):
        self.config = config or GameConfig()
        self.render_mode = render_mode
        self.game = GameController(self.config, rng=random.Random())

        height, width = self.config.height, self.config.width
        self.action_space = spaces.Discrete(len(ACTION_INTENTS) + 1)
        self.observation_space = spaces.Dict({
            "board": spaces.Box(low=0, high=7, shape=(height, width), dtype=np.uint8),
            "active_piece": spaces.Box(low=0, high=1, shape=(height, width), dtype=np.uint8),
            "gravity_down": spaces.Discrete(2),
            "spawns_until_flip": spaces.Box(low=0, high=np.iinfo(np.int16).max, shape=(1,), dtype=np.int16),
        })

    def _get_observation(self):
        game = self.game
        active = np.zeros((self.config.height, self.config.width), dtype=np.uint8)
        if game.piece.current is not None:
            for x, y, _ in game.piece.cells():
                if 0 <= y < self.config.height and 0 <= x < self.config.width:
                    active[y, x] = 1
        remaining = max(0, game.state.spawns_until_flip - game.state.spawn_count)
        return {
            "board": game.board.grid.astype(np.uint8),
            "active_piece": active,
            "gravity_down": int(game.state.gravity_down),
            "spawns_until_flip": np.array([remaining], dtype=np.int16),
        }

    def _get_info(self):
        state = self.game.state
        return {
            "score": state.score,
            "level": state.level,
            "lines": state.total_lines,
            "flips": state.flips,
            "pieces_placed": state.pieces_placed,
        }

    def _handle_action(self, action: int):
        if action == self.NO_OP:
            return
        intent = ACTION_INTENTS[action - 1]
        game = self.game
        if intent == Intent.MOVE_LEFT:
            game.move_left()
        elif intent == Intent.MOVE_RIGHT:
            game.move_right()
        elif intent == Intent.SOFT_DROP:
            game.soft_drop()
        elif intent == Intent.ROTATE:
            game.rotate()
        elif intent == Intent.HARD_DROP:
            game.hard_drop()
        elif intent == Intent.FORCE_GRAVITY_FLIP:
            game.force_gravity_flip()

    def step(self, action: int):
        if not self.action_space.contains(action):
            raise ValueError(f"Invalid action {action!r}")

        score_before = self.game.state.score
        self._handle_action(int(action))
        self.game.run_until_idle()
        self.game.tick()
        self.game.run_until_idle()

        reward = float(self.game.state.score - score_before)
        terminated = self.game.state.game_over
        return self._get_observation(), reward, terminated, False, self._get_info()

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        self.game = GameController(self.config, rng=random.Random(seed))
        return self._get_observation(), self._get_info()

    def render(self):
        if self.render_mode == "ansi":
            return str(self.game)
        return None

    def close(self):
        pass
