"""
Pytest configuration for the test suite.

Shared fixtures:
    small_config    - Config with tiny networks and buffers, CPU only
    scripted_game   - Factory for a BaseGame that plays a fixed script
    constant_q      - Factory for networks that output fixed Q-values
"""

import os
import random
import sys
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pytest
import torch
import torch.nn as nn

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from snake_dqn.game.base_game import BaseGame, StepResult
from snake_dqn.game.snake import SnakeState


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(autouse=True)
def seed_rngs():
    """Make every test reproducible."""
    random.seed(0)
    np.random.seed(0)
    torch.manual_seed(0)


@pytest.fixture
def small_config():
    """Config with tiny networks so training steps run quickly."""
    cfg = Config()
    cfg.FORCE_CPU = True
    cfg.CONV_FILTERS = (4, 8)
    cfg.DENSE_UNITS = 16
    cfg.REPLAY_BUFFER_SIZE = 32
    cfg.BATCH_SIZE = 8
    cfg.SYNC_EVERY_FRAMES = 10
    cfg.MAX_NUM_FRAMES = 100
    cfg.CUMULATIVE_REWARD_THRESHOLD = 1e9
    cfg.EPSILON_DECAY_FRAMES = 50
    cfg.SAVE_PATH = None
    cfg.__post_init__()
    return cfg


class ScriptedGame(BaseGame):
    """
    5x5 game that replays (reward, done, fruit_eaten) steps in a loop.

    Every step returns a fresh SnakeState so transitions can be told apart.
    """

    def __init__(self, script: Sequence[Tuple[float, bool, bool]]):
        self.script = list(script)
        self.steps_taken = 0
        self.reset_count = 0
        self.actions: List[int] = []
        self._state = SnakeState(((2, 2), (2, 3)), ((0, 0),))

    @property
    def height(self) -> int:
        return 5

    @property
    def width(self) -> int:
        return 5

    @property
    def num_actions(self) -> int:
        return 3

    def reset(self) -> SnakeState:
        self.reset_count += 1
        self._state = SnakeState(((2, 2), (2, 3)), ((0, 0),))
        return self._state

    def get_state(self) -> SnakeState:
        return self._state

    def step(self, action: int) -> StepResult:
        self.actions.append(action)
        reward, done, fruit_eaten = self.script[self.steps_taken % len(self.script)]
        self.steps_taken += 1
        col = self.steps_taken % 5
        self._state = SnakeState(((4, col),), ((0, 0),))
        return StepResult(self._state, reward, done, fruit_eaten)


@pytest.fixture
def scripted_game():
    """Factory: scripted_game([(reward, done, fruit_eaten), ...])."""
    return ScriptedGame


class ConstantQNetwork(nn.Module):
    """Ignores its input and returns the same Q-values for every state."""

    def __init__(
        self,
        height: int,
        width: int,
        num_actions: int,
        config: Optional[Config] = None,
        trainable: bool = True,
        q_values: Optional[Sequence[float]] = None
    ):
        super().__init__()
        values = q_values if q_values is not None else [0.0] * num_actions
        self.q = nn.Parameter(torch.tensor(values, dtype=torch.float32))
        if not trainable:
            self.requires_grad_(False)

    def forward(self, state: torch.Tensor) -> torch.Tensor:
        return self.q.unsqueeze(0).expand(state.shape[0], -1)


@pytest.fixture
def constant_q():
    """Factory: constant_q([q0, q1, q2]) returns a network factory for Agent."""
    def make_factory(q_values: Sequence[float]):
        def factory(height, width, num_actions, config=None, trainable=True):
            return ConstantQNetwork(height, width, num_actions, config, trainable, q_values)
        return factory
    return make_factory
