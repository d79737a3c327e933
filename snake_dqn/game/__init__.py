"""
Game Module
===========

Headless snake game the agent learns to play.

Classes:
    SnakeGame  - Grid snake with relative actions
    SnakeState - Immutable board snapshot
    BaseGame   - Abstract interface the agent relies on
"""

from .base_game import BaseGame, StepResult
from .snake import (
    SnakeGame,
    SnakeState,
    get_state_tensor,
    ALL_ACTIONS,
    NUM_ACTIONS,
)

__all__ = [
    'BaseGame',
    'StepResult',
    'SnakeGame',
    'SnakeState',
    'get_state_tensor',
    'ALL_ACTIONS',
    'NUM_ACTIONS',
]
