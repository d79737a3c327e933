"""
Snake Game Implementation
=========================

Headless grid snake designed for DQN training.

Game Rules:
- The snake moves one cell per step in its current direction
- Actions are relative to the current heading: go straight, turn left, turn right
- Eating a fruit grows the snake by one cell and spawns a new fruit
- Leaving the board or running into the body ends the episode

State representation:
    SnakeState(snake, fruits) with (row, col) cells, head first.
    get_state_tensor() encodes snapshots as (N, 2, height, width):
        - channel 0: 2 = head, 1 = body
        - channel 1: 1 = fruit
"""

from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from .base_game import BaseGame, StepResult
from ..utils.validation import assert_positive_integer
from ..errors import ConfigurationError

Cell = Tuple[int, int]

# Rewards
NO_FRUIT_REWARD = -0.2
FRUIT_REWARD = 10.0
DEATH_REWARD = -10.0

# Actions (relative to the current heading)
ACTION_GO_STRAIGHT = 0
ACTION_TURN_LEFT = 1
ACTION_TURN_RIGHT = 2

ALL_ACTIONS = (ACTION_GO_STRAIGHT, ACTION_TURN_LEFT, ACTION_TURN_RIGHT)
NUM_ACTIONS = len(ALL_ACTIONS)

# Headings
UP = 'u'
DOWN = 'd'
LEFT = 'l'
RIGHT = 'r'

# Heading vectors (dy, dx)
DIRECTION_VECTORS = {
    UP: (-1, 0),
    DOWN: (1, 0),
    LEFT: (0, -1),
    RIGHT: (0, 1),
}

# New heading after turning left / right
TURNS = {
    LEFT: {ACTION_TURN_LEFT: DOWN, ACTION_TURN_RIGHT: UP},
    UP: {ACTION_TURN_LEFT: LEFT, ACTION_TURN_RIGHT: RIGHT},
    RIGHT: {ACTION_TURN_LEFT: UP, ACTION_TURN_RIGHT: DOWN},
    DOWN: {ACTION_TURN_LEFT: RIGHT, ACTION_TURN_RIGHT: LEFT},
}


class SnakeState(NamedTuple):
    """Immutable board snapshot. Cells are (row, col), head first."""
    snake: Tuple[Cell, ...]
    fruits: Tuple[Cell, ...]


def get_state_tensor(
    states: Union[Optional[SnakeState], Sequence[Optional[SnakeState]]],
    height: int,
    width: int
) -> torch.Tensor:
    """
    Encode one or more snapshots as a float32 tensor.

    Args:
        states: A single SnakeState or a sequence of them. None entries
            encode as an all-zero board.
        height: Board height
        width: Board width

    Returns:
        Tensor of shape (N, 2, height, width)
    """
    if states is None or isinstance(states, SnakeState):
        states = [states]

    buffer = np.zeros((len(states), 2, height, width), dtype=np.float32)
    for n, state in enumerate(states):
        if state is None:
            continue
        for i, (row, col) in enumerate(state.snake):
            buffer[n, 0, row, col] = 2.0 if i == 0 else 1.0
        for row, col in state.fruits:
            buffer[n, 1, row, col] = 1.0

    return torch.from_numpy(buffer)


class SnakeGame(BaseGame):
    """
    Snake game on a height x width board.

    The snake starts horizontally in a random row with its head at a random
    column in [0, width - init_len], heading left, body extending to the right.

    Example:
        >>> game = SnakeGame(height=5, width=5, num_fruits=1, init_len=2)
        >>> result = game.step(ACTION_GO_STRAIGHT)
        >>> result.reward, result.done
    """

    def __init__(
        self,
        height: int = 16,
        width: int = 16,
        num_fruits: int = 1,
        init_len: int = 4
    ):
        """
        Initialize the Snake game.

        Args:
            height: Board height in cells
            width: Board width in cells
            num_fruits: Fruits kept on the board
            init_len: Initial snake length

        Raises:
            ConfigurationError: If any argument is not a positive integer,
                or the initial snake does not fit on the board
        """
        assert_positive_integer(height, 'height')
        assert_positive_integer(width, 'width')
        assert_positive_integer(num_fruits, 'num_fruits')
        assert_positive_integer(init_len, 'init_len')
        if init_len > width:
            raise ConfigurationError(
                f"init_len ({init_len}) must not exceed width ({width})"
            )

        self._height = height
        self._width = width
        self.num_fruits = num_fruits
        self.init_len = init_len

        self.snake: List[Cell] = []
        self.fruits: List[Cell] = []
        self.direction = LEFT

        self.reset()

    @property
    def height(self) -> int:
        return self._height

    @property
    def width(self) -> int:
        return self._width

    @property
    def num_actions(self) -> int:
        return NUM_ACTIONS

    def reset(self) -> SnakeState:
        """Reset the game to initial state."""
        self._initialize_snake()
        self.fruits = []
        self._make_fruits()
        return self.get_state()

    def _initialize_snake(self) -> None:
        self.direction = LEFT
        row = np.random.randint(0, self._height)
        col = np.random.randint(0, self._width - self.init_len + 1)
        self.snake = [(row, col + i) for i in range(self.init_len)]

    def _make_fruits(self) -> None:
        """Top up fruits to num_fruits on random empty cells."""
        missing = self.num_fruits - len(self.fruits)
        if missing <= 0:
            return

        occupied = set(self.snake) | set(self.fruits)
        empty_cells = [
            (row, col)
            for row in range(self._height)
            for col in range(self._width)
            if (row, col) not in occupied
        ]

        for _ in range(missing):
            if not empty_cells:
                # Board is full
                return
            cell = empty_cells.pop(np.random.randint(len(empty_cells)))
            self.fruits.append(cell)

    def _update_direction(self, action: int) -> None:
        if action not in ALL_ACTIONS:
            raise ValueError(f"Invalid action {action}; expected one of {ALL_ACTIONS}")
        if action != ACTION_GO_STRAIGHT:
            self.direction = TURNS[self.direction][action]

    def step(self, action: int) -> StepResult:
        """Execute one game step."""
        self._update_direction(action)

        head_row, head_col = self.snake[0]
        dy, dx = DIRECTION_VECTORS[self.direction]
        new_head = (head_row + dy, head_col + dx)

        # Wall collision
        done = not (0 <= new_head[0] < self._height and 0 <= new_head[1] < self._width)
        # Body collision (the tail has not moved yet, so it counts)
        if new_head in self.snake[1:]:
            done = True

        if done:
            return StepResult(self.get_state(), DEATH_REWARD, True, False)

        self.snake.insert(0, new_head)

        reward = NO_FRUIT_REWARD
        fruit_eaten = False
        if new_head in self.fruits:
            reward = FRUIT_REWARD
            fruit_eaten = True
            self.fruits.remove(new_head)
            self._make_fruits()
        else:
            # Pop the tail only when nothing was eaten
            self.snake.pop()

        return StepResult(self.get_state(), reward, False, fruit_eaten)

    def get_state(self) -> SnakeState:
        """Get the current board snapshot."""
        return SnakeState(tuple(self.snake), tuple(self.fruits))
