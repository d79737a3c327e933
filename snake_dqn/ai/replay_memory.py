"""
Experience Replay Memory
========================

A bounded memory that stores transitions for training the DQN.

Why Experience Replay?
    1. Breaks correlation between consecutive experiences
    2. Each experience can be used for multiple training steps
    3. Random sampling provides more diverse gradients

How it works:
    1. Agent plays the game and appends (state, action, reward, done, next_state)
    2. During training, we sample random batches from the memory
    3. Once full, each append overwrites the oldest transition (ring buffer)

References:
    Mnih et al., 2015 - "Human-level control through deep reinforcement learning"
"""

from typing import Any, Iterator, List, NamedTuple, Optional

import numpy as np

from ..errors import InsufficientDataError
from ..utils.validation import assert_positive_integer


class Transition(NamedTuple):
    """One step of experience. Immutable once created."""
    state: Any
    action: int
    reward: float
    done: bool
    next_state: Any


class ReplayMemory:
    """
    Fixed-capacity ring buffer of Transitions.

    Invariants:
        - len(memory) <= capacity
        - Once full, each append evicts the transition appended longest ago
        - sample() never mutates the memory

    Example:
        >>> memory = ReplayMemory(capacity=10000)
        >>> memory.append(Transition(state, action, reward, done, next_state))
        >>> batch = memory.sample(batch_size=64)
    """

    def __init__(self, capacity: int):
        """
        Initialize the replay memory.

        Args:
            capacity: Maximum number of transitions to store

        Raises:
            ConfigurationError: If capacity is not a positive integer
        """
        assert_positive_integer(capacity, 'capacity')
        self.capacity = capacity
        self._buffer: List[Optional[Transition]] = [None] * capacity
        self._size = 0  # Current number of transitions stored
        self._position = 0  # Next write slot

    def append(self, transition: Transition) -> None:
        """
        Add a transition, overwriting the oldest one when full.

        Args:
            transition: Transition to store
        """
        self._buffer[self._position] = transition
        self._position = (self._position + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def sample(self, batch_size: int) -> List[Transition]:
        """
        Sample a batch uniformly at random, with replacement.

        Each element is drawn independently, so one stored transition may
        appear more than once in the same batch.

        Args:
            batch_size: Number of transitions to sample

        Returns:
            List of batch_size transitions

        Raises:
            ConfigurationError: If batch_size is not a positive integer
            InsufficientDataError: If batch_size exceeds the number stored
        """
        assert_positive_integer(batch_size, 'batch_size')
        if batch_size > self._size:
            raise InsufficientDataError(
                f"Cannot sample {batch_size} transitions from a memory "
                f"holding {self._size}"
            )

        # Slots [0, size) are always the occupied ones
        indices = np.random.choice(self._size, size=batch_size, replace=True)
        return [self._buffer[i] for i in indices]

    def __len__(self) -> int:
        """Return current memory size."""
        return self._size

    def __iter__(self) -> Iterator[Transition]:
        """Iterate over stored transitions, oldest first."""
        start = self._position if self._size == self.capacity else 0
        for offset in range(self._size):
            yield self._buffer[(start + offset) % self.capacity]

