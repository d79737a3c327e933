"""
Base Game Interface
===================

Abstract base class that defines the interface a game must implement
for the agent to play it. The agent only ever calls reset(), get_state()
and step(); the state it receives is an opaque snapshot it stores in
replay memory and hands to the game's tensor encoder.
"""

from abc import ABC, abstractmethod
from typing import Any, NamedTuple


class StepResult(NamedTuple):
    """Outcome of a single game step."""
    state: Any
    reward: float
    done: bool
    fruit_eaten: bool


class BaseGame(ABC):
    """
    Abstract base class for grid games.

    Properties:
        height: int - Board height in cells
        width: int - Board width in cells
        num_actions: int - Number of possible actions

    Methods:
        reset() -> state
            Reset game to initial state, return the state snapshot

        step(action: int) -> StepResult
            Execute action, return (state, reward, done, fruit_eaten)

        get_state() -> state
            Get current state snapshot
    """

    @property
    @abstractmethod
    def height(self) -> int:
        """Return the board height in cells."""
        pass

    @property
    @abstractmethod
    def width(self) -> int:
        """Return the board width in cells."""
        pass

    @property
    @abstractmethod
    def num_actions(self) -> int:
        """Return the number of possible actions."""
        pass

    @abstractmethod
    def reset(self) -> Any:
        """
        Reset the game to initial state.

        Returns:
            Initial state snapshot
        """
        pass

    @abstractmethod
    def step(self, action: int) -> StepResult:
        """
        Execute one game step with the given action.

        Args:
            action: Integer representing the action to take

        Returns:
            StepResult with the new state, the reward, whether the game
            is over and whether a fruit was eaten
        """
        pass

    @abstractmethod
    def get_state(self) -> Any:
        """Get the current state snapshot."""
        pass
