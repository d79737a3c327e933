"""
Tests for the Replay Memory.

These tests verify:
    - Initialization and validation
    - Ring-buffer eviction order
    - Sampling contract (size, membership, replacement, errors)
"""

import pytest
import numpy as np

from snake_dqn.ai.replay_memory import ReplayMemory, Transition
from snake_dqn.errors import ConfigurationError, InsufficientDataError


def make_transition(label: int) -> Transition:
    """Transition whose reward identifies it."""
    return Transition(state=label, action=label % 3, reward=float(label), done=False, next_state=label + 1)


@pytest.fixture
def memory():
    return ReplayMemory(capacity=5)


class TestReplayMemoryInitialization:
    """Test memory initialization."""

    def test_starts_empty(self, memory):
        assert len(memory) == 0
        assert list(memory) == []

    def test_capacity_set_correctly(self, memory):
        assert memory.capacity == 5

    @pytest.mark.parametrize('capacity', [0, -1, 2.5])
    def test_invalid_capacity_raises(self, capacity):
        with pytest.raises(ConfigurationError):
            ReplayMemory(capacity)


class TestReplayMemoryAppend:
    """Test ring-buffer storage."""

    def test_append_increases_size(self, memory):
        memory.append(make_transition(1))
        assert len(memory) == 1

    def test_size_never_exceeds_capacity(self, memory):
        for i in range(20):
            memory.append(make_transition(i))
            assert len(memory) <= memory.capacity
        assert len(memory) == 5

    def test_keeps_most_recent_in_insertion_order(self, memory):
        """Capacity 5, append 1..7: contents are 3..7."""
        for label in range(1, 8):
            memory.append(make_transition(label))
        assert [t.reward for t in memory] == [3.0, 4.0, 5.0, 6.0, 7.0]

    @pytest.mark.parametrize('extra', [0, 1, 4, 5, 12])
    def test_evicts_earliest(self, extra):
        memory = ReplayMemory(capacity=4)
        total = 4 + extra
        for label in range(total):
            memory.append(make_transition(label))
        assert [t.state for t in memory] == list(range(extra, total))


class TestReplayMemorySample:
    """Test sampling behavior."""

    def test_sample_returns_requested_size(self, memory):
        for label in range(5):
            memory.append(make_transition(label))
        assert len(memory.sample(3)) == 3
        assert len(memory.sample(5)) == 5

    def test_sample_draws_from_current_contents(self, memory):
        for label in range(1, 8):
            memory.append(make_transition(label))
        for _ in range(20):
            batch = memory.sample(5)
            assert all(3 <= t.state <= 7 for t in batch)
            assert all(isinstance(t, Transition) for t in batch)

    def test_sample_does_not_mutate(self, memory):
        for label in range(4):
            memory.append(make_transition(label))
        before = list(memory)
        memory.sample(4)
        assert list(memory) == before
        assert len(memory) == 4

    def test_sample_with_replacement(self):
        """A single stored transition can fill a whole batch."""
        memory = ReplayMemory(capacity=10)
        memory.append(make_transition(1))
        batch = memory.sample(1)
        assert batch == [make_transition(1)]

        for label in range(2, 4):
            memory.append(make_transition(label))
        np.random.seed(1)
        duplicates = 0
        for _ in range(50):
            labels = [t.state for t in memory.sample(3)]
            duplicates += len(labels) - len(set(labels))
        assert duplicates > 0

    def test_sample_more_than_stored_raises(self, memory):
        for label in range(3):
            memory.append(make_transition(label))
        with pytest.raises(InsufficientDataError):
            memory.sample(4)

    def test_sample_empty_raises(self, memory):
        with pytest.raises(InsufficientDataError):
            memory.sample(1)

    def test_insufficient_data_is_runtime_error(self, memory):
        with pytest.raises(RuntimeError):
            memory.sample(1)

    def test_sample_is_random(self):
        memory = ReplayMemory(capacity=100)
        for label in range(100):
            memory.append(make_transition(label))
        first = [t.state for t in memory.sample(32)]
        second = [t.state for t in memory.sample(32)]
        assert first != second
