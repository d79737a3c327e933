"""
DQN Agent
=========

The agent that learns to play snake using Deep Q-Learning.

Key Components:
    1. Online Network  - Trained by gradient descent, used for action selection
    2. Target Network  - Frozen copy used for stable Q-value targets
    3. Replay Memory   - Stores transitions for training
    4. Epsilon-Greedy  - Linear decay from EPSILON_INIT to EPSILON_FINAL

Training Algorithm (DQN):
    1. Observe state s
    2. Choose action a (epsilon-greedy)
    3. Execute action, observe reward r and next state s'
    4. Store (s, a, r, done, s') in replay memory
    5. Sample mini-batch from replay memory
    6. Calculate target: y = r + γ * max_a' Q_target(s', a') * (1 - done)
    7. Update online network: minimize (Q(s,a) - y)²
    8. Periodically copy online weights into the target network

References:
    Mnih et al., 2015 - "Human-level control through deep reinforcement learning"
"""

import random
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import torch
import torch.nn as nn
import torch.nn.functional as F
import torch.optim as optim

from config import Config
from .network import DQN, copy_weights
from .replay_memory import ReplayMemory, Transition
from ..game.base_game import BaseGame
from ..game.snake import get_state_tensor
from ..utils.logger import get_logger
from ..utils.validation import assert_positive_integer

logger = get_logger(__name__)

# (height, width, num_actions, config=..., trainable=...) -> network
NetworkFactory = Callable[..., nn.Module]


@dataclass
class PlayStepOutput:
    """What a single play_step() reports. Totals are from before any reset."""
    action: int
    cumulative_reward: float
    done: bool
    fruits_eaten: int


def linear_epsilon(
    frame_count: int,
    epsilon_init: float,
    epsilon_final: float,
    epsilon_decay_frames: int
) -> float:
    """
    Exploration rate after frame_count frames.

    Interpolates linearly from epsilon_init at frame 0 to epsilon_final at
    epsilon_decay_frames, and stays at epsilon_final afterwards.
    """
    if frame_count >= epsilon_decay_frames:
        return epsilon_final
    return epsilon_init + frame_count * (epsilon_final - epsilon_init) / epsilon_decay_frames


def compute_td_targets(
    rewards: torch.Tensor,
    next_max_q: torch.Tensor,
    dones: torch.Tensor,
    gamma: float
) -> torch.Tensor:
    """
    TD targets: reward + gamma * max_a' Q_target(s', a') * (1 - done).

    A terminal transition's target is exactly its reward.
    """
    return rewards + gamma * next_max_q * (1.0 - dones)


@contextmanager
def evaluation_mode(network: nn.Module) -> Iterator[nn.Module]:
    """Put network in eval mode for the block, then restore its previous mode."""
    was_training = network.training
    network.eval()
    try:
        yield network
    finally:
        network.train(was_training)


class Agent:
    """
    DQN agent for the snake game.

    The agent owns two networks:
        - online_net: Updated every training step
        - target_net: Frozen; changed only by sync_target_network()

    Action Selection:
        - With probability epsilon: random action (exploration)
        - Otherwise: highest Q-value action, ties going to the lowest index

    Example:
        >>> agent = Agent(SnakeGame(height=5, width=5, init_len=2), config)
        >>> output = agent.play_step()
        >>> loss = agent.train_on_replay_batch(64, 0.99, optimizer)
    """

    def __init__(
        self,
        game: BaseGame,
        config: Optional[Config] = None,
        device: Optional[torch.device] = None,
        network_factory: NetworkFactory = DQN
    ):
        """
        Initialize the DQN agent.

        Args:
            game: Environment the agent steps
            config: Configuration object
            device: Device the networks live on (default: config.DEVICE)
            network_factory: Builds a network from
                (height, width, num_actions, config=..., trainable=...)

        Raises:
            ConfigurationError: If the buffer size or decay frames are not
                positive integers
        """
        self.config = config or Config()
        self.game = game
        self.device = device if device is not None else self.config.DEVICE

        assert_positive_integer(self.config.EPSILON_DECAY_FRAMES, 'epsilon_decay_frames')
        self.epsilon_init = self.config.EPSILON_INIT
        self.epsilon_final = self.config.EPSILON_FINAL
        self.epsilon_decay_frames = self.config.EPSILON_DECAY_FRAMES

        self.online_net = network_factory(
            game.height, game.width, game.num_actions,
            config=self.config, trainable=True
        ).to(self.device)
        self.target_net = network_factory(
            game.height, game.width, game.num_actions,
            config=self.config, trainable=False
        ).to(self.device)
        # Start both networks from the same weights
        copy_weights(self.target_net, self.online_net)

        self.replay_buffer_size = self.config.REPLAY_BUFFER_SIZE
        self.replay_memory = ReplayMemory(self.replay_buffer_size)

        self.frame_count = 0
        # Exploration rate the most recent play_step() acted with
        self.last_epsilon = self.epsilon_init
        self.cumulative_reward = 0.0
        self.fruits_eaten = 0
        self.reset()

    @property
    def num_actions(self) -> int:
        return self.game.num_actions

    @property
    def epsilon(self) -> float:
        """Exploration rate the next play_step() will use."""
        return self.epsilon_at(self.frame_count)

    def epsilon_at(self, frame_count: int) -> float:
        return linear_epsilon(
            frame_count, self.epsilon_init, self.epsilon_final, self.epsilon_decay_frames
        )

    def reset(self) -> None:
        """Start a new episode: zero the accumulators and reset the game."""
        self.cumulative_reward = 0.0
        self.fruits_eaten = 0
        self.game.reset()

    def select_action(self, state, epsilon: float) -> int:
        """
        Epsilon-greedy action for state.

        Args:
            state: Game state snapshot
            epsilon: Probability of acting at random

        Returns:
            Selected action index
        """
        if random.random() < epsilon:
            return random.randrange(self.num_actions)

        # Inference: eval-mode layers, no autograd graph
        with evaluation_mode(self.online_net), torch.inference_mode():
            state_tensor = get_state_tensor(
                state, self.game.height, self.game.width
            ).to(self.device)
            q_values = self.online_net(state_tensor)
            # argmax returns the first maximal index
            return int(q_values.argmax(dim=1).item())

    def play_step(self) -> PlayStepOutput:
        """
        Play one frame and store the resulting transition.

        Returns:
            PlayStepOutput with the episode totals as of this frame. When the
            frame ends the episode, the totals are those of the finished
            episode; the game and accumulators are reset afterwards.
        """
        epsilon = self.epsilon_at(self.frame_count)
        self.last_epsilon = epsilon
        self.frame_count += 1

        state = self.game.get_state()
        action = self.select_action(state, epsilon)

        next_state, reward, done, fruit_eaten = self.game.step(action)

        self.replay_memory.append(Transition(state, action, reward, done, next_state))

        self.cumulative_reward += reward
        if fruit_eaten:
            self.fruits_eaten += 1

        output = PlayStepOutput(
            action=action,
            cumulative_reward=self.cumulative_reward,
            done=done,
            fruits_eaten=self.fruits_eaten
        )
        if done:
            self.reset()
        return output

    def train_on_replay_batch(
        self,
        batch_size: int,
        gamma: float,
        optimizer: optim.Optimizer
    ) -> float:
        """
        Perform one gradient step on a batch sampled from replay memory.

        Only the online network is updated. Targets come from the frozen
        target network and carry no gradient.

        Args:
            batch_size: Number of transitions to sample
            gamma: Discount factor
            optimizer: Optimizer over the online network's parameters

        Returns:
            The scalar MSE loss of this step

        Raises:
            InsufficientDataError: If memory holds fewer than batch_size transitions
        """
        batch = self.replay_memory.sample(batch_size)
        height, width = self.game.height, self.game.width

        states = get_state_tensor([t.state for t in batch], height, width).to(self.device)
        next_states = get_state_tensor([t.next_state for t in batch], height, width).to(self.device)
        actions = torch.tensor([t.action for t in batch], dtype=torch.int64, device=self.device)
        rewards = torch.tensor([t.reward for t in batch], dtype=torch.float32, device=self.device)
        dones = torch.tensor([t.done for t in batch], dtype=torch.float32, device=self.device)

        # Training-mode forward pass (dropout and batch norm active)
        self.online_net.train()
        current_q = self.online_net(states).gather(1, actions.unsqueeze(1)).squeeze(1)

        with torch.no_grad():
            next_max_q = self.target_net(next_states).max(dim=1).values
            target_q = compute_td_targets(rewards, next_max_q, dones, gamma)

        loss = F.mse_loss(current_q, target_q)

        optimizer.zero_grad()
        loss.backward()
        optimizer.step()

        return loss.item()

    def sync_target_network(self) -> None:
        """Hard update: copy online network weights into the target network."""
        copy_weights(self.target_net, self.online_net)
        logger.debug(f"Synced target network at frame {self.frame_count}")
