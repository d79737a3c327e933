"""
Deep Q-Network (DQN) Architecture
=================================

The convolutional network that approximates Q-values for the snake board.

Theory:
    Q-Learning aims to learn Q(s, a) = expected future reward
    We use a neural network to approximate this function

    Input:  Encoded board, shape (batch, 2, height, width)
    Output: Q-value for each possible action

The network learns by minimizing TD (Temporal Difference) error:
    Loss = (Q(s,a) - (r + γ * max_a' Q_target(s', a')))²

Architecture:
    conv 3x3 (ReLU) -> batch norm -> conv 3x3 (ReLU) -> flatten
    -> dense (ReLU) -> dropout -> dense (one output per action)
"""

import os
from typing import Optional, Union

import torch
import torch.nn as nn
import torch.nn.functional as F

from config import Config
from ..errors import ConfigurationError
from ..utils.validation import assert_positive_integer

WEIGHTS_FILENAME = 'model.pth'

# Two unpadded 3x3 convolutions shrink each side by 4
_CONV_SHRINK = 4


class DQN(nn.Module):
    """
    Deep Q-Network for the snake board.

    A network built with trainable=False is a frozen copy: its parameters
    never require gradients and it always runs in eval mode, so an
    optimizer can never update it. Its weights only change through
    copy_weights() or load_weights().

    Example:
        >>> net = DQN(height=5, width=5, num_actions=3)
        >>> q_values = net(torch.zeros(1, 2, 5, 5))  # Shape: (1, 3)
    """

    def __init__(
        self,
        height: int,
        width: int,
        num_actions: int,
        config: Optional[Config] = None,
        trainable: bool = True
    ):
        """
        Initialize the DQN.

        Args:
            height: Board height in cells
            width: Board width in cells
            num_actions: Number of possible actions (output dimension)
            config: Configuration object
            trainable: False builds a frozen target network

        Raises:
            ConfigurationError: If a dimension is invalid or the board is
                smaller than 5x5
        """
        assert_positive_integer(height, 'height')
        assert_positive_integer(width, 'width')
        assert_positive_integer(num_actions, 'num_actions')
        if height <= _CONV_SHRINK or width <= _CONV_SHRINK:
            raise ConfigurationError(
                f"Board must be at least {_CONV_SHRINK + 1}x{_CONV_SHRINK + 1}, "
                f"got {height}x{width}"
            )

        super(DQN, self).__init__()

        self.config = config or Config()
        self.height = height
        self.width = width
        self.num_actions = num_actions
        self.trainable = trainable

        filters_1, filters_2 = self.config.CONV_FILTERS
        self.conv1 = nn.Conv2d(2, filters_1, kernel_size=3, stride=1)
        self.batch_norm = nn.BatchNorm2d(filters_1)
        self.conv2 = nn.Conv2d(filters_1, filters_2, kernel_size=3, stride=1)

        flat_size = filters_2 * (height - _CONV_SHRINK) * (width - _CONV_SHRINK)
        self.hidden = nn.Linear(flat_size, self.config.DENSE_UNITS)
        self.dropout = nn.Dropout(self.config.DROPOUT_RATE)
        self.output = nn.Linear(self.config.DENSE_UNITS, num_actions)

        if not trainable:
            self.requires_grad_(False)
            self.eval()

    def train(self, mode: bool = True) -> 'DQN':
        """Switch training mode. Frozen networks stay in eval mode."""
        return super().train(mode and self.trainable)

    def forward(self, state: torch.Tensor) -> torch.Tensor:
        """
        Forward pass through the network.

        Args:
            state: Encoded boards of shape (batch_size, 2, height, width)

        Returns:
            Q-values tensor of shape (batch_size, num_actions)
        """
        x = F.relu(self.conv1(state))
        x = self.batch_norm(x)
        x = F.relu(self.conv2(x))
        x = torch.flatten(x, start_dim=1)
        x = F.relu(self.hidden(x))
        x = self.dropout(x)
        return self.output(x)

    def count_parameters(self) -> int:
        """Return total number of trainable parameters."""
        return sum(p.numel() for p in self.parameters() if p.requires_grad)


def copy_weights(dest_network: nn.Module, src_network: nn.Module) -> None:
    """
    Copy the weights from a source deep-Q network to another.

    This is a hard copy of the full state, batch-norm running statistics
    included. Nothing is blended.

    Args:
        dest_network: The destination network of weight copying
        src_network: The source network for weight copying
    """
    dest_network.load_state_dict(src_network.state_dict())


def save_weights(network: nn.Module, save_dir: str) -> str:
    """
    Save network weights into save_dir, creating it if absent.

    Returns:
        Path of the written file

    Raises:
        OSError: If the directory or file cannot be written
    """
    os.makedirs(save_dir, exist_ok=True)
    path = os.path.join(save_dir, WEIGHTS_FILENAME)
    torch.save(network.state_dict(), path)
    return path


def load_weights(
    network: nn.Module,
    save_dir: str,
    map_location: Optional[Union[str, torch.device]] = None
) -> str:
    """
    Restore network weights previously written by save_weights().

    Returns:
        Path of the loaded file

    Raises:
        FileNotFoundError: If no checkpoint exists in save_dir
    """
    path = os.path.join(save_dir, WEIGHTS_FILENAME)
    if not os.path.exists(path):
        raise FileNotFoundError(f"No checkpoint found at {path}")
    state_dict = torch.load(path, map_location=map_location, weights_only=True)
    network.load_state_dict(state_dict)
    return path
