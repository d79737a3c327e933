"""
Configuration file for Snake DQN
================================

All hyperparameters, game settings, and system options are centralized here.
Modify these values to experiment with different training configurations.

Usage:
    from config import Config
    cfg = Config()
    print(cfg.LEARNING_RATE)
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import torch

from snake_dqn.errors import ConfigurationError
from snake_dqn.utils.validation import assert_positive_integer


@dataclass
class Config:
    """
    Central configuration for the entire project.

    Sections:
    1. Game Settings - Snake board parameters
    2. Neural Network - Architecture configuration
    3. Training - Learning hyperparameters
    4. Exploration - Epsilon-greedy settings
    5. System - Hardware and paths
    """

    # =========================================================================
    # GAME SETTINGS
    # =========================================================================

    # Board size in cells. The network needs at least 5x5 (two 3x3 convolutions).
    GRID_HEIGHT: int = 5
    GRID_WIDTH: int = 5

    # Fruits present on the board at any time
    NUM_FRUITS: int = 1

    # Length of the snake at the start of every episode
    INIT_LEN: int = 2

    # =========================================================================
    # NEURAL NETWORK ARCHITECTURE
    # =========================================================================

    # Output channels of the two 3x3 convolutions
    CONV_FILTERS: Tuple[int, int] = (128, 256)

    # Width of the hidden dense layer
    DENSE_UNITS: int = 100

    # Dropout applied after the hidden dense layer (active in training mode only)
    DROPOUT_RATE: float = 0.25

    # =========================================================================
    # TRAINING HYPERPARAMETERS
    # =========================================================================

    # Replay memory capacity. Warm-up plays exactly this many frames
    # before the first gradient step.
    REPLAY_BUFFER_SIZE: int = 5000

    # Transitions sampled per gradient step
    BATCH_SIZE: int = 64

    # Discount factor for future rewards
    GAMMA: float = 0.99

    # Adam learning rate
    LEARNING_RATE: float = 1e-3

    # Hard-copy online weights into the target network every N frames
    SYNC_EVERY_FRAMES: int = 500

    # Stop once the moving-average cumulative reward reaches this value
    CUMULATIVE_REWARD_THRESHOLD: float = 100.0

    # Stop once this many frames have been played
    MAX_NUM_FRAMES: int = 50000

    # Episodes in the moving-average window used for monitoring and stopping
    AVERAGE_WINDOW: int = 100

    # =========================================================================
    # EXPLORATION SETTINGS (Epsilon-Greedy)
    # =========================================================================

    # Epsilon decays linearly from INIT to FINAL over DECAY_FRAMES frames,
    # then stays at FINAL.
    EPSILON_INIT: float = 0.8
    EPSILON_FINAL: float = 0.01
    EPSILON_DECAY_FRAMES: int = 50000

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # Force CPU device (set via --cpu)
    FORCE_CPU: bool = False

    @property
    def DEVICE(self) -> torch.device:
        """Auto-detect CUDA/MPS/CPU, or force CPU if configured."""
        if self.FORCE_CPU:
            return torch.device('cpu')
        if torch.cuda.is_available():
            return torch.device('cuda')
        elif hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
            return torch.device('mps')
        return torch.device('cpu')

    # Directory the online network is checkpointed into (None disables saving)
    SAVE_PATH: Optional[str] = './models/dqn'

    # TensorBoard scalar directory (None disables the metrics sink)
    TENSORBOARD_DIR: Optional[str] = None

    # Text log files
    LOG_DIR: str = 'logs'
    LOG_LEVEL: str = 'INFO'

    # Random seed for reproducibility (None for random)
    SEED: Optional[int] = None

    def __post_init__(self):
        """Validation. Raises ConfigurationError on the first bad value."""
        for name in (
            'GRID_HEIGHT', 'GRID_WIDTH', 'NUM_FRUITS', 'INIT_LEN',
            'DENSE_UNITS', 'REPLAY_BUFFER_SIZE', 'BATCH_SIZE',
            'SYNC_EVERY_FRAMES', 'MAX_NUM_FRAMES', 'AVERAGE_WINDOW',
            'EPSILON_DECAY_FRAMES',
        ):
            assert_positive_integer(getattr(self, name), name)
        for i, filters in enumerate(self.CONV_FILTERS):
            assert_positive_integer(filters, f'CONV_FILTERS[{i}]')

        if self.INIT_LEN > self.GRID_WIDTH:
            raise ConfigurationError("INIT_LEN must not exceed GRID_WIDTH")
        if self.BATCH_SIZE > self.REPLAY_BUFFER_SIZE:
            raise ConfigurationError("BATCH_SIZE must not exceed REPLAY_BUFFER_SIZE")
        if not self.LEARNING_RATE > 0:
            raise ConfigurationError("Learning rate must be positive")
        if not 0 < self.GAMMA <= 1:
            raise ConfigurationError("Gamma must be in (0, 1]")
        if not 0 <= self.DROPOUT_RATE < 1:
            raise ConfigurationError("Dropout rate must be in [0, 1)")
        if not 0 <= self.EPSILON_FINAL <= self.EPSILON_INIT <= 1:
            raise ConfigurationError("Epsilon must satisfy 0 <= final <= init <= 1")


# Global config instance for easy importing
config = Config()


if __name__ == "__main__":
    # Print configuration summary
    cfg = Config()
    print("=" * 60)
    print("Snake DQN - Configuration Summary")
    print("=" * 60)
    print(f"\nBoard: {cfg.GRID_HEIGHT}x{cfg.GRID_WIDTH}, fruits={cfg.NUM_FRUITS}, init_len={cfg.INIT_LEN}")
    print(f"\nNetwork: conv{list(cfg.CONV_FILTERS)} -> dense {cfg.DENSE_UNITS} (dropout {cfg.DROPOUT_RATE})")
    print(f"\nTraining:")
    print(f"   Learning rate: {cfg.LEARNING_RATE}")
    print(f"   Batch size: {cfg.BATCH_SIZE}")
    print(f"   Gamma: {cfg.GAMMA}")
    print(f"   Replay buffer: {cfg.REPLAY_BUFFER_SIZE}")
    print(f"   Sync every: {cfg.SYNC_EVERY_FRAMES} frames")
    print(f"\nExploration:")
    print(f"   Epsilon: {cfg.EPSILON_INIT} -> {cfg.EPSILON_FINAL} over {cfg.EPSILON_DECAY_FRAMES} frames")
    print(f"\nDevice: {cfg.DEVICE}")
    print("=" * 60)
