"""
Training Loop
=============

Orchestrates the training process:
    1. Warm up: play replay_buffer_size frames without training
    2. Alternate one gradient step with one played frame
    3. At every episode end, update the 100-episode moving averages,
       report metrics, check the stopping rules and checkpoint on improvement
    4. Hard-sync the target network every SYNC_EVERY_FRAMES frames

Checkpoint saving is synchronous: the loop waits for the file to be
written before the next iteration starts. A failed save is logged and
training continues.
"""

import math
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import torch.optim as optim

from config import Config
from .agent import Agent, PlayStepOutput
from .network import save_weights
from ..utils.logger import get_logger, log_episode_metrics, log_model_event
from ..utils.validation import assert_positive_integer

logger = get_logger(__name__)


class MovingAverager:
    """
    Mean over a fixed-length FIFO window of scalars.

    The window starts filled with NaN placeholders, so average() is NaN
    until buffer_length real values have been appended.
    """

    def __init__(self, buffer_length: int):
        assert_positive_integer(buffer_length, 'buffer_length')
        self.buffer = deque([math.nan] * buffer_length, maxlen=buffer_length)

    def append(self, x: float) -> None:
        """Push x, evicting the oldest value."""
        self.buffer.append(float(x))

    def average(self) -> float:
        return sum(self.buffer) / len(self.buffer)


class LoopDecision(Enum):
    """Outcome of the per-iteration loop-control check."""
    CONTINUE = 'continue'
    THRESHOLD_REACHED = 'threshold_reached'
    FRAME_CAP_REACHED = 'frame_cap_reached'
    STOP_REQUESTED = 'stop_requested'


def check_termination(
    average_reward: float,
    frame_count: int,
    cumulative_reward_threshold: float,
    max_num_frames: int
) -> LoopDecision:
    """
    Decide whether training should stop after an episode ends.

    A NaN average (window not yet full) never reaches the threshold.
    """
    if average_reward >= cumulative_reward_threshold:
        return LoopDecision.THRESHOLD_REACHED
    if frame_count >= max_num_frames:
        return LoopDecision.FRAME_CAP_REACHED
    return LoopDecision.CONTINUE


@dataclass
class TrainingResult:
    """Summary returned by Trainer.train()."""
    stop_reason: LoopDecision
    frame_count: int
    episodes: int
    best_average_reward: float


class Trainer:
    """
    Manages the training loop for the DQN agent.

    The trainer borrows the agent and builds an Adam optimizer over the
    agent's online network only. It owns the moving averagers and the
    best-average bookkeeping.

    Example:
        >>> agent = Agent(game, config)
        >>> trainer = Trainer(agent, config, save_path='./models/dqn')
        >>> result = trainer.train()
    """

    def __init__(
        self,
        agent: Agent,
        config: Optional[Config] = None,
        save_path: Optional[str] = None,
        summary_writer: Optional[Any] = None
    ):
        """
        Initialize the trainer.

        Args:
            agent: DQN agent to train
            config: Configuration object
            save_path: Directory for online-network checkpoints (default:
                config.SAVE_PATH; None in both disables saving)
            summary_writer: Metrics sink exposing add_scalar(tag, value, step),
                e.g. a TensorBoard SummaryWriter (None disables)

        Raises:
            ConfigurationError: If a count hyperparameter is not a positive integer
        """
        self.agent = agent
        self.config = config or Config()
        self.save_path = save_path if save_path is not None else self.config.SAVE_PATH
        self.summary_writer = summary_writer

        self.batch_size = self.config.BATCH_SIZE
        self.gamma = self.config.GAMMA
        self.learning_rate = self.config.LEARNING_RATE
        self.cumulative_reward_threshold = self.config.CUMULATIVE_REWARD_THRESHOLD
        self.max_num_frames = self.config.MAX_NUM_FRAMES
        self.sync_every_frames = self.config.SYNC_EVERY_FRAMES
        assert_positive_integer(self.batch_size, 'batch_size')
        assert_positive_integer(self.max_num_frames, 'max_num_frames')
        assert_positive_integer(self.sync_every_frames, 'sync_every_frames')

        self.optimizer = optim.Adam(self.agent.online_net.parameters(), lr=self.learning_rate)

        self.reward_averager = MovingAverager(self.config.AVERAGE_WINDOW)
        self.eaten_averager = MovingAverager(self.config.AVERAGE_WINDOW)
        self.best_average_reward = -math.inf
        self.episodes = 0
        self.last_loss: Optional[float] = None

        self._stop_requested = False
        self._time_prev = time.perf_counter()
        self._frame_count_prev = 0

    def request_stop(self) -> None:
        """Ask the loop to stop at the next iteration boundary (e.g. on SIGINT)."""
        self._stop_requested = True

    def warm_up(self) -> bool:
        """
        Fill replay memory by playing replay_buffer_size frames.

        Returns:
            False if a stop was requested before warm-up finished
        """
        logger.info(f"Warming up replay memory with {self.agent.replay_buffer_size} frames")
        for _ in range(self.agent.replay_buffer_size):
            if self._stop_requested:
                return False
            self.agent.play_step()
        return True

    def train(self) -> TrainingResult:
        """
        Run warm-up, then the main loop until a stopping rule fires.

        Returns:
            TrainingResult describing why and when training stopped
        """
        logger.info(
            f"Starting DQN training | device={self.agent.device} | "
            f"batch={self.batch_size} | gamma={self.gamma} | lr={self.learning_rate} | "
            f"sync_every={self.sync_every_frames} | threshold={self.cumulative_reward_threshold} | "
            f"max_frames={self.max_num_frames}"
        )

        if not self.warm_up():
            logger.info(f"Stop requested during warm-up at frame {self.agent.frame_count}")
            return self._result(LoopDecision.STOP_REQUESTED)

        self._time_prev = time.perf_counter()
        self._frame_count_prev = self.agent.frame_count

        while True:
            if self._stop_requested:
                decision = LoopDecision.STOP_REQUESTED
                logger.info(f"Stop requested; ending training at frame {self.agent.frame_count}")
                break

            self.last_loss = self.agent.train_on_replay_batch(
                self.batch_size, self.gamma, self.optimizer
            )
            if not math.isfinite(self.last_loss):
                logger.warning(f"Non-finite loss {self.last_loss} at frame {self.agent.frame_count}")

            output = self.agent.play_step()
            if output.done:
                decision = self._on_episode_end(output)
                if decision is not LoopDecision.CONTINUE:
                    break

            if self.agent.frame_count % self.sync_every_frames == 0:
                self.agent.sync_target_network()
                logger.info("Synced weights from online network to target network")

        return self._result(decision)

    def _result(self, decision: LoopDecision) -> TrainingResult:
        return TrainingResult(
            stop_reason=decision,
            frame_count=self.agent.frame_count,
            episodes=self.episodes,
            best_average_reward=self.best_average_reward
        )

    def _on_episode_end(self, output: PlayStepOutput) -> LoopDecision:
        """Record a finished episode. Returns whether the loop should continue."""
        self.episodes += 1
        frame_count = self.agent.frame_count

        now = time.perf_counter()
        elapsed = now - self._time_prev
        frames = frame_count - self._frame_count_prev
        frames_per_second = frames / elapsed if elapsed > 0 else 0.0
        self._time_prev = now
        self._frame_count_prev = frame_count

        self.reward_averager.append(output.cumulative_reward)
        self.eaten_averager.append(output.fruits_eaten)
        average_reward = self.reward_averager.average()
        average_eaten = self.eaten_averager.average()
        epsilon = self.agent.last_epsilon

        log_episode_metrics(
            frame_count, average_reward, average_eaten, epsilon,
            frames_per_second, loss=self.last_loss
        )
        if self.summary_writer is not None:
            self.summary_writer.add_scalar('cumulative_reward_100', average_reward, frame_count)
            self.summary_writer.add_scalar('eaten_100', average_eaten, frame_count)
            self.summary_writer.add_scalar('epsilon', epsilon, frame_count)
            self.summary_writer.add_scalar('frames_per_second', frames_per_second, frame_count)

        decision = check_termination(
            average_reward, frame_count,
            self.cumulative_reward_threshold, self.max_num_frames
        )
        if decision is not LoopDecision.CONTINUE:
            logger.info(f"Training finished ({decision.value}) at frame {frame_count}")
            return decision

        if average_reward > self.best_average_reward:
            self.best_average_reward = average_reward
            self._save_checkpoint(average_reward)

        return LoopDecision.CONTINUE

    def _save_checkpoint(self, average_reward: float) -> None:
        """Save the online network. Failures are logged, never raised."""
        if self.save_path is None:
            return
        try:
            path = save_weights(self.agent.online_net, self.save_path)
        except (OSError, RuntimeError) as e:
            logger.error(f"Failed to save DQN to {self.save_path}: {e}")
            return
        log_model_event(
            'save', path,
            frame=self.agent.frame_count,
            cumulative_reward_100=f"{average_reward:.2f}"
        )
