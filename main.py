"""
Snake DQN - Main Entry Point
===========================

Train a Deep Q-Network to play snake.

Usage:
    python main.py                                  Train with defaults
    python main.py --savePath ./models/dqn          Checkpoint directory
    python main.py --logDir ./logs/tensorboard      Write TensorBoard scalars
    python main.py --loadPath ./models/dqn          Resume from saved weights
    python main.py --cpu --seed 42                  Reproducible CPU run

Press Ctrl+C to stop training cleanly at the next iteration boundary.
"""

import argparse
import random
import signal
from typing import List, Optional

import numpy as np
import torch

from config import Config
from snake_dqn.ai.agent import Agent
from snake_dqn.ai.network import load_weights
from snake_dqn.ai.trainer import Trainer, TrainingResult
from snake_dqn.game.snake import SnakeGame
from snake_dqn.utils.logger import (
    LogLevel, get_log_path, get_logger, log_model_event, setup_logging
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Training script for a DQN that plays the snake game",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--savePath', '--save-path', dest='save_path', type=str,
        default='./models/dqn',
        help='Directory to which the online DQN is saved whenever the '
             '100-episode average reward improves (default: ./models/dqn)'
    )
    parser.add_argument(
        '--logDir', '--log-dir', dest='log_dir', type=str, default=None,
        help='Directory for TensorBoard logs (default: disabled)'
    )
    parser.add_argument(
        '--loadPath', '--load-path', dest='load_path', type=str, default=None,
        help='Directory holding weights to initialize the online DQN from'
    )
    parser.add_argument(
        '--cpu', action='store_true',
        help='Force CPU even when CUDA or MPS is available'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--log-level', type=str, default=None,
        choices=[level.name for level in LogLevel],
        help='Console log level (default: INFO)'
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Config:
    """Apply command line overrides on top of the default Config."""
    config = Config()
    config.SAVE_PATH = args.save_path
    config.TENSORBOARD_DIR = args.log_dir
    config.FORCE_CPU = args.cpu
    config.SEED = args.seed
    if args.log_level is not None:
        config.LOG_LEVEL = args.log_level
    config.__post_init__()
    return config


def seed_everything(seed: int) -> None:
    """Seed python, numpy and torch RNGs."""
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


def run_training(config: Config, load_path: Optional[str] = None) -> TrainingResult:
    """
    Build game, agent and trainer from config and train until a stopping rule fires.

    Args:
        config: Configuration object
        load_path: Optional checkpoint directory to start the online network from

    Returns:
        TrainingResult from the trainer
    """
    logger = get_logger('main')

    if config.SEED is not None:
        seed_everything(config.SEED)

    game = SnakeGame(
        height=config.GRID_HEIGHT,
        width=config.GRID_WIDTH,
        num_fruits=config.NUM_FRUITS,
        init_len=config.INIT_LEN
    )
    device = config.DEVICE
    agent = Agent(game, config, device=device)
    logger.info(
        f"Agent ready | device={device} | "
        f"parameters={sum(p.numel() for p in agent.online_net.parameters()):,}"
    )

    if load_path is not None:
        path = load_weights(agent.online_net, load_path, map_location=device)
        agent.sync_target_network()
        log_model_event('load', path)

    summary_writer = None
    if config.TENSORBOARD_DIR is not None:
        from torch.utils.tensorboard import SummaryWriter
        summary_writer = SummaryWriter(log_dir=config.TENSORBOARD_DIR)

    trainer = Trainer(agent, config, save_path=config.SAVE_PATH, summary_writer=summary_writer)

    def handle_interrupt(signum, frame):
        logger.warning("Interrupt received; stopping after the current iteration")
        trainer.request_stop()

    previous_handler = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        result = trainer.train()
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        if summary_writer is not None:
            summary_writer.close()

    logger.info(
        f"Done: {result.stop_reason.value} | frames={result.frame_count:,} | "
        f"episodes={result.episodes:,} | best cumulativeReward100={result.best_average_reward:.2f}"
    )
    return result


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    config = build_config(args)
    setup_logging(log_dir=config.LOG_DIR, level=LogLevel[config.LOG_LEVEL])
    logger = get_logger('main')
    logger.info(f"Logging to {get_log_path()}")
    logger.info(f"args: {vars(args)}")
    run_training(config, load_path=args.load_path)


if __name__ == "__main__":
    main()
