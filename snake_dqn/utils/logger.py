"""
Centralized logging infrastructure for the snake DQN project.

Usage:
    from snake_dqn.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Training started")
    logger.debug("Replay memory warmed up")
    logger.error("Failed to save model")

Configuration:
    Set LOG_LEVEL in config.py (or pass --log-level on the command line):
    - DEBUG: All messages including debug info
    - INFO: Normal operation messages (default)
    - WARNING: Warnings and errors only
    - ERROR: Errors only
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = 'snake_dqn'


class LogLevel(Enum):
    """Log levels for configuration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


# Module-level state
_initialized = False
_defaulted = False  # console-only default installed by get_logger()
_log_dir: Optional[Path] = None
_file_handler: Optional[logging.FileHandler] = None


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors:
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


def setup_logging(
    log_dir: str = 'logs',
    level: LogLevel = LogLevel.INFO,
    console_output: bool = True,
    file_output: bool = True,
    log_filename: Optional[str] = None,
) -> None:
    """
    Initialize the logging system.

    Only the first explicit call has an effect. It replaces the
    console-only default that get_logger() installs when nothing was
    configured yet.

    Args:
        log_dir: Directory for log files
        level: Minimum log level to capture
        console_output: Whether to output to console
        file_output: Whether to output to file
        log_filename: Custom log filename (default: training_YYYYMMDD_HHMMSS.log)
    """
    global _initialized, _log_dir, _file_handler

    if _initialized:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    root_logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level.value)
        console_handler.setFormatter(ColoredFormatter(
            '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            use_colors=True
        ))
        root_logger.addHandler(console_handler)

    # File handler without colors
    if file_output:
        _log_dir = Path(log_dir)
        _log_dir.mkdir(parents=True, exist_ok=True)
        if log_filename is None:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            log_filename = f'training_{timestamp}.log'

        _file_handler = logging.FileHandler(_log_dir / log_filename, mode='a', encoding='utf-8')
        _file_handler.setLevel(logging.DEBUG)  # Capture everything in file
        _file_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
        ))
        root_logger.addHandler(_file_handler)

    _initialized = True
    root_logger.debug(f"Logging initialized (level={level.name}, file={file_output})")


def _install_default_handler() -> None:
    global _defaulted

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(LogLevel.INFO.value)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter(
        '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        use_colors=True
    ))
    root_logger.addHandler(handler)
    _defaulted = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance under the project namespace

    Example:
        logger = get_logger(__name__)
        logger.info("Message")
    """
    # Library use without setup_logging(): console only, nothing written to disk
    if not _initialized and not _defaulted:
        _install_default_handler()

    prefix = f'{ROOT_LOGGER_NAME}.'
    if name.startswith(prefix):
        name = name[len(prefix):]

    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def get_log_path() -> Optional[Path]:
    """Get the current log file path."""
    if _file_handler is not None:
        return Path(_file_handler.baseFilename)
    return None


def log_episode_metrics(
    frame_count: int,
    average_reward: float,
    average_fruits: float,
    epsilon: float,
    frames_per_second: float,
    loss: Optional[float] = None,
) -> None:
    """
    Log end-of-episode monitoring values in a consistent format.

    Args:
        frame_count: Total frames played so far
        average_reward: Moving-average cumulative reward
        average_fruits: Moving-average fruits eaten
        epsilon: Current exploration rate
        frames_per_second: Throughput since the previous episode ended
        loss: Most recent training loss (if available)
    """
    logger = get_logger('training')

    metrics = [
        f"frame={frame_count}",
        f"cumulativeReward100={average_reward:.1f}",
        f"eaten100={average_fruits:.2f}",
        f"eps={epsilon:.3f}",
        f"fps={frames_per_second:.1f}",
    ]
    if loss is not None:
        metrics.append(f"loss={loss:.6f}")

    logger.info(" | ".join(metrics))


def log_model_event(event: str, path: str, **kwargs) -> None:
    """
    Log model-related events (save/load).

    Args:
        event: Event type ('save', 'load', 'sync')
        path: Model file path
        **kwargs: Additional context (e.g., frame, average reward)
    """
    logger = get_logger('model')

    extra = " | ".join(f"{k}={v}" for k, v in kwargs.items())
    if extra:
        logger.info(f"{event.upper()} | {path} | {extra}")
    else:
        logger.info(f"{event.upper()} | {path}")
