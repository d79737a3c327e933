"""Utility modules for the snake DQN project."""

from .logger import get_logger, setup_logging, LogLevel
from .validation import assert_positive_integer

__all__ = ['get_logger', 'setup_logging', 'LogLevel', 'assert_positive_integer']
