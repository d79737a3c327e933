"""Exception types raised by the snake DQN package."""


class SnakeDQNError(Exception):
    """Base class for all project errors."""


class ConfigurationError(SnakeDQNError, ValueError):
    """A hyperparameter or constructor argument is invalid."""


class InsufficientDataError(SnakeDQNError, RuntimeError):
    """The replay memory holds fewer transitions than were requested."""
