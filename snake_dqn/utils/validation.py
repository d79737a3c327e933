"""Argument validation helpers."""

from typing import Any

from ..errors import ConfigurationError


def assert_positive_integer(value: Any, name: str) -> None:
    """
    Fail fast unless value is a positive integer.

    Args:
        value: Value to check
        name: Parameter name used in the error message

    Raises:
        ConfigurationError: If value is not an int, is a bool, or is <= 0
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            f"Expected {name} to be an integer, but received {value!r}"
        )
    if value <= 0:
        raise ConfigurationError(
            f"Expected {name} to be a positive number, but received {value}"
        )
