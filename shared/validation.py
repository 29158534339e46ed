"""
Parameter validation helpers.

Each helper returns the value it checked so it can be used inline in
constructors:

    self.max_results = ensure_greater_than_zero(max_results, "max_results")
"""

from typing import Any

from .exceptions import ConfigurationError


def ensure_greater_than_zero(value: int, name: str) -> int:
    """Raise ConfigurationError unless value > 0."""
    if value is None or value <= 0:
        raise ConfigurationError(f"{name} must be greater than zero, but is: {value}")
    return value


def ensure_between(value: float, minimum: float, maximum: float, name: str) -> float:
    """Raise ConfigurationError unless minimum <= value <= maximum."""
    if value is None or value < minimum or value > maximum:
        raise ConfigurationError(
            f"{name} must be between {minimum} and {maximum}, but is: {value}"
        )
    return value


def ensure_not_null(value: Any, name: str) -> Any:
    """Raise ConfigurationError if value is None."""
    if value is None:
        raise ConfigurationError(f"{name} cannot be None")
    return value
