"""
Shared configuration, exceptions and logging.
"""

from .config import ClassifierConfig, EmbeddingConfig, Settings, get_settings
from .exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
    EncodingError,
    InferenceTimeoutError,
    NumericError,
)
from .logging_config import setup_logging
from .validation import ensure_between, ensure_greater_than_zero, ensure_not_null

__all__ = [
    "EmbeddingConfig",
    "ClassifierConfig",
    "Settings",
    "get_settings",
    "EmbeddingError",
    "ConfigurationError",
    "DimensionMismatchError",
    "NumericError",
    "EncodingError",
    "InferenceTimeoutError",
    "setup_logging",
    "ensure_greater_than_zero",
    "ensure_between",
    "ensure_not_null",
]
