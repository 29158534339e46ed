"""
Configuration module for the embedding stack.
Manages environment variables and settings with validation.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from .exceptions import ConfigurationError
from .validation import ensure_between, ensure_greater_than_zero

POOLING_MODES = ("mean", "cls")


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


@dataclass
class EmbeddingConfig:
    """
    Embedding model configuration.

    model_path/tokenizer_path point at local artifacts. When they are unset
    the default factory loads model_name through sentence-transformers.
    """

    model_name: str = "sentence-transformers/all-MiniLM-L6-v2"
    model_path: Optional[str] = None
    tokenizer_path: Optional[str] = None
    pooling_mode: str = "mean"
    max_sequence_length: int = 510
    cache_size: int = 512
    dimension: int = 384  # Matches all-MiniLM-L6-v2
    inference_timeout: Optional[float] = None

    def __post_init__(self):
        if self.pooling_mode.lower() not in POOLING_MODES:
            raise ConfigurationError(
                f"pooling_mode must be one of {POOLING_MODES}, but is: {self.pooling_mode}"
            )
        if self.max_sequence_length <= 0:
            raise ConfigurationError(
                f"max_sequence_length must be greater than zero, but is: {self.max_sequence_length}"
            )
        if self.cache_size <= 0:
            raise ConfigurationError(
                f"cache_size must be greater than zero, but is: {self.cache_size}"
            )
        if self.inference_timeout is not None and self.inference_timeout <= 0:
            raise ConfigurationError(
                f"inference_timeout must be greater than zero, but is: {self.inference_timeout}"
            )


@dataclass
class ClassifierConfig:
    """Nearest-prototype classifier configuration."""

    max_results: int = 1
    min_score: float = 0.0
    mean_to_max_score_ratio: float = 0.5

    def __post_init__(self):
        ensure_greater_than_zero(self.max_results, "max_results")
        ensure_between(self.min_score, 0.0, 1.0, "min_score")
        ensure_between(self.mean_to_max_score_ratio, 0.0, 1.0, "mean_to_max_score_ratio")


def _embedding_config_from_env() -> EmbeddingConfig:
    return EmbeddingConfig(
        model_name=os.getenv("EMBEDDING_MODEL_NAME", EmbeddingConfig.model_name),
        model_path=os.getenv("EMBEDDING_MODEL_PATH"),
        tokenizer_path=os.getenv("EMBEDDING_TOKENIZER_PATH"),
        pooling_mode=os.getenv("EMBEDDING_POOLING_MODE", "mean"),
        cache_size=int(os.getenv("EMBEDDING_CACHE_SIZE", "512")),
        inference_timeout=_optional_float("EMBEDDING_INFERENCE_TIMEOUT"),
    )


@dataclass
class Settings:
    """Main settings loaded from environment."""

    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Nested configs
    embedding: EmbeddingConfig = field(default_factory=_embedding_config_from_env)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
