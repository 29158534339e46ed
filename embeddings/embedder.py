"""
Cached embedding service.

Wraps the encoding pipeline with an LRU cache keyed by normalized text.
Repeated inputs never reach the model twice while they stay cached.

Factories build a fresh Embedder on every call; there is no global instance.
"""

import logging
import threading
from typing import Dict, List, Optional

import numpy as np

from shared.config import EmbeddingConfig, get_settings

from .backends import (
    HuggingFaceTokenizer,
    TimeoutInferenceEngine,
    TransformerInferenceEngine,
    load_sentence_transformer,
)
from .cache import DEFAULT_CAPACITY, EmbeddingCache, normalize_text
from .encoder import BertEncoder, EncodingResult
from .pooling import PoolingMode

logger = logging.getLogger(__name__)


class Embedder:
    """
    Text -> unit-length vector with memoization.

    Usage:
        embedder = create_embedder("models/minilm", "models/minilm/tokenizer.json")
        vector = embedder.embed("Paris is the capital of France.")

        # Default model via sentence-transformers
        embedder = load_default_embedder()
    """

    def __init__(self, encoder: BertEncoder, cache_size: int = DEFAULT_CAPACITY):
        """
        Args:
            encoder: Encoding pipeline
            cache_size: Maximum number of cached embeddings
        """
        self.encoder = encoder
        self.cache = EmbeddingCache(capacity=cache_size)
        self._lock = threading.Lock()
        self._dimension: Optional[int] = None

    def embed(self, text: Optional[str]) -> np.ndarray:
        """
        Embed a single text.

        Whitespace is normalized before lookup and encoding, so texts that
        differ only in spacing share one cache entry.

        Returns:
            A float64 vector the caller owns
        """
        key = normalize_text(text)
        with self._lock:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

            result = self.encoder.encode(key)
            vector = result.embedding.astype(np.float64)
            self.cache.put(key, vector)
            if self._dimension is None:
                self._dimension = int(vector.shape[0])
            return vector.copy()

    def embed_batch(self, texts: List[Optional[str]]) -> np.ndarray:
        """
        Embed a batch of texts.

        Returns:
            Array of shape (len(texts), dimension)
        """
        if not texts:
            return np.empty((0, self._dimension or 0), dtype=np.float64)
        return np.vstack([self.embed(text) for text in texts])

    def encode(self, text: str) -> EncodingResult:
        """Run the pipeline without the cache; includes the token count."""
        return self.encoder.encode(text)

    def count_tokens(self, text: str) -> int:
        """Token count of text, boundary markers included. Never cached."""
        return self.encoder.count_tokens(text)

    @property
    def dimension(self) -> Optional[int]:
        """Embedding width, known after the first embedding."""
        return self._dimension

    def cache_stats(self) -> Dict[str, int]:
        return self.cache.stats()

    def close(self) -> None:
        """Release engine resources such as the timeout worker pool."""
        close = getattr(self.encoder.engine, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "Embedder":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _build_embedder(tokenizer, engine, config: EmbeddingConfig) -> Embedder:
    if config.inference_timeout is not None:
        engine = TimeoutInferenceEngine(engine, timeout=config.inference_timeout)

    encoder = BertEncoder(
        tokenizer,
        engine,
        pooling_mode=PoolingMode.from_name(config.pooling_mode),
        max_sequence_length=config.max_sequence_length,
    )
    return Embedder(encoder, cache_size=config.cache_size)


def create_embedder(
    model_path: str,
    tokenizer_path: str,
    config: Optional[EmbeddingConfig] = None,
    device: Optional[str] = None,
) -> Embedder:
    """
    Build an Embedder from local model and tokenizer artifacts.

    Args:
        model_path: Model directory (save_pretrained layout)
        tokenizer_path: tokenizer.json file or tokenizer directory
        config: Pooling, cache and timeout settings
        device: Torch device for inference

    Raises:
        ConfigurationError: If either artifact is missing or unreadable
    """
    config = config or EmbeddingConfig()
    tokenizer = HuggingFaceTokenizer.from_file(tokenizer_path)
    engine = TransformerInferenceEngine.from_pretrained(model_path, device=device)
    return _build_embedder(tokenizer, engine, config)


def load_default_embedder(
    config: Optional[EmbeddingConfig] = None, device: Optional[str] = None
) -> Embedder:
    """
    Build an Embedder for the configured default model.

    Uses local artifacts when model_path and tokenizer_path are set,
    otherwise loads config.model_name through sentence-transformers.
    Every call returns a new instance.
    """
    config = config or get_settings().embedding
    if config.model_path or config.tokenizer_path:
        return create_embedder(config.model_path, config.tokenizer_path, config, device=device)

    tokenizer, engine = load_sentence_transformer(config.model_name, device=device)
    return _build_embedder(tokenizer, engine, config)
