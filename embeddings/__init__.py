"""
Embeddings Module.

Turns free-form text into unit-length vectors.

This module handles:
- Tokenization and word-aligned partitioning of long inputs
- Per-partition inference, pooling and weighted recombination
- L2 normalization
- LRU caching of repeated inputs

Usage:
    from embeddings import load_default_embedder, cosine_similarity

    embedder = load_default_embedder()
    a = embedder.embed("The cat sat on the mat.")
    b = embedder.embed("A cat was sitting on a mat.")
    cosine_similarity(a, b)
"""

from .backends import (
    HuggingFaceTokenizer,
    TimeoutInferenceEngine,
    TransformerInferenceEngine,
    load_sentence_transformer,
)
from .cache import EmbeddingCache, normalize_text
from .embedder import Embedder, create_embedder, load_default_embedder
from .encoder import (
    BertEncoder,
    EncodingResult,
    InferenceEngine,
    TokenEncoding,
    Tokenizer,
)
from .partitioner import MAX_SEQUENCE_LENGTH, is_subword_continuation, partition_tokens
from .pooling import PoolingMode, normalize, pool, weighted_average
from .vector_math import cosine_similarity, dot, l2_norm

__all__ = [
    "Embedder",
    "create_embedder",
    "load_default_embedder",
    "BertEncoder",
    "EncodingResult",
    "TokenEncoding",
    "Tokenizer",
    "InferenceEngine",
    "HuggingFaceTokenizer",
    "TransformerInferenceEngine",
    "TimeoutInferenceEngine",
    "load_sentence_transformer",
    "EmbeddingCache",
    "normalize_text",
    "MAX_SEQUENCE_LENGTH",
    "partition_tokens",
    "is_subword_continuation",
    "PoolingMode",
    "pool",
    "weighted_average",
    "normalize",
    "cosine_similarity",
    "dot",
    "l2_norm",
]
