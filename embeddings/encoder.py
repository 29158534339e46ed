"""
Encoding pipeline: text -> unit-length embedding.

Steps:
1. Tokenize (with boundary markers)
2. Partition into word-aligned windows of at most max_sequence_length tokens
3. Run the inference engine once per partition
4. Pool each partition's per-token vectors
5. Weighted-average partitions by token count and normalize

The tokenizer and inference engine are external collaborators described by
the Tokenizer and InferenceEngine protocols. See backends.py for the
Hugging Face implementations.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Protocol, Sequence, Set

import numpy as np

from shared.exceptions import EncodingError

from .partitioner import MAX_SEQUENCE_LENGTH, is_subword_continuation, partition_tokens
from .pooling import PoolingMode, normalize, pool, weighted_average

logger = logging.getLogger(__name__)

INPUT_IDS = "input_ids"
ATTENTION_MASK = "attention_mask"
TOKEN_TYPE_IDS = "token_type_ids"


@dataclass
class TokenEncoding:
    """Aligned integer arrays for one encoded text."""

    ids: Sequence[int]
    attention_mask: Sequence[int]
    type_ids: Sequence[int]


@dataclass
class EncodingResult:
    """Embedding plus the token count of the original text."""

    embedding: np.ndarray
    token_count: int


class Tokenizer(Protocol):
    """Subword tokenizer boundary."""

    def tokenize(self, text: str) -> List[str]:
        """Tokens for text, including the leading and trailing markers."""
        ...  # pragma: no cover

    def encode(self, text: str) -> TokenEncoding:
        """Ids, attention mask and type ids with special tokens, no padding."""
        ...  # pragma: no cover

    def detokenize(self, tokens: Sequence[str]) -> str:
        """Rebuild surface text from tokens."""
        ...  # pragma: no cover


class InferenceEngine(Protocol):
    """Model boundary: token ids -> per-token vectors."""

    @property
    def input_names(self) -> Set[str]:
        """Input names the model declares."""
        ...  # pragma: no cover

    def run(self, inputs: Dict[str, np.ndarray]) -> np.ndarray:
        """Return a [1, seq_len, width] float array."""
        ...  # pragma: no cover


class BertEncoder:
    """
    Encodes arbitrary-length text with a BERT-style model.

    Usage:
        encoder = BertEncoder(tokenizer, engine, PoolingMode.MEAN)
        result = encoder.encode("Hello world")
        result.embedding, result.token_count
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        engine: InferenceEngine,
        pooling_mode: PoolingMode = PoolingMode.MEAN,
        max_sequence_length: int = MAX_SEQUENCE_LENGTH,
        is_continuation: Callable[[str], bool] = is_subword_continuation,
    ):
        """
        Args:
            tokenizer: Tokenizer collaborator
            engine: Inference engine collaborator
            pooling_mode: CLS or MEAN pooling, fixed for the encoder lifetime
            max_sequence_length: Maximum tokens per partition, markers excluded
            is_continuation: Subword continuation predicate used for partitioning
        """
        if tokenizer is None or engine is None:
            raise ValueError("tokenizer and engine are required")
        if not isinstance(pooling_mode, PoolingMode):
            raise ValueError(f"pooling_mode must be a PoolingMode, got {pooling_mode!r}")

        self.tokenizer = tokenizer
        self.engine = engine
        self.pooling_mode = pooling_mode
        self.max_sequence_length = max_sequence_length
        self.is_continuation = is_continuation

    def encode(self, text: str) -> EncodingResult:
        """
        Embed text.

        Args:
            text: Input text of any length

        Returns:
            EncodingResult with a unit-norm vector and the original token count

        Raises:
            EncodingError: If the tokenizer or engine fails
            NumericError: If the combined vector has zero norm
        """
        tokens = self._tokenize(text)
        partitions = list(
            partition_tokens(tokens, self.max_sequence_length, self.is_continuation)
        )
        if not partitions:
            # Nothing between the markers: encode the bare markers
            partitions = [[]]

        if len(partitions) > 1:
            logger.debug(f"Split {len(tokens)} tokens into {len(partitions)} partitions")

        pooled = [self._embed_partition(partition) for partition in partitions]
        weights = [max(len(partition), 1) for partition in partitions]

        embedding = normalize(weighted_average(pooled, weights))
        return EncodingResult(embedding=embedding, token_count=len(tokens))

    def count_tokens(self, text: str) -> int:
        """Number of tokens in text, boundary markers included."""
        return len(self._tokenize(text))

    def _tokenize(self, text: str) -> List[str]:
        try:
            return list(self.tokenizer.tokenize(text))
        except Exception as e:
            logger.error(f"Tokenization failed: {e}")
            raise EncodingError(f"Tokenization failed: {e}") from e

    def _embed_partition(self, partition: List[str]) -> np.ndarray:
        """Run one partition through the engine and pool it."""
        try:
            encoding = self.tokenizer.encode(self._to_text(partition))
            inputs = self._build_inputs(encoding, self.engine.input_names)
            output = np.asarray(self.engine.run(inputs))
        except EncodingError:
            raise
        except Exception as e:
            logger.error(f"Inference failed: {e}")
            raise EncodingError(f"Inference failed: {e}") from e

        if output.ndim != 3 or output.shape[0] < 1 or output.shape[1] == 0:
            raise EncodingError(
                f"Inference engine returned shape {output.shape}, expected [1, seq_len, width]"
            )

        token_vectors = output[0]
        if self.pooling_mode == PoolingMode.CLS:
            token_vectors = token_vectors[:1]
        return pool(token_vectors, self.pooling_mode)

    def _to_text(self, partition: List[str]) -> str:
        """
        Rebuild text the tokenizer will split back into exactly this partition.

        Falls back to plain concatenation when the round trip disagrees. The
        fallback can drop whitespace the original text had.
        """
        text = self.tokenizer.detokenize(partition)
        retokenized = list(self.tokenizer.tokenize(text))[1:-1]
        if retokenized == partition:
            return text
        return "".join(partition)

    @staticmethod
    def _build_inputs(encoding: TokenEncoding, input_names: Set[str]) -> Dict[str, np.ndarray]:
        """Shape [1, seq_len] int64 arrays for each declared input."""
        ids = np.asarray(encoding.ids, dtype=np.int64)
        candidates = {
            INPUT_IDS: ids,
            ATTENTION_MASK: np.asarray(encoding.attention_mask, dtype=np.int64),
            TOKEN_TYPE_IDS: np.asarray(encoding.type_ids, dtype=np.int64),
        }
        shape = (1, ids.shape[0])
        return {
            name: array.reshape(shape)
            for name, array in candidates.items()
            if name in input_names
        }
