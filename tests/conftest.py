"""
Shared test fixtures and test doubles for pytest.
"""

import re
from typing import Dict, List, Sequence, Set

import numpy as np
import pytest

from embeddings.cache import EmbeddingCache
from embeddings.embedder import Embedder
from embeddings.encoder import BertEncoder, TokenEncoding
from embeddings.pooling import PoolingMode

CLS = "[CLS]"
SEP = "[SEP]"
CLS_ID = 0
SEP_ID = 1
FAKE_DIMENSION = 2048


# ============================================================================
# Test doubles
# ============================================================================

class FakeWordPieceTokenizer:
    """
    Deterministic WordPiece-style tokenizer.

    Lowercases, splits words and punctuation, and breaks words longer than
    six characters into a 4-character head followed by '##' pieces:
    "capital" -> ["capi", "##tal"]. Ids are assigned on first sight.
    """

    def __init__(self, piece_length: int = 4, max_word_length: int = 6):
        self.piece_length = piece_length
        self.max_word_length = max_word_length
        self.vocab: Dict[str, int] = {CLS: CLS_ID, SEP: SEP_ID}
        self.encoded_texts: List[str] = []

    def _word_pieces(self, word: str) -> List[str]:
        if len(word) <= self.max_word_length:
            return [word]
        pieces = [word[: self.piece_length]]
        rest = word[self.piece_length:]
        while rest:
            pieces.append("##" + rest[: self.piece_length])
            rest = rest[self.piece_length:]
        return pieces

    def tokenize(self, text: str) -> List[str]:
        tokens = [CLS]
        for word in re.findall(r"[^\W_]+|[^\w\s]|_", text.lower()):
            tokens.extend(self._word_pieces(word))
        tokens.append(SEP)
        return tokens

    def token_id(self, token: str) -> int:
        if token not in self.vocab:
            self.vocab[token] = len(self.vocab)
        return self.vocab[token]

    def encode(self, text: str) -> TokenEncoding:
        self.encoded_texts.append(text)
        ids = [self.token_id(token) for token in self.tokenize(text)]
        return TokenEncoding(ids=ids, attention_mask=[1] * len(ids), type_ids=[0] * len(ids))

    def detokenize(self, tokens: Sequence[str]) -> str:
        return " ".join(tokens).replace(" ##", "")


class FakeInferenceEngine:
    """
    Call-counting engine mapping each token id to a one-hot vector.

    With mean pooling, cosine similarity then measures token overlap exactly.
    """

    def __init__(
        self,
        dimension: int = FAKE_DIMENSION,
        input_names: Set[str] = frozenset({"input_ids", "attention_mask", "token_type_ids"}),
    ):
        self.dimension = dimension
        self._input_names = set(input_names)
        self.calls = 0
        self.received: List[Dict[str, np.ndarray]] = []

    @property
    def input_names(self) -> Set[str]:
        return set(self._input_names)

    def run(self, inputs: Dict[str, np.ndarray]) -> np.ndarray:
        self.calls += 1
        self.received.append(inputs)
        ids = inputs["input_ids"][0]
        output = np.zeros((1, len(ids), self.dimension), dtype=np.float32)
        output[0, np.arange(len(ids)), ids % self.dimension] = 1.0
        return output


class FailingInferenceEngine(FakeInferenceEngine):
    """Engine that always raises."""

    def run(self, inputs: Dict[str, np.ndarray]) -> np.ndarray:
        self.calls += 1
        raise RuntimeError("engine exploded")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def tokenizer() -> FakeWordPieceTokenizer:
    return FakeWordPieceTokenizer()


@pytest.fixture
def engine() -> FakeInferenceEngine:
    return FakeInferenceEngine()


@pytest.fixture
def encoder(tokenizer, engine) -> BertEncoder:
    return BertEncoder(tokenizer, engine, pooling_mode=PoolingMode.MEAN)


@pytest.fixture
def embedder(encoder) -> Embedder:
    return Embedder(encoder, cache_size=8)


@pytest.fixture
def small_cache() -> EmbeddingCache:
    return EmbeddingCache(capacity=3)
