"""
In-memory embedding store with top-k cosine retrieval.

Items are embedded once on insert. Queries compare a query vector against
every stored vector in a single pass, keeping only the best k candidates in
a bounded heap instead of sorting the whole store.
"""

import heapq
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, List, Optional, Protocol, Tuple, TypeVar

import numpy as np

from embeddings.embedder import Embedder, load_default_embedder
from embeddings.vector_math import cosine_similarity
from shared.config import EmbeddingConfig
from shared.exceptions import DimensionMismatchError
from shared.validation import ensure_greater_than_zero

logger = logging.getLogger(__name__)


class Embeddable(Protocol):
    """Anything with text to embed."""

    @property
    def text(self) -> str:
        ...  # pragma: no cover


T = TypeVar("T", bound=Embeddable)


@dataclass(frozen=True)
class TextSegment:
    """A piece of text with optional metadata."""

    text: str
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)


@dataclass
class EmbeddingMatch(Generic[T]):
    """Result from a store query. score is plain cosine similarity in [-1, 1]."""

    item: T
    score: float


class EmbeddingStore(Generic[T]):
    """
    Append-only store of items and their embeddings.

    Items and vectors are kept in two index-aligned lists guarded by one lock.

    Usage:
        store = EmbeddingStore(embedder)
        store.add_item(TextSegment("Paris is the capital of France."))
        matches = store.search("What is the capital of France?", max_results=3)
    """

    def __init__(self, embedder: Embedder):
        """
        Args:
            embedder: Used to embed items on insert and text queries
        """
        if embedder is None:
            raise ValueError("embedder cannot be None")
        self.embedder = embedder
        self._items: List[T] = []
        self._embeddings: List[np.ndarray] = []
        self._lock = threading.Lock()

    @classmethod
    def from_default_model(cls, config: Optional[EmbeddingConfig] = None) -> "EmbeddingStore":
        """Store backed by a freshly loaded default embedder."""
        return cls(load_default_embedder(config))

    def add_item(self, item: T) -> int:
        """
        Embed an item and append it.

        The store is unchanged if embedding fails.

        Returns:
            Index of the new record
        """
        vector = self.embedder.embed(item.text)

        with self._lock:
            if self._embeddings and len(self._embeddings[0]) != len(vector):
                raise DimensionMismatchError(expected=len(self._embeddings[0]), actual=len(vector))
            self._items.append(item)
            self._embeddings.append(vector)
            index = len(self._items) - 1

        logger.debug(f"Added item {index} to embedding store")
        return index

    def add_items(self, items: Iterable[T]) -> List[int]:
        """Add several items; each insert is atomic on its own."""
        indices = [self.add_item(item) for item in items]
        logger.info(f"Added {len(indices)} items to embedding store")
        return indices

    def find_relevant(self, query_embedding, max_results: int) -> List[EmbeddingMatch[T]]:
        """
        Most similar items to a query vector.

        Args:
            query_embedding: Vector of the same dimension as stored vectors
            max_results: Maximum number of matches

        Returns:
            Up to max_results matches by descending score. Equal scores keep
            insertion order.

        Raises:
            ConfigurationError: If max_results is not positive
            DimensionMismatchError: If the query dimension differs
        """
        ensure_greater_than_zero(max_results, "max_results")

        with self._lock:
            items = list(self._items)
            embeddings = list(self._embeddings)

        if not embeddings:
            return []

        query = np.asarray(query_embedding, dtype=np.float64).ravel()
        if len(query) != len(embeddings[0]):
            raise DimensionMismatchError(expected=len(embeddings[0]), actual=len(query))

        # Min-heap of the best candidates; root is the current worst.
        # Later inserts lose ties, hence the negated index.
        heap: List[Tuple[float, int]] = []
        for index, embedding in enumerate(embeddings):
            candidate = (cosine_similarity(query, embedding), -index)
            if len(heap) < max_results:
                heapq.heappush(heap, candidate)
            elif candidate > heap[0]:
                heapq.heapreplace(heap, candidate)

        ranked = sorted(heap, reverse=True)
        return [EmbeddingMatch(item=items[-neg_index], score=score) for score, neg_index in ranked]

    def search(self, query: str, max_results: int = 10) -> List[EmbeddingMatch[T]]:
        """Embed query text and return the most similar items."""
        return self.find_relevant(self.embedder.embed(query), max_results)

    @property
    def items(self) -> Tuple[T, ...]:
        with self._lock:
            return tuple(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
