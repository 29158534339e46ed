"""
Retrieval Module.

In-memory embedding store with bounded top-k cosine retrieval.

Usage:
    from retrieval import EmbeddingStore, TextSegment

    store = EmbeddingStore(embedder)
    store.add_item(TextSegment("Paris is the capital of France."))
    matches = store.search("What is the capital of France?", max_results=5)
"""

from .embedding_store import Embeddable, EmbeddingMatch, EmbeddingStore, TextSegment

__all__ = [
    "EmbeddingStore",
    "EmbeddingMatch",
    "Embeddable",
    "TextSegment",
]
