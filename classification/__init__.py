"""
Classification Module.

Nearest-prototype text classification on top of the embedder: each label is
described by a few example texts, and input text is scored against them.

Usage:
    from classification import EmbeddingClassifier

    classifier = EmbeddingClassifier(embedder, {
        "billing": ["How do I pay my invoice?", "Refund my last charge"],
        "support": ["The app crashes on start", "I cannot log in"],
    })
    classifier.classify("My payment failed")  # ["billing"]
"""

from .embedding_classifier import (
    EmbeddingClassifier,
    ScoredLabel,
    TextClassifier,
    aggregate_score,
    relevance_score,
)

__all__ = [
    "EmbeddingClassifier",
    "ScoredLabel",
    "TextClassifier",
    "relevance_score",
    "aggregate_score",
]
