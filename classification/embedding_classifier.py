"""
Embedding-based text classifier.

Scoring per label:
- relevance of each example = (cosine + 1) / 2, mapping [-1, 1] to [0, 1]
- aggregate = ratio * mean(relevance) + (1 - ratio) * max(relevance)

Labels below min_score are dropped; the rest are ranked by aggregate score.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Generic, Hashable, List, Mapping, Optional, Protocol, Sequence, TypeVar

import numpy as np

from embeddings.embedder import Embedder
from embeddings.vector_math import cosine_similarity
from shared.config import ClassifierConfig
from shared.exceptions import ConfigurationError
from shared.validation import ensure_between, ensure_greater_than_zero, ensure_not_null

logger = logging.getLogger(__name__)

L = TypeVar("L", bound=Hashable)


class TextClassifier(Protocol[L]):
    """Anything that maps text to ranked labels."""

    def classify(self, text: str) -> List[L]:
        ...  # pragma: no cover


@dataclass
class ScoredLabel(Generic[L]):
    """Label with its aggregate score in [0, 1]."""

    label: L
    score: float


def relevance_score(cosine: float) -> float:
    """Map cosine similarity [-1, 1] to relevance [0, 1]."""
    return (cosine + 1.0) / 2.0


def aggregate_score(scores: Sequence[float], mean_to_max_score_ratio: float) -> float:
    """Blend the mean and max of per-example relevance scores."""
    mean_score = float(np.mean(scores))
    max_score = float(np.max(scores))
    return mean_to_max_score_ratio * mean_score + (1.0 - mean_to_max_score_ratio) * max_score


class EmbeddingClassifier(Generic[L]):
    """
    Classifies text by similarity to labelled examples.

    Example embeddings are computed once, at construction.

    Usage:
        classifier = EmbeddingClassifier(
            embedder,
            {"positive": ["I love it"], "negative": ["I hate it"]},
            max_results=1,
        )
        classifier.classify("This is great")
    """

    def __init__(
        self,
        embedder: Embedder,
        examples_by_label: Mapping[L, Sequence[str]],
        max_results: int = 1,
        min_score: float = 0.0,
        mean_to_max_score_ratio: float = 0.5,
    ):
        """
        Args:
            embedder: Embedder for examples and input text
            examples_by_label: Example texts per label
            max_results: Maximum labels returned by classify
            min_score: Minimum aggregate score for a label to be returned (0-1)
            mean_to_max_score_ratio: Weight of the mean score vs the max (0-1)

        Raises:
            ConfigurationError: On invalid parameters or a label with no examples
        """
        self.embedder = ensure_not_null(embedder, "embedder")
        ensure_not_null(examples_by_label, "examples_by_label")
        self.max_results = ensure_greater_than_zero(max_results, "max_results")
        self.min_score = ensure_between(min_score, 0.0, 1.0, "min_score")
        self.mean_to_max_score_ratio = ensure_between(
            mean_to_max_score_ratio, 0.0, 1.0, "mean_to_max_score_ratio"
        )

        for label, examples in examples_by_label.items():
            if not examples:
                raise ConfigurationError(f"Label {label!r} has no examples")

        self._example_embeddings: Dict[L, List[np.ndarray]] = {
            label: [embedder.embed(example) for example in examples]
            for label, examples in examples_by_label.items()
        }
        logger.info(f"Classifier ready with {len(self._example_embeddings)} labels")

    @classmethod
    def from_config(
        cls,
        embedder: Embedder,
        examples_by_label: Mapping[L, Sequence[str]],
        config: Optional[ClassifierConfig] = None,
    ) -> "EmbeddingClassifier[L]":
        config = config or ClassifierConfig()
        return cls(
            embedder,
            examples_by_label,
            max_results=config.max_results,
            min_score=config.min_score,
            mean_to_max_score_ratio=config.mean_to_max_score_ratio,
        )

    @property
    def labels(self) -> List[L]:
        return list(self._example_embeddings)

    def classify_with_scores(self, text: str) -> List[ScoredLabel[L]]:
        """
        Score every label against text.

        Returns:
            At most max_results labels with score >= min_score, best first.
            Equal scores keep label order.
        """
        text_embedding = self.embedder.embed(text)

        scored: List[ScoredLabel[L]] = []
        for label, example_embeddings in self._example_embeddings.items():
            scores = [
                relevance_score(cosine_similarity(text_embedding, example))
                for example in example_embeddings
            ]
            score = aggregate_score(scores, self.mean_to_max_score_ratio)
            if score >= self.min_score:
                scored.append(ScoredLabel(label=label, score=score))

        scored.sort(key=lambda scored_label: scored_label.score, reverse=True)
        return scored[: self.max_results]

    def classify(self, text: str) -> List[L]:
        """Labels for text, most relevant first."""
        return [scored_label.label for scored_label in self.classify_with_scores(text)]
