"""
Unit tests for the cached Embedder.
"""

import threading
from unittest.mock import MagicMock

import numpy as np
import pytest

from embeddings.backends import TimeoutInferenceEngine
from embeddings.embedder import Embedder
from embeddings.encoder import BertEncoder
from shared.exceptions import EncodingError
from tests.conftest import FailingInferenceEngine, FakeInferenceEngine


class TestEmbed:
    """Tests for Embedder.embed."""

    def test_repeat_hits_cache(self, embedder, engine):
        """Same text twice: identical vectors, one inference call."""
        first = embedder.embed("Paris is the capital of France.")
        second = embedder.embed("Paris is the capital of France.")
        np.testing.assert_array_equal(first, second)
        assert first.tobytes() == second.tobytes()
        assert engine.calls == 1

    def test_whitespace_variants_share_entry(self, embedder, engine):
        embedder.embed("hello world")
        embedder.embed("  hello \n world ")
        assert engine.calls == 1

    def test_case_is_significant(self, embedder, engine):
        embedder.embed("Hello")
        embedder.embed("hello")
        assert engine.calls == 2

    def test_returned_vector_is_independent(self, embedder):
        first = embedder.embed("hello world")
        first[:] = 0.0
        second = embedder.embed("hello world")
        assert np.linalg.norm(second) == pytest.approx(1.0, abs=1e-5)

    def test_none_embeds_empty_string(self, embedder, engine):
        np.testing.assert_array_equal(embedder.embed(None), embedder.embed(""))
        assert engine.calls == 1

    def test_eviction_recomputes(self, encoder, engine):
        embedder = Embedder(encoder, cache_size=2)
        for text in ["one", "two", "three"]:
            embedder.embed(text)
        embedder.embed("one")
        assert engine.calls == 4

    def test_dimension_known_after_first_embed(self, embedder, engine):
        assert embedder.dimension is None
        embedder.embed("hello")
        assert embedder.dimension == engine.dimension

    def test_failure_leaves_cache_untouched(self, tokenizer):
        embedder = Embedder(BertEncoder(tokenizer, FailingInferenceEngine()))
        with pytest.raises(EncodingError):
            embedder.embed("hello")
        assert len(embedder.cache) == 0

    def test_concurrent_callers_compute_once(self, embedder, engine):
        results = []

        def worker():
            results.append(embedder.embed("shared text"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert engine.calls == 1
        assert len(results) == 8
        for vector in results[1:]:
            np.testing.assert_array_equal(vector, results[0])


class TestPassThrough:
    """Tests for the uncached operations."""

    def test_embed_batch_shape(self, embedder, engine):
        batch = embedder.embed_batch(["a", "b", "a"])
        assert batch.shape == (3, engine.dimension)
        assert engine.calls == 2

    def test_embed_batch_empty(self, embedder):
        assert embedder.embed_batch([]).shape[0] == 0

    def test_encode_bypasses_cache(self, embedder, engine):
        embedder.encode("hello")
        embedder.encode("hello")
        assert engine.calls == 2
        assert len(embedder.cache) == 0

    def test_count_tokens(self, embedder, engine):
        assert embedder.count_tokens("hello world") == 4
        assert engine.calls == 0

    def test_cache_stats(self, embedder):
        embedder.embed("x")
        embedder.embed("x")
        stats = embedder.cache_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["capacity"] == 8


class TestClose:
    """Tests for releasing engine resources."""

    def test_closes_engine(self, tokenizer):
        engine = MagicMock()
        Embedder(BertEncoder(tokenizer, engine)).close()
        engine.close.assert_called_once_with()

    def test_engine_without_close(self, embedder):
        embedder.close()
        assert embedder.embed("still works").shape == (2048,)

    def test_context_manager_shuts_down_timeout_engine(self, tokenizer):
        timeout_engine = TimeoutInferenceEngine(FakeInferenceEngine(), timeout=2.0)
        with Embedder(BertEncoder(tokenizer, timeout_engine)) as embedder:
            embedder.embed("hello")

        with pytest.raises(EncodingError):
            embedder.encode("goodbye")
