"""
Tests for cosine similarity and the in-memory vector index.
"""

import threading

import numpy as np
import pytest

from kbchat.vector.index import IVectorStore, SimpleInMemoryVectorStore, cosine_similarity
from kbchat.vector.types import DimensionMismatchError


class TestCosineSimilarity:

    def test_identical_vectors(self):
        v = np.array([0.3, -1.2, 4.0, 0.5], dtype=np.float32)
        assert cosine_similarity(v, v) == pytest.approx(1.0, abs=1e-6)

    def test_opposite_vectors(self):
        v = np.array([0.3, -1.2, 4.0, 0.5], dtype=np.float32)
        assert cosine_similarity(v, -v) == pytest.approx(-1.0, abs=1e-6)

    def test_orthogonal_vectors(self):
        assert cosine_similarity(np.array([1.0, 0.0]), np.array([0.0, 1.0])) == pytest.approx(0.0)

    def test_zero_vector_either_side(self):
        v = np.array([1.0, 2.0, 3.0])
        zero = np.zeros(3)
        assert cosine_similarity(v, zero) == 0.0
        assert cosine_similarity(zero, v) == 0.0
        assert cosine_similarity(zero, zero) == 0.0

    def test_missing_empty_or_mismatched(self):
        v = np.array([1.0, 2.0, 3.0])
        assert cosine_similarity(None, v) == 0.0
        assert cosine_similarity(v, None) == 0.0
        assert cosine_similarity(np.array([]), np.array([])) == 0.0
        assert cosine_similarity(v, np.array([1.0, 2.0])) == 0.0


class TestSimpleInMemoryVectorStore:

    def test_implements_interface(self):
        assert isinstance(SimpleInMemoryVectorStore(), IVectorStore)

    def test_search_orders_by_similarity(self):
        store = SimpleInMemoryVectorStore()
        store.add(1, np.array([1.0, 0.0, 0.0]))
        store.add(2, np.array([0.8, 0.6, 0.0]))
        store.add(3, np.array([0.0, 1.0, 0.0]))

        results = store.search(np.array([1.0, 0.0, 0.0]), top_k=3)

        assert [r.id for r in results] == [1, 2, 3]
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_search_applies_threshold_and_k(self):
        store = SimpleInMemoryVectorStore()
        rng = np.random.default_rng(7)
        for segment_id in range(50):
            store.add(segment_id, rng.normal(size=8))
        query = rng.normal(size=8)

        results = store.search(query, top_k=5, min_similarity=0.1)

        assert len(results) <= 5
        for result in results:
            assert result.score >= 0.1
            assert result.score == pytest.approx(cosine_similarity(query, store.get(result.id)), abs=1e-6)
        assert all(results[i].score >= results[i + 1].score for i in range(len(results) - 1))

    def test_threshold_excludes_everything(self):
        store = SimpleInMemoryVectorStore()
        store.add(1, np.array([0.0, 1.0]))

        assert store.search(np.array([1.0, 0.0]), top_k=3, min_similarity=0.7) == []

    def test_non_positive_k_returns_nothing(self):
        store = SimpleInMemoryVectorStore()
        store.add(1, np.array([1.0, 0.0]))

        assert store.search(np.array([1.0, 0.0]), top_k=0) == []

    def test_zero_vectors_never_rank(self):
        store = SimpleInMemoryVectorStore()
        store.add(1, np.zeros(3))
        store.add(2, np.array([1.0, 0.0, 0.0]))

        # Zero query matches nothing, not even another zero vector
        assert store.search(np.zeros(3), top_k=5, min_similarity=-1.0) == []

        results = store.search(np.array([1.0, 0.0, 0.0]), top_k=5, min_similarity=-1.0)
        assert [r.id for r in results] == [2]

    def test_add_replaces_existing_entry(self):
        store = SimpleInMemoryVectorStore()
        store.add(1, np.array([1.0, 0.0]))
        store.add(1, np.array([0.0, 1.0]))

        assert len(store) == 1
        np.testing.assert_array_equal(store.get(1), np.array([0.0, 1.0], dtype=np.float32))

    def test_stored_vectors_are_copies(self):
        store = SimpleInMemoryVectorStore()
        original = np.array([1.0, 2.0, 3.0])
        store.add(1, original)
        original[0] = 99.0

        assert store.get(1)[0] == pytest.approx(1.0)
        with pytest.raises(ValueError):
            store.get(1)[0] = 5.0

    def test_first_vector_fixes_dimension(self):
        store = SimpleInMemoryVectorStore()
        store.add(1, np.ones(4))
        assert store.dimension == 4

        with pytest.raises(DimensionMismatchError) as exc_info:
            store.add(2, np.ones(3))
        assert exc_info.value.expected == 4
        assert exc_info.value.actual == 3
        assert 2 not in store

    def test_clear_resets_dimension(self):
        store = SimpleInMemoryVectorStore()
        store.add(1, np.ones(4))
        store.clear()

        assert len(store) == 0
        assert store.dimension is None
        store.add(2, np.ones(3))
        assert store.dimension == 3

    def test_delete(self):
        store = SimpleInMemoryVectorStore()
        store.add(1, np.ones(2))
        store.delete(1)
        store.delete(42)

        assert 1 not in store
        assert store.get(1) is None

    def test_concurrent_adds_and_searches(self):
        store = SimpleInMemoryVectorStore()
        store.add(0, np.ones(16))
        errors = []

        def writer(offset):
            rng = np.random.default_rng(offset)
            for i in range(100):
                store.add(offset * 1000 + i + 1, rng.normal(size=16))

        def reader():
            try:
                for _ in range(50):
                    store.search(np.ones(16), top_k=3)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(store) == 401
