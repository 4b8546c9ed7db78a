"""Unit tests for HashingEmbeddingProvider and its vectorization helpers."""

from __future__ import annotations

import math

import numpy as np
import pytest

from contextkeeper.models.context import ContextChunk
from contextkeeper.providers.embedding.hashing_embedding_provider import (
    HashingEmbeddingProvider,
    compute_embedding,
    cosine_similarity,
    tokenize,
)
from contextkeeper.utils.errors import ConfigurationError, ContextValidationError


def _chunk(chunk_id: str, content: str, context_id: str = "ctx-1", position: int = 0) -> ContextChunk:
    return ContextChunk(context_id=context_id, chunk_id=chunk_id, content=content, position=position)


# ---------------------------------------------------------------------------
# Vectorization helpers
# ---------------------------------------------------------------------------


class TestTokenize:
    def test_lowercases_and_strips_punctuation(self) -> None:
        assert tokenize("Hello, World!  foo-bar") == ["hello", "world", "foobar"]

    def test_drops_tokens_without_alphanumerics(self) -> None:
        assert tokenize("--- !!! ...") == []

    def test_keeps_non_ascii_letters(self) -> None:
        assert tokenize("Ünïcode café") == ["ünïcode", "café"]


class TestComputeEmbedding:
    def test_is_deterministic(self) -> None:
        a = compute_embedding("the same text twice", 64)
        b = compute_embedding("the same text twice", 64)

        assert np.array_equal(a, b)

    def test_has_requested_dimension_and_unit_norm(self) -> None:
        vector = compute_embedding("some words here", 32)

        assert vector.shape == (32,)
        assert vector.dtype == np.float32
        assert math.isclose(float(np.linalg.norm(vector)), 1.0, rel_tol=1e-5)

    def test_token_lands_on_byte_sum_dimension(self) -> None:
        # "ab" -> 97 + 98 = 195, and 195 % 64 == 3
        vector = compute_embedding("ab", 64)

        assert vector[3] == pytest.approx(1.0)
        assert np.count_nonzero(vector) == 1

    def test_counts_repeated_tokens(self) -> None:
        # "a" -> 97 % 10 == 7 and "b" -> 98 % 10 == 8; counts 2 and 1
        vector = compute_embedding("a A b", 10)

        assert vector[7] == pytest.approx(2 / math.sqrt(5))
        assert vector[8] == pytest.approx(1 / math.sqrt(5))

    def test_empty_text_gives_zero_vector(self) -> None:
        vector = compute_embedding("   ", 16)

        assert not vector.any()


class TestCosineSimilarity:
    def test_identical_vectors(self) -> None:
        v = compute_embedding("rust systems language", 64)

        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_zero_magnitude_is_zero(self) -> None:
        v = compute_embedding("anything", 16)

        assert cosine_similarity(v, np.zeros(16, dtype=np.float32)) == 0.0
        assert cosine_similarity(np.zeros(16), np.zeros(16)) == 0.0

    def test_orthogonal_vectors(self) -> None:
        a = np.array([1.0, 0.0], dtype=np.float32)
        b = np.array([0.0, 1.0], dtype=np.float32)

        assert cosine_similarity(a, b) == 0.0


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


class TestProviderMetadata:
    def test_reports_dimension_and_name(self, embedder: HashingEmbeddingProvider) -> None:
        assert embedder.get_dimension() == 64
        assert embedder.get_provider_name() == "hashing-embedder"
        assert embedder.is_available() is True

    @pytest.mark.parametrize("dimension", [0, -1])
    def test_non_positive_dimension_rejected(self, dimension: int) -> None:
        with pytest.raises(ConfigurationError):
            HashingEmbeddingProvider(dimension=dimension)


class TestEmbed:
    @pytest.mark.asyncio
    async def test_returns_copies_with_embeddings(self, embedder: HashingEmbeddingProvider) -> None:
        originals = [_chunk("c1", "alpha beta"), _chunk("c2", "gamma delta", position=5)]

        embedded = await embedder.embed(originals)

        assert [c.chunk_id for c in embedded] == ["c1", "c2"]
        assert all(len(c.embedding) == 64 for c in embedded)
        assert embedded[1].position == 5
        assert all(c.embedding is None for c in originals)

    @pytest.mark.asyncio
    async def test_empty_batch_is_noop(self, embedder: HashingEmbeddingProvider) -> None:
        assert await embedder.embed([]) == []
        assert len(embedder) == 0

    @pytest.mark.asyncio
    async def test_reembedding_same_chunk_replaces_entry(self, embedder: HashingEmbeddingProvider) -> None:
        chunk = _chunk("c1", "alpha beta")

        first = await embedder.embed([chunk])
        second = await embedder.embed([chunk])

        assert len(embedder) == 1
        assert first[0].embedding == second[0].embedding


class TestFindSimilar:
    @pytest.mark.asyncio
    async def test_returns_indexed_chunks_best_first(self, embedder: HashingEmbeddingProvider) -> None:
        await embedder.embed([_chunk("c1", "rust is a systems language", context_id="rust")])
        await embedder.embed([_chunk("c2", "bananas are yellow fruit", context_id="fruit")])

        results = await embedder.find_similar("systems language rust", limit=10)

        assert [chunk.context_id for chunk, _ in results] == ["rust", "fruit"]
        assert results[0][1] > results[1][1]
        assert results[0][0].embedding is not None

    @pytest.mark.asyncio
    async def test_truncates_to_limit(self, embedder: HashingEmbeddingProvider) -> None:
        await embedder.embed([_chunk(f"c{i}", f"word{i} common") for i in range(5)])

        assert len(await embedder.find_similar("common", limit=3)) == 3
        assert await embedder.find_similar("common", limit=0) == []

    @pytest.mark.asyncio
    async def test_negative_limit_rejected(self, embedder: HashingEmbeddingProvider) -> None:
        with pytest.raises(ContextValidationError):
            await embedder.find_similar("anything", limit=-1)

    @pytest.mark.asyncio
    async def test_empty_index_returns_nothing(self, embedder: HashingEmbeddingProvider) -> None:
        assert await embedder.find_similar("anything", limit=5) == []

    @pytest.mark.asyncio
    async def test_mutating_results_leaves_index_untouched(self, embedder: HashingEmbeddingProvider) -> None:
        (embedded,) = await embedder.embed([_chunk("c1", "alpha beta")])
        expected = list(embedded.embedding)
        embedded.embedding[0] = 123.0

        ((found, _),) = await embedder.find_similar("alpha", limit=1)
        found.embedding[0] = 456.0

        ((again, _),) = await embedder.find_similar("alpha", limit=1)
        assert again.embedding == expected


class TestFindSimilarWithTags:
    @pytest.mark.asyncio
    async def test_only_chunks_carrying_all_tags(self, embedder: HashingEmbeddingProvider) -> None:
        await embedder.embed([_chunk("c1", "great language", context_id="r")], tags=["rust", "lang"])
        await embedder.embed([_chunk("c2", "great language", context_id="p")], tags=["python", "lang"])

        rust_only = await embedder.find_similar_with_tags("great", ["rust"], limit=10)
        both = await embedder.find_similar_with_tags("great", ["lang"], limit=10)
        none = await embedder.find_similar_with_tags("great", ["rust", "python"], limit=10)

        assert [c.context_id for c, _ in rust_only] == ["r"]
        assert {c.context_id for c, _ in both} == {"r", "p"}
        assert none == []


class TestDeleteByContextId:
    @pytest.mark.asyncio
    async def test_removes_only_that_context(self, embedder: HashingEmbeddingProvider) -> None:
        await embedder.embed([_chunk("a1", "one", "a"), _chunk("a2", "two", "a"), _chunk("b1", "three", "b")])

        removed = await embedder.delete_by_context_id("a")

        assert removed == 2
        assert len(embedder) == 1
        results = await embedder.find_similar("one two three", limit=10)
        assert [c.context_id for c, _ in results] == ["b"]

    @pytest.mark.asyncio
    async def test_unknown_context_removes_nothing(self, embedder: HashingEmbeddingProvider) -> None:
        assert await embedder.delete_by_context_id("missing") == 0
