"""Embedding provider implementations.

    HashingEmbeddingProvider: deterministic token-hashing vectors with an
    exhaustive in-memory index.  Placeholder for a model-backed provider.
"""

from contextkeeper.providers.embedding.hashing_embedding_provider import (
    HashingEmbeddingProvider,
    compute_embedding,
    cosine_similarity,
)

__all__ = ["HashingEmbeddingProvider", "compute_embedding", "cosine_similarity"]
