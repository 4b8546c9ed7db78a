"""Use-case services: chunking, ranking, and the two orchestrators."""

from contextkeeper.services.chunker import ContextChunker
from contextkeeper.services.context_service import ContextManagementService
from contextkeeper.services.ranker import RetrievalRanker
from contextkeeper.services.search_service import ContextSearchService

__all__ = [
    "ContextChunker",
    "ContextManagementService",
    "ContextSearchService",
    "RetrievalRanker",
]
