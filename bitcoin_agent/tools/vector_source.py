"""
Vector Search Source
====================

Semantic search over the Bitcoin knowledge store.

Only matches whose similarity reaches ``vector_match_threshold`` are
returned, so a weak index yields an empty list instead of noise.
"""

import asyncio
import logging
from typing import Any, Optional

from bitcoin_agent.config import get_settings
from bitcoin_agent.vectorstore.faiss_store import KnowledgeStore, get_knowledge_store

logger = logging.getLogger(__name__)


class VectorSearchSource:
    """Runs similarity searches for the researcher."""

    def __init__(
        self,
        store: Optional[KnowledgeStore] = None,
        match_count: Optional[int] = None,
        match_threshold: Optional[float] = None,
    ):
        settings = get_settings()
        self._store = store
        self._match_count = match_count or settings.vector_match_count
        self._match_threshold = (
            match_threshold if match_threshold is not None else settings.vector_match_threshold
        )

    async def search(self, query: str) -> list[dict[str, Any]]:
        """
        Find knowledge chunks matching the query.

        Raises:
            RuntimeError: If the knowledge store has nothing indexed
        """
        store = self._store or get_knowledge_store()

        # FAISS search is CPU-bound and synchronous
        results = await asyncio.to_thread(store.similarity_search, query, self._match_count)

        matches = [
            {
                "content": doc.page_content,
                "source": doc.metadata.get("source", "unknown"),
                "similarity": round(score, 4),
            }
            for doc, score in results
            if score >= self._match_threshold
        ]

        logger.info(f"Vector search returned {len(matches)}/{len(results)} matches above threshold")
        return matches
