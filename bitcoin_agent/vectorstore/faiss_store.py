"""
Bitcoin Knowledge Store
=======================

FAISS index of embedded Bitcoin knowledge (protocol notes, market
commentary, on-chain metric explanations) used by the researcher's
semantic search.

HOW IT WORKS:
1. Knowledge texts are split into chunks
2. Each chunk is embedded into a vector
3. Vectors are indexed in FAISS and persisted to disk
4. A query is embedded and compared to all vectors
5. The closest chunks are returned with a 0-1 similarity score

Indexing is an offline concern; at query time the store only loads an
existing index from ``faiss_index_path``.
"""

import logging
import threading
from functools import lru_cache
from typing import Optional

from langchain_community.vectorstores import FAISS
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_text_splitters import RecursiveCharacterTextSplitter

from bitcoin_agent.config import Settings, get_settings
from bitcoin_agent.vectorstore.embeddings import get_embeddings

logger = logging.getLogger(__name__)


class KnowledgeStore:
    """
    Manages the FAISS index behind vector search.

    Usage:
        store = KnowledgeStore()
        store.add_texts(["Halvings cut the block subsidy in half..."])
        results = store.similarity_search("halving schedule", k=5)
    """

    def __init__(
        self,
        embeddings: Optional[Embeddings] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        Initialize the store and load a persisted index if there is one.

        Args:
            embeddings: Embedding model (process-wide default if not provided)
            settings: Application settings (cached settings if not provided)
        """
        self._settings = settings or get_settings()
        self._embeddings = embeddings
        self._store: Optional[FAISS] = None
        # Serializes index creation, writes and saves against searches
        self._lock = threading.Lock()
        self._text_splitter = RecursiveCharacterTextSplitter(
            chunk_size=self._settings.chunk_size,
            chunk_overlap=self._settings.chunk_overlap,
            length_function=len,
            # Split hierarchy: paragraphs -> sentences -> words -> chars
            separators=["\n\n", "\n", ". ", " ", ""],
        )
        self._try_load_existing_index()

    def _get_embeddings(self) -> Embeddings:
        if self._embeddings is None:
            self._embeddings = get_embeddings()
        return self._embeddings

    def _try_load_existing_index(self) -> None:
        """Load the FAISS index from disk if one was saved earlier."""
        index_path = self._settings.faiss_index_path
        if not (index_path / "index.faiss").exists():
            logger.info("No existing FAISS index found. Vector search disabled until indexed.")
            return

        try:
            self._store = FAISS.load_local(
                str(index_path),
                self._get_embeddings(),
                allow_dangerous_deserialization=True,
            )
            logger.info(f"Loaded knowledge index from {index_path}")
        except Exception as e:
            logger.warning(f"Could not load existing index: {e}")
            self._store = None

    def add_texts(
        self,
        texts: list[str],
        source: str = "knowledge_base",
    ) -> int:
        """
        Chunk, embed and index raw knowledge texts, then persist the index.

        Args:
            texts: Knowledge texts to index
            source: Source label stored in each chunk's metadata

        Returns:
            Number of chunks indexed
        """
        if not texts:
            logger.warning("No texts provided to index")
            return 0

        documents = [Document(page_content=text, metadata={"source": source}) for text in texts]
        chunks = self._text_splitter.split_documents(documents)
        for index, chunk in enumerate(chunks):
            chunk.metadata["chunk_index"] = index

        with self._lock:
            if self._store is None:
                self._store = FAISS.from_documents(chunks, self._get_embeddings())
            else:
                self._store.add_documents(chunks)

            index_path = self._settings.faiss_index_path
            index_path.mkdir(parents=True, exist_ok=True)
            self._store.save_local(str(index_path))

        logger.info(f"Indexed {len(chunks)} knowledge chunks from {source}")

        return len(chunks)

    def similarity_search(
        self,
        query: str,
        k: Optional[int] = None,
    ) -> list[tuple[Document, float]]:
        """
        Search for knowledge chunks similar to the query.

        Args:
            query: The search query text
            k: Number of results to return (default from settings)

        Returns:
            List of (Document, similarity) tuples, most similar first.
            Similarity is between 0 and 1, where 1 is most similar.

        Raises:
            RuntimeError: If no knowledge has been indexed
        """
        k = k or self._settings.vector_match_count

        with self._lock:
            if self._store is None:
                raise RuntimeError("No knowledge indexed. Vector search is unavailable.")

            # FAISS returns L2 distances: 0 = identical, higher = less similar
            results = self._store.similarity_search_with_score(query, k=k)
        return [(doc, 1 / (1 + distance)) for doc, distance in results]

    @property
    def is_ready(self) -> bool:
        """Check if the store has knowledge indexed."""
        return self._store is not None

    @property
    def document_count(self) -> int:
        """Number of chunks in the index."""
        if self._store is None:
            return 0
        return self._store.index.ntotal


@lru_cache()
def get_knowledge_store() -> KnowledgeStore:
    """Get the process-wide knowledge store."""
    return KnowledgeStore()
