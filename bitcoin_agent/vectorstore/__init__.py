"""
Vector Store Module
===================

Embeddings and the FAISS-backed Bitcoin knowledge store used for semantic search.
"""

from bitcoin_agent.vectorstore.embeddings import create_embeddings, get_embeddings
from bitcoin_agent.vectorstore.faiss_store import KnowledgeStore, get_knowledge_store

__all__ = [
    "create_embeddings",
    "get_embeddings",
    "KnowledgeStore",
    "get_knowledge_store",
]
