"""
Embeddings
==========

Creates the embedding model used to index and query the Bitcoin knowledge
base. Free local HuggingFace sentence-transformers by default, OpenAI as the
paid option.

The embedding client is expensive to load, so one instance per process is
cached by get_embeddings().
"""

import logging
from functools import lru_cache
from typing import Optional

from langchain_core.embeddings import Embeddings

from bitcoin_agent.config import get_settings

logger = logging.getLogger(__name__)


def create_embeddings(provider: Optional[str] = None) -> Embeddings:
    """
    Create embeddings instance based on provider.

    Args:
        provider: Override provider from settings ("huggingface" or "openai")

    Returns:
        LangChain Embeddings instance

    Raises:
        ValueError: If provider is not supported
    """
    settings = get_settings()
    provider = provider or settings.embedding_provider

    logger.info(f"Creating embeddings with provider: {provider}")

    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings
        return HuggingFaceEmbeddings(
            model_name=settings.huggingface_embedding_model,
            model_kwargs={"device": "cpu"},
            encode_kwargs={"normalize_embeddings": True},
        )

    elif provider == "openai":
        from langchain_openai import OpenAIEmbeddings
        return OpenAIEmbeddings(
            model=settings.openai_embedding_model,
            api_key=settings.openai_api_key or None,
        )

    else:
        raise ValueError(f"Unsupported embedding provider: {provider}")


@lru_cache()
def get_embeddings() -> Embeddings:
    """Get the process-wide embeddings client."""
    return create_embeddings()
