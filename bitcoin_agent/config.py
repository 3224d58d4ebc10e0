"""
Configuration Management
========================

This module centralizes all configuration using pydantic-settings.
It loads environment variables and provides type-safe access to config values.

SUPPORTED LLM PROVIDERS:
1. openai      - OpenAI (default, tool calling is required by the workflow)
2. groq        - Groq Cloud
3. google      - Google Gemini
4. ollama      - Local LLMs served by Ollama
5. huggingface - HuggingFace Inference API

The workflow limits below are the loop-prevention ceilings enforced by the
supervisor. The defaults bound a run to at most three worker steps.
"""

from pathlib import Path
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    In production, override via environment variables or .env file.
    """

    # =========================================================================
    # LLM Provider Selection
    # =========================================================================
    llm_provider: Literal["openai", "groq", "google", "ollama", "huggingface"] = Field(
        default="openai",
        description="Which LLM provider to use for every agent"
    )

    # =========================================================================
    # API Keys
    # =========================================================================
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key"
    )

    groq_api_key: str = Field(
        default="",
        description="Groq API key"
    )

    google_api_key: str = Field(
        default="",
        description="Google API key"
    )

    huggingface_api_key: str = Field(
        default="",
        description="HuggingFace API key"
    )

    tavily_api_key: str = Field(
        default="",
        description="Tavily API key for web search (falls back to TAVILY_API_KEY)"
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================
    openai_model: str = Field(
        default="gpt-4o",
        description="OpenAI model"
    )

    groq_model: str = Field(
        default="llama-3.1-8b-instant",
        description="Groq model"
    )

    google_model: str = Field(
        default="gemini-1.5-flash",
        description="Google Gemini model"
    )

    ollama_model: str = Field(
        default="llama3.2",
        description="Ollama model"
    )

    huggingface_model: str = Field(
        default="mistralai/Mistral-7B-Instruct-v0.2",
        description="HuggingFace model ID"
    )

    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL"
    )

    # Routing and planning need reproducible output, so 0 by default
    llm_temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="LLM temperature (lower = more focused)"
    )

    llm_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for a single chat completion request"
    )

    # =========================================================================
    # Workflow Limits
    # =========================================================================
    plan_step_count: int = Field(
        default=3,
        ge=1,
        description="Exact number of steps the planner must produce"
    )

    researcher_call_limit: int = Field(
        default=2,
        ge=0,
        description="Maximum researcher dispatches per run"
    )

    executor_call_limit: int = Field(
        default=1,
        ge=0,
        description="Maximum executor dispatches per run"
    )

    max_replans: int = Field(
        default=1,
        ge=0,
        description="Maximum replanner dispatches per run"
    )

    max_workflow_steps: int = Field(
        default=25,
        ge=1,
        description="Hard ceiling on node executions in a single run"
    )

    executor_tools_enabled: bool = Field(
        default=False,
        description="Bind execute_action/provide_result tools to the executor"
    )

    # =========================================================================
    # Information Sources
    # =========================================================================
    structured_db_url: str = Field(
        default="sqlite:///./data/bitcoin_metrics.db",
        description="Connection URL of the structured (SQL) data source"
    )

    sql_max_rows: int = Field(
        default=50,
        ge=1,
        description="Maximum rows returned by a single SQL query"
    )

    web_search_max_results: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Number of web search results per query"
    )

    vector_match_count: int = Field(
        default=5,
        ge=1,
        description="Number of vector matches to request"
    )

    vector_match_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum similarity for a vector match to be returned"
    )

    source_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single information source call"
    )

    # =========================================================================
    # Embedding / Vector Store Configuration
    # =========================================================================
    embedding_provider: Literal["huggingface", "openai"] = Field(
        default="huggingface",
        description="Embedding provider (huggingface is free and local)"
    )

    huggingface_embedding_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="Local embedding model"
    )

    openai_embedding_model: str = Field(
        default="text-embedding-3-small",
        description="OpenAI embedding model"
    )

    faiss_index_path: Path = Field(
        default=Path("./data/faiss_index"),
        description="Directory holding the Bitcoin knowledge FAISS index"
    )

    chunk_size: int = Field(
        default=1000,
        description="Size of knowledge chunks for embedding"
    )

    chunk_overlap: int = Field(
        default=200,
        description="Overlap between consecutive chunks"
    )

    # =========================================================================
    # API Configuration
    # =========================================================================
    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server"
    )

    api_port: int = Field(
        default=8000,
        description="Port for the API server"
    )

    cors_allow_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed to call the API (the dashboard host in production)"
    )

    debug_mode: bool = Field(
        default=True,
        description="Enable debug mode for development"
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    class Config:
        """Pydantic configuration for settings."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def get_model_name(self) -> str:
        """Get the model name for the selected provider."""
        model_map = {
            "openai": self.openai_model,
            "groq": self.groq_model,
            "google": self.google_model,
            "ollama": self.ollama_model,
            "huggingface": self.huggingface_model,
        }
        return model_map.get(self.llm_provider, self.openai_model)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
