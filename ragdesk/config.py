"""Configuration and environment validation.

This module centralizes runtime settings so every stage of the pipeline reads
configuration in one consistent way.

How this module is designed:
1. `Settings` loads values from environment variables and optional `.env` file.
2. `validate_env()` explicitly checks required variables for a given workflow.
3. Required checks stay out of import-time so `pytest` can run without
   remote-service keys.
"""

from __future__ import annotations

import os
from typing import Iterable, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer based on the provided context and cite sources."
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Keys for remote services are optional at load time. Required-key checks
    are deferred to `validate_env()` so we fail fast only when a specific
    feature is invoked.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    debug: bool = Field(default=False, alias="DEBUG")

    groq_api_key: str | None = Field(default=None, alias="GROQ_API_KEY")
    groq_model: str = Field(default="llama-3.3-70b-versatile", alias="GROQ_MODEL")
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, alias="SYSTEM_PROMPT")

    classifier_timeout_seconds: float = Field(default=10.0, alias="CLASSIFIER_TIMEOUT_SECONDS")
    classifier_max_retries: int = Field(default=1, alias="CLASSIFIER_MAX_RETRIES")
    classifier_backoff_seconds: float = Field(default=0.5, alias="CLASSIFIER_BACKOFF_SECONDS")

    embedding_backend: Literal["huggingface", "hash"] = Field(default="huggingface", alias="EMBEDDING_BACKEND")
    hf_embedding_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        alias="HF_EMBEDDING_MODEL",
    )
    hash_embedding_dim: int = Field(default=384, alias="HASH_EMBEDDING_DIM")

    pinecone_api_key: str | None = Field(default=None, alias="PINECONE_API_KEY")
    pinecone_index_name: str = Field(default="ragdesk-documents", alias="PINECONE_INDEX_NAME")
    pinecone_cloud: str = Field(default="aws", alias="PINECONE_CLOUD")
    pinecone_region: str = Field(default="us-east-1", alias="PINECONE_REGION")
    pinecone_namespace: str = Field(default="documents", alias="PINECONE_NAMESPACE")

    use_reranker: bool = Field(default=False, alias="USE_RERANKER")
    rerank_model: str = Field(default="bge-reranker-v2-m3", alias="RERANK_MODEL")

    default_top_k: int = Field(default=6, alias="DEFAULT_TOP_K")

    chunk_size: int = Field(default=3200, alias="CHUNK_SIZE")
    chunk_overlap: int = Field(default=400, alias="CHUNK_OVERLAP")

    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=3000, alias="PORT")

    langsmith_api_key: str | None = Field(default=None, alias="LANGSMITH_API_KEY")
    langsmith_project: str = Field(default="ragdesk", alias="LANGSMITH_PROJECT")
    langchain_tracing_v2: bool = Field(default=True, alias="LANGCHAIN_TRACING_V2")


settings = Settings()


def validate_env(required_vars: Iterable[str]) -> None:
    """Fail fast if required environment variables are missing.

    Parameters
    ----------
    required_vars:
        Iterable of variable names (for example, `GROQ_API_KEY`) that must be
        present and non-empty before a workflow can proceed.

    Raises
    ------
    RuntimeError
        If one or more required variables are missing.
    """

    missing: list[str] = []
    for var_name in required_vars:
        # Convert ENV-like names to Settings attribute names.
        attr_name = var_name.lower()
        if hasattr(settings, attr_name):
            value = getattr(settings, attr_name)
        else:
            value = os.getenv(var_name)

        if value is None or (isinstance(value, str) and value.strip() == ""):
            missing.append(var_name)

    if missing:
        raise RuntimeError(
            "Missing required environment variables: "
            + ", ".join(sorted(missing))
            + ". Please copy .env.example to .env and fill these values."
        )
