"""Pinecone client and index handles.

One client serves both the vector index and hosted reranking, so it is built
once by the composition root and passed in wherever it is needed.
"""

from __future__ import annotations

import time
from typing import Any

from pinecone import Pinecone, ServerlessSpec

from ragdesk.config import Settings, settings as default_settings, validate_env
from ragdesk.utils.logging import get_logger

logger = get_logger(__name__)

PINECONE_ENV_VARS = ("PINECONE_API_KEY", "PINECONE_INDEX_NAME", "PINECONE_CLOUD", "PINECONE_REGION")
READY_POLL_SECONDS = 1.0
READY_TIMEOUT_SECONDS = 60.0


def ensure_pinecone_env() -> None:
    validate_env(PINECONE_ENV_VARS)


def get_pinecone_client(config: Settings | None = None) -> Pinecone:
    """Build a client after checking that credentials are configured."""

    config = config or default_settings
    ensure_pinecone_env()
    return Pinecone(api_key=config.pinecone_api_key)


def _index_names(listing: Any) -> set[str]:
    if listing is None:
        return set()
    if hasattr(listing, "names"):
        return {str(name) for name in listing.names()}
    return {str(item["name"]) if isinstance(item, dict) else str(item) for item in listing}


def _field(description: Any, name: str) -> Any:
    if isinstance(description, dict):
        return description.get(name)
    return getattr(description, name, None)


def _is_ready(description: Any) -> bool:
    status = _field(description, "status")
    return bool(_field(status, "ready")) if status is not None else True


def _wait_until_ready(client: Pinecone, name: str) -> None:
    """Poll a freshly created serverless index until it accepts upserts."""

    deadline = time.monotonic() + READY_TIMEOUT_SECONDS
    while not _is_ready(client.describe_index(name)):
        if time.monotonic() > deadline:
            raise RuntimeError(f"Pinecone index {name!r} not ready after {READY_TIMEOUT_SECONDS:.0f}s")
        time.sleep(READY_POLL_SECONDS)


def get_or_create_index(
    expected_dimension: int,
    *,
    client: Pinecone | None = None,
    config: Settings | None = None,
) -> Any:
    """Return the index handle, creating a cosine serverless index when missing.

    Raises
    ------
    RuntimeError
        If the existing index was built for a different embedding dimension.
    """

    config = config or default_settings
    client = client or get_pinecone_client(config)
    name = config.pinecone_index_name

    if name not in _index_names(client.list_indexes()):
        logger.info(
            "Creating Pinecone index",
            extra={
                "context": {
                    "index": name,
                    "dimension": expected_dimension,
                    "cloud": config.pinecone_cloud,
                    "region": config.pinecone_region,
                }
            },
        )
        client.create_index(
            name=name,
            dimension=expected_dimension,
            metric="cosine",
            spec=ServerlessSpec(cloud=config.pinecone_cloud, region=config.pinecone_region),
        )
        _wait_until_ready(client, name)
    else:
        existing_dimension = _field(client.describe_index(name), "dimension")
        if isinstance(existing_dimension, int) and existing_dimension != expected_dimension:
            raise RuntimeError(
                f"Pinecone index {name!r} has dimension {existing_dimension} but the embedder "
                f"produces {expected_dimension}. Switch embedding backend or recreate the index."
            )

    return client.Index(name)
