"""LLM factory helpers.

Every stage talks to the same Groq chat deployment. Centralizing model
initialization keeps provider settings and fail-fast validation in one place;
each stage only picks its sampling temperature, timeout and output format.
"""

from __future__ import annotations

import os
from typing import Any

from langchain_groq import ChatGroq

from ragdesk.config import settings, validate_env


def get_groq_chat_model(
    *,
    temperature: float,
    timeout: float | None = None,
    max_retries: int = 2,
    json_mode: bool = False,
) -> Any:
    """Return a Groq chat model configured from environment settings.

    Parameters
    ----------
    temperature:
        Sampling temperature for this stage.
    timeout:
        Optional per-request timeout in seconds.
    max_retries:
        Transport-level retries performed by the Groq SDK.
    json_mode:
        Constrain the reply to a single JSON object.

    Raises
    ------
    RuntimeError
        If required Groq env vars are missing.
    """

    validate_env(["GROQ_API_KEY", "GROQ_MODEL"])

    # Ensure provider SDK can resolve credentials even when caller does not
    # export environment variables manually.
    os.environ["GROQ_API_KEY"] = settings.groq_api_key or ""

    model_kwargs: dict[str, Any] = {}
    if json_mode:
        model_kwargs["response_format"] = {"type": "json_object"}

    return ChatGroq(
        model=settings.groq_model,
        temperature=temperature,
        timeout=timeout,
        max_retries=max_retries,
        model_kwargs=model_kwargs,
    )


def message_text(response: Any) -> str:
    """Extract the text content from a chat model reply."""

    content = getattr(response, "content", response)
    if content is None:
        return ""
    return str(content).strip()


def total_tokens(response: Any) -> int | None:
    """Read total token usage from a chat reply, if the provider reported it."""

    usage = getattr(response, "usage_metadata", None)
    if isinstance(usage, dict) and isinstance(usage.get("total_tokens"), int):
        return int(usage["total_tokens"])

    metadata = getattr(response, "response_metadata", None)
    if isinstance(metadata, dict):
        token_usage = metadata.get("token_usage")
        if isinstance(token_usage, dict) and isinstance(token_usage.get("total_tokens"), int):
            return int(token_usage["total_tokens"])

    return None
