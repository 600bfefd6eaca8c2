"""LangSmith tracing for pipeline stages.

Stage entry points are always wrapped; whether runs are uploaded depends on
the environment flags set by `configure_langsmith_tracing()`.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from langsmith import traceable as langsmith_traceable

from ragdesk.config import Settings, settings as default_settings

F = TypeVar("F", bound=Callable[..., Any])

TRACE_TAG = "ragdesk"


def configure_langsmith_tracing(config: Settings | None = None) -> bool:
    """Export LangSmith env flags; tracing needs both the switch and an API key."""

    config = config or default_settings
    enabled = bool(config.langchain_tracing_v2 and config.langsmith_api_key)

    os.environ["LANGCHAIN_TRACING_V2"] = "true" if enabled else "false"
    if config.langsmith_project:
        os.environ["LANGSMITH_PROJECT"] = config.langsmith_project
    if config.langsmith_api_key:
        os.environ["LANGSMITH_API_KEY"] = config.langsmith_api_key

    return enabled


def traceable(*, name: str, run_type: str = "chain", tags: Sequence[str] = ()) -> Callable[[F], F]:
    """LangSmith decorator for one stage, tagged so runs group per service."""

    return langsmith_traceable(name=name, run_type=run_type, tags=[TRACE_TAG, *tags])
