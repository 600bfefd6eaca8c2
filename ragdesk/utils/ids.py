"""Stable ID helpers for indexed chunks.

Re-ingesting the same file must overwrite the same vectors rather than
duplicate them, so chunk ids are derived from the file path and position.
"""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path
from typing import Any

_UNSAFE_KEY_CHARS_RE = re.compile(r"[^A-Za-z0-9_\-=]")


def stable_hash(payload: Any, *, length: int = 16) -> str:
    """Return a deterministic short hash for any JSON-serializable payload."""

    canonical = json.dumps(payload, ensure_ascii=True, sort_keys=True, default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return digest[:length]


def safe_chunk_id(file_path: str | Path, chunk_index: int) -> str:
    """Build a vector id like `quarterly_report-1a2b3c4d-3` from a file path.

    The stem keeps ids readable; the short path hash keeps files that share a
    stem in different folders or with different extensions apart. Characters
    outside `[A-Za-z0-9_-=]` are replaced with underscores so the id is a
    valid key in any vector store.
    """

    path = Path(file_path)
    stem = _UNSAFE_KEY_CHARS_RE.sub("_", path.stem)
    return f"{stem}-{stable_hash(path.as_posix(), length=8)}-{chunk_index}"


def build_doc_id(*parts: Any, prefix: str = "doc") -> str:
    """Build a stable document ID from ordered components."""

    return f"{prefix}_{stable_hash(parts)}"
