"""Text cleanup applied to files before they are chunked and embedded."""

from __future__ import annotations

import re
from typing import Any

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_HORIZONTAL_SPACE_RE = re.compile(r"[ \t]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

# YAML front matter at the very top of a markdown file.
_FRONT_MATTER_RE = re.compile(r"\A---\n.*?\n---\n", re.DOTALL)
_HTML_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)


def normalize_text(value: Any) -> str:
    """Drop control characters, unify line endings and squeeze whitespace.

    Paragraph breaks survive as a single blank line.
    """

    if value is None:
        return ""

    text = _CONTROL_CHARS_RE.sub("", str(value))
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _HORIZONTAL_SPACE_RE.sub(" ", text)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()


def strip_markdown_noise(text: str) -> str:
    """Remove front matter and HTML comments, which carry no answerable content."""

    text = _FRONT_MATTER_RE.sub("", text)
    return _HTML_COMMENT_RE.sub("", text)


def clean_document_text(raw: str, *, suffix: str) -> str:
    """Clean raw file contents according to the file type."""

    text = raw.replace("\r\n", "\n")
    if suffix.lower() == ".md":
        text = strip_markdown_noise(text)
    return normalize_text(text)
