"""Helpers to sanitize environment variable values before validation."""

from __future__ import annotations

from typing import Any


def strip_inline_comment(value: str) -> str:
    """Remove a trailing ``  # comment`` from an env-file value.

    Some env-file loaders keep inline comments, so ``27017  # default port``
    reaches the process environment verbatim. A ``#`` only starts a comment
    when preceded by whitespace, so passwords such as ``p#ss`` survive.
    """

    idx = value.find("#")
    if idx == -1:
        return value.strip()
    if idx == 0:
        return ""
    if not value[idx - 1].isspace():
        return value.strip()
    return value[:idx].strip()


def sanitize_inline_numeric(value: Any) -> Any:
    """Normalize numeric env vars that may include inline comments."""

    if isinstance(value, str):
        cleaned = strip_inline_comment(value)
        if cleaned:
            return cleaned
    return value


def blank_to_none(value: Any) -> Any:
    """Treat whitespace-only strings as unset."""

    if isinstance(value, str) and not value.strip():
        return None
    return value
