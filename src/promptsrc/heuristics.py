"""Cheap guesses about whether a string was meant as a file path."""

from __future__ import annotations

from typing import Final

# Prompt-management URIs that contain slashes but are never local files.
_NON_FILE_SCHEMES: Final[tuple[str, ...]] = ("portkey://", "langfuse://")


def maybe_filepath(s: str) -> bool:
    """Return True when ``s`` looks like a path rather than prompt text.

    A candidate is single-line, is not a prompt-management URI, and has a
    path separator, a glob star, or a one- or two-character extension
    (``x.md``, ``x.txt``). Only used to decide whether falling back to
    literal text deserves a warning.
    """
    if "\n" in s or any(scheme in s for scheme in _NON_FILE_SCHEMES):
        return False
    return (
        "/" in s
        or "\\" in s
        or "*" in s
        or s[-3:-2] == "."
        or s[-4:-3] == "."
    )
