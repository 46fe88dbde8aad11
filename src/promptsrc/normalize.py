"""Path normalization: turn a prompt spec into resolved path infos.

Three spec shapes are accepted:

- a single string (path, glob or literal text);
- a list whose items are strings or ``{"id": ..., "label": ...}`` objects;
- a mapping of path to display label.

Each shape is reduced to an ordered tuple of ``ResolvedPathInfo`` plus a
read-only ``ResolutionContext`` (input kind, ``file://`` references and
display labels) that the loader consults.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import glob
import logging
import os
from typing import Any, Final

from promptsrc._validation import _json_preview, _require
from promptsrc.errors import ConfigurationError
from promptsrc.types import (
    InputKind,
    NormalizedPaths,
    ResolutionContext,
    ResolvedPathInfo,
)

log = logging.getLogger(__name__)

FILE_PREFIX: Final[str] = "file://"


def resolve_path(base_path: str, raw: str) -> str:
    """Resolve ``raw`` against ``base_path`` (or the CWD when empty)."""
    return os.path.abspath(os.path.join(base_path, raw))


def strip_file_prefix(raw: str) -> tuple[str, bool]:
    """Remove an explicit ``file://`` marker; report whether one was present."""
    if raw.startswith(FILE_PREFIX):
        return raw[len(FILE_PREFIX) :], True
    return raw, False


def expand_glob(pattern: str) -> list[str]:
    """Expand ``pattern`` into matching absolute paths, sorted.

    Paths that exist are returned as-is even without wildcards; a reference
    with a ``:function`` suffix usually matches nothing.
    """
    return sorted(glob.glob(pattern.replace("\\", "/"), recursive=True))


def normalize_paths(spec: Any, base_path: str = "") -> NormalizedPaths:
    """Normalize a prompt spec into resolved path infos.

    Args:
        spec: A string, a list of strings/``{id, label}`` objects, or a
            mapping of path to display label.
        base_path: Directory relative references are resolved against.

    Returns:
        NormalizedPaths with the resolution context and ordered path infos.

    Raises:
        ConfigurationError: If the spec shape is unsupported or a prompt
            object lacks ``id`` or ``label``.
    """
    if isinstance(spec, str):
        result = _normalize_string(spec, base_path)
    elif isinstance(spec, Mapping):
        result = _normalize_mapping(spec, base_path)
    elif isinstance(spec, Sequence) and not isinstance(spec, bytes | bytearray):
        result = _normalize_sequence(spec, base_path)
    else:
        raise ConfigurationError(
            f"Unsupported prompt path type: {_json_preview(spec)}",
            hint="Pass a path string, a list of paths or {id, label} objects, "
            "or a mapping of path to label.",
        )

    log.debug(
        "Normalized prompt spec as %s into %d path(s)",
        result.input_kind.name,
        len(result.path_infos),
    )
    return result


def _normalize_string(spec: str, base_path: str) -> NormalizedPaths:
    raw, forced = strip_file_prefix(spec)
    resolved = resolve_path(base_path, raw)
    return NormalizedPaths(
        context=ResolutionContext(
            input_kind=InputKind.STRING,
            force_files=frozenset({raw} if forced else ()),
            display_labels={resolved: raw},
        ),
        path_infos=(ResolvedPathInfo(raw=raw, resolved=resolved),),
    )


def _normalize_sequence(spec: Sequence[Any], base_path: str) -> NormalizedPaths:
    input_kind = InputKind.ARRAY
    force_files: set[str] = set()
    display_labels: dict[str, str] = {}
    path_infos: list[ResolvedPathInfo] = []

    for item in spec:
        if isinstance(item, Mapping):
            preview = _json_preview(dict(item))
            _require(
                condition=bool(item.get("label")),
                message=f"Prompt object requires label, but got {preview}",
            )
            _require(
                condition=bool(item.get("id")),
                message=f"Prompt object requires id, but got {preview}",
            )
            label = item["label"]
            raw = item["id"]
            # Sticky for the whole call, not just this item.
            input_kind = InputKind.NAMED
        else:
            label = item
            raw = item
        _require(
            condition=isinstance(raw, str),
            message=f"Prompt path must be a string, but got {_json_preview(raw)}",
        )
        _require(
            condition=isinstance(label, str),
            message=f"Prompt label must be a string, but got {_json_preview(label)}",
        )

        raw, forced = strip_file_prefix(raw)
        if forced:
            force_files.add(raw)
        resolved = resolve_path(base_path, raw)
        display_labels[resolved] = label

        matches = expand_glob(resolved)
        log.debug("Expanded prompt %s to %s and then to %s", raw, resolved, matches)
        if matches:
            path_infos.extend(ResolvedPathInfo(raw=raw, resolved=m) for m in matches)
        else:
            path_infos.append(ResolvedPathInfo(raw=raw, resolved=resolved, label=label))

    return NormalizedPaths(
        context=ResolutionContext(
            input_kind=input_kind,
            force_files=frozenset(force_files),
            display_labels=display_labels,
        ),
        path_infos=tuple(path_infos),
    )


def _normalize_mapping(spec: Mapping[Any, Any], base_path: str) -> NormalizedPaths:
    display_labels: dict[str, str] = {}
    path_infos: list[ResolvedPathInfo] = []
    for key, label in spec.items():
        _require(
            condition=isinstance(key, str) and isinstance(label, str),
            message="Prompt mapping must map path strings to label strings, "
            f"but got {_json_preview(key)}: {_json_preview(label)}",
        )
        resolved = resolve_path(base_path, key)
        display_labels[resolved] = label
        path_infos.append(ResolvedPathInfo(raw=key, resolved=resolved))

    return NormalizedPaths(
        context=ResolutionContext(
            input_kind=InputKind.NAMED,
            display_labels=display_labels,
        ),
        path_infos=tuple(path_infos),
    )
