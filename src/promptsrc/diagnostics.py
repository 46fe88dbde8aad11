"""Diagnostics for prompt source resolution.

Previews how a prompt spec will be normalized and classified without reading
file contents or running scripts, to make fallbacks and labels explicit.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from promptsrc.config import ResolutionConfig
from promptsrc.heuristics import maybe_filepath
from promptsrc.loader import SourceKind, classify_source, split_function_name
from promptsrc.normalize import normalize_paths


def explain_prompt_sources(
    spec: Any,
    base_path: str = "",
    *,
    config: ResolutionConfig | None = None,
) -> str:
    """Return a human-readable explanation of prompt source resolution.

    Lists the input kind, ``file://`` references, and for every resolved path
    its classification and display label. Emits a WARNING line when a
    path-looking reference will be treated as literal text, and an ERROR line
    when a forced or strict reference is missing.
    """
    cfg = config or ResolutionConfig.from_env()
    normalized = normalize_paths(spec, base_path)
    ctx = normalized.context

    lines: list[str] = []
    lines.append("Prompt Source Diagnostics")
    lines.append(f"- input_kind: {ctx.input_kind.name}")
    lines.append(f"- strict_files: {'yes' if cfg.strict_files else 'no'}")
    lines.append(f"- prompt_delimiter: {cfg.prompt_delimiter!r}")
    if ctx.force_files:
        lines.append(f"- force_files: {', '.join(sorted(ctx.force_files))}")
    lines.append(f"- path_count: {len(normalized.path_infos)}")

    for idx, info in enumerate(normalized.path_infos, start=1):
        prompt_path, function_name = split_function_name(info.resolved)
        source = Path(prompt_path)
        exists = source.exists()
        kind = classify_source(
            source.suffix,
            exists=exists,
            is_dir=exists and source.is_dir(),
        )
        key = f"{prompt_path}:{function_name}" if function_name else prompt_path
        label = ctx.display_label(key)

        lines.append(f"- path[{idx}]: {info.raw} -> {prompt_path}")
        lines.append(f"  kind: {kind.value}")
        if function_name:
            lines.append(f"  function: {function_name}")
        if label is not None:
            lines.append(f"  display_label: {label}")

        if kind is SourceKind.RAW_FALLBACK:
            if cfg.strict_files or info.raw in ctx.force_files:
                lines.append("  ERROR: file is required but does not exist")
            elif maybe_filepath(info.raw):
                lines.append(
                    "  WARNING: looks like a file path but does not exist; "
                    "it will be used as literal prompt text"
                )
        elif kind is SourceKind.UNSUPPORTED:
            lines.append("  ERROR: unsupported extension; no prompts will be loaded")

    return "\n".join(lines)
