"""Content loading: turn one resolved path into prompt entries.

Overview
--------
Each path is classified once by ``classify_source`` into a ``SourceKind`` and
then handled by exactly one branch:

- ``RAW_FALLBACK``: nothing on disk; the user's raw string is the prompt.
- ``DIRECTORY``: one prompt per file directly inside the directory.
- ``SCRIPT_FUNCTION``: a JavaScript export bound through ``modules``.
- ``INTERPRETED_SCRIPT``: a Python script run through ``python_bridge``.
- ``LINE_RECORDS``: ``.jsonl``, one prompt per non-empty line.
- ``PLAIN_TEXT``: ``.txt``, one prompt per delimiter-separated segment.
- ``UNSUPPORTED``: an existing file with an unknown extension (no prompts).

Sharp edges
-----------
A single static result from raw text, a Python script or a text file is
split on ``ResolutionConfig.prompt_delimiter``. Directory entries, JSONL
lines and dynamic prompts are never split.
"""

from __future__ import annotations

from collections.abc import Mapping
import enum
import logging
import os
from pathlib import Path
import re
import stat
from typing import Any, Final

from promptsrc import modules, python_bridge
from promptsrc.config import ResolutionConfig
from promptsrc.errors import (
    ConfigurationError,
    MissingFileError,
    NoPromptsFoundError,
)
from promptsrc.heuristics import maybe_filepath
from promptsrc.types import (
    DynamicPrompt,
    InputKind,
    Prompt,
    PromptContext,
    PromptFunction,
    ResolutionContext,
    ResolvedPathInfo,
    StaticPrompt,
)

log = logging.getLogger(__name__)

MODULE_EXTENSIONS: Final[tuple[str, ...]] = (".js", ".cjs", ".mjs")
PYTHON_EXTENSION: Final[str] = ".py"
SCRIPT_EXTENSIONS: Final[tuple[str, ...]] = (*MODULE_EXTENSIONS, PYTHON_EXTENSION)
JSONL_EXTENSION: Final[str] = ".jsonl"
TEXT_EXTENSION: Final[str] = ".txt"

_LINE_BREAK_RE: Final[re.Pattern[str]] = re.compile(r"\r?\n")


class SourceKind(enum.Enum):
    """How a resolved path turns into prompts."""

    RAW_FALLBACK = "raw_fallback"
    DIRECTORY = "directory"
    SCRIPT_FUNCTION = "script_function"
    INTERPRETED_SCRIPT = "interpreted_script"
    LINE_RECORDS = "line_records"
    PLAIN_TEXT = "plain_text"
    UNSUPPORTED = "unsupported"


def split_function_name(resolved: str) -> tuple[str, str | None]:
    """Split ``/dir/file.py:func`` into ``("/dir/file.py", "func")``.

    The colon only counts when the part before it ends with a script
    extension; otherwise it is part of a literal filename.
    """
    dirname, basename = os.path.split(resolved)
    if ":" in basename:
        head, _, tail = basename.partition(":")
        if head and head.endswith(SCRIPT_EXTENSIONS):
            function_name = tail.split(":", 1)[0]
            return os.path.join(dirname, head), function_name or None
    return resolved, None


def classify_source(ext: str, *, exists: bool, is_dir: bool) -> SourceKind:
    """Classify a path from its extension and stat outcome. Pure."""
    if not exists:
        return SourceKind.RAW_FALLBACK
    if is_dir:
        return SourceKind.DIRECTORY
    if ext in MODULE_EXTENSIONS:
        return SourceKind.SCRIPT_FUNCTION
    if ext == PYTHON_EXTENSION:
        return SourceKind.INTERPRETED_SCRIPT
    if ext == JSONL_EXTENSION:
        return SourceKind.LINE_RECORDS
    if ext == TEXT_EXTENSION:
        return SourceKind.PLAIN_TEXT
    return SourceKind.UNSUPPORTED


def load_prompt_contents(
    path_info: ResolvedPathInfo,
    context: ResolutionContext,
    base_path: str = "",
    *,
    config: ResolutionConfig | None = None,
) -> list[Prompt]:
    """Load the prompts behind one resolved path.

    Args:
        path_info: The raw reference and its resolved location.
        context: Read-only side tables from ``normalize_paths``.
        base_path: Directory a relative ``path_info.resolved`` is anchored
            to. Paths from ``normalize_paths`` are already absolute.
        config: Resolution settings; defaults to ``ResolutionConfig()``.

    Returns:
        Prompts in source order.

    Raises:
        MissingFileError: If a ``file://`` reference (or any reference under
            strict mode) does not exist.
        ConfigurationError: If an existing prompt file cannot be read or is
            not valid UTF-8.
        NoPromptsFoundError: If the source yields no prompts.
        ScriptExecutionError: Deferred; raised by dynamic prompt functions.
    """
    cfg = config or ResolutionConfig()
    resolved = path_info.resolved
    if base_path and not os.path.isabs(resolved):
        resolved = os.path.abspath(os.path.join(base_path, resolved))
    prompt_path, function_name = split_function_name(resolved)
    source = Path(prompt_path)

    try:
        st = source.stat()
    except (OSError, ValueError) as e:
        # ValueError: literal text with characters no path can hold (NUL)
        if cfg.strict_files or path_info.raw in context.force_files:
            raise MissingFileError(
                f"Prompt file not found: {prompt_path}",
                path=prompt_path,
                hint="Remove the file:// prefix to allow literal prompt text."
                if path_info.raw in context.force_files
                else "Strict mode is on; every prompt reference must be a file.",
            ) from e
        st = None

    kind = classify_source(
        source.suffix,
        exists=st is not None,
        is_dir=st is not None and stat.S_ISDIR(st.st_mode),
    )
    log.debug("Loading %s as %s", path_info.describe(), kind.value)

    prompts: list[Prompt]
    if kind is SourceKind.RAW_FALLBACK:
        prompts = [StaticPrompt(raw=path_info.raw, label=path_info.raw)]
        if maybe_filepath(path_info.raw):
            log.warning(
                'Could not find prompt file: "%s". Treating it as a text prompt.',
                source.name,
            )
    elif kind is SourceKind.DIRECTORY:
        return _ensure_prompts(_load_directory(source), path_info)
    elif kind is SourceKind.SCRIPT_FUNCTION:
        return [_load_module_function(prompt_path, function_name, context, cfg)]
    elif kind is SourceKind.INTERPRETED_SCRIPT:
        prompts = [_load_python_script(prompt_path, function_name, context, cfg)]
    elif kind is SourceKind.LINE_RECORDS:
        return _ensure_prompts(_load_jsonl(source), path_info)
    elif kind is SourceKind.PLAIN_TEXT:
        text = _read_text(source)
        label = context.display_label(prompt_path) or prompt_path
        prompts = [StaticPrompt(raw=text, label=label)]
    else:
        log.debug("No loader for extension %r at %s", source.suffix, prompt_path)
        prompts = []

    if len(prompts) == 1 and isinstance(prompts[0], StaticPrompt):
        prompts = split_prompt_text(prompts[0].raw, cfg.prompt_delimiter)
    return _ensure_prompts(prompts, path_info)


def split_prompt_text(text: str, delimiter: str) -> list[Prompt]:
    """Split one text blob into trimmed prompts.

    Segments that are empty after trimming are dropped, so blank text yields
    no prompts at all.
    """
    segments = (segment.strip() for segment in text.split(delimiter))
    return [StaticPrompt(raw=s, label=s) for s in segments if s]


# --- Branch helpers ---


def _read_text(path: Path) -> str:
    """Read a prompt file as UTF-8, mapping read failures to clear errors."""
    try:
        raw = path.read_bytes()
    except PermissionError:
        raise ConfigurationError(
            f"Permission denied reading prompt file '{path}'.",
            hint="Check file permissions.",
        ) from None
    except OSError as e:
        raise ConfigurationError(f"Failed to read prompt file '{path}': {e}") from e

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ConfigurationError(
            f"Prompt file '{path}' is not valid UTF-8: {e}",
            hint="Re-save the file as UTF-8 or move it out of the prompt directory.",
        ) from e


def _load_directory(directory: Path) -> list[Prompt]:
    prompts: list[Prompt] = []
    for entry in sorted(directory.iterdir()):
        if not entry.is_file():
            log.debug("Skipping non-file directory entry %s", entry)
            continue
        content = _read_text(entry)
        prompts.append(StaticPrompt(raw=content, label=content or str(entry)))
    return prompts


def _load_jsonl(path: Path) -> list[Prompt]:
    lines = [line for line in _LINE_BREAK_RE.split(_read_text(path)) if line]
    return [StaticPrompt(raw=line, label=line) for line in lines]


def _lookup_key(prompt_path: str, function_name: str | None) -> str:
    return f"{prompt_path}:{function_name}" if function_name else prompt_path


def _load_module_function(
    prompt_path: str,
    function_name: str | None,
    context: ResolutionContext,
    cfg: ResolutionConfig,
) -> Prompt:
    fn = modules.import_module(
        prompt_path, function_name, node_executable=cfg.node_executable
    )
    rendered = str(fn)
    label = context.display_label(_lookup_key(prompt_path, function_name)) or rendered
    return DynamicPrompt(raw=rendered, label=label, function=fn)


def _load_python_script(
    prompt_path: str,
    function_name: str | None,
    context: ResolutionContext,
    cfg: ResolutionConfig,
) -> Prompt:
    file_content = _read_text(Path(prompt_path))
    fn = _python_prompt_function(prompt_path, function_name, cfg.python_executable)

    label = file_content or prompt_path
    if context.input_kind is InputKind.NAMED:
        key = _lookup_key(prompt_path, function_name)
        label = context.display_label(key) or key
    return DynamicPrompt(raw=file_content, label=label, function=fn)


def _python_prompt_function(
    prompt_path: str, function_name: str | None, python_executable: str
) -> PromptFunction:
    async def prompt_function(ctx: PromptContext) -> Any:
        if function_name:
            narrowed = {**ctx, "provider": _provider_ref(ctx.get("provider"))}
            return await python_bridge.run_python(
                prompt_path,
                function_name,
                [narrowed],
                python_executable=python_executable,
            )
        # Legacy: run the whole file
        return await python_bridge.run_python_file(
            prompt_path, ctx, python_executable=python_executable
        )

    return prompt_function


def _provider_ref(provider: Any) -> dict[str, Any]:
    """Reduce a provider (object or mapping) to ``{"id", "label"}``."""
    if provider is None:
        return {"id": None, "label": None}
    if isinstance(provider, Mapping):
        pid, plabel = provider.get("id"), provider.get("label")
    else:
        pid, plabel = getattr(provider, "id", None), getattr(provider, "label", None)
    if callable(pid):
        pid = pid()
    return {"id": pid, "label": plabel}


def _ensure_prompts(prompts: list[Prompt], path_info: ResolvedPathInfo) -> list[Prompt]:
    if not prompts:
        raise NoPromptsFoundError(path_info)
    return prompts
