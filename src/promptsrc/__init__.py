"""promptsrc: Resolve prompt sources into ordered prompt entries.

Public API:
    - read_prompts(): Paths, globs, label mappings or literal text -> prompts
    - read_provider_prompt_map(): Scope prompts per provider
    - normalize_paths() / load_prompt_contents(): The two pipeline stages
    - explain_prompt_sources(): Human-readable resolution preview
    - ResolutionConfig: Delimiter, strict mode and interpreter settings
"""

from __future__ import annotations

import logging

from promptsrc.config import ResolutionConfig
from promptsrc.diagnostics import explain_prompt_sources
from promptsrc.errors import (
    ConfigurationError,
    MissingFileError,
    NoPromptsFoundError,
    PromptSourceError,
    ScriptExecutionError,
)
from promptsrc.heuristics import maybe_filepath
from promptsrc.loader import SourceKind, classify_source, load_prompt_contents
from promptsrc.normalize import normalize_paths
from promptsrc.provider_map import ProviderOptions, read_provider_prompt_map
from promptsrc.reader import read_prompts
from promptsrc.types import (
    DynamicPrompt,
    InputKind,
    NormalizedPaths,
    Prompt,
    PromptFunction,
    ResolutionContext,
    ResolvedPathInfo,
    StaticPrompt,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("promptsrc")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("promptsrc").addHandler(logging.NullHandler())

__all__ = [
    "ConfigurationError",
    "DynamicPrompt",
    "InputKind",
    "MissingFileError",
    "NoPromptsFoundError",
    "NormalizedPaths",
    "Prompt",
    "PromptFunction",
    "PromptSourceError",
    "ProviderOptions",
    "ResolutionConfig",
    "ResolutionContext",
    "ResolvedPathInfo",
    "ScriptExecutionError",
    "SourceKind",
    "StaticPrompt",
    "classify_source",
    "explain_prompt_sources",
    "load_prompt_contents",
    "maybe_filepath",
    "normalize_paths",
    "read_prompts",
    "read_provider_prompt_map",
]
