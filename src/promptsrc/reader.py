"""Prompt source orchestration: normalize once, load every path in order."""

from __future__ import annotations

import logging
from typing import Any

from promptsrc._validation import _json_preview
from promptsrc.config import ResolutionConfig
from promptsrc.loader import load_prompt_contents
from promptsrc.normalize import normalize_paths
from promptsrc.types import Prompt

log = logging.getLogger(__name__)


def read_prompts(
    spec: Any,
    base_path: str = "",
    *,
    config: ResolutionConfig | None = None,
) -> list[Prompt]:
    """Read prompts from paths, globs, label mappings or literal text.

    Args:
        spec: A path/glob/text string, a list of strings or ``{id, label}``
            objects, or a mapping of path to display label.
        base_path: Directory relative references are resolved against.
            Defaults to the current working directory.
        config: Resolution settings. Read from ``PROMPTSRC_*`` environment
            variables when omitted.

    Returns:
        Prompts in input order, one or more per resolved path.

    Example:
        prompts = read_prompts({"prompts/summarize.txt": "Summarize"}, "evals/")
        for prompt in prompts:
            print(prompt.label)
    """
    cfg = config or ResolutionConfig.from_env()
    log.debug("Reading prompts from %s", _json_preview(spec))

    normalized = normalize_paths(spec, base_path)
    log.debug(
        "Resolved prompt paths: %s",
        [info.describe() for info in normalized.path_infos],
    )

    prompts: list[Prompt] = []
    for path_info in normalized.path_infos:
        prompts.extend(
            load_prompt_contents(path_info, normalized.context, base_path, config=cfg)
        )
    return prompts
