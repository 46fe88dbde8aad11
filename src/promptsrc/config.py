"""Configuration: Frozen resolution settings with environment fallbacks."""

from __future__ import annotations

from dataclasses import dataclass
import os
import sys
from typing import Any

from dotenv import load_dotenv

from promptsrc.errors import ConfigurationError

load_dotenv()

ENV_PREFIX = "PROMPTSRC_"

DEFAULT_PROMPT_DELIMITER = "---"

# Field name -> environment variable consulted by ``ResolutionConfig.from_env``
_ENV_VARS: dict[str, str] = {
    "prompt_delimiter": f"{ENV_PREFIX}PROMPT_SEPARATOR",
    "strict_files": f"{ENV_PREFIX}STRICT_FILES",
    "python_executable": f"{ENV_PREFIX}PYTHON",
    "node_executable": f"{ENV_PREFIX}NODE",
}


def _coerce_bool(v: str) -> bool:
    """Convert string to boolean using common conventions."""
    return v.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ResolutionConfig:
    """Immutable settings for one prompt resolution call.

    Algorithms receive this value explicitly and never read the environment
    themselves. Use ``from_env()`` to pick up ``PROMPTSRC_*`` variables.

    Example:
        config = ResolutionConfig(strict_files=True)
        prompts = read_prompts(["prompts/*.txt"], "configs/", config=config)
    """

    #: Separator used to split one text source into several prompts.
    prompt_delimiter: str = DEFAULT_PROMPT_DELIMITER
    #: When set, every missing file is fatal instead of becoming literal text.
    strict_files: bool = False
    #: Interpreter used for ``.py`` prompt scripts.
    python_executable: str = sys.executable or "python"
    #: Runtime used for ``.js``/``.cjs``/``.mjs`` prompt modules.
    node_executable: str = "node"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not isinstance(self.prompt_delimiter, str) or not self.prompt_delimiter:
            raise ConfigurationError(
                f"prompt_delimiter must be a non-empty string, got {self.prompt_delimiter!r}",
                hint=f"Unset {_ENV_VARS['prompt_delimiter']} to use the default '---'.",
            )
        if not isinstance(self.strict_files, bool):
            raise ConfigurationError(
                f"strict_files must be a bool, got {type(self.strict_files).__name__}"
            )
        for name in ("python_executable", "node_executable"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(
                    f"{name} must be a non-empty string",
                    hint=f"Set {_ENV_VARS[name]} or pass {name}=...",
                )

    @classmethod
    def from_env(cls, **overrides: Any) -> ResolutionConfig:
        """Build a config from ``PROMPTSRC_*`` variables; overrides win.

        Empty environment values are ignored so an exported-but-blank
        variable does not clobber the default.
        """
        values: dict[str, Any] = {}
        for field_name, env_var in _ENV_VARS.items():
            raw = os.environ.get(env_var)
            if raw is None or raw == "":
                continue
            values[field_name] = _coerce_bool(raw) if field_name == "strict_files" else raw
        values.update(overrides)
        return cls(**values)
