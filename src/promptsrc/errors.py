"""Exception hierarchy for promptsrc."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from promptsrc.types import ResolvedPathInfo


class PromptSourceError(Exception):
    """Base exception for all promptsrc errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(PromptSourceError):
    """Prompt, provider or resolution configuration is malformed."""


class MissingFileError(PromptSourceError):
    """A reference that must be a file does not exist.

    Raised for ``file://`` references and under strict mode. The originating
    error is available as ``__cause__``.
    """

    def __init__(self, message: str, *, path: str, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)
        self.path = path


class NoPromptsFoundError(PromptSourceError):
    """A source produced zero usable prompts."""

    def __init__(
        self,
        path_info: ResolvedPathInfo,
        *,
        hint: str | None = None,
    ) -> None:
        super().__init__(f"There are no prompts in {path_info.describe()}", hint=hint)
        self.path_info = path_info


class ScriptExecutionError(PromptSourceError):
    """A prompt script exited unsuccessfully or returned undecodable output."""

    def __init__(
        self,
        message: str,
        *,
        script: str,
        returncode: int | None = None,
        stderr: str = "",
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.script = script
        self.returncode = returncode
        self.stderr = stderr
