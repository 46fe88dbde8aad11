"""Core value types shared by the normalizer, loader and orchestrator."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
import enum
import json
from types import MappingProxyType
from typing import Any, TypeAlias

#: Evaluation context handed to dynamic prompts: ``{"vars": ..., "provider": ...}``.
PromptContext: TypeAlias = Mapping[str, Any]
PromptFunction: TypeAlias = Callable[[PromptContext], Awaitable[Any]]

#: Accepted shapes for "where prompts come from".
PromptSourceSpec: TypeAlias = (
    str | Sequence[str | Mapping[str, Any]] | Mapping[str, str]
)


class InputKind(enum.Enum):
    """Shape of the top-level spec; steers label selection for scripts."""

    STRING = 1
    ARRAY = 2
    NAMED = 3


@dataclass(frozen=True, slots=True)
class ResolvedPathInfo:
    """A user reference paired with one absolute filesystem location."""

    raw: str
    resolved: str
    label: str | None = None

    def describe(self) -> str:
        """Return a compact JSON rendering for error messages and logs."""
        data: dict[str, str] = {"raw": self.raw, "resolved": self.resolved}
        if self.label is not None:
            data["label"] = self.label
        return json.dumps(data)


@dataclass(frozen=True, slots=True)
class ResolutionContext:
    """Read-only side tables produced once by the normalizer.

    ``force_files`` holds raw references marked with ``file://``;
    ``display_labels`` maps resolved paths (``path:function`` for script
    functions) to the label the user wants shown.
    """

    input_kind: InputKind
    force_files: frozenset[str] = frozenset()
    display_labels: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        if not isinstance(self.display_labels, MappingProxyType):
            object.__setattr__(
                self, "display_labels", MappingProxyType(dict(self.display_labels))
            )
        if not isinstance(self.force_files, frozenset):
            object.__setattr__(self, "force_files", frozenset(self.force_files))

    def display_label(self, key: str) -> str | None:
        return self.display_labels.get(key)


@dataclass(frozen=True, slots=True)
class NormalizedPaths:
    """Result of path normalization: context plus ordered path infos."""

    context: ResolutionContext
    path_infos: tuple[ResolvedPathInfo, ...]

    @property
    def input_kind(self) -> InputKind:
        return self.context.input_kind

    @property
    def force_files(self) -> frozenset[str]:
        return self.context.force_files

    @property
    def display_labels(self) -> Mapping[str, str]:
        return self.context.display_labels


@dataclass(frozen=True, slots=True)
class StaticPrompt:
    """Literal prompt text."""

    raw: str
    label: str

    @property
    def is_dynamic(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class DynamicPrompt:
    """Prompt produced at evaluation time by calling ``function``.

    ``raw`` is the script text (or a rendering of the callable) and is kept
    for display; the rendered prompt comes from ``await function(context)``.
    """

    raw: str
    label: str
    function: PromptFunction = field(compare=False)

    @property
    def is_dynamic(self) -> bool:
        return True


Prompt: TypeAlias = StaticPrompt | DynamicPrompt
