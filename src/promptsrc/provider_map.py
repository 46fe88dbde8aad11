"""Provider-to-prompt scoping.

Builds a mapping from provider id (and label) to the prompt labels that
provider should run. Providers missing from the mapping run every prompt.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, ValidationError

from promptsrc._validation import _json_preview
from promptsrc.errors import ConfigurationError
from promptsrc.types import Prompt

CUSTOM_FUNCTION_KEY = "Custom function"

_MISSING_ID_HINT = (
    "Use {id: ..., prompts: [...]} or {name: {id: ..., prompts: [...]}}."
)


class ProviderOptions(BaseModel):
    """The slice of a provider entry needed to scope prompts."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    label: str | None = None
    prompts: list[str] | None = None


def _validate_options(raw: Mapping[str, Any]) -> ProviderOptions:
    try:
        return ProviderOptions.model_validate(dict(raw))
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(p) for p in err.get("loc", ()))
        raise ConfigurationError(
            f"Invalid provider options {_json_preview(dict(raw))}: "
            f"{loc + ': ' if loc else ''}{err.get('msg')}"
        ) from e


def _providers_of(config: Any) -> Any:
    if config is None:
        return None
    if isinstance(config, Mapping):
        return config.get("providers")
    return getattr(config, "providers", None)


def read_provider_prompt_map(config: Any, prompts: list[Prompt]) -> dict[str, list[str]]:
    """Map provider ids and labels to the prompt labels they should use.

    Args:
        config: Evaluation config (mapping or object) with a ``providers``
            entry: a string, a callable, or a list of provider entries.
        prompts: Parsed prompts; their labels are the default scope.

    Returns:
        Provider key -> prompt labels. Empty when no providers are configured.

    Raises:
        ConfigurationError: If a provider entry cannot be keyed by an id.
    """
    providers = _providers_of(config)
    if not providers:
        return {}

    all_prompts = [prompt.label for prompt in prompts]

    if isinstance(providers, str):
        return {providers: all_prompts}
    if callable(providers):
        return {CUSTOM_FUNCTION_KEY: all_prompts}

    ret: dict[str, list[str]] = {}
    for provider in providers:
        if not isinstance(provider, Mapping):
            # Plain ids and custom functions are not scoped.
            continue

        if provider.get("id"):
            options = _validate_options(provider)
            scoped = list(options.prompts) if options.prompts is not None else all_prompts
            ret[cast("str", options.id)] = scoped
            if options.label:
                ret[options.label] = scoped
            continue

        if len(provider) != 1:
            raise ConfigurationError(
                "You must specify an `id` on the Provider when you override "
                f"options.prompts, but got {_json_preview(dict(provider))}",
                hint=_MISSING_ID_HINT,
            )
        original_id, inner = next(iter(provider.items()))
        if not isinstance(inner, Mapping):
            raise ConfigurationError(
                f"Provider {original_id!r} must map to an options object, "
                f"but got {_json_preview(inner)}",
                hint=_MISSING_ID_HINT,
            )
        options = _validate_options(inner)
        key = options.id or str(original_id)
        ret[key] = list(options.prompts) if options.prompts is not None else all_prompts

    return ret
