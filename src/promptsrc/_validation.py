"""Internal validation helpers shared by the normalizer and map builder."""

from __future__ import annotations

import json
from typing import Any

from promptsrc.errors import ConfigurationError


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ConfigurationError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def _json_preview(value: Any) -> str:
    """Render a config value for error messages, tolerating non-JSON types."""
    try:
        return json.dumps(value, default=repr)
    except (TypeError, ValueError):
        return repr(value)
