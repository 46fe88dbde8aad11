"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, marker registration,
and a small helper for laying out prompt files. All fixtures here are
autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_promptsrc_env(request, monkeypatch):
    """Ensure a clean PROMPTSRC_* environment for each test.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("PROMPTSRC_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# Helpers (opt-in)
# =============================================================================


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write ``{relative_path: content}`` under ``tmp_path`` and return it."""

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return tmp_path

    return _write


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Tests that spawn real subprocesses",
        "allow_dotenv: Permit python-dotenv to read .env files",
        "allow_env_pollution: Keep PROMPTSRC_* variables from the outer environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)
