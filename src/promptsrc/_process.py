"""Shared subprocess runner for prompt script bridges."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from promptsrc.errors import ScriptExecutionError

log = logging.getLogger(__name__)

_STDERR_PREVIEW_CHARS = 2000


def safe_json_dumps(value: Any) -> str:
    """Serialize an evaluation context, rendering unknown objects with ``str``."""
    return json.dumps(value, default=str)


async def run_checked(
    argv: list[str],
    *,
    script: str,
    stdin: str | None = None,
) -> str:
    """Run ``argv`` to completion and return its decoded stdout.

    Raises:
        ScriptExecutionError: If the executable cannot be started or the
            process exits non-zero. ``stderr`` is attached to the error.
    """
    log.debug("Executing prompt script %s", script)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if stdin is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ScriptExecutionError(
            f"Could not start {argv[0]!r} for prompt script {script}: {e}",
            script=script,
            hint="Check that the interpreter is installed and on PATH.",
        ) from e

    try:
        stdout_b, stderr_b = await proc.communicate(
            stdin.encode("utf-8") if stdin is not None else None
        )
    except asyncio.CancelledError:
        # Do not leave an orphaned child behind a cancelled prompt call.
        proc.kill()
        await proc.wait()
        raise
    stdout = stdout_b.decode("utf-8", errors="replace")
    stderr = stderr_b.decode("utf-8", errors="replace")

    if proc.returncode != 0:
        preview = stderr.strip()[-_STDERR_PREVIEW_CHARS:]
        raise ScriptExecutionError(
            f"Prompt script {script} exited with status {proc.returncode}"
            + (f": {preview}" if preview else ""),
            script=script,
            returncode=proc.returncode,
            stderr=stderr,
        )
    if stderr.strip():
        log.debug("Prompt script %s wrote to stderr: %s", script, stderr.strip())
    return stdout
