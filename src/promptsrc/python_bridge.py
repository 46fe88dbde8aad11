"""Execution bridge for Python prompt scripts.

Prompt scripts run in a separate interpreter so that user code cannot
mutate the caller's process. Two modes are supported:

- ``run_python``: import the script and call one named function with JSON
  arguments; the JSON-decoded return value is handed back.
- ``run_python_file``: legacy whole-file mode; run the script with the
  serialized context as its only argument and return its stdout.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from typing import Any

from promptsrc._process import run_checked, safe_json_dumps
from promptsrc.errors import ScriptExecutionError

log = logging.getLogger(__name__)

# Executed with ``python -c``; argv: script, function, input json, output json.
_WRAPPER = """
import asyncio
import importlib.util
import inspect
import json
import os
import sys


async def _await(value):
    return await value


def main(script_path, function_name, input_path, output_path):
    sys.path.insert(0, os.path.dirname(os.path.abspath(script_path)))
    module_name = os.path.splitext(os.path.basename(script_path))[0]
    spec = importlib.util.spec_from_file_location(module_name, script_path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    func = getattr(module, function_name)
    with open(input_path, encoding="utf-8") as f:
        args = json.load(f)
    result = func(*args)
    if inspect.isawaitable(result):
        result = asyncio.run(_await(result))
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump({"type": "final_result", "data": result}, f)


main(*sys.argv[1:5])
"""


async def run_python(
    script_path: str,
    function_name: str,
    args: list[Any],
    *,
    python_executable: str | None = None,
) -> Any:
    """Call ``function_name`` from ``script_path`` in a subprocess.

    Args:
        script_path: Absolute path to the ``.py`` prompt script.
        function_name: Module-level function to call.
        args: Positional arguments; must be JSON-serializable.
        python_executable: Interpreter to use. Defaults to the current one.

    Returns:
        The function's JSON-decoded return value.

    Raises:
        ScriptExecutionError: If the script fails or returns non-JSON data.
    """
    python = python_executable or sys.executable
    script = f"{script_path}:{function_name}"
    with tempfile.TemporaryDirectory(prefix="promptsrc-") as tmp:
        input_path = os.path.join(tmp, "input.json")
        output_path = os.path.join(tmp, "output.json")
        with open(input_path, "w", encoding="utf-8") as f:
            f.write(safe_json_dumps(args))

        stdout = await run_checked(
            [python, "-c", _WRAPPER, script_path, function_name, input_path, output_path],
            script=script,
        )
        if stdout.strip():
            log.debug("Python prompt %s printed: %s", script, stdout.strip())

        try:
            with open(output_path, encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ScriptExecutionError(
                f"Python prompt {script} did not produce a JSON result: {e}",
                script=script,
                hint="Return a JSON-serializable value (str, list, dict, ...).",
            ) from e

    result = payload.get("data") if isinstance(payload, dict) else None
    log.debug("Python prompt %s returned: %r", script, result)
    return result


async def run_python_file(
    script_path: str,
    context: Any,
    *,
    python_executable: str | None = None,
) -> str:
    """Run a whole script with the serialized ``context`` as ``sys.argv[1]``.

    Returns the script's stdout lines joined with ``"\\n"``. A script that
    exits 0 without printing yields ``""``; a non-zero exit raises
    ``ScriptExecutionError``.
    """
    python = python_executable or sys.executable
    stdout = await run_checked(
        [python, script_path, safe_json_dumps(context)],
        script=script_path,
    )
    result = "\n".join(stdout.splitlines())
    log.debug("Python prompt script %s returned: %s", script_path, result)
    return result
