"""Module loader for JavaScript prompt files (``.js``, ``.cjs``, ``.mjs``).

``import_module`` binds a callable to one export of a module. Nothing runs
at load time; each call spawns Node.js, imports the module and awaits the
export with the evaluation context.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
import tempfile
from typing import Any

from promptsrc._process import run_checked, safe_json_dumps
from promptsrc.errors import ScriptExecutionError
from promptsrc.types import PromptContext

# argv after ``node -e``: module path, export name ('' for default), output json.
_NODE_WRAPPER = r"""
const fs = require('fs');
const { pathToFileURL } = require('url');

(async () => {
  const [modulePath, exportName, outputPath] = process.argv.slice(1);
  const context = JSON.parse(fs.readFileSync(0, 'utf-8') || '{}');
  const mod = await import(pathToFileURL(modulePath).href);
  let fn = exportName ? (mod[exportName] ?? mod.default?.[exportName]) : mod.default;
  if (fn && typeof fn !== 'function' && typeof fn.default === 'function') {
    fn = fn.default;
  }
  if (typeof fn !== 'function') {
    throw new Error(`${modulePath} does not export a function named ${exportName || 'default'}`);
  }
  const result = await fn(context);
  fs.writeFileSync(outputPath, JSON.stringify({ result: result === undefined ? null : result }));
})().catch((err) => {
  console.error((err && err.stack) || String(err));
  process.exit(1);
});
"""


@dataclass(frozen=True, slots=True)
class ModuleFunction:
    """Callable proxy for a JavaScript module export."""

    path: str
    export_name: str | None = None
    node_executable: str = "node"

    def __str__(self) -> str:
        return f"[Function: {self.export_name or 'default'}] {self.path}"

    async def __call__(self, context: PromptContext) -> Any:
        script = f"{self.path}:{self.export_name}" if self.export_name else self.path
        with tempfile.TemporaryDirectory(prefix="promptsrc-") as tmp:
            output_path = os.path.join(tmp, "output.json")
            await run_checked(
                [
                    self.node_executable,
                    "-e",
                    _NODE_WRAPPER,
                    self.path,
                    self.export_name or "",
                    output_path,
                ],
                script=script,
                stdin=safe_json_dumps(dict(context)),
            )
            try:
                with open(output_path, encoding="utf-8") as f:
                    payload = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ScriptExecutionError(
                    f"JavaScript prompt {script} did not produce a JSON result: {e}",
                    script=script,
                ) from e
        return payload.get("result") if isinstance(payload, dict) else None


def import_module(
    path: str,
    function_name: str | None = None,
    *,
    node_executable: str = "node",
) -> ModuleFunction:
    """Return a callable bound to ``function_name`` (or the default export)."""
    return ModuleFunction(
        path=path, export_name=function_name, node_executable=node_executable
    )
