"""Script runtime adapter.

User scripts define ``process(data)``. The code is wrapped so the result is
printed (JSON encoded when it is not a string) and run in a fresh
interpreter process. Failures come back as error results, never raised.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional, Sequence

from textgo.core.config import RuntimeConfig
from textgo.core.models import ExecutionResult

LOGGER = logging.getLogger(__name__)

PYTHON_WRAPPER = """
import json
data = {data}
{code}
result = process(data)
print(result if isinstance(result, str) else json.dumps(result, ensure_ascii=False))
"""

JAVASCRIPT_WRAPPER = """
const data = {data};
{code}
const result = process(data);
console.log(typeof result === 'string' ? result : JSON.stringify(result));
"""

PYTHON_NOT_FOUND = "Python interpreter not found. Please install Python."
JAVASCRIPT_NOT_FOUND = "JavaScript runtime not found. Please install Node.js or Deno."


class SubprocessScriptRuntime:
    """Runs python and javascript scripts as subprocesses."""

    def __init__(self, config: Optional[RuntimeConfig] = None, timeout: Optional[float] = 30.0) -> None:
        self._config = config or RuntimeConfig()
        self._timeout = timeout

    async def run(self, lang: str, code: str, data: dict[str, str]) -> ExecutionResult:
        payload = json.dumps(data, ensure_ascii=False)
        if lang == "python":
            wrapped = PYTHON_WRAPPER.format(data=payload, code=code)
            return await self._run_candidates(self._python_commands(wrapped), "Python", PYTHON_NOT_FOUND)
        if lang == "javascript":
            wrapped = JAVASCRIPT_WRAPPER.format(data=payload, code=code)
            return await self._run_candidates(self._javascript_commands(wrapped), "JavaScript", JAVASCRIPT_NOT_FOUND)
        return ExecutionResult(text=f"Unsupported script language: {lang}", error=True)

    def _python_commands(self, wrapped: str) -> list[list[str]]:
        custom = (self._config.python_path or "").strip()
        if custom:
            return [[custom, "-c", wrapped]]
        return [["python3", "-c", wrapped], ["python", "-c", wrapped]]

    def _javascript_commands(self, wrapped: str) -> list[list[str]]:
        node = (self._config.node_path or "").strip()
        if node:
            return [[node, "-e", wrapped]]
        deno = (self._config.deno_path or "").strip()
        if deno:
            return [[deno, "eval", wrapped]]
        return [["node", "-e", wrapped], ["deno", "eval", wrapped]]

    async def _run_candidates(
        self, commands: Sequence[list[str]], label: str, not_found: str
    ) -> ExecutionResult:
        for command in commands:
            LOGGER.debug("Executing %s with %s", label, command[0])
            try:
                process = await asyncio.create_subprocess_exec(
                    *command,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except (FileNotFoundError, PermissionError):
                LOGGER.debug("Interpreter %s is not available", command[0])
                continue

            try:
                stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                return ExecutionResult(text=f"{label} execution timed out after {self._timeout}s", error=True)

            if process.returncode == 0:
                return ExecutionResult(text=stdout.decode("utf-8", errors="replace").strip())
            message = stderr.decode("utf-8", errors="replace")
            return ExecutionResult(text=f"{label} execution failed:\n\n{message}", error=True)

        return ExecutionResult(text=not_found, error=True)
