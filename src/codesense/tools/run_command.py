"""runTerminalCommand tool - execute shell commands in the project directory."""
from __future__ import annotations

import asyncio
import os
from typing import Any

from codesense.logging import get_logger
from codesense.tools.registry import BaseTool

logger = get_logger("tools.run_command")

# Default timeout in seconds
_DEFAULT_TIMEOUT = 120.0

# Maximum output size in characters before truncation
_MAX_OUTPUT = 100_000


class RunCommandTool(BaseTool):
    """Execute a shell command and report its captured output."""

    def __init__(self, cwd: str | None = None, timeout: float = _DEFAULT_TIMEOUT) -> None:
        super().__init__(cwd)
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "runTerminalCommand"

    @property
    def description(self) -> str:
        return (
            "Runs a shell command in the project directory. Use this for "
            "tests, linters, builds and git operations."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "Command to execute",
                },
            },
            "required": ["command"],
        }

    async def execute(self, args: dict[str, Any]) -> dict[str, Any]:
        command = self._require(args, "command")

        logger.debug("Executing: %s (cwd=%s, timeout=%ss)", command, self.cwd, self.timeout)

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
                env=os.environ.copy(),
            )

            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
                return {
                    "success": False,
                    "error": f"Command timed out after {self.timeout}s",
                    "stderr": "",
                }
        except (FileNotFoundError, NotADirectoryError):
            return {
                "success": False,
                "error": f"Working directory does not exist: {self.cwd}",
                "stderr": "",
            }
        except PermissionError:
            return {"success": False, "error": "Permission denied", "stderr": ""}

        stdout_str = self._truncate(self._decode(stdout))
        stderr_str = self._truncate(self._decode(stderr))
        exit_code = process.returncode or 0

        logger.debug("Command finished (exit=%d)", exit_code)

        if exit_code != 0:
            return {
                "success": False,
                "error": f"Command failed with exit code {exit_code}",
                "stderr": stderr_str,
            }
        return {"success": True, "stdout": stdout_str, "stderr": stderr_str}

    @staticmethod
    def _decode(data: bytes | None) -> str:
        if not data:
            return ""
        return data.decode("utf-8", errors="replace").rstrip()

    @staticmethod
    def _truncate(text: str) -> str:
        """Truncate output if it exceeds the maximum size."""
        if len(text) > _MAX_OUTPUT:
            half = _MAX_OUTPUT // 2
            return (
                text[:half]
                + f"\n\n... ({len(text) - _MAX_OUTPUT} characters truncated) ...\n\n"
                + text[-half:]
            )
        return text
