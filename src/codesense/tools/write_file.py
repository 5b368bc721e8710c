"""writeFile tool - create or overwrite files."""
from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from codesense.logging import get_logger
from codesense.tools.registry import BaseTool

logger = get_logger("tools.write_file")

# Host capability: (path, before, after) -> None, sync or async
ModifiedNotifier = Callable[[str, str, str], Any]


class WriteFileTool(BaseTool):
    """Create or overwrite files, creating parent directories as needed."""

    destructive = True

    def __init__(
        self,
        cwd: str | None = None,
        notify_modified: ModifiedNotifier | None = None,
    ) -> None:
        super().__init__(cwd)
        self.notify_modified = notify_modified

    @property
    def name(self) -> str:
        return "writeFile"

    @property
    def description(self) -> str:
        return (
            "Writes content to a file. Overwrites if exists. "
            "Parent directories are created automatically."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Path of the file",
                },
                "contents": {
                    "type": "string",
                    "description": "Content to write",
                },
            },
            "required": ["file_path", "contents"],
        }

    async def execute(self, args: dict[str, Any]) -> dict[str, Any]:
        file_path = self._require(args, "file_path")
        contents = args.get("contents", "")
        if not isinstance(contents, str):
            contents = str(contents)

        resolved = self._resolve_path(file_path)

        try:
            if not resolved.parent.exists():
                resolved.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created directory: %s", resolved.parent)

            existed = resolved.exists()
            before = resolved.read_text(encoding="utf-8") if existed else ""

            resolved.write_text(contents, encoding="utf-8")
            logger.info("Writing: %s", resolved)
        except (OSError, UnicodeDecodeError) as e:
            return {"success": False, "error": str(e)}

        if existed and before != contents:
            await self._notify(str(resolved), before, contents)

        return {"success": True}

    async def _notify(self, path: str, before: str, after: str) -> None:
        """Best-effort diff preview; never affects the write result."""
        if self.notify_modified is None:
            return
        try:
            result = self.notify_modified(path, before, after)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning("Could not show diff for %s: %s", path, e)
