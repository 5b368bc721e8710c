"""readFile tool - return a file's text content."""
from __future__ import annotations

from typing import Any

from codesense.logging import get_logger
from codesense.tools.registry import BaseTool

logger = get_logger("tools.read_file")


class ReadFileTool(BaseTool):
    """Read a whole file as UTF-8 text."""

    @property
    def name(self) -> str:
        return "readFile"

    @property
    def description(self) -> str:
        return "Reads a file's content."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Path of the file",
                },
            },
            "required": ["file_path"],
        }

    async def execute(self, args: dict[str, Any]) -> dict[str, Any]:
        file_path = self._require(args, "file_path")
        resolved = self._resolve_path(file_path)

        try:
            contents = resolved.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return {"error": f"Failed to read file: {e}"}

        logger.info("Reading: %s", resolved)
        return {"contents": contents}
