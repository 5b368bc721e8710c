"""deleteFile tool - remove a single file."""
from __future__ import annotations

from typing import Any

from codesense.logging import get_logger
from codesense.tools.registry import BaseTool

logger = get_logger("tools.delete_file")


class DeleteFileTool(BaseTool):
    """Delete a file if it exists."""

    destructive = True

    @property
    def name(self) -> str:
        return "deleteFile"

    @property
    def description(self) -> str:
        return "Deletes a file."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Path of the file to delete",
                },
            },
            "required": ["file_path"],
        }

    async def execute(self, args: dict[str, Any]) -> dict[str, Any]:
        file_path = self._require(args, "file_path")
        resolved = self._resolve_path(file_path)

        if not resolved.is_file():
            return {"success": False, "error": "File not found"}

        try:
            resolved.unlink()
        except OSError as e:
            return {"success": False, "error": str(e)}

        logger.info("Deleted: %s", resolved)
        return {"success": True}
