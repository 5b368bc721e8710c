"""createDirectory tool - idempotent recursive mkdir."""
from __future__ import annotations

from typing import Any

from codesense.logging import get_logger
from codesense.tools.registry import BaseTool

logger = get_logger("tools.create_directory")


class CreateDirectoryTool(BaseTool):
    """Create a directory and any missing parents."""

    @property
    def name(self) -> str:
        return "createDirectory"

    @property
    def description(self) -> str:
        return "Creates a new directory."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "directory_path": {
                    "type": "string",
                    "description": "Path of the directory",
                },
            },
            "required": ["directory_path"],
        }

    async def execute(self, args: dict[str, Any]) -> dict[str, Any]:
        directory_path = self._require(args, "directory_path")
        resolved = self._resolve_path(directory_path)

        if resolved.is_dir():
            return {"success": True, "message": "Directory already exists"}

        try:
            resolved.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return {"success": False, "error": str(e)}

        logger.info("Created directory: %s", resolved)
        return {"success": True}
